"""
Pure helpers turning raw cell and label text into typed values.

None of these raise on malformed input; each degrades to a documented
default so one bad cell never costs a whole row.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from .config import INDENT_WIDTH_PX, OUTPUT_DATE_FORMAT, SOURCE_DATE_FORMAT

_NON_AMOUNT_CHARS = re.compile(r"[^\d,]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_LABEL = re.compile(r"^(\d{8})?-?(.+)$", re.DOTALL)
_WIDTH_PX = re.compile(r"width:\s*(\d+)px")


def normalize_whitespace(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(text.split())


def parse_amount(text: Optional[str]) -> Decimal:
    """
    Parse a currency cell such as '12,50 EUR'.

    Every character other than digits and commas is dropped, then the first
    comma becomes the decimal point and the leading number is kept. Dots used
    as thousands separators disappear with the rest, so '1.234,56 EUR' gives
    1234.56, while a comma used as a thousands separator is read as the
    decimal point ('1,234,567' gives 1.234). Which reading is right for such
    values is an open question for the data owner; the rule is kept as-is.
    """
    if not text:
        return Decimal(0)

    digits = _NON_AMOUNT_CHARS.sub("", text).replace(",", ".", 1)
    match = _LEADING_NUMBER.match(digits)
    if not match:
        return Decimal(0)

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)


def parse_date(
    text: Optional[str],
    source_pattern: str = SOURCE_DATE_FORMAT,
    output_pattern: str = OUTPUT_DATE_FORMAT,
) -> str:
    """Reformat a dd/mm/yyyy date; unparseable text is returned unchanged."""
    if text is None:
        return ""
    try:
        return datetime.strptime(text.strip(), source_pattern).strftime(output_pattern)
    except ValueError:
        return text


def parse_label(text: Optional[str]) -> Tuple[str, str]:
    """Split a CPV label like '03000000-Productos agrícolas' into (code, description)."""
    cleaned = (text or "").strip()
    match = _LABEL.match(cleaned)
    if not match:
        return "", cleaned
    code = match.group(1) or ""
    description = match.group(2).strip() or cleaned
    return code, description


def parse_indent_depth(style: Optional[str], indent_width: int = INDENT_WIDTH_PX) -> int:
    """Tree depth from an inline style such as 'width: 38px'."""
    match = _WIDTH_PX.search(style or "")
    if not match:
        return 0
    return int(match.group(1)) // indent_width
