from typing import List, Optional
from urllib.parse import urljoin
import logging

from .config import SELECTORS
from .document import DocumentAccess, Element
from .errors import RowExtractionError
from .model import ContractingBody, ContractType, FileReference, ListingRecord
from .normalizer import normalize_whitespace, parse_amount, parse_date

logger = logging.getLogger(__name__)

CELLS = SELECTORS['list']['cells']


async def _text(scope: Optional[Element], selector: str) -> str:
    if scope is None:
        return ""
    element = await scope.query(selector)
    return normalize_whitespace(await element.text()) if element else ""


async def _link(scope: Optional[Element], selector: str, base_url: str) -> str:
    if scope is None:
        return ""
    element = await scope.query(selector)
    href = await element.get_attribute('href') if element else None
    if not href:
        return ""
    return urljoin(base_url, href) if base_url else href


async def extract_file_reference(row: Element, base_url: str = "") -> FileReference:
    cell = await row.query(CELLS['file'])
    parts = SELECTORS['list']['file']
    return FileReference(
        id=await _text(cell, parts['id']),
        description=await _text(cell, parts['description']),
        is_electronic_bid=cell is not None and await cell.query(parts['electronic_bid']) is not None,
        link=await _link(cell, parts['link'], base_url),
    )


async def extract_contract_type(row: Element) -> ContractType:
    cell = await row.query(CELLS['contract_type'])
    parts = SELECTORS['list']['contract_type']
    return ContractType(
        type=await _text(cell, parts['type']),
        subtype=await _text(cell, parts['subtype']),
    )


async def extract_contracting_body(row: Element, base_url: str = "") -> ContractingBody:
    cell = await row.query(CELLS['contracting_body'])
    if cell is None:
        return ContractingBody()
    return ContractingBody(
        name=normalize_whitespace(await cell.text()),
        link=await _link(cell, 'a', base_url),
    )


async def extract_record(row: Element, base_url: str = "", index: int = 0) -> ListingRecord:
    """
    Build one ListingRecord from a results table row.

    Missing cells fall back to field defaults. Anything the document layer
    raises while reading the row (the row was re-rendered away, the page
    navigated) becomes a RowExtractionError for the caller to skip.
    """
    try:
        return ListingRecord(
            file_reference=await extract_file_reference(row, base_url),
            contract_type=await extract_contract_type(row),
            status=await _text(row, CELLS['status']),
            amount=parse_amount(await _text(row, CELLS['amount'])),
            due_date=parse_date(await _text(row, CELLS['due_date'])),
            contracting_body=await extract_contracting_body(row, base_url),
        )
    except Exception as e:
        raise RowExtractionError(index, str(e)) from e


async def _is_data_row(row: Element, index: int) -> bool:
    try:
        return await row.query("td") is not None
    except Exception as e:
        raise RowExtractionError(index, str(e)) from e


async def extract_page(document: DocumentAccess) -> List[ListingRecord]:
    """Extract every data row of the results table currently shown."""
    rows = await document.query_all(SELECTORS['list']['rows'])
    logger.info(f"Found {len(rows)} rows")

    results = []
    for i, row in enumerate(rows):
        try:
            if not await _is_data_row(row, i):
                logger.debug(f"Skipping row {i} (no data cells)")
                continue
            results.append(await extract_record(row, document.url, i))
        except RowExtractionError as e:
            logger.error(f"Failed to process row {i}: {e}")
    return results
