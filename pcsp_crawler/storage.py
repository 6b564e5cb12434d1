import csv
import html
import json
import os
from typing import List
from .model import ListingRecord, TaxonomyNode
import pandas as pd
from openpyxl.utils import get_column_letter

import logging
logger = logging.getLogger(__name__)

_TREE_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
    tr:nth-child(even) {{ background-color: #f2f2f2; }}
    th {{ background-color: #4CAF50; color: white; }}
  </style>
</head>
<body>
  <table>
    <thead>
      <tr><th>Code</th><th>Description</th><th>Level</th></tr>
    </thead>
    <tbody>
{rows}
    </tbody>
  </table>
</body>
</html>
"""


def _ensure_parent(filename: str):
    os.makedirs(os.path.dirname(filename) if os.path.dirname(filename) else '.', exist_ok=True)


def flatten_record(record: ListingRecord) -> dict:
    """One level of columns per nested field, e.g. 'fileReference.id'."""
    flat = {}
    for key, value in record.to_dict().items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                flat[f"{key}.{sub_key}"] = sub_value
        else:
            flat[key] = value
    return flat


def flatten_tree(roots: List[TaxonomyNode], level: int = 0) -> List[dict]:
    """Depth-first rows of the taxonomy; 'level' is the nesting level in the result tree."""
    rows = []
    for node in roots:
        rows.append({'code': node.code, 'description': node.description, 'level': level, 'depth': node.depth})
        rows.extend(flatten_tree(node.children, level + 1))
    return rows


class Storage:
    @staticmethod
    def save_json(items, filename: str):
        """Save ListingRecords or TaxonomyNodes (anything with to_dict)."""
        _ensure_parent(filename)
        data = [item.to_dict() for item in items]
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info(f"Saved {len(data)} items to {filename}")

    @staticmethod
    def save_csv(records: List[ListingRecord], filename: str):
        if not records:
            logger.info("No items to save.")
            return

        _ensure_parent(filename)
        rows = [flatten_record(r) for r in records]

        with open(filename, 'w', newline='', encoding='utf-8-sig') as f:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)
        logger.info(f"Saved {len(rows)} items to {filename}")

    @staticmethod
    def save_excel(records: List[ListingRecord], filename: str):
        """
        Save listing records to an Excel sheet, nested fields expanded
        into their own columns.
        """
        if not records:
            logger.info("No items to save.")
            return

        _ensure_parent(filename)
        df = pd.DataFrame([flatten_record(r) for r in records])

        with pd.ExcelWriter(filename, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Licitaciones')
            Storage._auto_adjust_columns(writer, 'Licitaciones', df)

        logger.info(f"Saved {len(df)} items to {filename}")

    @staticmethod
    def save_tree_excel(roots: List[TaxonomyNode], filename: str):
        rows = flatten_tree(roots)
        if not rows:
            logger.info("No nodes to save.")
            return

        _ensure_parent(filename)
        df = pd.DataFrame(rows)
        df['description'] = [("    " * row['level']) + row['description'] for row in rows]

        with pd.ExcelWriter(filename, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='CPV')
            Storage._auto_adjust_columns(writer, 'CPV', df)

        logger.info(f"Saved {len(df)} nodes to {filename}")

    @staticmethod
    def save_tree_html(roots: List[TaxonomyNode], filename: str):
        """Human-readable table of the taxonomy, description indented by level."""
        _ensure_parent(filename)
        rows = "\n".join(
            f'      <tr><td>{html.escape(row["code"])}</td>'
            f'<td style="padding-left: {row["level"] * 20}px">{html.escape(row["description"])}</td>'
            f'<td>{row["depth"]}</td></tr>'
            for row in flatten_tree(roots)
        )
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(_TREE_HTML.format(rows=rows))
        logger.info(f"Saved taxonomy table to {filename}")

    @staticmethod
    def _auto_adjust_columns(writer, sheet_name, df):
        """Helper to auto-adjust column widths in a sheet."""
        worksheet = writer.sheets[sheet_name]
        for idx, col in enumerate(df.columns):
            max_len = max(
                df[col].astype(str).map(len).max(),
                len(str(col))
            )
            col_letter = get_column_letter(idx + 1)
            worksheet.column_dimensions[col_letter].width = min(max_len + 5, 80)
