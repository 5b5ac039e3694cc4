"""
Sheet naming, cache keys and row-table shaping.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

Row = Dict[str, Any]

CACHE_KEY_SEPARATOR = "--"


def normalize_sheet_name(sheet: str) -> str:
    """Replace literal '+' with spaces.

    Links shared before the move off Vercel encode spaces as '+', and those
    links must keep working.
    """
    return sheet.replace("+", " ")


def make_cache_key(spreadsheet_id: str, sheet: str) -> str:
    """Build the cache key for a spreadsheet tab.

    ``sheet`` is normalized first, so "Sheet+1" and "Sheet 1" share a key.
    """
    return f"{spreadsheet_id}{CACHE_KEY_SEPARATOR}{normalize_sheet_name(sheet)}"


def build_row_table(raw_rows: Optional[Sequence[Sequence[Any]]]) -> List[Row]:
    """Turn a row-major matrix into header-keyed row dicts.

    The first row supplies the header names. Short rows produce dicts that
    lack the trailing keys; cells past the last header are dropped.
    """
    if not raw_rows:
        return []

    headers = [str(name) for name in raw_rows[0]]
    rows: List[Row] = []
    for raw in raw_rows[1:]:
        rows.append({header: value for header, value in zip(headers, raw)})
    return rows


def serialize_rows(rows: List[Row]) -> str:
    return json.dumps(rows, ensure_ascii=False, separators=(",", ":"))


def deserialize_rows(payload: str) -> List[Row]:
    return json.loads(payload)
