"""
Read, append and eviction flows over the response cache.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shared.errors import NotFoundError, ValidationError
from shared.logging import get_logger

from ..adapters.sheets_client import SheetsClient
from ..caching.cache_store import CacheStore
from .rows import Row, build_row_table, deserialize_rows, make_cache_key, normalize_sheet_name, serialize_rows

# Anything that reads as a number is treated as a sheet ordinal.
_NUMERIC_SHEET = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)\s*$")
_ORDINAL_SHEET = re.compile(r"^[0-9]+$")


@dataclass
class SheetRows:
    """Result of a read: the JSON payload exactly as cached."""

    cache_key: str
    payload: str
    cached: bool
    decoded: Optional[List[Row]] = field(default=None, repr=False, compare=False)

    @property
    def rows(self) -> List[Row]:
        if self.decoded is None:
            self.decoded = deserialize_rows(self.payload)
        return self.decoded


class SheetService:
    """Serves sheet rows through the cache and keeps it coherent on writes."""

    def __init__(
        self,
        client: SheetsClient,
        cache: CacheStore,
    ):
        self.client = client
        self.cache = cache
        self.logger = get_logger("sheets.sheet_service")

    async def read_rows(self, spreadsheet_id: str, sheet: str) -> SheetRows:
        """Return the rows of a tab, from cache when possible."""
        sheet = normalize_sheet_name(sheet)
        cache_key = make_cache_key(spreadsheet_id, sheet)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.info("Responding from cache", cache_key=cache_key)
            return SheetRows(cache_key=cache_key, payload=cached, cached=True)

        sheet_name = await self.resolve_sheet_name(spreadsheet_id, sheet)
        raw_rows = await self.client.get_values(spreadsheet_id, sheet_name)

        rows = build_row_table(raw_rows)
        payload = serialize_rows(rows)
        self.cache.set(cache_key, payload)

        self.logger.info("Responding from spreadsheet", cache_key=cache_key, rows=len(rows))
        return SheetRows(cache_key=cache_key, payload=payload, cached=False, decoded=rows)

    async def append_row(self, spreadsheet_id: str, sheet: str, values: Any) -> Dict[str, Any]:
        """Append ``values`` as a new row, then invalidate cached reads of the tab."""
        if not isinstance(values, list):
            raise ValidationError("Payload must be array", details={"type": type(values).__name__})

        sheet = normalize_sheet_name(sheet)
        sheet_name = await self.resolve_sheet_name(spreadsheet_id, sheet)
        result = await self.client.append_row(spreadsheet_id, sheet_name, values)

        keys = {make_cache_key(spreadsheet_id, sheet), make_cache_key(spreadsheet_id, sheet_name)}
        for cache_key in sorted(keys):
            if self.cache.delete(cache_key):
                self.logger.info("Cache invalidated after append", cache_key=cache_key)

        return result

    def evict(self, cache_key: str) -> Dict[str, str]:
        """Drop one cache entry by its exact key."""
        if not self.cache.delete(cache_key):
            self.logger.info("No cache entry to evict", cache_key=cache_key)
            return {"status": "skipped"}

        self.logger.info("Cache entry evicted manually", cache_key=cache_key)
        return {"status": "ok"}

    async def resolve_sheet_name(self, spreadsheet_id: str, sheet: str) -> str:
        """Map a 1-based sheet ordinal to the tab title; pass names through.

        Invalid ordinals are rejected before any upstream call.
        """
        if not _NUMERIC_SHEET.match(sheet):
            return sheet

        # Legacy links may pad the number ("+1" arrives as " 1").
        number = sheet.strip()
        if not _ORDINAL_SHEET.match(number):
            raise ValidationError(
                f"Invalid sheet number {number}, expected a whole number starting at 1",
                details={"sheet": sheet},
            )

        ordinal = int(number)
        if ordinal == 0:
            raise ValidationError("For this API, sheet numbers start at 1", details={"sheet": sheet})

        titles = await self.client.get_sheet_titles(spreadsheet_id)
        if ordinal > len(titles):
            raise NotFoundError(
                f"There is no sheet number {ordinal}",
                details={"sheet": sheet, "sheet_count": len(titles)},
            )

        title = titles[ordinal - 1]
        self.logger.debug("Resolved sheet number", sheet=sheet, title=title)
        return title
