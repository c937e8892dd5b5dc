"""Shared write path.

Every writer holds the reader that serves its table. After a successful
remote write the writer invalidates that reader's cache entries and stamps
the process-wide last-write clock; nothing is invalidated when the write
raises.
"""
import logging
import random
import time
from typing import Any, List, Optional

from data.a1 import cell
from data.cache import CacheKey, TtlCache
from data.connection import SheetsClient
from data.errors import StaleRowIndexError, ValidationError
from data.readers.base import BaseReader

logger = logging.getLogger(__name__)


def mint_id(prefix: str, unique: bool = False) -> str:
    """``<prefix><epoch ms>``; with ``unique`` a random suffix keeps same-millisecond IDs apart."""
    token = f"{prefix}{int(time.time() * 1000)}"
    if unique:
        token += "_" + "".join(random.choices("abcdefghijklmnopqrstuvwxyz0123456789", k=5))
    return token


def pad_row(row: Optional[List[Any]], width: int) -> List[Any]:
    padded = list(row or [])
    if len(padded) < width:
        padded.extend([""] * (width - len(padded)))
    return padded


def check_row_index(row_index: Any) -> int:
    """Validate a caller-supplied 1-based data row index (the header is row 1)."""
    try:
        value = int(row_index)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid row index: {row_index!r}") from None
    if value <= 1:
        raise ValidationError(f"Invalid row index: {row_index!r}")
    return value


class BaseWriter:
    def __init__(self, sheets: SheetsClient, cache: TtlCache, spreadsheet_id: str, reader: BaseReader):
        if reader is None:
            raise ValueError(f"{type(self).__name__} requires its paired reader")
        self.sheets = sheets
        self.cache = cache
        self.spreadsheet_id = spreadsheet_id
        self.reader = reader

    def _commit(self, reader: BaseReader, *keys: CacheKey) -> None:
        """Invalidate ``keys`` (or all of ``reader``'s keys) and stamp the global write clock."""
        if keys:
            for key in keys:
                reader.invalidate_cache(key)
        else:
            reader.invalidate_cache()
        self.cache.mark_write()

    async def _delete_row(self, sheet_name: str, row_index: int, reader: BaseReader, *keys: CacheKey) -> None:
        """Physically delete one row. Every later row index in the table shifts up by one."""
        row_index = check_row_index(row_index)
        await self.sheets.delete_row(self.spreadsheet_id, sheet_name, row_index)
        self._commit(reader, *keys)

    async def _verify_row_id(
        self,
        sheet_name: str,
        row_index: int,
        expected_id: str,
        id_column: str = "A",
    ) -> None:
        """Raise StaleRowIndexError unless ``row_index`` still holds ``expected_id``."""
        rows = await self.sheets.get(self.spreadsheet_id, cell(sheet_name, id_column, row_index))
        found = str(rows[0][0]).strip() if rows and rows[0] else ""
        if found != expected_id:
            logger.warning("Row %d of %s holds '%s', expected '%s'", row_index, sheet_name, found, expected_id)
            raise StaleRowIndexError(row_index, expected_id, found)
