"""Shared read path: cache-through table fetches and row-index resolution."""
import logging
from typing import Any, Awaitable, Callable, List, NamedTuple, Optional, Sequence, Tuple

from data.cache import CacheKey, TtlCache
from data.connection import SheetsClient
from data.errors import RemoteStoreError

logger = logging.getLogger(__name__)

RowParser = Callable[[List[Any], int], Any]


class RowMatch(NamedTuple):
    row_index: int
    row_data: List[Any]


class BaseReader:
    """Readers serve whole tables from the shared cache and resolve rows fresh."""

    # Cache entries this reader owns; invalidate_cache(None) clears only these.
    CACHE_KEYS: Tuple[CacheKey, ...] = ()

    def __init__(self, sheets: SheetsClient, cache: TtlCache, spreadsheet_id: str):
        self.sheets = sheets
        self.cache = cache
        self.spreadsheet_id = spreadsheet_id

    async def _cached(self, key: CacheKey, loader: Callable[[], Awaitable[Any]], fallback: Any = None) -> Any:
        """Serve ``key`` from cache, or load it and cache the result.

        A remote failure is logged and answered with the last cached value,
        however old, or ``fallback`` (an empty list by default).
        """
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            data = await loader()
        except RemoteStoreError as exc:
            stale = self.cache.peek(key)
            logger.error(
                "Reading %s failed (%s); serving %s",
                key.value, exc, "stale cache" if stale is not None else "empty result",
            )
            if stale is not None:
                return stale
            return [] if fallback is None else fallback
        self.cache.set(key, data)
        return data

    async def _fetch_and_cache(
        self,
        key: CacheKey,
        range_: str,
        row_parser: RowParser,
        sorter: Optional[Callable[[List[Any]], List[Any]]] = None,
        spreadsheet_id: Optional[str] = None,
    ) -> List[Any]:
        """Fetch a whole table, parse every data row and cache the list.

        ``row_parser(row, row_index)`` gets the 1-based sheet row (the first
        data row is 2) and may return None to drop a row.
        """
        async def load() -> List[Any]:
            rows = await self.sheets.get(spreadsheet_id or self.spreadsheet_id, range_)
            records = []
            for i, row in enumerate(rows[1:]):
                record = row_parser(row, i + 2)
                if record is not None:
                    records.append(record)
            if sorter is not None:
                records = sorter(records)
            logger.debug("Loaded %d rows from %s", len(records), range_)
            return records

        return await self._cached(key, load)

    async def find_row_by_value(
        self,
        range_: str,
        column: int,
        value: Any,
        spreadsheet_id: Optional[str] = None,
    ) -> Optional[RowMatch]:
        """Locate the current row holding ``value`` in ``column``.

        Always reads the store, never the cache, because a cached row index
        may have shifted. Header skipped; trimmed exact match; first match wins.
        """
        target = str(value).strip() if value is not None else ""
        if not target:
            return None
        rows = await self.sheets.get(spreadsheet_id or self.spreadsheet_id, range_)
        match: Optional[RowMatch] = None
        for i, row in enumerate(rows[1:]):
            cell_value = row[column] if column < len(row) else ""
            if str(cell_value).strip() != target:
                continue
            if match is None:
                match = RowMatch(i + 2, list(row))
            else:
                logger.warning(
                    "Duplicate value '%s' in %s (rows %d and %d); using row %d",
                    target, range_, match.row_index, i + 2, match.row_index,
                )
        return match

    def invalidate_cache(self, key: Optional[CacheKey] = None) -> None:
        if key is not None:
            self.cache.invalidate(key)
            return
        self.cache.invalidate_many(self.CACHE_KEYS)


def filter_by_query(records: Sequence[Any], query: Optional[str], *fields: str) -> List[Any]:
    """Case-insensitive substring match of ``query`` over the named attributes."""
    if not query:
        return list(records)
    term = query.lower()
    return [
        record for record in records
        if any(term in (getattr(record, field, "") or "").lower() for field in fields)
    ]
