"""Batch upsert of complete records keyed by a logical ID column.

One prefetch of the ID column maps every ID to its current row. Items whose ID
is on the sheet become range updates (one ``batchUpdate``); the rest get an ID
minted if they lack one and go out as a single ``append``. Updates are issued
before appends so the appended rows cannot shift the prefetched indexes.
"""
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from data.a1 import column_letter, column_span, row_span

logger = logging.getLogger(__name__)


class BatchPlan(NamedTuple):
    updates: List[Dict[str, Any]]
    appends: List[List[Any]]


class BatchReconciler:
    def __init__(
        self,
        sheets,
        spreadsheet_id: str,
        sheet_name: str,
        last_column: str,
        id_column: int = 0,
    ):
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.last_column = last_column
        self.id_column = id_column

    async def load_id_map(self) -> Dict[str, int]:
        """``{id: row_index}`` from a fresh read of the ID column (first match wins)."""
        letter = column_letter(self.id_column)
        rows = await self.sheets.get(self.spreadsheet_id, column_span(self.sheet_name, letter, letter))
        id_map: Dict[str, int] = {}
        for i, row in enumerate(rows[1:]):
            value = str(row[0]).strip() if row and row[0] is not None else ""
            if not value:
                continue
            if value in id_map:
                logger.warning(
                    "Duplicate ID '%s' in %s (rows %d and %d); using the first",
                    value, self.sheet_name, id_map[value], i + 2,
                )
                continue
            id_map[value] = i + 2
        return id_map

    def plan(
        self,
        items: Sequence[Any],
        id_map: Dict[str, int],
        id_of: Callable[[Any], Optional[str]],
        mint_id: Callable[[], str],
        format_row: Callable[[Any, str, bool], List[Any]],
    ) -> BatchPlan:
        keyed: Dict[str, Any] = {}
        unkeyed: List[Tuple[str, Any]] = []
        for item in items:
            item_id = str(id_of(item) or "").strip()
            if not item_id:
                unkeyed.append((mint_id(), item))
                continue
            if item_id in keyed:
                logger.warning("ID '%s' repeated in batch for %s; last occurrence kept", item_id, self.sheet_name)
            keyed[item_id] = item

        updates: List[Dict[str, Any]] = []
        appends: List[List[Any]] = []
        for item_id, item in keyed.items():
            row_index = id_map.get(item_id)
            if row_index is not None:
                updates.append({
                    "range": row_span(self.sheet_name, row_index, self.last_column),
                    "values": [format_row(item, item_id, True)],
                })
            else:
                appends.append(format_row(item, item_id, False))
        for item_id, item in unkeyed:
            appends.append(format_row(item, item_id, False))
        return BatchPlan(updates, appends)

    async def reconcile(
        self,
        items: Sequence[Any],
        id_of: Callable[[Any], Optional[str]],
        mint_id: Callable[[], str],
        format_row: Callable[[Any, str, bool], List[Any]],
    ) -> Dict[str, int]:
        """Apply ``items`` in at most two remote writes.

        Args:
            items: Complete records; no per-item re-read happens.
            id_of: Returns an item's logical ID, or a blank for new records.
            mint_id: Produces a fresh ID for an item without one.
            format_row: ``(item, item_id, exists) -> row`` in column order.

        Returns:
            ``{"updated": n, "appended": m}``.
        """
        if not items:
            return {"updated": 0, "appended": 0}
        id_map = await self.load_id_map()
        plan = self.plan(items, id_map, id_of, mint_id, format_row)

        if plan.updates:
            await self.sheets.batch_update(self.spreadsheet_id, plan.updates)
        if plan.appends:
            await self.sheets.append(
                self.spreadsheet_id,
                column_span(self.sheet_name, self.last_column),
                plan.appends,
            )
        logger.info(
            "Batch save on %s: %d updated, %d appended",
            self.sheet_name, len(plan.updates), len(plan.appends),
        )
        return {"updated": len(plan.updates), "appended": len(plan.appends)}
