"""Interaction log writer."""
import logging
from typing import Any, Dict, List, Optional

from crm_config import LAST_COLUMN, InteractionFields, SheetNames
from data.a1 import column_span, row_span
from data.batch import BatchReconciler
from data.errors import NotFoundError, StaleRowIndexError, ValidationError
from data.parsers import blank, utc_now_iso
from data.readers.interaction import InteractionReader
from data.writers.base import BaseWriter, check_row_index, mint_id, pad_row
from schemas import LinkedTo

logger = logging.getLogger(__name__)

# Column order of the interaction table.
INTERACTION_COLUMNS = [
    "interaction_id",
    "opportunity_id",
    "interaction_time",
    "event_type",
    "event_title",
    "content_summary",
    "participants",
    "next_action",
    "attachment_link",
    "calendar_event_id",
    "recorder",
    "created_time",
    "company_id",
]
_LINK_KEYS = ("linked_to", "opportunity_id", "company_id")


def format_row(data: Dict[str, Any]) -> List[Any]:
    return [blank(data.get(column)) for column in INTERACTION_COLUMNS]


def resolve_link(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fold an optional ``linked_to`` into the two stored id columns.

    Raises ValidationError when the result would link both an opportunity
    and a company.
    """
    data = dict(data)
    linked_to = data.pop("linked_to", None)
    if linked_to is not None:
        if not isinstance(linked_to, LinkedTo):
            linked_to = LinkedTo.model_validate(linked_to)
        data["opportunity_id"] = linked_to.opportunity_id
        data["company_id"] = linked_to.company_id
        return data
    try:
        LinkedTo.from_ids(data.get("opportunity_id") or "", data.get("company_id") or "")
    except ValueError as exc:
        raise ValidationError(str(exc)) from None
    return data


class InteractionWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, interaction_reader: InteractionReader):
        super().__init__(sheets, cache, spreadsheet_id, interaction_reader)
        self.interaction_reader = interaction_reader

    @property
    def range(self) -> str:
        return column_span(SheetNames.INTERACTIONS, LAST_COLUMN[SheetNames.INTERACTIONS])

    def _row_range(self, row_index: int) -> str:
        return row_span(SheetNames.INTERACTIONS, row_index, LAST_COLUMN[SheetNames.INTERACTIONS])

    async def create_interaction(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Append one interaction. Missing id and interaction time are filled in."""
        data = resolve_link(data)
        now = utc_now_iso()
        interaction_id = data.get("interaction_id") or mint_id("INT")
        row = format_row({
            **data,
            "interaction_id": interaction_id,
            "created_time": now,
            "interaction_time": data.get("interaction_time") or now,
        })
        await self.sheets.append(self.spreadsheet_id, self.range, [row])
        self._commit(self.interaction_reader)
        logger.info("Created interaction %s", interaction_id)
        return {"success": True, "interaction_id": interaction_id, "data": row}

    async def update_interaction(
        self,
        row_index: Any,
        update: Dict[str, Any],
        modifier: Optional[str] = None,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Read-merge-write one interaction row.

        Args:
            row_index: 1-based row as last read; validated, not re-resolved.
            update: Attributes to overwrite; ``linked_to`` replaces both id columns.
            modifier: Written as recorder when given.
            expected_id: When set, the row must still hold this interaction id,
                otherwise StaleRowIndexError is raised and nothing is written.
        """
        row_index = check_row_index(row_index)
        range_ = self._row_range(row_index)
        rows = await self.sheets.get(self.spreadsheet_id, range_)
        if not rows or not rows[0]:
            raise NotFoundError(f"No interaction at row {row_index}")

        current_row = pad_row(rows[0], len(INTERACTION_COLUMNS))
        if expected_id is not None and str(current_row[InteractionFields.ID]).strip() != expected_id:
            raise StaleRowIndexError(row_index, expected_id, str(current_row[InteractionFields.ID]).strip())

        merged = dict(zip(INTERACTION_COLUMNS, current_row))
        merged.update(update)
        if any(key in update for key in _LINK_KEYS):
            merged = resolve_link(merged)
        if modifier:
            merged["recorder"] = modifier

        await self.sheets.update(self.spreadsheet_id, range_, [format_row(merged)])
        self._commit(self.interaction_reader)
        logger.info("Updated interaction row %d", row_index)
        return {"success": True}

    async def save_batch(self, interactions: List[Dict[str, Any]]) -> Dict[str, int]:
        """Upsert complete interaction records by id (see BatchReconciler)."""
        if not interactions:
            return {"updated": 0, "appended": 0}
        items = [resolve_link(item) for item in interactions]
        now = utc_now_iso()

        def row_for(item: Dict[str, Any], interaction_id: str, exists: bool) -> List[Any]:
            return format_row({
                **item,
                "interaction_id": interaction_id,
                "created_time": item.get("created_time") or ("" if exists else now),
                "interaction_time": item.get("interaction_time") or now,
            })

        reconciler = BatchReconciler(
            self.sheets, self.spreadsheet_id, SheetNames.INTERACTIONS, LAST_COLUMN[SheetNames.INTERACTIONS]
        )
        result = await reconciler.reconcile(
            items,
            id_of=lambda item: str(item.get("interaction_id") or ""),
            mint_id=lambda: mint_id("INT", unique=True),
            format_row=row_for,
        )
        self._commit(self.interaction_reader)
        return result

    async def delete_interaction(self, row_index: Any, expected_id: Optional[str] = None) -> Dict[str, Any]:
        row_index = check_row_index(row_index)
        if expected_id is not None:
            await self._verify_row_id(SheetNames.INTERACTIONS, row_index, expected_id)
        await self._delete_row(SheetNames.INTERACTIONS, row_index, self.interaction_reader)
        logger.info("Deleted interaction row %d", row_index)
        return {"success": True}
