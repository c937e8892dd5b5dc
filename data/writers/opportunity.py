"""Opportunity writer and opportunity-contact link writer.

Opportunity rows are written through a HeaderMap rebuilt from row 1 on every
call, so values land under the right title even after columns move.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from crm_config import (
    LAST_COLUMN,
    LINK_STATUS_ACTIVE,
    OPPORTUNITY_BATCH_FIELDS,
    OPPORTUNITY_COLUMNS,
    OPPORTUNITY_LAST_COLUMN,
    OppContactLinkFields,
    OpportunityFields,
    SheetNames,
)
from data.a1 import column_letter, column_span, row_span, sheet_range
from data.cache import CacheKey
from data.errors import NotFoundError, StaleRowIndexError, ValidationError
from data.header_map import HeaderMap
from data.parsers import utc_now_iso
from data.readers.contact import ContactReader
from data.readers.opportunity import OpportunityReader
from data.writers.base import BaseWriter, check_row_index, mint_id

logger = logging.getLogger(__name__)

# System-managed attributes a caller may not overwrite.
_PROTECTED = {"opportunity_id", "creator", "last_update_time", "last_modifier"}


class OpportunityWriter(BaseWriter):
    def __init__(
        self,
        sheets,
        cache,
        spreadsheet_id: str,
        opportunity_reader: OpportunityReader,
        contact_reader: ContactReader,
    ):
        super().__init__(sheets, cache, spreadsheet_id, opportunity_reader)
        if contact_reader is None:
            raise ValueError("OpportunityWriter requires a ContactReader for link writes")
        self.opportunity_reader = opportunity_reader
        self.contact_reader = contact_reader

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _row_range(self, row_index: int) -> str:
        return row_span(SheetNames.OPPORTUNITIES, row_index, OPPORTUNITY_LAST_COLUMN)

    def _apply(self, header: HeaderMap, row: List[Any], update: Dict[str, Any], allowed: Iterable[str]) -> None:
        allowed = set(allowed)
        for attr, value in update.items():
            if attr not in OPPORTUNITY_COLUMNS:
                if attr not in ("row_index", "extra"):
                    logger.warning("Unknown opportunity attribute '%s'; skipped", attr)
                continue
            if attr in allowed:
                header.set(row, OPPORTUNITY_COLUMNS[attr], value)

    def _stamp(self, header: HeaderMap, row: List[Any], modifier: str, now: str) -> None:
        header.set(row, OpportunityFields.LAST_UPDATE_TIME, now)
        header.set(row, OpportunityFields.LAST_MODIFIER, modifier)

    async def _load_header_and_row(self, row_index: int):
        header_rows, data_rows = await self.sheets.batch_get(
            self.spreadsheet_id,
            [sheet_range(SheetNames.OPPORTUNITIES, f"A1:{OPPORTUNITY_LAST_COLUMN}1"), self._row_range(row_index)],
        )
        header = HeaderMap.from_header_row(header_rows[0] if header_rows else [])
        if not header.offsets:
            raise ValidationError("Opportunity sheet has no header row")
        return header, (data_rows[0] if data_rows else [])

    # ------------------------------------------------------------------
    # Opportunities
    # ------------------------------------------------------------------

    async def create_opportunity(self, data: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        header = await HeaderMap.load(self.sheets, self.spreadsheet_id, SheetNames.OPPORTUNITIES, OPPORTUNITY_LAST_COLUMN)
        if not header.offsets:
            raise ValidationError("Opportunity sheet has no header row")
        now = utc_now_iso()
        opportunity_id = data.get("opportunity_id") or mint_id("OPP")
        row = header.pad([])
        self._apply(header, row, data, set(OPPORTUNITY_COLUMNS) - _PROTECTED)
        header.set(row, OpportunityFields.ID, opportunity_id)
        if not data.get("created_time"):
            header.set(row, OpportunityFields.CREATED_TIME, now)
        header.set(row, OpportunityFields.CREATOR, modifier)
        self._stamp(header, row, modifier, now)

        await self.sheets.append(
            self.spreadsheet_id, column_span(SheetNames.OPPORTUNITIES, OPPORTUNITY_LAST_COLUMN), [row]
        )
        self._commit(self.opportunity_reader)
        logger.info("Created opportunity %s by %s", opportunity_id, modifier)
        return {"success": True, "data": {**data, "opportunity_id": opportunity_id}}

    async def update_opportunity(
        self,
        row_index: Any,
        update: Dict[str, Any],
        modifier: str,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Header-mapped partial update of one opportunity row.

        Args:
            row_index: 1-based row as last read.
            update: ``{attribute: value}``; attributes whose header is missing
                from the sheet are logged and skipped.
            modifier: Recorded as last modifier.
            expected_id: When set, the row must still hold this opportunity id,
                otherwise StaleRowIndexError is raised and nothing is written.

        Returns:
            ``{"success": True, "data": {"row_index": ..., **update}}``
        """
        row_index = check_row_index(row_index)
        header, current = await self._load_header_and_row(row_index)
        if not current:
            raise NotFoundError(f"No opportunity at row {row_index}")
        if expected_id is not None:
            found = header.read(current, OpportunityFields.ID)
            if found != expected_id:
                raise StaleRowIndexError(row_index, expected_id, found)

        row = header.pad(current)
        self._apply(header, row, update, set(OPPORTUNITY_COLUMNS) - _PROTECTED)
        self._stamp(header, row, modifier, utc_now_iso())

        await self.sheets.update(self.spreadsheet_id, self._row_range(row_index), [row])
        self._commit(self.opportunity_reader)
        logger.info("Updated opportunity row %d by %s", row_index, modifier)
        return {"success": True, "data": {"row_index": row_index, **update}}

    async def _merge_batch(self, items: List[Dict[str, Any]], modifier: str, allowed: Iterable[str]) -> int:
        """Merge updates into a one-shot snapshot of the table and write them in one call.

        Each item is ``{"row_index": n, "data": {...}}`` or a flat dict carrying
        ``row_index``. When the data carries an ``opportunity_id`` that no longer
        sits at ``row_index``, the item follows the id through the snapshot, or
        is skipped if the id is gone. A malformed row index rejects the whole
        batch before anything is read.
        """
        resolved = []
        for item in items:
            data = item.get("data") or item
            row_index = item.get("row_index") or data.get("row_index")
            if not row_index:
                logger.warning("Batch item without row_index skipped")
                continue
            resolved.append((check_row_index(row_index), data))

        header_rows = await self.sheets.get(
            self.spreadsheet_id, sheet_range(SheetNames.OPPORTUNITIES, f"A1:{OPPORTUNITY_LAST_COLUMN}1")
        )
        header = HeaderMap.from_header_row(header_rows[0] if header_rows else [])
        if not header.offsets:
            raise ValidationError("Opportunity sheet has no header row")
        snapshot = await self.sheets.get(
            self.spreadsheet_id, column_span(SheetNames.OPPORTUNITIES, OPPORTUNITY_LAST_COLUMN)
        )
        id_rows: Dict[str, int] = {}
        for i, snap_row in enumerate(snapshot[1:]):
            opp_id = header.read(snap_row, OpportunityFields.ID)
            if opp_id:
                id_rows.setdefault(opp_id, i + 2)

        now = utc_now_iso()
        working: Dict[int, List[Any]] = {}
        for row_index, data in resolved:
            expected_id = data.get("opportunity_id")
            if expected_id:
                at_index = header.read(snapshot[row_index - 1], OpportunityFields.ID) if row_index <= len(snapshot) else ""
                if at_index != expected_id:
                    moved_to = id_rows.get(expected_id)
                    if moved_to is None:
                        logger.warning("Opportunity %s no longer on the sheet; batch item skipped", expected_id)
                        continue
                    logger.warning("Opportunity %s moved from row %d to %d", expected_id, row_index, moved_to)
                    row_index = moved_to
            if row_index < 2 or row_index > len(snapshot) or not snapshot[row_index - 1]:
                logger.warning("No opportunity at row %d; batch item skipped", row_index)
                continue

            row = working.get(row_index) or header.pad(snapshot[row_index - 1])
            self._apply(header, row, data, allowed)
            self._stamp(header, row, modifier, now)
            working[row_index] = row

        if working:
            await self.sheets.batch_update(
                self.spreadsheet_id,
                [{"range": self._row_range(r), "values": [row]} for r, row in working.items()],
            )
        self._commit(self.opportunity_reader)
        logger.info("Opportunity batch: %d rows updated by %s", len(working), modifier)
        return len(working)

    async def save_batch(self, items: List[Dict[str, Any]], modifier: str = "System") -> Dict[str, int]:
        """Board moves and renames: only OPPORTUNITY_BATCH_FIELDS are written, never appends."""
        if not items:
            return {"updated": 0, "appended": 0}
        updated = await self._merge_batch(items, modifier, OPPORTUNITY_BATCH_FIELDS)
        return {"updated": updated, "appended": 0}

    async def batch_update_opportunities(self, items: List[Dict[str, Any]], modifier: str) -> Dict[str, Any]:
        """Like save_batch, but any caller-editable attribute may change."""
        if not items:
            return {"success": True, "updated": 0}
        updated = await self._merge_batch(items, modifier, set(OPPORTUNITY_COLUMNS) - _PROTECTED)
        return {"success": True, "updated": updated}

    async def delete_opportunity(
        self,
        row_index: Any,
        modifier: str,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        row_index = check_row_index(row_index)
        if expected_id is not None:
            header = await HeaderMap.load(
                self.sheets, self.spreadsheet_id, SheetNames.OPPORTUNITIES, OPPORTUNITY_LAST_COLUMN
            )
            id_offset = header.offset(OpportunityFields.ID)
            await self._verify_row_id(
                SheetNames.OPPORTUNITIES, row_index, expected_id,
                id_column=column_letter(id_offset if id_offset is not None else 0),
            )
        await self._delete_row(SheetNames.OPPORTUNITIES, row_index, self.opportunity_reader)
        logger.info("Deleted opportunity row %d by %s", row_index, modifier)
        return {"success": True}

    # ------------------------------------------------------------------
    # Opportunity-contact links
    # ------------------------------------------------------------------

    async def link_contact_to_opportunity(self, opportunity_id: str, contact_id: str, modifier: str) -> Dict[str, Any]:
        link_id = mint_id("LNK")
        row = [link_id, opportunity_id, contact_id, utc_now_iso(), LINK_STATUS_ACTIVE, modifier]
        await self.sheets.append(
            self.spreadsheet_id,
            column_span(SheetNames.OPPORTUNITY_CONTACT_LINK, LAST_COLUMN[SheetNames.OPPORTUNITY_CONTACT_LINK]),
            [row],
        )
        self._commit(self.contact_reader, CacheKey.OPP_CONTACT_LINKS)
        logger.info("Linked contact %s to opportunity %s", contact_id, opportunity_id)
        return {"success": True, "link_id": link_id}

    async def delete_contact_link(self, opportunity_id: str, contact_id: str) -> Dict[str, Any]:
        """Hard-delete the first link row joining the two ids."""
        rows = await self.sheets.get(
            self.spreadsheet_id,
            column_span(SheetNames.OPPORTUNITY_CONTACT_LINK, LAST_COLUMN[SheetNames.OPPORTUNITY_CONTACT_LINK]),
        )
        F = OppContactLinkFields
        for i, row in enumerate(rows[1:]):
            row_opp = row[F.OPPORTUNITY_ID] if len(row) > F.OPPORTUNITY_ID else ""
            row_contact = row[F.CONTACT_ID] if len(row) > F.CONTACT_ID else ""
            if row_opp == opportunity_id and row_contact == contact_id:
                row_index = i + 2
                await self._delete_row(
                    SheetNames.OPPORTUNITY_CONTACT_LINK, row_index, self.contact_reader, CacheKey.OPP_CONTACT_LINKS
                )
                logger.info("Removed link %s <-> %s (row %d)", opportunity_id, contact_id, row_index)
                return {"success": True, "row_index": row_index}
        raise NotFoundError(f"No link between opportunity {opportunity_id} and contact {contact_id}")
