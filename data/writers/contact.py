"""Contact writer: filed contacts and raw business cards."""
import logging
from typing import Any, Dict

from crm_config import LAST_COLUMN, ContactFields, ContactListFields, SheetNames
from data.a1 import cell, column_span, row_span
from data.cache import CacheKey
from data.errors import NotFoundError
from data.parsers import utc_now_iso
from data.readers.contact import ContactReader
from data.writers.base import BaseWriter, check_row_index, mint_id, pad_row

logger = logging.getLogger(__name__)

LIST_WIDTH = ContactListFields.LAST_MODIFIER + 1
RAW_WIDTH = ContactFields.STATUS + 1

CONTACT_COLUMNS = {
    "source_id": ContactListFields.SOURCE_ID,
    "name": ContactListFields.NAME,
    "company_id": ContactListFields.COMPANY_ID,
    "department": ContactListFields.DEPARTMENT,
    "position": ContactListFields.POSITION,
    "mobile": ContactListFields.MOBILE,
    "phone": ContactListFields.PHONE,
    "email": ContactListFields.EMAIL,
}

# Fields a card owner may correct on their own scanned card.
RAW_CONTACT_COLUMNS = {
    "name": ContactFields.NAME,
    "company": ContactFields.COMPANY,
    "position": ContactFields.POSITION,
    "mobile": ContactFields.MOBILE,
    "email": ContactFields.EMAIL,
}


def source_ref(contact_info: Dict[str, Any]) -> str:
    """``BC-<row>`` when the contact was filed from a scanned card, else ``MANUAL``."""
    row_index = contact_info.get("row_index")
    return f"BC-{row_index}" if row_index else "MANUAL"


class ContactWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, contact_reader: ContactReader):
        super().__init__(sheets, cache, spreadsheet_id, contact_reader)
        self.contact_reader = contact_reader

    async def get_or_create_contact(
        self,
        contact_info: Dict[str, Any],
        company: Dict[str, Any],
        modifier: str,
    ) -> Dict[str, Any]:
        """Find a filed contact by name within ``company["id"]``, or file a new one."""
        name = contact_info.get("name") or ""
        for existing in await self.contact_reader.get_contact_list():
            if existing.name == name and existing.company_id == company["id"]:
                logger.info("Contact already exists: %s", name)
                return {"id": existing.contact_id, "name": existing.name, "created": False}

        now = utc_now_iso()
        contact_id = mint_id("CON")
        new_row = [
            contact_id,
            source_ref(contact_info),
            name,
            company["id"],
            contact_info.get("department") or "",
            contact_info.get("position") or "",
            contact_info.get("mobile") or "",
            contact_info.get("phone") or "",
            contact_info.get("email") or "",
            now,
            now,
            modifier,
            modifier,
        ]
        await self.sheets.append(
            self.spreadsheet_id,
            column_span(SheetNames.CONTACT_LIST, LAST_COLUMN[SheetNames.CONTACT_LIST]),
            [new_row],
        )
        self._commit(self.contact_reader, CacheKey.CONTACT_LIST)
        logger.info("Filed contact %s (%s) by %s", name, contact_id, modifier)
        return {"id": contact_id, "name": name, "created": True}

    async def update_contact(self, contact_id: str, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        match = await self.contact_reader.find_row_by_value(
            column_span(SheetNames.CONTACT_LIST, LAST_COLUMN[SheetNames.CONTACT_LIST]),
            ContactListFields.ID,
            contact_id,
        )
        if match is None:
            raise NotFoundError(f"Contact not found: {contact_id}")

        row = pad_row(match.row_data, LIST_WIDTH)
        for attr, column in CONTACT_COLUMNS.items():
            if attr in update and update[attr] is not None:
                row[column] = update[attr]
        row[ContactListFields.LAST_UPDATE_TIME] = utc_now_iso()
        row[ContactListFields.LAST_MODIFIER] = modifier

        await self.sheets.update(
            self.spreadsheet_id,
            row_span(SheetNames.CONTACT_LIST, match.row_index, LAST_COLUMN[SheetNames.CONTACT_LIST]),
            [row],
        )
        self._commit(self.contact_reader, CacheKey.CONTACT_LIST)
        logger.info("Updated contact %s by %s", contact_id, modifier)
        return {"success": True}

    async def update_contact_status(self, row_index: Any, status: str) -> Dict[str, Any]:
        """Set the processing status of a scanned card (column Y)."""
        row_index = check_row_index(row_index)
        await self.sheets.update(self.spreadsheet_id, cell(SheetNames.CONTACTS, "Y", row_index), [[status]])
        self._commit(self.contact_reader, CacheKey.CONTACTS)
        logger.info("Raw contact row %d status -> %s", row_index, status)
        return {"success": True}

    async def update_raw_contact(self, row_index: Any, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        """Read-merge-write correction of a scanned card."""
        row_index = check_row_index(row_index)
        range_ = row_span(SheetNames.CONTACTS, row_index, LAST_COLUMN[SheetNames.CONTACTS])
        rows = await self.sheets.get(self.spreadsheet_id, range_)
        if not rows or not rows[0]:
            raise NotFoundError(f"No raw contact at row {row_index}")

        row = pad_row(rows[0], RAW_WIDTH)
        for attr, column in RAW_CONTACT_COLUMNS.items():
            if attr in update and update[attr] is not None:
                row[column] = update[attr]

        await self.sheets.update(self.spreadsheet_id, range_, [row])
        self._commit(self.contact_reader, CacheKey.CONTACTS)
        logger.info("Raw contact row %d corrected by %s", row_index, modifier)
        return {"success": True}
