"""Company table writer."""
import logging
from typing import Any, Dict, Optional

from crm_config import LAST_COLUMN, CompanyFields, SheetNames
from data.a1 import column_span, first_row_of, row_span
from data.errors import NotFoundError
from data.parsers import utc_now_iso
from data.readers.company import CompanyReader
from data.writers.base import BaseWriter, mint_id, pad_row

logger = logging.getLogger(__name__)

WIDTH = CompanyFields.RATING + 1

# Record attribute -> column for partial updates.
UPDATABLE_COLUMNS = {
    "company_name": CompanyFields.NAME,
    "phone": CompanyFields.PHONE,
    "address": CompanyFields.ADDRESS,
    "county": CompanyFields.COUNTY,
    "introduction": CompanyFields.INTRODUCTION,
    "company_type": CompanyFields.TYPE,
    "customer_stage": CompanyFields.STAGE,
    "engagement_rating": CompanyFields.RATING,
}


class CompanyWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, company_reader: CompanyReader):
        super().__init__(sheets, cache, spreadsheet_id, company_reader)
        self.company_reader = company_reader

    @property
    def range(self) -> str:
        return column_span(SheetNames.COMPANY_LIST, LAST_COLUMN[SheetNames.COMPANY_LIST])

    async def get_or_create_company(
        self,
        company_name: str,
        contact_info: Optional[Dict[str, Any]] = None,
        modifier: str = "System",
        defaults: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Return the company named ``company_name``, creating it if absent.

        Args:
            company_name: Exact (trimmed) name to match.
            contact_info: Source of phone (or mobile) and address for a new row.
            modifier: Recorded as creator and last modifier.
            defaults: Optional county, company_type, customer_stage, engagement_rating.

        Returns:
            ``{"id", "name", "row_index", "created"}``
        """
        existing = await self.company_reader.find_row_by_value(self.range, CompanyFields.NAME, company_name)
        if existing is not None:
            logger.info("Company already exists: %s", company_name)
            row = pad_row(existing.row_data, WIDTH)
            return {
                "id": row[CompanyFields.ID],
                "name": row[CompanyFields.NAME],
                "row_index": existing.row_index,
                "created": False,
            }

        contact_info = contact_info or {}
        defaults = defaults or {}
        now = utc_now_iso()
        company_id = mint_id("COM")
        new_row = [
            company_id,
            company_name,
            contact_info.get("phone") or contact_info.get("mobile") or "",
            contact_info.get("address") or "",
            now,
            now,
            defaults.get("county") or "",
            modifier,
            modifier,
            "",
            defaults.get("company_type") or "",
            defaults.get("customer_stage") or "",
            defaults.get("engagement_rating") or "",
        ]
        updated_range = await self.sheets.append(self.spreadsheet_id, self.range, [new_row])
        self._commit(self.company_reader)
        logger.info("Created company %s (%s) by %s", company_name, company_id, modifier)
        return {"id": company_id, "name": company_name, "row_index": first_row_of(updated_range), "created": True}

    async def update_company(self, company_name: str, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        """Partial update of the company row named ``company_name``.

        Only keys of ``update`` listed in UPDATABLE_COLUMNS are written; the
        update time and modifier are always refreshed.
        """
        match = await self.company_reader.find_row_by_value(self.range, CompanyFields.NAME, company_name)
        if match is None:
            raise NotFoundError(f"Company not found: {company_name}")

        row = pad_row(match.row_data, WIDTH)
        for attr, column in UPDATABLE_COLUMNS.items():
            if attr in update and update[attr] is not None:
                row[column] = update[attr]
        row[CompanyFields.LAST_UPDATE_TIME] = utc_now_iso()
        row[CompanyFields.LAST_MODIFIER] = modifier

        await self.sheets.update(
            self.spreadsheet_id,
            row_span(SheetNames.COMPANY_LIST, match.row_index, LAST_COLUMN[SheetNames.COMPANY_LIST]),
            [row],
        )
        self._commit(self.company_reader)
        logger.info("Updated company %s (row %d) by %s", company_name, match.row_index, modifier)
        return {"success": True, "id": row[CompanyFields.ID]}

    async def delete_company(self, company_name: str) -> Dict[str, Any]:
        match = await self.company_reader.find_row_by_value(self.range, CompanyFields.NAME, company_name)
        if match is None:
            raise NotFoundError(f"Company not found: {company_name}")
        await self._delete_row(SheetNames.COMPANY_LIST, match.row_index, self.company_reader)
        logger.info("Deleted company %s (row %d)", company_name, match.row_index)
        return {"success": True, "deleted_company_id": match.row_data[CompanyFields.ID] if match.row_data else ""}
