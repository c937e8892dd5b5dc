"""Company table reader."""
import logging
from typing import List, Optional

from crm_config import LAST_COLUMN, CompanyFields, SheetNames
from data.a1 import column_span
from data.cache import CacheKey
from data.parsers import cell, normalize_key, parse_date
from data.readers.base import BaseReader
from schemas import Company

logger = logging.getLogger(__name__)


def parse_company_row(row: list, row_index: int) -> Company:
    F = CompanyFields
    return Company(
        company_id=cell(row, F.ID),
        company_name=cell(row, F.NAME),
        phone=cell(row, F.PHONE),
        address=cell(row, F.ADDRESS),
        county=cell(row, F.COUNTY),
        introduction=cell(row, F.INTRODUCTION),
        company_type=cell(row, F.TYPE),
        customer_stage=cell(row, F.STAGE),
        engagement_rating=cell(row, F.RATING),
        created_time=parse_date(cell(row, F.CREATED_TIME)),
        last_update_time=parse_date(cell(row, F.LAST_UPDATE_TIME)),
        creator=cell(row, F.CREATOR),
        last_modifier=cell(row, F.LAST_MODIFIER),
        row_index=row_index,
    )


class CompanyReader(BaseReader):
    CACHE_KEYS = (CacheKey.COMPANY_LIST,)

    @property
    def range(self) -> str:
        return column_span(SheetNames.COMPANY_LIST, LAST_COLUMN[SheetNames.COMPANY_LIST])

    async def get_company_list(self) -> List[Company]:
        return await self._fetch_and_cache(CacheKey.COMPANY_LIST, self.range, parse_company_row)

    async def find_company_by_id(self, company_id: str) -> Optional[Company]:
        if not company_id:
            return None
        for company in await self.get_company_list():
            if company.company_id == company_id:
                return company
        return None

    async def find_company_by_name(self, name: str) -> Optional[Company]:
        """Case-insensitive lookup by company name."""
        target = normalize_key(name)
        if not target:
            return None
        for company in await self.get_company_list():
            if normalize_key(company.company_name) == target:
                return company
        return None
