"""Opportunity reader.

The table is addressed by header title: row 1 is read with every fetch and
each data row is mapped through it, so added or reordered columns do not
break parsing. Columns without a modelled attribute land in ``extra``.
"""
import logging
from typing import Any, Dict, List, Optional

from crm_config import OPPORTUNITY_COLUMNS, OPPORTUNITY_LAST_COLUMN, OpportunityFields, SheetNames
from data.a1 import column_span
from data.cache import CacheKey
from data.header_map import HeaderMap
from data.pagination import paginate, single_page
from data.parsers import newest_first, normalize_key, parse_date
from data.readers.base import BaseReader, filter_by_query
from schemas import Opportunity

logger = logging.getLogger(__name__)

_DATE_FIELDS = ("created_time", "last_update_time")
_KNOWN_TITLES = set(OPPORTUNITY_COLUMNS.values())


def parse_opportunity_row(header: HeaderMap, row: List[Any], row_index: int) -> Optional[Opportunity]:
    values: Dict[str, Any] = {attr: header.read(row, title) for attr, title in OPPORTUNITY_COLUMNS.items()}
    if not values["opportunity_id"] and not values["opportunity_name"]:
        return None
    for attr in _DATE_FIELDS:
        values[attr] = parse_date(values[attr])
    extra = {
        title: header.read(row, title)
        for title in header.offsets
        if title not in _KNOWN_TITLES and header.read(row, title)
    }
    return Opportunity(**values, extra=extra, row_index=row_index)


class OpportunityReader(BaseReader):
    CACHE_KEYS = (CacheKey.OPPORTUNITIES,)

    def __init__(self, sheets, cache, spreadsheet_id: str, page_size: int = 20):
        super().__init__(sheets, cache, spreadsheet_id)
        self.page_size = page_size

    @property
    def range(self) -> str:
        return column_span(SheetNames.OPPORTUNITIES, OPPORTUNITY_LAST_COLUMN)

    async def get_opportunities(self) -> List[Opportunity]:
        """Every opportunity, most recently updated first."""
        async def load() -> List[Opportunity]:
            rows = await self.sheets.get(self.spreadsheet_id, self.range)
            if not rows:
                return []
            header = HeaderMap.from_header_row(rows[0])
            if OpportunityFields.ID not in header:
                logger.warning("Opportunity sheet has no '%s' header", OpportunityFields.ID)
            records = []
            for i, row in enumerate(rows[1:]):
                record = parse_opportunity_row(header, row, i + 2)
                if record is not None:
                    records.append(record)
            return newest_first(records, lambda o: o.last_update_time)

        return await self._cached(CacheKey.OPPORTUNITIES, load)

    async def find_opportunity_by_id(self, opportunity_id: str) -> Optional[Opportunity]:
        if not opportunity_id:
            return None
        for opp in await self.get_opportunities():
            if opp.opportunity_id == opportunity_id:
                return opp
        return None

    async def get_opportunities_by_company(self, company_name: str) -> List[Opportunity]:
        """Opportunities whose denormalised customer name matches (case/whitespace-insensitive)."""
        target = normalize_key(company_name)
        if not target:
            return []
        return [o for o in await self.get_opportunities() if normalize_key(o.customer_company) == target]

    async def search_opportunities(
        self,
        query: Optional[str] = None,
        page: int = 1,
        filters: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Filter and paginate opportunities.

        Args:
            query: Substring matched against name and customer company.
            page: 1-based page; 0 or less returns every match on one page.
            filters: ``{attribute: value}`` exact matches, e.g. ``{"assignee": "amy"}``.
                Blank values and unknown attributes are ignored.

        Returns:
            ``{"data": [...], "pagination": {...}}``
        """
        opportunities = filter_by_query(
            await self.get_opportunities(), query, "opportunity_name", "customer_company"
        )
        for attr, value in (filters or {}).items():
            if not value or attr not in OPPORTUNITY_COLUMNS:
                continue
            opportunities = [o for o in opportunities if getattr(o, attr) == value]
        if page <= 0:
            return single_page(opportunities)
        return paginate(opportunities, page, self.page_size)
