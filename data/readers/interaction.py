"""Interaction log reader."""
from typing import List, Optional

from crm_config import LAST_COLUMN, InteractionFields, SheetNames
from data.a1 import column_span
from data.cache import CacheKey
from data.parsers import cell, newest_first
from data.readers.base import BaseReader, filter_by_query
from schemas import Interaction


def parse_interaction_row(row: list, row_index: int) -> Interaction:
    F = InteractionFields
    return Interaction(
        interaction_id=cell(row, F.ID),
        opportunity_id=cell(row, F.OPPORTUNITY_ID),
        interaction_time=cell(row, F.INTERACTION_TIME),
        event_type=cell(row, F.EVENT_TYPE),
        event_title=cell(row, F.EVENT_TITLE),
        content_summary=cell(row, F.CONTENT_SUMMARY),
        participants=cell(row, F.PARTICIPANTS),
        next_action=cell(row, F.NEXT_ACTION),
        attachment_link=cell(row, F.ATTACHMENT_LINK),
        calendar_event_id=cell(row, F.CALENDAR_EVENT_ID),
        recorder=cell(row, F.RECORDER),
        created_time=cell(row, F.CREATED_TIME),
        company_id=cell(row, F.COMPANY_ID),
        row_index=row_index,
    )


class InteractionReader(BaseReader):
    CACHE_KEYS = (CacheKey.INTERACTIONS,)

    @property
    def range(self) -> str:
        return column_span(SheetNames.INTERACTIONS, LAST_COLUMN[SheetNames.INTERACTIONS])

    async def get_interactions(self) -> List[Interaction]:
        """All interactions, newest interaction time first."""
        return await self._fetch_and_cache(
            CacheKey.INTERACTIONS,
            self.range,
            parse_interaction_row,
            sorter=lambda records: newest_first(records, lambda i: i.interaction_time),
        )

    async def find_interaction_by_id(self, interaction_id: str) -> Optional[Interaction]:
        if not interaction_id:
            return None
        for interaction in await self.get_interactions():
            if interaction.interaction_id == interaction_id:
                return interaction
        return None

    async def search_interactions_raw(self, query: Optional[str] = None) -> List[Interaction]:
        return filter_by_query(
            await self.get_interactions(), query, "content_summary", "event_title", "recorder"
        )
