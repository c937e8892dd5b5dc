"""Interaction service."""
import asyncio
import logging
from typing import Any, Dict, Optional

from data.pagination import paginate, single_page
from data.parsers import utc_now_iso
from data.readers import CompanyReader, InteractionReader, OpportunityReader
from data.readers.base import filter_by_query
from data.writers import InteractionWriter
from schemas import LinkedTo

logger = logging.getLogger(__name__)

UNASSIGNED = "未指定"


class InteractionService:
    def __init__(
        self,
        interaction_reader: InteractionReader,
        opportunity_reader: OpportunityReader,
        company_reader: CompanyReader,
        interaction_writer: InteractionWriter,
        page_size: int = 10,
    ):
        self.interaction_reader = interaction_reader
        self.opportunity_reader = opportunity_reader
        self.company_reader = company_reader
        self.interaction_writer = interaction_writer
        self.page_size = page_size

    async def search_all_interactions(
        self,
        query: Optional[str] = None,
        page: int = 1,
        fetch_all: bool = False,
    ) -> Dict[str, Any]:
        """Interactions labelled with what they are about, filtered and paginated.

        The context name is the linked opportunity's name, else the linked
        company's name, else 未指定. ``query`` matches the context name as
        well as summary, title and recorder.
        """
        interactions, opportunities, companies = await asyncio.gather(
            self.interaction_reader.search_interactions_raw(None),
            self.opportunity_reader.get_opportunities(),
            self.company_reader.get_company_list(),
        )
        opp_names = {o.opportunity_id: o.opportunity_name for o in opportunities}
        company_names = {c.company_id: c.company_name for c in companies}

        enriched = []
        for interaction in interactions:
            if interaction.opportunity_id and interaction.opportunity_id in opp_names:
                context = opp_names[interaction.opportunity_id]
            elif interaction.company_id and interaction.company_id in company_names:
                context = company_names[interaction.company_id]
            else:
                context = UNASSIGNED
            enriched.append(interaction.model_copy(update={"context_name": context}))

        matches = filter_by_query(enriched, query, "context_name", "content_summary", "event_title", "recorder")
        if fetch_all:
            return single_page(matches)
        return paginate(matches, page, self.page_size)

    async def create_interaction(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.interaction_writer.create_interaction(data)

    async def update_interaction(
        self,
        row_index: Any,
        data: Dict[str, Any],
        modifier: Optional[str] = None,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.interaction_writer.update_interaction(row_index, data, modifier, expected_id=expected_id)

    async def delete_interaction(self, row_index: Any, expected_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.interaction_writer.delete_interaction(row_index, expected_id=expected_id)

    async def log_interaction(self, subject_id: str, event_type: str, content: str, recorder: str) -> Dict[str, Any]:
        """Record an interaction, linking it by the subject id's prefix (OPP or COM)."""
        if subject_id.startswith("OPP"):
            linked_to = LinkedTo.opportunity(subject_id)
        elif subject_id.startswith("COM"):
            linked_to = LinkedTo.company(subject_id)
        else:
            logger.warning("Subject id %s has no known prefix; interaction left unlinked", subject_id)
            linked_to = LinkedTo.none()
        return await self.create_interaction({
            "event_type": event_type,
            "content_summary": content,
            "recorder": recorder,
            "interaction_time": utc_now_iso(),
            "linked_to": linked_to,
        })
