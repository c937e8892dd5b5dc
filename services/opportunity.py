"""Opportunity service."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from crm_config import LINK_STATUS_ACTIVE
from data.errors import NotFoundError, ValidationError
from data.readers import ContactReader, InteractionReader, OpportunityReader
from data.writers import CompanyWriter, ContactWriter, OpportunityWriter

logger = logging.getLogger(__name__)

# Short filter names accepted from callers -> record attribute.
FILTER_ALIASES = {
    "type": "opportunity_type",
    "stage": "current_stage",
    "status": "current_status",
}


class OpportunityService:
    def __init__(
        self,
        opportunity_reader: OpportunityReader,
        contact_reader: ContactReader,
        interaction_reader: InteractionReader,
        opportunity_writer: OpportunityWriter,
        company_writer: CompanyWriter,
        contact_writer: ContactWriter,
    ):
        self.opportunity_reader = opportunity_reader
        self.contact_reader = contact_reader
        self.interaction_reader = interaction_reader
        self.opportunity_writer = opportunity_writer
        self.company_writer = company_writer
        self.contact_writer = contact_writer

    async def search_opportunities(
        self,
        query: Optional[str] = None,
        page: int = 0,
        filters: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        resolved = {FILTER_ALIASES.get(k, k): v for k, v in (filters or {}).items() if v}
        return await self.opportunity_reader.search_opportunities(query, page, resolved)

    async def get_opportunity_details(self, opportunity_id: str) -> Dict[str, Any]:
        """One opportunity with its interactions, linked contacts and parent/child opportunities."""
        opportunity = await self.opportunity_reader.find_opportunity_by_id(opportunity_id)
        if opportunity is None:
            raise NotFoundError(f"Opportunity not found: {opportunity_id}")

        interactions, linked_contacts, opportunities = await asyncio.gather(
            self.interaction_reader.get_interactions(),
            self.contact_reader.get_linked_contacts(opportunity_id),
            self.opportunity_reader.get_opportunities(),
        )
        parent = None
        if opportunity.parent_opportunity_id:
            parent = next((o for o in opportunities if o.opportunity_id == opportunity.parent_opportunity_id), None)
        return {
            "opportunity_info": opportunity,
            "interactions": [i for i in interactions if i.opportunity_id == opportunity_id],
            "linked_contacts": linked_contacts,
            "parent_opportunity": parent,
            "child_opportunities": [o for o in opportunities if o.parent_opportunity_id == opportunity_id],
        }

    async def create_opportunity(self, data: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        return await self.opportunity_writer.create_opportunity(data, modifier)

    async def update_opportunity(
        self,
        row_index: Any,
        update: Dict[str, Any],
        modifier: str,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.opportunity_writer.update_opportunity(row_index, update, modifier, expected_id=expected_id)

    async def save_batch(self, items: List[Dict[str, Any]], modifier: str = "System") -> Dict[str, int]:
        return await self.opportunity_writer.save_batch(items, modifier)

    async def delete_opportunity(
        self,
        row_index: Any,
        modifier: str,
        expected_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.opportunity_writer.delete_opportunity(row_index, modifier, expected_id=expected_id)

    async def add_contact_to_opportunity(
        self,
        opportunity_id: str,
        contact: Dict[str, Any],
        modifier: str,
    ) -> Dict[str, Any]:
        """Link a contact to an opportunity.

        ``contact`` either names an existing filed contact (``contact_id``) or
        carries card details (``name`` and ``company``), in which case the
        company and contact are found or created first. An existing active
        link is reused.
        """
        contact_id = contact.get("contact_id")
        if not contact_id:
            company_name = (contact.get("company") or "").strip()
            if not contact.get("name") or not company_name:
                raise ValidationError("A new contact needs both a name and a company")
            company = await self.company_writer.get_or_create_company(company_name, contact, modifier)
            filed = await self.contact_writer.get_or_create_contact(contact, company, modifier)
            contact_id = filed["id"]

        for link in await self.contact_reader.get_all_opp_contact_links():
            if (
                link.opportunity_id == opportunity_id
                and link.contact_id == contact_id
                and link.status == LINK_STATUS_ACTIVE
            ):
                logger.info("Contact %s already linked to %s", contact_id, opportunity_id)
                return {"success": True, "link_id": link.link_id, "contact_id": contact_id}

        result = await self.opportunity_writer.link_contact_to_opportunity(opportunity_id, contact_id, modifier)
        return {**result, "contact_id": contact_id}

    async def delete_contact_link(self, opportunity_id: str, contact_id: str, modifier: str) -> Dict[str, Any]:
        logger.info("Unlinking contact %s from %s by %s", contact_id, opportunity_id, modifier)
        return await self.opportunity_writer.delete_contact_link(opportunity_id, contact_id)
