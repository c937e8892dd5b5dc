"""Dashboard aggregates."""
import asyncio
import logging
from collections import Counter
from typing import Any, Dict

from crm_config import CLOSED_OPPORTUNITY_STATUSES
from data.readers import CompanyReader, ContactReader, OpportunityReader

logger = logging.getLogger(__name__)

UNPROCESSED_STATUS = "未處理"
RECENT_CARD_LIMIT = 10


class DashboardService:
    def __init__(
        self,
        contact_reader: ContactReader,
        company_reader: CompanyReader,
        opportunity_reader: OpportunityReader,
    ):
        self.contact_reader = contact_reader
        self.company_reader = company_reader
        self.opportunity_reader = opportunity_reader

    async def get_contacts_dashboard_data(self) -> Dict[str, Any]:
        """Card-processing counts plus table totals for the contacts page."""
        cards, contacts, companies, opportunities = await asyncio.gather(
            self.contact_reader.get_contacts(limit=9999),
            self.contact_reader.get_contact_list(),
            self.company_reader.get_company_list(),
            self.opportunity_reader.get_opportunities(),
        )
        status_counts = Counter(card.status or UNPROCESSED_STATUS for card in cards)
        open_opportunities = sum(1 for o in opportunities if o.current_status not in CLOSED_OPPORTUNITY_STATUSES)
        return {
            "stats": {
                "raw_contacts": len(cards),
                "unprocessed_contacts": status_counts.get(UNPROCESSED_STATUS, 0),
                "filed_contacts": len(contacts),
                "companies": len(companies),
                "open_opportunities": open_opportunities,
            },
            "status_counts": dict(status_counts),
            "recent_contacts": cards[:RECENT_CARD_LIMIT],
        }
