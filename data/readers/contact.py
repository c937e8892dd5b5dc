"""Contact reader: raw business cards, filed contacts and opportunity links."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from crm_config import (
    LAST_COLUMN,
    LINK_STATUS_ACTIVE,
    ContactFields,
    ContactListFields,
    OppContactLinkFields,
    SheetNames,
)
from data.a1 import column_span
from data.cache import CacheKey
from data.pagination import paginate
from data.parsers import cell, newest_first, normalize_key, parse_date
from data.readers.base import BaseReader, filter_by_query
from data.readers.company import CompanyReader
from schemas import Contact, LinkedContact, OpportunityContactLink, RawContact

logger = logging.getLogger(__name__)


def parse_raw_contact_row(row: list, row_index: int) -> RawContact:
    F = ContactFields
    return RawContact(
        created_time=parse_date(cell(row, F.TIME)),
        name=cell(row, F.NAME),
        company=cell(row, F.COMPANY),
        position=cell(row, F.POSITION),
        department=cell(row, F.DEPARTMENT),
        phone=cell(row, F.PHONE),
        mobile=cell(row, F.MOBILE),
        email=cell(row, F.EMAIL),
        website=cell(row, F.WEBSITE),
        address=cell(row, F.ADDRESS),
        confidence=cell(row, F.CONFIDENCE),
        drive_link=cell(row, F.DRIVE_LINK),
        status=cell(row, F.STATUS),
        line_user_id=cell(row, F.LINE_USER_ID),
        user_nickname=cell(row, F.USER_NICKNAME),
        row_index=row_index,
    )


def parse_contact_row(row: list, row_index: int) -> Contact:
    F = ContactListFields
    return Contact(
        contact_id=cell(row, F.ID),
        source_id=cell(row, F.SOURCE_ID),
        name=cell(row, F.NAME),
        company_id=cell(row, F.COMPANY_ID),
        department=cell(row, F.DEPARTMENT),
        position=cell(row, F.POSITION),
        mobile=cell(row, F.MOBILE),
        phone=cell(row, F.PHONE),
        email=cell(row, F.EMAIL),
        created_time=parse_date(cell(row, F.CREATED_TIME)),
        last_update_time=parse_date(cell(row, F.LAST_UPDATE_TIME)),
        creator=cell(row, F.CREATOR),
        last_modifier=cell(row, F.LAST_MODIFIER),
        row_index=row_index,
    )


def parse_link_row(row: list, row_index: int) -> OpportunityContactLink:
    F = OppContactLinkFields
    return OpportunityContactLink(
        link_id=cell(row, F.LINK_ID),
        opportunity_id=cell(row, F.OPPORTUNITY_ID),
        contact_id=cell(row, F.CONTACT_ID),
        create_time=parse_date(cell(row, F.CREATE_TIME)),
        status=cell(row, F.STATUS),
        creator=cell(row, F.CREATOR),
        row_index=row_index,
    )


def _card_key(name: str, company: str) -> str:
    return f"{normalize_key(name)}|{normalize_key(company)}"


class ContactReader(BaseReader):
    CACHE_KEYS = (CacheKey.CONTACTS, CacheKey.CONTACT_LIST, CacheKey.OPP_CONTACT_LINKS)

    def __init__(self, sheets, cache, spreadsheet_id: str, company_reader: CompanyReader, page_size: int = 20):
        super().__init__(sheets, cache, spreadsheet_id)
        self.company_reader = company_reader
        self.page_size = page_size

    @property
    def raw_range(self) -> str:
        return column_span(SheetNames.CONTACTS, LAST_COLUMN[SheetNames.CONTACTS])

    @property
    def list_range(self) -> str:
        return column_span(SheetNames.CONTACT_LIST, LAST_COLUMN[SheetNames.CONTACT_LIST])

    @property
    def link_range(self) -> str:
        return column_span(SheetNames.OPPORTUNITY_CONTACT_LINK, LAST_COLUMN[SheetNames.OPPORTUNITY_CONTACT_LINK])

    # ------------------------------------------------------------------
    # Raw business cards
    # ------------------------------------------------------------------

    async def get_contacts(self, limit: int = 2000) -> List[RawContact]:
        """Raw cards, newest scan first, capped at ``limit``."""
        cards = await self._fetch_and_cache(
            CacheKey.CONTACTS,
            self.raw_range,
            parse_raw_contact_row,
            sorter=lambda records: newest_first(records, lambda c: c.created_time),
        )
        return cards[:limit]

    async def search_contacts(self, query: Optional[str] = None) -> Dict[str, Any]:
        cards = [c for c in await self.get_contacts() if c.name or c.company]
        return {"data": filter_by_query(cards, query, "name", "company")}

    # ------------------------------------------------------------------
    # Filed contacts
    # ------------------------------------------------------------------

    async def get_contact_list(self) -> List[Contact]:
        return await self._fetch_and_cache(CacheKey.CONTACT_LIST, self.list_range, parse_contact_row)

    async def find_contact_by_id(self, contact_id: str) -> Optional[Contact]:
        if not contact_id:
            return None
        for contact in await self.get_contact_list():
            if contact.contact_id == contact_id:
                return contact
        return None

    async def search_contact_list(self, query: Optional[str] = None, page: int = 1) -> Dict[str, Any]:
        """Filed contacts joined with their company name, one page at a time."""
        contacts, companies = await asyncio.gather(
            self.get_contact_list(),
            self.company_reader.get_company_list(),
        )
        names = {c.company_id: c.company_name for c in companies}
        joined = [
            c.model_copy(update={"company_name": names.get(c.company_id) or c.company_id})
            for c in contacts
        ]
        return paginate(filter_by_query(joined, query, "name", "company_name"), page, self.page_size)

    # ------------------------------------------------------------------
    # Opportunity links
    # ------------------------------------------------------------------

    async def get_all_opp_contact_links(self) -> List[OpportunityContactLink]:
        return await self._fetch_and_cache(CacheKey.OPP_CONTACT_LINKS, self.link_range, parse_link_row)

    async def get_linked_contacts(self, opportunity_id: str) -> List[LinkedContact]:
        """Contacts on an opportunity through active links, with company name and card image."""
        links, contacts, companies, cards = await asyncio.gather(
            self.get_all_opp_contact_links(),
            self.get_contact_list(),
            self.company_reader.get_company_list(),
            self.get_contacts(limit=9999),
        )
        linked_ids = {
            link.contact_id for link in links
            if link.opportunity_id == opportunity_id and link.status == LINK_STATUS_ACTIVE
        }
        if not linked_ids:
            return []

        names = {c.company_id: c.company_name for c in companies}
        card_links: Dict[str, str] = {}
        for card in cards:
            if card.name and card.company and card.drive_link:
                card_links.setdefault(_card_key(card.name, card.company), card.drive_link)

        result = []
        for contact in contacts:
            if contact.contact_id not in linked_ids:
                continue
            company_name = names.get(contact.company_id, "")
            drive_link = ""
            if contact.name and company_name:
                drive_link = card_links.get(_card_key(contact.name, company_name), "")
            result.append(LinkedContact(
                contact_id=contact.contact_id,
                source_id=contact.source_id,
                name=contact.name,
                company_id=contact.company_id,
                department=contact.department,
                position=contact.position,
                mobile=contact.mobile,
                phone=contact.phone,
                email=contact.email,
                company_name=company_name,
                drive_link=drive_link,
            ))
        return result
