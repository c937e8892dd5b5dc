"""Contact service."""
import logging
from typing import Any, Callable, Dict, Optional

from data.errors import NotFoundError, ValidationError
from data.readers import CompanyReader, ContactReader
from data.writers import ContactWriter

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(
        self,
        contact_reader: ContactReader,
        company_reader: CompanyReader,
        contact_writer: ContactWriter,
        dashboard_provider: Optional[Callable[[], Any]] = None,
    ):
        self.contact_reader = contact_reader
        self.company_reader = company_reader
        self.contact_writer = contact_writer
        # DashboardService also depends on this service, so it is resolved lazily.
        self._dashboard_provider = dashboard_provider

    def wire_dashboard(self, provider: Callable[[], Any]) -> None:
        self._dashboard_provider = provider

    async def get_dashboard_data(self) -> Dict[str, Any]:
        if self._dashboard_provider is None:
            raise RuntimeError("ContactService used before the dashboard was wired")
        return await self._dashboard_provider().get_contacts_dashboard_data()

    async def search_raw_contacts(self, query: Optional[str] = None, page: int = 1) -> Dict[str, Any]:
        return await self.contact_reader.search_contacts(query)

    async def search_contact_list(self, query: Optional[str] = None, page: int = 1) -> Dict[str, Any]:
        return await self.contact_reader.search_contact_list(query, page)

    async def create_contact(self, contact_info: Dict[str, Any], company_id: str, modifier: str) -> Dict[str, Any]:
        """File a contact under an existing company."""
        if not company_id:
            raise ValidationError("A company id is required to file a contact")
        company = await self.company_reader.find_company_by_id(company_id)
        if company is None:
            raise ValidationError(f"Company id does not exist: {company_id}")
        return await self.contact_writer.get_or_create_contact(contact_info, {"id": company.company_id}, modifier)

    async def update_contact(self, contact_id: str, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        existing = await self.contact_reader.find_contact_by_id(contact_id)
        if existing is None:
            raise NotFoundError(f"Contact not found: {contact_id}")

        new_company = update.get("company_id")
        if new_company and new_company != existing.company_id:
            if await self.company_reader.find_company_by_id(new_company) is None:
                raise ValidationError(f"Company id does not exist: {new_company}")

        result = await self.contact_writer.update_contact(contact_id, update, modifier)
        if result.get("success"):
            changes = []
            if update.get("name") and update["name"] != existing.name:
                changes.append(f"姓名變更為 {update['name']}")
            if update.get("mobile") and update["mobile"] != existing.mobile:
                changes.append(f"手機變更為 {update['mobile']}")
            if changes:
                logger.info("Contact %s updated by %s: %s", contact_id, modifier, ", ".join(changes))
        return result

    async def update_raw_contact(self, row_index: Any, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        return await self.contact_writer.update_raw_contact(row_index, update, modifier)

    async def update_contact_status(self, row_index: Any, status: str) -> Dict[str, Any]:
        return await self.contact_writer.update_contact_status(row_index, status)
