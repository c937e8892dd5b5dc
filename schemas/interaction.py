"""Interaction records and their linkage variant."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class LinkKind(str, Enum):
    OPPORTUNITY = "opportunity"
    COMPANY = "company"
    NONE = "none"


class LinkedTo(BaseModel):
    """What an interaction is about: one opportunity, one company, or nothing."""
    kind: LinkKind = LinkKind.NONE
    id: str = ""

    @classmethod
    def opportunity(cls, opportunity_id: str) -> "LinkedTo":
        return cls(kind=LinkKind.OPPORTUNITY, id=opportunity_id)

    @classmethod
    def company(cls, company_id: str) -> "LinkedTo":
        return cls(kind=LinkKind.COMPANY, id=company_id)

    @classmethod
    def none(cls) -> "LinkedTo":
        return cls()

    @classmethod
    def from_ids(cls, opportunity_id: str = "", company_id: str = "") -> "LinkedTo":
        """Build from the two stored columns. Raises ValueError if both are set."""
        opportunity_id = (opportunity_id or "").strip()
        company_id = (company_id or "").strip()
        if opportunity_id and company_id:
            raise ValueError(
                f"Interaction cannot link to both opportunity '{opportunity_id}' and company '{company_id}'"
            )
        if opportunity_id:
            return cls.opportunity(opportunity_id)
        if company_id:
            return cls.company(company_id)
        return cls.none()

    @property
    def opportunity_id(self) -> str:
        return self.id if self.kind == LinkKind.OPPORTUNITY else ""

    @property
    def company_id(self) -> str:
        return self.id if self.kind == LinkKind.COMPANY else ""


class Interaction(BaseModel):
    interaction_id: str = ""
    opportunity_id: str = ""
    interaction_time: str = ""
    event_type: str = ""
    event_title: str = ""
    content_summary: str = ""
    participants: str = ""
    next_action: str = ""
    attachment_link: str = ""
    calendar_event_id: str = ""
    recorder: str = ""
    created_time: str = ""
    company_id: str = ""
    # Filled in by the search service: opportunity name, company name or 未指定.
    context_name: str = ""
    row_index: Optional[int] = None

    @property
    def linked_to(self) -> LinkedTo:
        # Legacy rows may carry both ids; the opportunity takes precedence.
        if self.opportunity_id:
            return LinkedTo.opportunity(self.opportunity_id)
        if self.company_id:
            return LinkedTo.company(self.company_id)
        return LinkedTo.none()
