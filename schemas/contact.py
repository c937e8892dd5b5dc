"""Contact records: raw business cards, filed contacts and opportunity links."""
from typing import Optional
from pydantic import BaseModel


class RawContact(BaseModel):
    """One scanned business card. Addressed by row index only."""
    created_time: Optional[str] = None
    name: str = ""
    company: str = ""
    position: str = ""
    department: str = ""
    phone: str = ""
    mobile: str = ""
    email: str = ""
    website: str = ""
    address: str = ""
    confidence: str = ""
    drive_link: str = ""
    status: str = ""
    line_user_id: str = ""
    user_nickname: str = ""
    row_index: Optional[int] = None


class Contact(BaseModel):
    contact_id: str = ""
    source_id: str = ""
    name: str = ""
    company_id: str = ""
    department: str = ""
    position: str = ""
    mobile: str = ""
    phone: str = ""
    email: str = ""
    created_time: Optional[str] = None
    last_update_time: Optional[str] = None
    creator: str = ""
    last_modifier: str = ""
    # Joined from the company table when listing; not stored on the row.
    company_name: str = ""
    row_index: Optional[int] = None


class OpportunityContactLink(BaseModel):
    link_id: str = ""
    opportunity_id: str = ""
    contact_id: str = ""
    create_time: Optional[str] = None
    status: str = ""
    creator: str = ""
    row_index: Optional[int] = None


class LinkedContact(BaseModel):
    contact_id: str
    source_id: str = ""
    name: str = ""
    company_id: str = ""
    department: str = ""
    position: str = ""
    mobile: str = ""
    phone: str = ""
    email: str = ""
    company_name: str = ""
    drive_link: str = ""
