"""Company records."""
from typing import Optional
from pydantic import BaseModel


class Company(BaseModel):
    company_id: str = ""
    company_name: str = ""
    phone: str = ""
    address: str = ""
    county: str = ""
    introduction: str = ""
    company_type: str = ""
    customer_stage: str = ""
    engagement_rating: str = ""
    created_time: Optional[str] = None
    last_update_time: Optional[str] = None
    creator: str = ""
    last_modifier: str = ""
    row_index: Optional[int] = None


class CompanyWithActivity(Company):
    last_activity: Optional[str] = None
    opportunity_count: int = 0
