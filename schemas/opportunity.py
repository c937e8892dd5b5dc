"""Opportunity records (header-mapped table)."""
from typing import Dict, Optional
from pydantic import BaseModel, Field


class Opportunity(BaseModel):
    opportunity_id: str = ""
    opportunity_name: str = ""
    customer_company: str = ""
    main_contact: str = ""
    assignee: str = ""
    opportunity_type: str = ""
    opportunity_source: str = ""
    current_stage: str = ""
    expected_close_date: str = ""
    opportunity_value: str = ""
    current_status: str = ""
    notes: str = ""
    stage_history: str = ""
    parent_opportunity_id: str = ""
    order_probability: str = ""
    potential_specification: str = ""
    sales_channel: str = ""
    channel_details: str = ""
    device_scale: str = ""
    opportunity_value_type: str = ""
    sales_model: str = ""
    channel_contact: str = ""
    created_time: Optional[str] = None
    last_update_time: Optional[str] = None
    creator: str = ""
    last_modifier: str = ""
    # Columns present on the sheet but not modelled above, keyed by header title.
    extra: Dict[str, str] = Field(default_factory=dict)
    row_index: Optional[int] = None
