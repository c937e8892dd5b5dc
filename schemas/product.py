"""Market product catalogue records."""
from typing import Optional
from pydantic import BaseModel


class Product(BaseModel):
    id: str = ""
    name: str = ""
    category: str = ""
    group: str = ""
    combination: str = ""
    unit: str = ""
    spec: str = ""
    cost: float = 0.0
    price_mtb: float = 0.0
    price_si: float = 0.0
    price_mtu: float = 0.0
    supplier: str = ""
    series: str = ""
    interface: str = ""
    property: str = ""
    aspect: str = ""
    description: str = ""
    status: str = "上架"
    creator: str = ""
    create_time: Optional[str] = None
    last_modifier: str = ""
    last_update_time: Optional[str] = None
    row_index: Optional[int] = None
