"""System configuration and user roster records."""
from typing import Optional
from pydantic import BaseModel


class ConfigItem(BaseModel):
    value: str
    note: str = ""
    order: int = 99
    color: Optional[str] = None
    value2: Optional[str] = None
    value3: Optional[str] = None
    category: str = "其他"


class User(BaseModel):
    username: str
    password_hash: str
    display_name: str = ""
    role: str = "sales"
    row_index: Optional[int] = None
