"""Writers: each paired with the reader whose cache it invalidates."""
from data.writers.base import BaseWriter, check_row_index, mint_id
from data.writers.company import CompanyWriter
from data.writers.contact import ContactWriter
from data.writers.opportunity import OpportunityWriter
from data.writers.interaction import InteractionWriter
from data.writers.product import ProductWriter
from data.writers.config import ConfigWriter
from data.writers.auth import AuthWriter

__all__ = [
    "BaseWriter", "check_row_index", "mint_id",
    "CompanyWriter", "ContactWriter", "OpportunityWriter", "InteractionWriter",
    "ProductWriter", "ConfigWriter", "AuthWriter",
]
