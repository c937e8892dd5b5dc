from .company import Company, CompanyWithActivity
from .contact import Contact, LinkedContact, OpportunityContactLink, RawContact
from .opportunity import Opportunity
from .interaction import Interaction, LinkKind, LinkedTo
from .product import Product
from .system import ConfigItem, User

__all__ = [
    "Company", "CompanyWithActivity",
    "RawContact", "Contact", "OpportunityContactLink", "LinkedContact",
    "Opportunity",
    "Interaction", "LinkKind", "LinkedTo",
    "Product",
    "ConfigItem", "User",
]
