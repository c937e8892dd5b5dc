"""Entity services built on the readers and writers."""
from services.company import CompanyService
from services.contact import ContactService
from services.dashboard import DashboardService
from services.interaction import InteractionService
from services.opportunity import OpportunityService
from services.product import ProductService
from services.system import SystemService

__all__ = [
    "CompanyService", "ContactService", "DashboardService", "InteractionService",
    "OpportunityService", "ProductService", "SystemService",
]
