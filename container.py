"""Composition root.

Builds the object graph once per process:
  1. shared infrastructure (Sheets client, retry executor, TtlCache)
  2. readers
  3. writers, each handed its paired reader
  4. services, then the ContactService -> DashboardService back-reference

Usage:
    container = build_container(Settings.from_env())
    companies = await container.company_service.get_company_list_with_activity()
"""
import logging
from dataclasses import dataclass
from typing import Optional

from crm_config import Settings
from data.cache import TtlCache
from data.connection import SheetsClient, build_sheets_service
from data.readers import (
    AuthReader,
    CompanyReader,
    ConfigReader,
    ContactReader,
    InteractionReader,
    OpportunityReader,
    ProductReader,
)
from data.retry import RetryExecutor
from data.writers import (
    AuthWriter,
    CompanyWriter,
    ConfigWriter,
    ContactWriter,
    InteractionWriter,
    OpportunityWriter,
    ProductWriter,
)
from services import (
    CompanyService,
    ContactService,
    DashboardService,
    InteractionService,
    OpportunityService,
    ProductService,
    SystemService,
)

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    sheets: SheetsClient
    cache: TtlCache

    company_reader: CompanyReader
    contact_reader: ContactReader
    opportunity_reader: OpportunityReader
    interaction_reader: InteractionReader
    product_reader: ProductReader
    config_reader: ConfigReader
    auth_reader: AuthReader

    company_writer: CompanyWriter
    contact_writer: ContactWriter
    opportunity_writer: OpportunityWriter
    interaction_writer: InteractionWriter
    product_writer: ProductWriter
    config_writer: ConfigWriter
    auth_writer: AuthWriter

    company_service: CompanyService
    contact_service: ContactService
    opportunity_service: OpportunityService
    interaction_service: InteractionService
    product_service: ProductService
    dashboard_service: DashboardService
    system_service: SystemService


def build_container(settings: Settings, sheets: Optional[SheetsClient] = None) -> Container:
    """Wire readers -> writers -> services around one shared cache.

    Args:
        settings: Spreadsheet ids, TTL, retry and paging settings.
        sheets: Pre-built client (tests pass an in-memory double); built
            from the service-account credentials when omitted.
    """
    if sheets is None:
        executor = RetryExecutor(
            attempts=settings.retry_attempts,
            backoff=settings.retry_backoff_seconds,
            max_backoff=settings.retry_max_backoff_seconds,
        )
        sheets = SheetsClient(build_sheets_service(settings.credentials_path), executor)
    cache = TtlCache(settings.cache_ttl_seconds)
    main_id = settings.spreadsheet_id

    # Readers
    company_reader = CompanyReader(sheets, cache, main_id)
    contact_reader = ContactReader(sheets, cache, main_id, company_reader, page_size=settings.contacts_per_page)
    opportunity_reader = OpportunityReader(sheets, cache, main_id, page_size=settings.opportunities_per_page)
    interaction_reader = InteractionReader(sheets, cache, main_id)
    product_reader = ProductReader(sheets, cache, settings.product_spreadsheet_id)
    config_reader = ConfigReader(sheets, cache, settings.config_spreadsheet_id)
    auth_reader = AuthReader(sheets, cache, settings.users_spreadsheet_id)

    # Writers
    company_writer = CompanyWriter(sheets, cache, main_id, company_reader)
    contact_writer = ContactWriter(sheets, cache, main_id, contact_reader)
    opportunity_writer = OpportunityWriter(sheets, cache, main_id, opportunity_reader, contact_reader)
    interaction_writer = InteractionWriter(sheets, cache, main_id, interaction_reader)
    product_writer = ProductWriter(sheets, cache, settings.product_spreadsheet_id, product_reader)
    config_writer = ConfigWriter(sheets, cache, settings.config_spreadsheet_id, config_reader)
    auth_writer = AuthWriter(sheets, cache, settings.users_spreadsheet_id, auth_reader)

    # Services
    company_service = CompanyService(
        company_reader=company_reader,
        contact_reader=contact_reader,
        opportunity_reader=opportunity_reader,
        interaction_reader=interaction_reader,
        config_reader=config_reader,
        company_writer=company_writer,
        opportunity_writer=opportunity_writer,
        interaction_writer=interaction_writer,
    )
    contact_service = ContactService(contact_reader, company_reader, contact_writer)
    opportunity_service = OpportunityService(
        opportunity_reader=opportunity_reader,
        contact_reader=contact_reader,
        interaction_reader=interaction_reader,
        opportunity_writer=opportunity_writer,
        company_writer=company_writer,
        contact_writer=contact_writer,
    )
    interaction_service = InteractionService(
        interaction_reader,
        opportunity_reader,
        company_reader,
        interaction_writer,
        page_size=settings.interactions_per_page,
    )
    product_service = ProductService(product_reader, product_writer, config_reader, config_writer)
    dashboard_service = DashboardService(contact_reader, company_reader, opportunity_reader)
    system_service = SystemService(cache, config_reader, dashboard_service)

    # Cross-wiring
    contact_service.wire_dashboard(lambda: dashboard_service)

    logger.info("Container built (spreadsheet %s, cache TTL %ss)", main_id, settings.cache_ttl_seconds)
    return Container(
        settings=settings,
        sheets=sheets,
        cache=cache,
        company_reader=company_reader,
        contact_reader=contact_reader,
        opportunity_reader=opportunity_reader,
        interaction_reader=interaction_reader,
        product_reader=product_reader,
        config_reader=config_reader,
        auth_reader=auth_reader,
        company_writer=company_writer,
        contact_writer=contact_writer,
        opportunity_writer=opportunity_writer,
        interaction_writer=interaction_writer,
        product_writer=product_writer,
        config_writer=config_writer,
        auth_writer=auth_writer,
        company_service=company_service,
        contact_service=contact_service,
        opportunity_service=opportunity_service,
        interaction_service=interaction_service,
        product_service=product_service,
        dashboard_service=dashboard_service,
        system_service=system_service,
    )
