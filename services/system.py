"""System service: configuration, cache control and write-clock status."""
import logging
from typing import Any, Dict

from data.cache import TtlCache
from data.readers import ConfigReader
from data.readers.config import SystemConfig
from services.dashboard import DashboardService

logger = logging.getLogger(__name__)


class SystemService:
    def __init__(self, cache: TtlCache, config_reader: ConfigReader, dashboard_service: DashboardService):
        self.cache = cache
        self.config_reader = config_reader
        self.dashboard_service = dashboard_service

    async def get_system_config(self) -> SystemConfig:
        return await self.config_reader.get_system_config()

    def invalidate_cache(self) -> Dict[str, Any]:
        """Drop every cached table. The last-write stamp survives."""
        self.cache.invalidate(None)
        return {"success": True, "message": "All backend caches cleared"}

    def get_system_status(self) -> Dict[str, Any]:
        """Clients poll ``last_write_timestamp`` to learn that data changed elsewhere."""
        return {"success": True, "last_write_timestamp": self.cache.last_write_at}

    async def get_contacts_dashboard(self) -> Dict[str, Any]:
        return {"success": True, "data": await self.dashboard_service.get_contacts_dashboard_data()}
