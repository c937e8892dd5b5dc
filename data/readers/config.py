"""System configuration reader.

The config table holds every enumeration the CRM uses (stages, ratings,
event types, ...), one row per item:

    type | item | order | enabled | note | color | value2 | value3 | category

Only rows whose ``enabled`` cell is ``TRUE`` count. Items are grouped by type
and sorted by order (missing order sorts as 99).
"""
import logging
from typing import Dict, List

from crm_config import LAST_COLUMN, SheetNames, SystemConfigFields
from data.a1 import column_span
from data.cache import CacheKey
from data.parsers import cell, parse_int_safe
from data.readers.base import BaseReader
from schemas import ConfigItem

logger = logging.getLogger(__name__)

SystemConfig = Dict[str, List[ConfigItem]]


def default_settings() -> SystemConfig:
    """Built-in enumerations present even when the sheet does not define them."""
    return {
        "事件類型": [
            ConfigItem(value="general", note="一般", order=1, color="#6c757d"),
            ConfigItem(value="iot", note="IOT", order=2, color="#007bff"),
            ConfigItem(value="dt", note="DT", order=3, color="#28a745"),
            ConfigItem(value="dx", note="DX", order=4, color="#ffc107"),
            ConfigItem(value="legacy", note="舊事件", order=5, color="#dc3545"),
        ],
        "日曆篩選規則": [],
    }


def build_settings(rows: List[list]) -> SystemConfig:
    F = SystemConfigFields
    settings = default_settings()
    for row in rows[1:]:
        config_type = cell(row, F.TYPE)
        item = cell(row, F.ITEM)
        if cell(row, F.ENABLED) != "TRUE" or not config_type or not item:
            continue
        note = cell(row, F.NOTE) or item
        order = parse_int_safe(cell(row, F.ORDER)) or 99
        items = settings.setdefault(config_type, [])
        existing = next((i for i in items if i.value == item), None)
        if existing is not None:
            existing.note = note
            existing.order = order
            continue
        items.append(ConfigItem(
            value=item,
            note=note,
            order=order,
            color=cell(row, F.COLOR) or None,
            value2=cell(row, F.VALUE2) or None,
            value3=cell(row, F.VALUE3) or None,
            category=cell(row, F.CATEGORY) or "其他",
        ))
    for items in settings.values():
        items.sort(key=lambda i: i.order)
    return settings


class ConfigReader(BaseReader):
    CACHE_KEYS = (CacheKey.SYSTEM_CONFIG,)

    @property
    def range(self) -> str:
        return column_span(SheetNames.SYSTEM_CONFIG, LAST_COLUMN[SheetNames.SYSTEM_CONFIG])

    async def get_system_config(self) -> SystemConfig:
        async def load() -> SystemConfig:
            return build_settings(await self.sheets.get(self.spreadsheet_id, self.range))

        return await self._cached(CacheKey.SYSTEM_CONFIG, load, fallback=default_settings())

    async def get_items(self, config_type: str) -> List[ConfigItem]:
        return (await self.get_system_config()).get(config_type, [])

    async def get_label(self, config_type: str, value: str) -> str:
        """Display note for ``value`` in an enumeration, or the value itself."""
        for item in await self.get_items(config_type):
            if item.value == value:
                return item.note
        return value
