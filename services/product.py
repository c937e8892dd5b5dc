"""Product catalogue service."""
import json
import logging
from typing import Any, Dict, List, Optional

from crm_config import SYSTEM_PREF_TYPE
from data.errors import ValidationError
from data.readers import ConfigReader, ProductReader
from data.readers.base import filter_by_query
from data.writers import ConfigWriter, ProductWriter
from schemas import Product

logger = logging.getLogger(__name__)

CATEGORY_ORDER_KEY = "PRODUCT_CATEGORY_ORDER"


class ProductService:
    def __init__(
        self,
        product_reader: ProductReader,
        product_writer: ProductWriter,
        config_reader: ConfigReader,
        config_writer: ConfigWriter,
    ):
        self.product_reader = product_reader
        self.product_writer = product_writer
        self.config_reader = config_reader
        self.config_writer = config_writer

    async def get_products(self, query: Optional[str] = None) -> List[Product]:
        return filter_by_query(await self.product_reader.get_all_products(), query, "name", "id", "category")

    async def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return await self.product_reader.find_product_by_id(product_id)

    async def refresh_cache(self) -> None:
        self.product_reader.invalidate_cache()
        await self.product_reader.get_all_products()

    async def save_all(self, products: List[Dict[str, Any]], modifier: str = "System") -> Dict[str, int]:
        if not products:
            return {"updated": 0, "appended": 0}
        return await self.product_writer.save_batch(products, modifier)

    async def get_category_order(self) -> List[str]:
        """Category display order, stored as JSON in a SystemPref row."""
        for pref in await self.config_reader.get_items(SYSTEM_PREF_TYPE):
            if pref.value == CATEGORY_ORDER_KEY and pref.note:
                try:
                    return json.loads(pref.note)
                except ValueError:
                    logger.warning("Stored category order is not valid JSON: %r", pref.note)
                    return []
        return []

    async def save_category_order(self, order: List[str]) -> Dict[str, Any]:
        if not isinstance(order, list):
            raise ValidationError("Category order must be a list")
        await self.config_writer.update_system_pref(CATEGORY_ORDER_KEY, json.dumps(order, ensure_ascii=False))
        return {"success": True}
