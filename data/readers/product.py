"""Market product reader. The catalogue lives in its own spreadsheet."""
import logging
from typing import List, Optional

from crm_config import DEFAULT_PRODUCT_STATUS, LAST_COLUMN, ProductFields, SheetNames
from data.a1 import column_span
from data.cache import CacheKey
from data.parsers import cell, parse_date, parse_float_safe
from data.readers.base import BaseReader
from schemas import Product

logger = logging.getLogger(__name__)


def parse_product_row(row: list, row_index: int) -> Optional[Product]:
    F = ProductFields
    if not cell(row, F.ID) and not cell(row, F.NAME):
        return None
    return Product(
        id=cell(row, F.ID),
        name=cell(row, F.NAME),
        category=cell(row, F.CATEGORY),
        group=cell(row, F.GROUP),
        combination=cell(row, F.COMBINATION),
        unit=cell(row, F.UNIT),
        spec=cell(row, F.SPEC),
        cost=parse_float_safe(cell(row, F.COST)),
        price_mtb=parse_float_safe(cell(row, F.PRICE_MTB)),
        price_si=parse_float_safe(cell(row, F.PRICE_SI)),
        price_mtu=parse_float_safe(cell(row, F.PRICE_MTU)),
        supplier=cell(row, F.SUPPLIER),
        series=cell(row, F.SERIES),
        interface=cell(row, F.INTERFACE),
        property=cell(row, F.PROPERTY),
        aspect=cell(row, F.ASPECT),
        description=cell(row, F.DESCRIPTION),
        status=cell(row, F.STATUS) or DEFAULT_PRODUCT_STATUS,
        creator=cell(row, F.CREATOR),
        create_time=parse_date(cell(row, F.CREATE_TIME)),
        last_modifier=cell(row, F.LAST_MODIFIER),
        last_update_time=parse_date(cell(row, F.LAST_UPDATE_TIME)),
        row_index=row_index,
    )


class ProductReader(BaseReader):
    CACHE_KEYS = (CacheKey.MARKET_PRODUCTS,)

    @property
    def range(self) -> str:
        return column_span(SheetNames.MARKET_PRODUCTS, LAST_COLUMN[SheetNames.MARKET_PRODUCTS])

    async def get_all_products(self) -> List[Product]:
        if not self.spreadsheet_id:
            logger.error("PRODUCT_SPREADSHEET_ID is not set; product catalogue unavailable")
            return []
        return await self._fetch_and_cache(CacheKey.MARKET_PRODUCTS, self.range, parse_product_row)

    async def find_product_by_id(self, product_id: str) -> Optional[Product]:
        if not product_id:
            return None
        for product in await self.get_all_products():
            if product.id == product_id:
                return product
        return None
