"""Market product writer (writes to the product spreadsheet)."""
import logging
from typing import Any, Dict, List

from crm_config import DEFAULT_PRODUCT_STATUS, LAST_COLUMN, ProductFields, SheetNames
from data.a1 import column_span, row_span
from data.batch import BatchReconciler
from data.errors import NotFoundError, ValidationError
from data.parsers import blank, utc_now_iso
from data.readers.product import ProductReader, parse_product_row
from data.writers.base import BaseWriter, mint_id

logger = logging.getLogger(__name__)

# Column order of the product table.
PRODUCT_COLUMNS = [
    "id", "name", "category", "group", "combination", "unit", "spec",
    "cost", "price_mtb", "price_si", "price_mtu",
    "supplier", "series", "interface", "property", "aspect", "description",
    "status", "creator", "create_time", "last_modifier", "last_update_time",
]


def format_row(data: Dict[str, Any]) -> List[Any]:
    return [blank(data.get(column)) for column in PRODUCT_COLUMNS]


class ProductWriter(BaseWriter):
    def __init__(self, sheets, cache, spreadsheet_id: str, product_reader: ProductReader):
        super().__init__(sheets, cache, spreadsheet_id, product_reader)
        self.product_reader = product_reader

    @property
    def range(self) -> str:
        return column_span(SheetNames.MARKET_PRODUCTS, LAST_COLUMN[SheetNames.MARKET_PRODUCTS])

    def _require_spreadsheet(self) -> None:
        if not self.spreadsheet_id:
            raise ValidationError("PRODUCT_SPREADSHEET_ID is not set")

    async def create_product(self, data: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        self._require_spreadsheet()
        now = utc_now_iso()
        product_id = data.get("id") or mint_id("PROD")
        row = format_row({
            **data,
            "id": product_id,
            "status": data.get("status") or DEFAULT_PRODUCT_STATUS,
            "creator": modifier,
            "create_time": now,
            "last_modifier": modifier,
            "last_update_time": now,
        })
        await self.sheets.append(self.spreadsheet_id, self.range, [row])
        self._commit(self.product_reader)
        logger.info("Created product %s by %s", product_id, modifier)
        return {"id": product_id}

    async def update_product(self, product_id: str, update: Dict[str, Any], modifier: str) -> Dict[str, Any]:
        """Merge ``update`` into the product's current row.

        The row is located by id with a fresh read right before the write, so
        a cached row index that has since shifted is never used.
        """
        self._require_spreadsheet()
        match = await self.product_reader.find_row_by_value(self.range, ProductFields.ID, product_id)
        if match is None:
            raise NotFoundError(f"Product not found: {product_id}")

        current = parse_product_row(match.row_data, match.row_index)
        merged = current.model_dump(exclude={"row_index"}) if current is not None else {}
        merged.update({k: v for k, v in update.items() if k in PRODUCT_COLUMNS and k != "id"})
        merged.update({"id": product_id, "last_modifier": modifier, "last_update_time": utc_now_iso()})

        await self.sheets.update(
            self.spreadsheet_id,
            row_span(SheetNames.MARKET_PRODUCTS, match.row_index, LAST_COLUMN[SheetNames.MARKET_PRODUCTS]),
            [format_row(merged)],
        )
        self._commit(self.product_reader)
        logger.info("Updated product %s (row %d) by %s", product_id, match.row_index, modifier)
        return {"success": True}

    async def save_batch(self, products: List[Dict[str, Any]], modifier: str = "System") -> Dict[str, int]:
        """Upsert complete product records by id. Creator fields are stamped on new rows only."""
        if not products:
            return {"updated": 0, "appended": 0}
        self._require_spreadsheet()
        now = utc_now_iso()

        def row_for(item: Dict[str, Any], product_id: str, exists: bool) -> List[Any]:
            return format_row({
                **item,
                "id": product_id,
                "last_modifier": modifier,
                "last_update_time": now,
                "creator": item.get("creator") or ("" if exists else modifier),
                "create_time": item.get("create_time") or ("" if exists else now),
                "status": item.get("status") or DEFAULT_PRODUCT_STATUS,
            })

        reconciler = BatchReconciler(
            self.sheets, self.spreadsheet_id, SheetNames.MARKET_PRODUCTS, LAST_COLUMN[SheetNames.MARKET_PRODUCTS]
        )
        result = await reconciler.reconcile(
            products,
            id_of=lambda item: str(item.get("id") or ""),
            mint_id=lambda: mint_id("PROD", unique=True),
            format_row=row_for,
        )
        self._commit(self.product_reader)
        return result
