"""Shared fixtures: an in-memory spreadsheet store and a seeded CRM workbook."""
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import pytest

from container import build_container
from crm_config import (
    OPPORTUNITY_COLUMNS,
    CompanyFields,
    ContactFields,
    ContactListFields,
    InteractionFields,
    OppContactLinkFields,
    ProductFields,
    Settings,
    SheetNames,
    SystemConfigFields,
)
from data.a1 import column_letter, parse_range, sheet_range
from data.cache import TtlCache

MAIN_ID = "main-spreadsheet"
PRODUCT_ID = "product-spreadsheet"

# Header titles; the positional readers skip row 1 without looking at it.
COMPANY_HEADER = [
    "公司ID", "公司名稱", "電話", "地址", "建立時間", "最後更新時間", "縣市",
    "建立者", "最後修改者", "公司簡介", "公司類型", "客戶階段", "互動評級",
]
CONTACT_LIST_HEADER = [
    "聯絡人ID", "來源ID", "姓名", "公司ID", "部門", "職稱", "手機", "電話", "Email",
    "建立時間", "最後更新時間", "建立者", "最後修改者",
]
CARD_HEADER = [
    "時間", "姓名", "公司", "職稱", "部門", "電話", "手機", "Email", "網站", "地址",
    "信心度", "名片連結", "", "", "", "", "", "", "", "", "", "", "LINE ID", "暱稱", "狀態",
]
LINK_HEADER = ["關聯ID", "機會ID", "聯絡人ID", "建立時間", "狀態", "建立者"]
INTERACTION_HEADER = [
    "互動ID", "機會ID", "互動時間", "事件類型", "事件標題", "內容摘要", "參與人員",
    "下次行動", "附件連結", "日曆事件ID", "記錄人", "建立時間", "公司ID",
]
PRODUCT_HEADER = [
    "ID", "名稱", "分類", "群組", "組合", "單位", "規格", "成本", "MTB價", "SI價", "MTU價",
    "供應商", "系列", "介面", "性質", "面向", "說明", "狀態", "建立者", "建立時間",
    "最後修改者", "最後更新時間",
]
CONFIG_HEADER = ["設定類型", "設定項目", "排序", "啟用", "備註", "顏色", "值2", "值3", "分類"]
USERS_HEADER = ["帳號", "密碼雜湊", "顯示名稱", "角色"]
# One unmodelled column at the end lands in Opportunity.extra.
OPPORTUNITY_HEADER = list(OPPORTUNITY_COLUMNS.values()) + ["客戶產業"]


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class Call(NamedTuple):
    method: str
    target: str
    value_input_option: Optional[str] = None


def _to_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def _trim(cells: List[str]) -> List[str]:
    cells = list(cells)
    while cells and cells[-1] == "":
        cells.pop()
    return cells


class FakeSheets:
    """Stands in for SheetsClient.

    Honours A1 ranges the way the store does: ragged rows, trailing blank
    cells and rows omitted, appends after the last non-empty row, and row
    deletion that shifts every later row up. Every call is recorded; set
    ``fail_with`` to make every call raise.
    """

    def __init__(self):
        self.tables: Dict[Tuple[str, str], List[List[str]]] = {}
        self.calls: List[Call] = []
        self.fail_with: Optional[Exception] = None

    # -- helpers -------------------------------------------------------

    def table(self, spreadsheet_id: str, sheet: str) -> List[List[str]]:
        return self.tables.setdefault((spreadsheet_id, sheet), [])

    def seed(self, spreadsheet_id: str, sheet: str, rows: List[List[Any]]) -> None:
        self.tables[(spreadsheet_id, sheet)] = [[_to_cell(c) for c in row] for row in rows]

    def writes(self) -> List[Call]:
        return [c for c in self.calls if c.method in ("update", "append", "batch_update", "delete_row")]

    def reset_calls(self) -> None:
        self.calls.clear()

    def _record(self, method: str, target: str, value_input_option: Optional[str] = None) -> None:
        self.calls.append(Call(method, target, value_input_option))
        if self.fail_with is not None:
            raise self.fail_with

    def _read(self, spreadsheet_id: str, range_: str) -> List[List[str]]:
        r = parse_range(range_)
        table = self.tables.get((spreadsheet_id, r.sheet), [])
        start_row = r.start_row or 1
        end_row = r.end_row or len(table)
        start_col = r.start_col or 0
        out = []
        for row in table[start_row - 1:end_row]:
            cells = row[start_col:] if r.end_col is None else row[start_col:r.end_col + 1]
            out.append(_trim(cells))
        while out and not out[-1]:
            out.pop()
        return out

    def _write(self, spreadsheet_id: str, range_: str, values: List[List[Any]]) -> None:
        r = parse_range(range_)
        table = self.table(spreadsheet_id, r.sheet)
        start_row = r.start_row or 1
        start_col = r.start_col or 0
        for i, values_row in enumerate(values):
            index = start_row - 1 + i
            while len(table) <= index:
                table.append([])
            row = table[index]
            if len(row) < start_col + len(values_row):
                row.extend([""] * (start_col + len(values_row) - len(row)))
            for j, value in enumerate(values_row):
                row[start_col + j] = _to_cell(value)

    # -- SheetsClient surface ------------------------------------------

    async def get(self, spreadsheet_id: str, range_: str) -> List[List[str]]:
        self._record("get", range_)
        return self._read(spreadsheet_id, range_)

    async def batch_get(self, spreadsheet_id: str, ranges: List[str]) -> List[List[List[str]]]:
        self._record("batch_get", ",".join(ranges))
        return [self._read(spreadsheet_id, r) for r in ranges]

    async def update(self, spreadsheet_id: str, range_: str, values, value_input_option: str = "USER_ENTERED"):
        self._record("update", range_, value_input_option)
        self._write(spreadsheet_id, range_, values)
        return {"updatedRange": range_}

    async def append(self, spreadsheet_id: str, range_: str, values, value_input_option: str = "USER_ENTERED"):
        self._record("append", range_, value_input_option)
        r = parse_range(range_)
        table = self.table(spreadsheet_id, r.sheet)
        last = 0
        for i, row in enumerate(table):
            if any(cell != "" for cell in row):
                last = i + 1
        first_row = last + 1
        start_col = r.start_col or 0
        self._write(spreadsheet_id, sheet_range(r.sheet, f"{column_letter(start_col)}{first_row}"), values)
        width = max((len(v) for v in values), default=1)
        return sheet_range(
            r.sheet,
            f"{column_letter(start_col)}{first_row}:{column_letter(start_col + width - 1)}{first_row + len(values) - 1}",
        )

    async def batch_update(self, spreadsheet_id: str, data, value_input_option: str = "USER_ENTERED"):
        self._record("batch_update", ",".join(d["range"] for d in data), value_input_option)
        for block in data:
            self._write(spreadsheet_id, block["range"], block["values"])
        return {"totalUpdatedRows": len(data)}

    async def sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int:
        return sorted(name for sid, name in self.tables if sid == spreadsheet_id).index(sheet_name)

    async def delete_row(self, spreadsheet_id: str, sheet_name: str, row_index: int) -> None:
        self._record("delete_row", f"{sheet_name}!{row_index}")
        table = self.table(spreadsheet_id, sheet_name)
        if row_index - 1 < len(table):
            del table[row_index - 1]


# ---------------------------------------------------------------------------
# Seeded workbook
# ---------------------------------------------------------------------------


def _positional(fields_cls, width: int, values: Dict[str, Any]) -> List[Any]:
    row: List[Any] = [""] * width
    for name, value in values.items():
        row[getattr(fields_cls, name.upper())] = value
    return row


class FakeCrm:
    """A workbook with every CRM table's header in place and row builders per table."""

    def __init__(self, sheets: FakeSheets):
        self.sheets = sheets
        for sheet, header in (
            (SheetNames.COMPANY_LIST, COMPANY_HEADER),
            (SheetNames.CONTACT_LIST, CONTACT_LIST_HEADER),
            (SheetNames.CONTACTS, CARD_HEADER),
            (SheetNames.OPPORTUNITY_CONTACT_LINK, LINK_HEADER),
            (SheetNames.INTERACTIONS, INTERACTION_HEADER),
            (SheetNames.OPPORTUNITIES, OPPORTUNITY_HEADER),
            (SheetNames.SYSTEM_CONFIG, CONFIG_HEADER),
            (SheetNames.USERS, USERS_HEADER),
        ):
            sheets.seed(MAIN_ID, sheet, [header])
        sheets.seed(PRODUCT_ID, SheetNames.MARKET_PRODUCTS, [PRODUCT_HEADER])

    def rows(self, sheet: str, spreadsheet_id: str = MAIN_ID) -> List[List[str]]:
        return self.sheets.table(spreadsheet_id, sheet)

    def _add(self, sheet: str, row: List[Any], spreadsheet_id: str = MAIN_ID) -> int:
        table = self.sheets.table(spreadsheet_id, sheet)
        table.append([_to_cell(c) for c in row])
        return len(table)

    def add_company(self, company_id: str, name: str, **values: Any) -> int:
        return self._add(
            SheetNames.COMPANY_LIST,
            _positional(CompanyFields, len(COMPANY_HEADER), {"id": company_id, "name": name, **values}),
        )

    def add_contact(self, contact_id: str, name: str, company_id: str, **values: Any) -> int:
        return self._add(
            SheetNames.CONTACT_LIST,
            _positional(
                ContactListFields, len(CONTACT_LIST_HEADER),
                {"id": contact_id, "name": name, "company_id": company_id, **values},
            ),
        )

    def add_card(self, name: str, company: str, **values: Any) -> int:
        return self._add(
            SheetNames.CONTACTS,
            _positional(ContactFields, len(CARD_HEADER), {"name": name, "company": company, **values}),
        )

    def add_link(self, link_id: str, opportunity_id: str, contact_id: str, status: str = "active") -> int:
        return self._add(
            SheetNames.OPPORTUNITY_CONTACT_LINK,
            _positional(
                OppContactLinkFields, len(LINK_HEADER),
                {"link_id": link_id, "opportunity_id": opportunity_id, "contact_id": contact_id, "status": status},
            ),
        )

    def add_interaction(self, interaction_id: str, **values: Any) -> int:
        return self._add(
            SheetNames.INTERACTIONS,
            _positional(InteractionFields, len(INTERACTION_HEADER), {"id": interaction_id, **values}),
        )

    def add_opportunity(self, opportunity_id: str, name: str, **attrs: Any) -> int:
        header = self.rows(SheetNames.OPPORTUNITIES)[0]
        row: List[Any] = [""] * len(header)
        values = {"opportunity_id": opportunity_id, "opportunity_name": name, **attrs}
        for attr, value in values.items():
            title = OPPORTUNITY_COLUMNS.get(attr, attr)
            row[header.index(title)] = value
        return self._add(SheetNames.OPPORTUNITIES, row)

    def add_product(self, product_id: str, name: str, **values: Any) -> int:
        return self._add(
            SheetNames.MARKET_PRODUCTS,
            _positional(ProductFields, len(PRODUCT_HEADER), {"id": product_id, "name": name, **values}),
            spreadsheet_id=PRODUCT_ID,
        )

    def add_config(self, config_type: str, item: str, order: Any = "", enabled: str = "TRUE", **values: Any) -> int:
        return self._add(
            SheetNames.SYSTEM_CONFIG,
            _positional(
                SystemConfigFields, len(CONFIG_HEADER),
                {"type": config_type, "item": item, "order": order, "enabled": enabled, **values},
            ),
        )

    def add_user(self, username: str, password_hash: str, display_name: str = "", role: str = "") -> int:
        return self._add(SheetNames.USERS, [username, password_hash, display_name, role])


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sheets():
    return FakeSheets()


@pytest.fixture
def crm(sheets):
    return FakeCrm(sheets)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TtlCache(duration=300.0, clock=clock)


@pytest.fixture
def settings():
    return Settings(spreadsheet_id=MAIN_ID, product_spreadsheet_id=PRODUCT_ID)


@pytest.fixture
def container(crm, settings):
    return build_container(settings, sheets=crm.sheets)

