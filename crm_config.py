"""Sheet layout and runtime settings for the Sheets-backed CRM.

Layout constants describe where each table lives and which column holds which
field. Settings come from the environment (``.env`` is loaded first):

  SPREADSHEET_ID                  main CRM spreadsheet (required)
  PRODUCT_SPREADSHEET_ID          market product catalogue
  SYSTEM_SETTING_SPREADSHEET_ID   system config table (defaults to main)
  AUTH_SPREADSHEET_ID             user roster (defaults to main)
  GOOGLE_APPLICATION_CREDENTIALS  service-account key file

Usage:
    from crm_config import Settings
    settings = Settings.from_env()
"""
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


# ---------------------------------------------------------------------------
# Sheet (tab) names
# ---------------------------------------------------------------------------


class SheetNames:
    COMPANY_LIST = "公司總表"
    CONTACTS = "原始名片資料"
    CONTACT_LIST = "聯絡人總表"
    OPPORTUNITIES = "機會案件"
    OPPORTUNITY_CONTACT_LINK = "機會-聯絡人關聯"
    INTERACTIONS = "互動紀錄"
    MARKET_PRODUCTS = "市場商品資料"
    SYSTEM_CONFIG = "系統設定"
    USERS = "使用者名冊"


# ---------------------------------------------------------------------------
# Positional layouts
# ---------------------------------------------------------------------------


class CompanyFields:
    ID = 0
    NAME = 1
    PHONE = 2
    ADDRESS = 3
    CREATED_TIME = 4
    LAST_UPDATE_TIME = 5
    COUNTY = 6
    CREATOR = 7
    LAST_MODIFIER = 8
    INTRODUCTION = 9
    TYPE = 10
    STAGE = 11
    RATING = 12


class ContactFields:
    """Raw business-card table, filled by the card-scanning bot."""
    TIME = 0
    NAME = 1
    COMPANY = 2
    POSITION = 3
    DEPARTMENT = 4
    PHONE = 5
    MOBILE = 6
    EMAIL = 7
    WEBSITE = 8
    ADDRESS = 9
    CONFIDENCE = 10
    DRIVE_LINK = 11
    LINE_USER_ID = 22
    USER_NICKNAME = 23
    STATUS = 24


class ContactListFields:
    ID = 0
    SOURCE_ID = 1
    NAME = 2
    COMPANY_ID = 3
    DEPARTMENT = 4
    POSITION = 5
    MOBILE = 6
    PHONE = 7
    EMAIL = 8
    CREATED_TIME = 9
    LAST_UPDATE_TIME = 10
    CREATOR = 11
    LAST_MODIFIER = 12


class OppContactLinkFields:
    LINK_ID = 0
    OPPORTUNITY_ID = 1
    CONTACT_ID = 2
    CREATE_TIME = 3
    STATUS = 4
    CREATOR = 5


class InteractionFields:
    ID = 0
    OPPORTUNITY_ID = 1
    INTERACTION_TIME = 2
    EVENT_TYPE = 3
    EVENT_TITLE = 4
    CONTENT_SUMMARY = 5
    PARTICIPANTS = 6
    NEXT_ACTION = 7
    ATTACHMENT_LINK = 8
    CALENDAR_EVENT_ID = 9
    RECORDER = 10
    CREATED_TIME = 11
    COMPANY_ID = 12


class ProductFields:
    ID = 0
    NAME = 1
    CATEGORY = 2
    GROUP = 3
    COMBINATION = 4
    UNIT = 5
    SPEC = 6
    COST = 7
    PRICE_MTB = 8
    PRICE_SI = 9
    PRICE_MTU = 10
    SUPPLIER = 11
    SERIES = 12
    INTERFACE = 13
    PROPERTY = 14
    ASPECT = 15
    DESCRIPTION = 16
    STATUS = 17
    CREATOR = 18
    CREATE_TIME = 19
    LAST_MODIFIER = 20
    LAST_UPDATE_TIME = 21


class SystemConfigFields:
    TYPE = 0
    ITEM = 1
    ORDER = 2
    ENABLED = 3
    NOTE = 4
    COLOR = 5
    VALUE2 = 6
    VALUE3 = 7
    CATEGORY = 8


# Last column letter of each positional table.
LAST_COLUMN = {
    SheetNames.COMPANY_LIST: "M",
    SheetNames.CONTACTS: "Y",
    SheetNames.CONTACT_LIST: "M",
    SheetNames.OPPORTUNITY_CONTACT_LINK: "F",
    SheetNames.INTERACTIONS: "M",
    SheetNames.MARKET_PRODUCTS: "V",
    SheetNames.SYSTEM_CONFIG: "I",
    SheetNames.USERS: "D",
}

# The opportunity table grows columns over time; it is addressed by header.
OPPORTUNITY_LAST_COLUMN = "ZZ"


class OpportunityFields:
    """Header titles of the opportunity table."""
    ID = "機會ID"
    NAME = "機會名稱"
    CUSTOMER = "客戶公司"
    CONTACT = "主要聯絡人"
    ASSIGNEE = "負責業務"
    TYPE = "機會種類"
    SOURCE = "機會來源"
    STAGE = "目前階段"
    CLOSE_DATE = "預計結案日"
    VALUE = "機會價值"
    STATUS = "目前狀態"
    NOTES = "備註"
    HISTORY = "階段歷程"
    PARENT_ID = "母機會ID"
    PROBABILITY = "下單機率"
    PRODUCT_SPEC = "可能下單規格"
    CHANNEL = "銷售管道"
    CHANNEL_DETAILS = "通路細節"
    DEVICE_SCALE = "設備規模"
    VALUE_TYPE = "機會價值類型"
    SALES_MODEL = "銷售模式"
    CHANNEL_CONTACT = "通路聯絡人"
    CREATED_TIME = "建立時間"
    LAST_UPDATE_TIME = "最後更新時間"
    CREATOR = "建立者"
    LAST_MODIFIER = "最後修改者"


# Opportunity record attribute -> header title.
OPPORTUNITY_COLUMNS = {
    "opportunity_id": OpportunityFields.ID,
    "opportunity_name": OpportunityFields.NAME,
    "customer_company": OpportunityFields.CUSTOMER,
    "main_contact": OpportunityFields.CONTACT,
    "assignee": OpportunityFields.ASSIGNEE,
    "opportunity_type": OpportunityFields.TYPE,
    "opportunity_source": OpportunityFields.SOURCE,
    "current_stage": OpportunityFields.STAGE,
    "expected_close_date": OpportunityFields.CLOSE_DATE,
    "opportunity_value": OpportunityFields.VALUE,
    "current_status": OpportunityFields.STATUS,
    "notes": OpportunityFields.NOTES,
    "stage_history": OpportunityFields.HISTORY,
    "parent_opportunity_id": OpportunityFields.PARENT_ID,
    "order_probability": OpportunityFields.PROBABILITY,
    "potential_specification": OpportunityFields.PRODUCT_SPEC,
    "sales_channel": OpportunityFields.CHANNEL,
    "channel_details": OpportunityFields.CHANNEL_DETAILS,
    "device_scale": OpportunityFields.DEVICE_SCALE,
    "opportunity_value_type": OpportunityFields.VALUE_TYPE,
    "sales_model": OpportunityFields.SALES_MODEL,
    "channel_contact": OpportunityFields.CHANNEL_CONTACT,
    "created_time": OpportunityFields.CREATED_TIME,
    "last_update_time": OpportunityFields.LAST_UPDATE_TIME,
    "creator": OpportunityFields.CREATOR,
    "last_modifier": OpportunityFields.LAST_MODIFIER,
}

# Fields a batch save is allowed to touch (Kanban / chip-wall moves and renames).
OPPORTUNITY_BATCH_FIELDS = (
    "current_stage",
    "stage_history",
    "customer_company",
    "opportunity_name",
    "opportunity_type",
    "assignee",
)

CLOSED_OPPORTUNITY_STATUSES = ("已封存", "已取消")

# Status value used for a live opportunity-contact link.
LINK_STATUS_ACTIVE = "active"

DEFAULT_PRODUCT_STATUS = "上架"
SYSTEM_PREF_TYPE = "SystemPref"


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    spreadsheet_id: str
    product_spreadsheet_id: str = ""
    system_setting_spreadsheet_id: str = ""
    auth_spreadsheet_id: str = ""
    credentials_path: str = ""

    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    retry_max_backoff_seconds: float = Field(default=16.0, ge=0)

    contacts_per_page: int = Field(default=20, ge=1)
    interactions_per_page: int = Field(default=10, ge=1)
    opportunities_per_page: int = Field(default=20, ge=1)

    @property
    def config_spreadsheet_id(self) -> str:
        return self.system_setting_spreadsheet_id or self.spreadsheet_id

    @property
    def users_spreadsheet_id(self) -> str:
        return self.auth_spreadsheet_id or self.spreadsheet_id

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (after loading .env)."""
        load_dotenv()
        spreadsheet_id = os.environ.get("SPREADSHEET_ID")
        if not spreadsheet_id:
            raise RuntimeError(
                "SPREADSHEET_ID environment variable is not set. "
                "Copy .env.example to .env and set your spreadsheet IDs."
            )
        return cls(
            spreadsheet_id=spreadsheet_id,
            product_spreadsheet_id=os.environ.get("PRODUCT_SPREADSHEET_ID", ""),
            system_setting_spreadsheet_id=os.environ.get("SYSTEM_SETTING_SPREADSHEET_ID", ""),
            auth_spreadsheet_id=os.environ.get("AUTH_SPREADSHEET_ID", ""),
            credentials_path=os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", ""),
            cache_ttl_seconds=float(os.environ.get("CRM_CACHE_TTL_SECONDS", "300")),
            retry_attempts=int(os.environ.get("SHEETS_RETRY_ATTEMPTS", "3")),
            retry_backoff_seconds=float(os.environ.get("SHEETS_RETRY_BACKOFF", "1.0")),
            retry_max_backoff_seconds=float(os.environ.get("SHEETS_RETRY_MAX_BACKOFF", "16.0")),
            contacts_per_page=int(os.environ.get("CONTACTS_PER_PAGE", "20")),
            interactions_per_page=int(os.environ.get("INTERACTIONS_PER_PAGE", "10")),
            opportunities_per_page=int(os.environ.get("OPPORTUNITIES_PER_PAGE", "20")),
        )
