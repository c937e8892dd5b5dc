"""Data-access layer over the Google Sheets CRM store.

Provides:
- SheetsClient / build_sheets_service: remote boundary with retry
- TtlCache / CacheKey: the one cache shared by all readers and writers
- readers / writers: per-table access, paired by constructor injection
"""
from data.cache import CacheKey, TtlCache
from data.connection import SheetsClient, build_sheets_service
from data.errors import (
    CascadeFailure,
    CRMDataError,
    NotFoundError,
    RemoteStoreError,
    RemoteTransientError,
    StaleRowIndexError,
    ValidationError,
)
from data.retry import RetryExecutor

__all__ = [
    "CacheKey", "TtlCache",
    "SheetsClient", "build_sheets_service", "RetryExecutor",
    "CRMDataError", "NotFoundError", "ValidationError", "StaleRowIndexError",
    "RemoteStoreError", "RemoteTransientError", "CascadeFailure",
]
