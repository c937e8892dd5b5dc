"""Exception hierarchy for the Sheets data-access layer.

Callers map NotFoundError and ValidationError to 4xx responses; the remote
errors surface only after the retry policy has given up.
"""
from typing import Optional


class CRMDataError(Exception):
    """Base class for every error raised by the data layer."""


class NotFoundError(CRMDataError):
    """A logical key (ID or name) has no matching row."""


class ValidationError(CRMDataError):
    """Malformed row index or missing / contradictory linkage."""


class StaleRowIndexError(ValidationError):
    """The row at a caller-held index no longer holds the expected record."""

    def __init__(self, row_index: int, expected_id: str, found_id: str):
        self.row_index = row_index
        self.expected_id = expected_id
        self.found_id = found_id
        super().__init__(
            f"Row {row_index} holds '{found_id}', expected '{expected_id}' "
            "(the table was reordered since the index was resolved)"
        )


class RemoteStoreError(CRMDataError):
    """The remote tabular store rejected a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteTransientError(RemoteStoreError):
    """A transient remote failure that outlived every retry."""


class CascadeFailure(CRMDataError):
    """A dependent-record rewrite failed after the primary update committed."""
