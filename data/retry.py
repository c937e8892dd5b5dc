"""Retry policy for calls to the remote sheet store.

The store throttles aggressively (HTTP 429) and occasionally answers 5xx, so
every request is wrapped in exponential backoff. Non-transient failures are
raised immediately as ``RemoteStoreError``; transient ones that outlast the
configured attempts surface as ``RemoteTransientError``.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import httplib2
from googleapiclient.errors import HttpError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from data.errors import RemoteStoreError, RemoteTransientError

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}

# Socket, DNS, SSL and timeout failures below the HTTP layer.
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error)


def http_status(exc: BaseException) -> Optional[int]:
    """HTTP status carried by a googleapiclient error, if any."""
    resp = getattr(exc, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status)
    except (TypeError, ValueError):
        return None


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, HttpError):
        return http_status(exc) in RETRYABLE_STATUSES
    return isinstance(exc, TRANSPORT_ERRORS)


class RetryExecutor:
    """Run blocking store calls off the event loop with exponential backoff."""

    def __init__(self, attempts: int = 3, backoff: float = 1.0, max_backoff: float = 16.0):
        self.attempts = max(1, attempts)
        self.backoff = backoff
        self.max_backoff = max_backoff

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.backoff, max=self.max_backoff),
            retry=retry_if_exception(is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def run(self, fn: Callable[..., Any], *args: Any, description: str = "", **kwargs: Any) -> Any:
        """Call ``fn(*args, **kwargs)`` in a worker thread, retrying transient failures.

        Args:
            fn: Blocking callable, typically a bound ``request.execute``.
            description: Short label for log and error messages.

        Returns:
            Whatever ``fn`` returns.

        Raises:
            RemoteTransientError: A transient failure persisted past the last attempt.
            RemoteStoreError: The store rejected the request outright.
        """
        label = description or getattr(fn, "__name__", "request")
        try:
            async for attempt in self._retrying():
                with attempt:
                    return await asyncio.to_thread(fn, *args, **kwargs)
        except HttpError as exc:
            status = http_status(exc)
            if status in RETRYABLE_STATUSES:
                logger.error("%s failed after %d attempts (HTTP %s)", label, self.attempts, status)
                raise RemoteTransientError(f"{label} failed after {self.attempts} attempts: {exc}", status) from exc
            logger.error("%s rejected by the store (HTTP %s): %s", label, status, exc)
            raise RemoteStoreError(f"{label} failed: {exc}", status) from exc
        except TRANSPORT_ERRORS as exc:
            logger.error("%s failed after %d attempts: %s", label, self.attempts, exc)
            raise RemoteTransientError(f"{label} failed after {self.attempts} attempts: {exc}") from exc
