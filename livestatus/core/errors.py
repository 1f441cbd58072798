"""
Centralized error types and the HTTP mapping for poll failures.
Adapters record fetch failures as data (FetchError); the classes here are for the
few places that raise: credential checks, storage conflicts, and the trigger route.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LiveStatusError(Exception):
    """Base class for errors raised by the poll engine."""


class CredentialsMissingError(LiveStatusError):
    """A platform adapter has no usable credentials configured."""

    def __init__(self, platform: str, env_vars: tuple[str, ...]):
        self.platform = platform
        self.env_vars = env_vars
        super().__init__(f"{platform} credentials not configured. Add {' and '.join(env_vars)} to .env.")


class AdapterFetchError(LiveStatusError):
    """Upstream call failed (HTTP status, transport error or unparseable body)."""


class DuplicateOpenSessionError(LiveStatusError):
    """An open live session already exists for this account (lost the insert race)."""

    def __init__(self, platform_account_id: int, cause: IntegrityError | None = None):
        self.platform_account_id = platform_account_id
        self.cause = cause
        super().__init__(f"Open live session already exists for platform_account_id={platform_account_id}")


# ---------------------------------------------------------------------------
# HTTP mapping for the manual trigger: (predicate, status_code, detail)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

STATUS_SERVICE_UNAVAILABLE = 503  # database down or unreachable
STATUS_INTERNAL_ERROR = 500

MSG_DATABASE_UNAVAILABLE = "Database unavailable; poll run not started."


def _is_database_unavailable(exc: Exception) -> bool:
    return isinstance(exc, OperationalError)


POLL_ERROR_RULES: list[tuple[Callable[[Exception], bool], int, str]] = [
    (_is_database_unavailable, STATUS_SERVICE_UNAVAILABLE, MSG_DATABASE_UNAVAILABLE),
]


def poll_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a poll run into an HTTPException.
    Uses POLL_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for predicate, status_code, detail in POLL_ERROR_RULES:
        if predicate(exc):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
