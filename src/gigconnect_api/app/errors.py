"""Error taxonomy shared by the task and bid handlers.

Every handler failure is one of these types. The FastAPI app turns them into
JSON bodies shaped like ``{"message": "..."}`` with the matching status code,
so one failed request never leaks into another.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)


class GigConnectError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.message}


class ValidationError(GigConnectError):
    """Malformed, missing or out-of-range input."""

    status_code = 400

    def __init__(self, violations: list[str] | str) -> None:
        if isinstance(violations, str):
            violations = [violations]
        if not violations:
            raise ValueError("ValidationError needs at least one violation")
        super().__init__(violations[0])
        self.violations = list(violations)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["errors"] = self.violations
        return payload


class NotFoundError(GigConnectError):
    """Well-formed identifier with no matching record."""

    status_code = 404


class ForbiddenError(GigConnectError):
    """Policy violation such as bidding on your own task."""

    status_code = 403


class InternalError(GigConnectError):
    """Unexpected store or driver failure."""

    status_code = 500

    def __init__(self, message: str, *, dev_details: str | None = None) -> None:
        super().__init__(message)
        self.dev_details = dev_details

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.dev_details is not None:
            payload["dev_details"] = self.dev_details
        return payload


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise unexpected failures inside the block as InternalError.

    ``action`` completes the sentence "An internal server error occurred
    while ...", e.g. ``"creating the task"``.
    """
    try:
        yield
    except GigConnectError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("store_error action=%r", action)
        raise InternalError(
            f"An internal server error occurred while {action}.",
            dev_details=str(exc),
        ) from exc
