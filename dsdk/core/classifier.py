"""
dsdk.core.classifier - Response classification
==============================================

Decides whether a response is a success, an expired session that warrants a
re-login, or a terminal error.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from dsdk.core.models import ErrorResponse, decode_error

logger = logging.getLogger(__name__)

HTTP_ERRORS: FrozenSet[int] = frozenset({400, 401, 422, 500})


class Outcome(enum.Enum):
    SUCCESS = "success"
    RETRY_AUTH = "retry_auth"
    FATAL = "fatal"


@dataclass(frozen=True)
class Classification:
    outcome: Outcome
    status: int
    message: str = ""
    error: Optional[ErrorResponse] = None
    malformed: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def classify_response(status: int, body: bytes, reason: str = "") -> Classification:
    """
    Classify a response by status code and body.

    Statuses outside ``HTTP_ERRORS`` are successes whatever the body holds.
    A 401 whose error name is ``PermissionDeniedError`` asks for a re-login;
    a 401 whose body cannot be decoded is fatal and flagged ``malformed``.
    """
    status_line = f"{status} {reason}".strip()
    if status not in HTTP_ERRORS:
        return Classification(Outcome.SUCCESS, status, status_line)

    error = decode_error(body)
    message = status_line
    if error is not None and error.message:
        message = f"{status_line}: {error.message}"

    if status == 401:
        if error is None:
            logger.error("Couldn't understand 401 response body: %r", body[:200])
            return Classification(Outcome.FATAL, status, status_line, malformed=True)
        if error.permission_denied:
            return Classification(Outcome.RETRY_AUTH, status, message, error)

    return Classification(Outcome.FATAL, status, message, error)
