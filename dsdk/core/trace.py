"""
dsdk.core.trace - Request/response logging
==========================================

``RequestLogger`` is handed to an ``APIConnection`` at construction and logs
every exchange at DEBUG level, masking sensitive payloads and the auth token.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping, Optional, Union

REDACTED = "************"
SENSITIVE_HEADERS = frozenset({"auth-token", "set-cookie", "cookie", "authorization"})


class RequestLogger:
    """
    Structured logger for API exchanges.

    Parameters
    ----------
    logger : logging.Logger, optional
        Destination logger. Defaults to ``logging.getLogger("dsdk.api")``.
    sensitive_headers : iterable of str, optional
        Header names (case-insensitive) whose values are always masked.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        sensitive_headers: Iterable[str] = SENSITIVE_HEADERS,
    ) -> None:
        self.logger = logger or logging.getLogger("dsdk.api")
        self.sensitive_headers = frozenset(h.lower() for h in sensitive_headers)

    @staticmethod
    def new_trace_id() -> str:
        return str(uuid.uuid4())

    def redact_headers(self, headers: Mapping[str, str]) -> dict:
        return {
            k: (REDACTED if k.lower() in self.sensitive_headers else v)
            for k, v in headers.items()
        }

    @staticmethod
    def redact_payload(payload: Optional[Union[bytes, str]], sensitive: bool) -> str:
        if payload is None:
            return ""
        if sensitive:
            return REDACTED
        if isinstance(payload, bytes):
            return payload.decode("utf-8", errors="replace")
        return payload

    def request(
        self,
        trace_id: str,
        method: str,
        url: str,
        payload: Optional[bytes],
        headers: Mapping[str, str],
        sensitive: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        body = self.redact_payload(payload, sensitive)
        safe_headers = self.redact_headers(headers)
        self.logger.debug(
            "\nRequest ID: %s\nRequest URL: %s\nRequest Method: %s\n"
            "Request Payload: %s\nRequest Headers: %s",
            trace_id, url, method, body, safe_headers,
            extra={"trace_id": trace_id, "method": method, "url": url},
        )

    def response(
        self,
        trace_id: str,
        status: str,
        payload: bytes,
        headers: Mapping[str, Any],
        sensitive: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        self.logger.debug(
            "\nResponse ID: %s\nResponse Status: %s\nResponse Payload: %s\nResponse Headers: %s",
            trace_id, status, self.redact_payload(payload, sensitive), self.redact_headers(headers),
            extra={"trace_id": trace_id, "status": status},
        )

    def durations(self, trace_id: str, response_s: float, read_s: float) -> None:
        self.logger.debug(
            "Request %s Duration Response: %.2fs Read: %.2fs",
            trace_id, response_s, read_s,
            extra={"trace_id": trace_id, "duration_response": response_s, "duration_read": read_s},
        )
