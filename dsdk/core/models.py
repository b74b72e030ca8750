"""
dsdk.core.models - Pydantic models for API responses
====================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from dsdk.core.errors import MalformedResponseError

PERMISSION_DENIED_ERROR = "PermissionDeniedError"


class _ResponseModel(BaseModel):
    """Base for response bodies; a JSON null decodes as the field default."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class LoginResult(_ResponseModel):
    """Body returned by a successful ``PUT login``."""

    key: str = Field(default="", description="API token")
    version: str = Field(default="", description="API version of the node")


class Envelope(_ResponseModel):
    """Generic successful response wrapper; ``data`` is left to the caller."""

    tenant: str = ""
    path: str = ""
    version: str = ""
    data: Any = None


class ErrorResponse(_ResponseModel):
    """Error body returned with failed requests."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    code: int = 0
    http: int = 0
    message: str = ""
    debug: Optional[str] = None
    ts: str = ""
    api_req_id: int = 0
    storage_node_uuid: str = ""
    storage_node_hostname: str = ""
    schema_: Optional[Any] = Field(default=None, alias="schema")
    errors: Optional[List[Any]] = None

    @property
    def permission_denied(self) -> bool:
        return self.name == PERMISSION_DENIED_ERROR


def decode_error(body: Union[bytes, str]) -> Optional[ErrorResponse]:
    """Decode ``body`` as an ``ErrorResponse``, or return None if it is not one."""
    try:
        return ErrorResponse.model_validate_json(body)
    except ValidationError:
        return None


def get_data(body: Union[bytes, str]) -> Tuple[Any, Optional[ErrorResponse]]:
    """
    Split a response body into its envelope payload and error view.

    Parameters
    ----------
    body : bytes or str
        Raw response body as returned by a verb call

    Returns
    -------
    tuple
        ``(data, error)`` where ``data`` is the envelope's ``data`` value and
        ``error`` is the same body decoded as an ``ErrorResponse`` (None if it
        does not decode as one)

    Raises
    ------
    MalformedResponseError
        If the body is not a JSON object
    """
    try:
        envelope = Envelope.model_validate_json(body)
    except ValidationError as exc:
        raw = body.encode("utf-8") if isinstance(body, str) else body
        raise MalformedResponseError(f"Response is not an envelope: {exc.errors()[0]['msg']}", body=raw) from exc
    return envelope.data, decode_error(body)
