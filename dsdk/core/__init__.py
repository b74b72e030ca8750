"""
dsdk.core - Core connectivity and authentication
================================================

This module provides the foundational classes for talking to the storage API:

- APIConfig: Connection configuration
- APIConnection: Authenticated HTTP session with transparent re-login
- ConnectionContext: Environment-driven connection manager
- encode_params / FlatPairs / StructuredBody: Request body encoding
- classify_response: Success / re-login / fatal response classification
- RequestLogger: Request/response logging with redaction

"""

from dsdk.core.errors import (
    DsdkError,
    ConfigError,
    TemplateError,
    EncodingError,
    TransportError,
    APIError,
    FatalAPIError,
    MalformedResponseError,
    AuthError,
)

from dsdk.core.template import CONN_TEMPLATE, SECURE_CONN_TEMPLATE, render_template
from dsdk.core.params import FlatPairs, StructuredBody, encode_params
from dsdk.core.models import Envelope, ErrorResponse, LoginResult, get_data
from dsdk.core.classifier import Classification, Outcome, classify_response
from dsdk.core.trace import RequestLogger

from dsdk.core.session import (
    APIConfig,
    APIConnection,
    HTTPMethod,
    new_api_connection,
    parse_duration,
)

from dsdk.core.connection import ConnectionContext

__all__ = [
    # Errors
    "DsdkError",
    "ConfigError",
    "TemplateError",
    "EncodingError",
    "TransportError",
    "APIError",
    "FatalAPIError",
    "MalformedResponseError",
    "AuthError",
    # Building blocks
    "CONN_TEMPLATE",
    "SECURE_CONN_TEMPLATE",
    "render_template",
    "FlatPairs",
    "StructuredBody",
    "encode_params",
    "Envelope",
    "ErrorResponse",
    "LoginResult",
    "get_data",
    "Classification",
    "Outcome",
    "classify_response",
    "RequestLogger",
    # Session
    "APIConfig",
    "APIConnection",
    "HTTPMethod",
    "new_api_connection",
    "parse_duration",
    "ConnectionContext",
]
