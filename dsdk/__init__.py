"""
Storage API Python SDK (dsdk)
=============================

Transport and session core for the storage-management REST API.

Usage
-----
>>> from dsdk import ConnectionContext, get_data
>>>
>>> with ConnectionContext() as conn:
...     body = conn.session.get("app_instances", "limit=10")
...     data, _ = get_data(body)

Subpackages
-----------
- dsdk.core: Session, authentication, request encoding and response handling

"""

__version__ = "0.1.0"

# Core exports - available at package root
from dsdk.core import (
    DsdkError,
    ConfigError,
    TemplateError,
    EncodingError,
    TransportError,
    APIError,
    FatalAPIError,
    MalformedResponseError,
    AuthError,
    render_template,
    FlatPairs,
    StructuredBody,
    encode_params,
    Envelope,
    ErrorResponse,
    LoginResult,
    get_data,
    Classification,
    Outcome,
    classify_response,
    RequestLogger,
    APIConfig,
    APIConnection,
    HTTPMethod,
    new_api_connection,
    parse_duration,
    ConnectionContext,
)

__all__ = [
    # Version
    "__version__",
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
    # Encoding / decoding
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
