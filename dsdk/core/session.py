"""
dsdk.core.session - Storage API HTTP Session Management
=======================================================

Low-level session handling for the storage-management REST API with:
- Token login with transparent re-login on session expiry (once per call)
- Versioned URL templating and query-string assembly
- Flat ``key=value`` or structured JSON request bodies
- Serialized exchanges per session, safe to share between threads
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Union
from urllib.parse import quote_plus
import enum
import json
import logging
import re
import threading
import time

import requests
from pydantic import ValidationError
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dsdk.core.classifier import Classification, Outcome, classify_response
from dsdk.core.errors import (
    APIError,
    AuthError,
    ConfigError,
    EncodingError,
    FatalAPIError,
    MalformedResponseError,
    TransportError,
)
from dsdk.core.models import LoginResult
from dsdk.core.params import StructuredBody, encode_params
from dsdk.core.template import CONN_TEMPLATE, SECURE_CONN_TEMPLATE, render_template
from dsdk.core.trace import RequestLogger

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "login"
AUTH_TOKEN_HEADER = "Auth-Token"
UNSET_TOKEN = ""

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> float:
    """
    Parse a duration string such as ``"300s"``, ``"1m30s"`` or ``"250ms"``.

    Returns
    -------
    float
        Duration in seconds

    Raises
    ------
    ConfigError
        If ``text`` is not a valid duration
    """
    if not isinstance(text, str):
        raise ConfigError(f"Invalid duration {text!r}")
    s = text.strip()
    sign = 1.0
    if s[:1] in ("+", "-"):
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return 0.0
    if not s:
        raise ConfigError(f"Invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART.match(s, pos)
        if m is None:
            raise ConfigError(f"Invalid duration {text!r}")
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    return sign * total


class HTTPMethod(str, enum.Enum):
    """The verbs the API accepts."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Union[str, "HTTPMethod"]) -> "HTTPMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Did not understand method request {value!r}") from None


@dataclass
class APIConfig:
    """
    Connection configuration for one storage API host.

    Parameters
    ----------
    hostname : str
        Management hostname or IP
    port : str or int
        API port
    username : str
        Login name
    password : str
        Login password
    api_version : str
        API version, rendered as ``/v{api_version}/`` (default: "2.2")
    tenant : str
        Tenant path sent with every request (default: "/root")
    timeout : str
        Duration string for each exchange, e.g. "300s" or "1m30s"
    headers : dict
        Extra default headers
    secure : bool
        Use https (default: True)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value

    Examples
    --------
    >>> cfg = APIConfig(
    ...     hostname="172.16.1.10",
    ...     port="7717",
    ...     username="admin",
    ...     password="password",
    ... )
    """
    hostname: str
    port: Union[str, int]
    username: str
    password: str
    api_version: str = "2.2"
    tenant: str = "/root"
    timeout: str = "300s"
    headers: Dict[str, str] = field(default_factory=dict)
    secure: bool = True
    verify: Union[bool, str] = True
    user_agent: str = "dsdk-python/0.1"


class APIConnection:
    """
    Authenticated HTTP session bound to one storage API host.

    Exchanges made through one instance never overlap: every logical call,
    including its re-login and retry, runs under the session lock.

    Parameters
    ----------
    cfg : APIConfig
        Connection configuration
    request_logger : RequestLogger, optional
        Request/response logger; a default one logging to ``dsdk.api`` is used
        when omitted

    Raises
    ------
    ConfigError
        If ``cfg.timeout`` is not a valid duration

    Examples
    --------
    >>> with APIConnection(cfg) as conn:
    ...     conn.login()
    ...     body = conn.get("app_instances", "limit=10")
    """

    def __init__(self, cfg: APIConfig, request_logger: Optional[RequestLogger] = None) -> None:
        timeout = parse_duration(cfg.timeout)
        if timeout < 0:
            raise ConfigError(f"Timeout must not be negative: {cfg.timeout!r}")

        self.cfg = cfg
        self.hostname = cfg.hostname
        self.port = str(cfg.port)
        self.api_version = cfg.api_version
        self.tenant = cfg.tenant
        self.username = cfg.username
        self.password = cfg.password
        self.secure = cfg.secure
        self.verify = cfg.verify
        # 0 means no deadline
        self.timeout: Optional[float] = timeout or None
        self.trace = request_logger or RequestLogger()

        self.lock = threading.RLock()
        self.api_token = UNSET_TOKEN
        self.method: Optional[HTTPMethod] = None
        self.endpoint = ""
        self.qparams: Tuple[str, ...] = ()

        self.headers: Dict[str, str] = {"Content-Type": "application/json"}
        self.headers.update(cfg.headers)
        self.update_headers(f"tenant={cfg.tenant}")

        self.session = self._build_session()
        logger.debug("New API connection: %r", self)

    def __repr__(self) -> str:
        scheme = "https" if self.secure else "http"
        return (
            f"APIConnection({scheme}://{self.hostname}:{self.port}/v{self.api_version}, "
            f"tenant={self.tenant!r}, username={self.username!r})"
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "APIConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- transport ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.headers.update({"User-Agent": self.cfg.user_agent})

        # each attempt is exactly one exchange; failures are not retried here
        retry = Retry(total=0, redirect=False, raise_on_status=False)
        adapter = HTTPAdapter(max_retries=retry, pool_connections=1, pool_maxsize=10)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    # ---------------- headers/url ----------------

    def update_headers(self, *headers: str) -> None:
        """
        Add or overwrite default headers.

        Parameters
        ----------
        *headers : str
            ``"Header=value"`` pairs, split on the first ``=``

        Raises
        ------
        ConfigError
            If a pair has no ``=``
        """
        parsed = []
        for h in headers:
            name, sep, value = h.partition("=")
            if not sep or not name:
                raise ConfigError(f"Header {h!r} is not of the form name=value")
            parsed.append((name, value))
        with self.lock:
            self.headers.update(parsed)

    @staticmethod
    def _escape_qparam(param: str) -> str:
        key, sep, value = param.partition("=")
        if not sep:
            return quote_plus(key)
        return f"{quote_plus(key)}={quote_plus(value)}"

    def _url(self) -> str:
        fstring = SECURE_CONN_TEMPLATE if self.secure else CONN_TEMPLATE
        conn = render_template(fstring, {
            "hostname": self.hostname,
            "port": self.port,
            "endpoint": self.endpoint,
            "version": self.api_version,
        })
        qparams = "&".join(self._escape_qparam(p) for p in self.qparams)
        if qparams:
            conn = f"{conn}?{qparams}"
        return conn

    def _request_headers(self) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.api_token != UNSET_TOKEN:
            headers[AUTH_TOKEN_HEADER] = self.api_token
        return headers

    # ---------------- pipeline ----------------

    def _send(
        self,
        method: HTTPMethod,
        endpoint: str,
        body: Optional[bytes],
        qparams: Sequence[str],
        sensitive: bool,
    ) -> Tuple[Response, bytes, str]:
        # caller holds self.lock
        self.method = method
        self.endpoint = endpoint.strip("/")
        self.qparams = tuple(qparams)
        url = self._url()
        headers = self._request_headers()

        trace_id = self.trace.new_trace_id()
        self.trace.request(trace_id, method.value, url, body, headers, sensitive)

        t0 = time.perf_counter()
        try:
            r = self.session.request(
                method=method.value,
                url=url,
                data=body,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify,
                stream=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method.value} {url} failed: {exc}", url=url) from exc
        t1 = time.perf_counter()
        try:
            content = r.content
        except requests.RequestException as exc:
            raise TransportError(f"{method.value} {url} failed reading response: {exc}", url=url) from exc
        finally:
            r.close()
        t2 = time.perf_counter()

        self.trace.response(trace_id, f"{r.status_code} {r.reason or ''}".strip(), content, r.headers, sensitive)
        self.trace.durations(trace_id, t1 - t0, t2 - t1)
        return r, content, url

    def _do_request(
        self,
        method: Union[str, HTTPMethod],
        endpoint: str,
        body: Optional[bytes] = None,
        qparams: Sequence[str] = (),
        sensitive: bool = False,
        retry: bool = True,
    ) -> bytes:
        """
        Perform one logical call: at most two exchanges with a re-login between.

        Returns the response body on success and raises an ``APIError``
        subclass carrying the body otherwise.
        """
        method = HTTPMethod.parse(method)
        with self.lock:
            for attempt in range(2):
                r, content, url = self._send(method, endpoint, body, qparams, sensitive)
                result = classify_response(r.status_code, content, r.reason or "")
                if result.outcome is Outcome.RETRY_AUTH and retry and attempt == 0:
                    logger.debug("Session token rejected, logging in again for %s %s", method.value, url)
                    self.api_token = UNSET_TOKEN
                    self.login()
                    continue
                break

        if result.ok:
            return content
        raise self._error_for(result, content, url, r.headers)

    @staticmethod
    def _error_for(result: Classification, body: bytes, url: str, headers: Any) -> APIError:
        exc_cls = MalformedResponseError if result.malformed else FatalAPIError
        return exc_cls(
            result.message,
            status=result.status,
            body=body,
            url=url,
            headers=dict(headers or {}),
            error=result.error,
        )

    @staticmethod
    def _encode_body(*params: Any) -> bytes:
        payload = encode_params(*params)
        try:
            return json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Couldn't encode params as JSON: {exc}") from exc

    # ---------------- public ops ----------------

    def get(self, endpoint: str, *qparams: str) -> bytes:
        """
        Execute a GET request.

        Parameters
        ----------
        endpoint : str
            Endpoint path, e.g. "app_instances"; surrounding slashes are ignored
        *qparams : str
            Query parameters as ``"key=value"`` strings

        Returns
        -------
        bytes
            Raw response body
        """
        return self._do_request(HTTPMethod.GET, endpoint, None, qparams)

    def put(self, endpoint: str, *params: Any, sensitive: bool = False) -> bytes:
        """
        Execute a PUT request.

        Body parameters are either ``"key=value"`` strings or a single
        mapping for nested JSON. ``sensitive`` keeps the body out of the logs.
        """
        return self._do_request(HTTPMethod.PUT, endpoint, self._encode_body(*params), sensitive=sensitive)

    def post(self, endpoint: str, *params: Any) -> bytes:
        """Execute a POST request; parameters as for ``put``."""
        return self._do_request(HTTPMethod.POST, endpoint, self._encode_body(*params))

    def delete(self, endpoint: str, *params: Any) -> bytes:
        """Execute a DELETE request; parameters as for ``put``."""
        return self._do_request(HTTPMethod.DELETE, endpoint, self._encode_body(*params))

    def login(self) -> None:
        """
        Log in and cache the API token.

        Does nothing when a token is already cached.

        Raises
        ------
        AuthError
            If the API rejects the credentials or returns no token
        TransportError
            If the login request cannot be sent
        """
        with self.lock:
            if self.api_token != UNSET_TOKEN:
                return
            body = self._encode_body(StructuredBody({"name": self.username, "password": self.password}))
            try:
                resp = self._do_request(HTTPMethod.PUT, LOGIN_ENDPOINT, body, sensitive=True, retry=False)
            except APIError as exc:
                if exc.error is None or not exc.error.message:
                    raise
                raise AuthError(
                    exc.error.message,
                    status=exc.status,
                    body=exc.body,
                    url=exc.url,
                    headers=exc.headers,
                    error=exc.error,
                ) from exc

            try:
                result = LoginResult.model_validate_json(resp)
            except ValidationError as exc:
                raise AuthError("Couldn't decode login response", body=resp) from exc
            if not result.key:
                raise AuthError("No API token in login response", body=resp)
            self.api_token = result.key
            logger.debug("Logged in to %s:%s as %s", self.hostname, self.port, self.username)


def new_api_connection(
    hostname: str,
    port: Union[str, int],
    username: str,
    password: str,
    api_version: str,
    tenant: str,
    timeout: str,
    headers: Optional[Dict[str, str]] = None,
    secure: bool = True,
    request_logger: Optional[RequestLogger] = None,
) -> APIConnection:
    """Build an ``APIConnection`` from individual settings."""
    cfg = APIConfig(
        hostname=hostname,
        port=port,
        username=username,
        password=password,
        api_version=api_version,
        tenant=tenant,
        timeout=timeout,
        headers=dict(headers or {}),
        secure=secure,
    )
    return APIConnection(cfg, request_logger=request_logger)
