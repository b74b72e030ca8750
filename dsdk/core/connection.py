"""
dsdk.core.connection - High-level connection management
=======================================================

Provides a ConnectionContext that resolves settings from arguments, the
environment and an optional ``.env`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv

from dsdk.core.errors import ConfigError
from dsdk.core.session import APIConfig, APIConnection
from dsdk.core.trace import RequestLogger

DEFAULT_SECURE_PORT = "7717"
DEFAULT_INSECURE_PORT = "7718"


def _env_flag(name: str, default: bool = True) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() != "false"


class ConnectionContext:
    """
    High-level connection manager for the storage API.

    Supports environment variable configuration and context manager usage.

    Parameters
    ----------
    hostname : str, optional
        Management hostname. Falls back to DAT_MGMT env var.
    username : str, optional
        Login name. Falls back to DAT_USER env var.
    password : str, optional
        Login password. Falls back to DAT_PASS env var.
    tenant : str, optional
        Tenant path. Falls back to DAT_TENANT env var, then "/root".
    api_version : str, optional
        API version. Falls back to DAT_API env var, then "2.2".
    port : str or int, optional
        API port. Falls back to DAT_PORT, then 7717 (secure) or 7718.
    timeout : str, optional
        Duration string. Falls back to DAT_TIMEOUT, then "300s".
    secure : bool, optional
        Use https. Falls back to DAT_SECURE env var.
    verify : bool, optional
        SSL verification. Falls back to DAT_VERIFY_TLS env var.
    headers : dict, optional
        Extra default headers
    env_file : str or Path, optional
        ``.env`` file to load first; defaults to ``./.env`` when it exists.
        Variables already set in the environment win.

    Examples
    --------
    >>> with ConnectionContext() as conn:   # reads DAT_* env vars
    ...     body = conn.session.get("system")
    """

    def __init__(
        self,
        hostname: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        tenant: Optional[str] = None,
        api_version: Optional[str] = None,
        port: Optional[Union[str, int]] = None,
        timeout: Optional[str] = None,
        secure: Optional[bool] = None,
        verify: Optional[bool] = None,
        headers: Optional[Dict[str, str]] = None,
        env_file: Optional[Union[str, Path]] = None,
        request_logger: Optional[RequestLogger] = None,
    ) -> None:
        env_path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)

        self._hostname = hostname or os.environ.get("DAT_MGMT", "")
        self._username = username or os.environ.get("DAT_USER", "")
        self._password = password or os.environ.get("DAT_PASS", "")
        self._tenant = tenant or os.environ.get("DAT_TENANT") or "/root"
        self._api_version = api_version or os.environ.get("DAT_API") or "2.2"
        self._timeout = timeout or os.environ.get("DAT_TIMEOUT") or "300s"
        self._secure = secure if secure is not None else _env_flag("DAT_SECURE")
        self._verify = verify if verify is not None else _env_flag("DAT_VERIFY_TLS")
        default_port = DEFAULT_SECURE_PORT if self._secure else DEFAULT_INSECURE_PORT
        self._port = str(port or os.environ.get("DAT_PORT") or default_port)
        self._headers = dict(headers or {})
        self._request_logger = request_logger

        if not self._hostname:
            raise ConfigError(
                "Missing hostname. Set DAT_MGMT environment variable "
                "or pass hostname parameter."
            )

        if not (self._username and self._password):
            raise ConfigError(
                "Missing credentials. Set DAT_USER/DAT_PASS environment variables, "
                "or pass username/password parameters."
            )

        self._session: Optional[APIConnection] = None

    @property
    def config(self) -> APIConfig:
        """The resolved connection configuration."""
        return APIConfig(
            hostname=self._hostname,
            port=self._port,
            username=self._username,
            password=self._password,
            api_version=self._api_version,
            tenant=self._tenant,
            timeout=self._timeout,
            headers=dict(self._headers),
            secure=self._secure,
            verify=self._verify,
        )

    @property
    def session(self) -> APIConnection:
        """Get or create the underlying API session."""
        if self._session is None:
            self._session = APIConnection(self.config, request_logger=self._request_logger)
        return self._session

    def close(self) -> None:
        """Close the connection."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def hostname(self) -> str:
        """The configured hostname."""
        return self._hostname

    @property
    def tenant(self) -> str:
        """The configured tenant."""
        return self._tenant
