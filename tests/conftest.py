"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from unittest.mock import Mock, MagicMock, patch

from dsdk.core.session import APIConfig, APIConnection

from mock_server import MockServer, ServerState


def make_response(status=200, body=b"", reason="OK", headers=None):
    """Build a stand-in for a requests.Response."""
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
    resp = Mock()
    resp.status_code = status
    resp.reason = reason
    resp.content = body
    resp.headers = headers or {}
    return resp


def error_body(name="PermissionDeniedError", status=401, message="Permission denied"):
    return {
        "name": name,
        "code": status,
        "http": status,
        "message": message,
        "debug": "",
        "ts": "2026-10-18T00:00:00Z",
        "api_req_id": 7,
        "storage_node_uuid": "uuid-1",
        "storage_node_hostname": "node-1",
    }


@pytest.fixture
def api_config():
    return APIConfig(
        hostname="172.16.1.10",
        port="7717",
        username="admin",
        password="password",
        api_version="2.2",
        tenant="/root",
        timeout="30s",
    )


@pytest.fixture
def transport():
    """Patch requests.Session inside dsdk.core.session; yields the mock session."""
    with patch("dsdk.core.session.requests.Session") as mock_session_class:
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session
        yield mock_session


@pytest.fixture
def conn(api_config, transport):
    return APIConnection(api_config)


@pytest.fixture
def sample_envelope():
    """Sample successful response envelope."""
    return {
        "tenant": "t",
        "path": "/p",
        "version": "2.1",
        "data": {"ok": True},
    }


@pytest.fixture
def mock_server():
    server = MockServer(ServerState()).start()
    yield server
    server.stop()


@pytest.fixture
def live_conn(mock_server):
    cfg = APIConfig(
        hostname="127.0.0.1",
        port=mock_server.port,
        username="admin",
        password="password",
        api_version="2.2",
        tenant="/root",
        timeout="10s",
        secure=False,
    )
    with APIConnection(cfg) as c:
        yield c
