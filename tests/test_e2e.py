"""
End-to-end tests against a mock storage API served by uvicorn.
"""

import threading

import pytest

from dsdk.core.errors import AuthError, FatalAPIError
from dsdk.core.models import get_data
from dsdk.core.session import APIConfig, APIConnection


class TestEndToEnd:
    """Full request pipeline over real HTTP."""

    def test_get_logs_in_transparently(self, mock_server, live_conn):
        body = live_conn.get("p")
        data, _ = get_data(body)
        assert data == {"ok": True}
        assert mock_server.state.logins == 1
        # first attempt was rejected, the retry carried the new token
        assert len(mock_server.state.requests) == 2
        assert "auth-token" not in mock_server.state.requests[0]["headers"]
        assert mock_server.state.requests[1]["headers"]["auth-token"] == live_conn.api_token

    def test_envelope_fields(self, mock_server, live_conn):
        live_conn.login()
        body = live_conn.get("/app_instances/")
        assert b'"path":"/app_instances"' in body.replace(b" ", b"")
        assert b'"tenant":"/root"' in body.replace(b" ", b"")

    def test_expired_session_relogs_once(self, mock_server, live_conn):
        live_conn.login()
        first_token = live_conn.api_token
        mock_server.state.expire_next = 1
        data, _ = get_data(live_conn.get("system"))
        assert data == {"ok": True}
        assert mock_server.state.logins == 2
        assert live_conn.api_token != first_token

    def test_retry_is_bounded(self, mock_server, live_conn):
        mock_server.state.always_deny = True
        with pytest.raises(FatalAPIError) as exc_info:
            live_conn.get("system")
        assert exc_info.value.status == 401
        assert exc_info.value.error.name == "PermissionDeniedError"
        assert mock_server.state.logins == 1
        assert len(mock_server.state.requests) == 2

    def test_login_idempotent(self, mock_server, live_conn):
        live_conn.login()
        live_conn.login()
        assert mock_server.state.logins == 1

    def test_bad_credentials(self, mock_server):
        cfg = APIConfig(
            hostname="127.0.0.1", port=mock_server.port, username="admin",
            password="wrong", timeout="5s", secure=False,
        )
        with APIConnection(cfg) as conn:
            with pytest.raises(AuthError, match="Invalid credentials"):
                conn.login()

    def test_query_and_bodies(self, mock_server, live_conn):
        live_conn.login()
        live_conn.get("app_instances", "limit=5", "filter=name a&b")
        assert mock_server.state.requests[-1]["query"] == {"limit": "5", "filter": "name a&b"}

        body = live_conn.post("app_instances", {"name": "ai1", "tags": ["a", "b"]})
        data, _ = get_data(body)
        assert data == {"name": "ai1", "tags": ["a", "b"]}

        data, _ = get_data(live_conn.put("app_instances/ai1", "admin_state=offline", "force=true"))
        assert data == {"admin_state": "offline", "force": True}

        live_conn.delete("app_instances/ai1")
        assert mock_server.state.requests[-1]["method"] == "DELETE"

    def test_server_errors(self, mock_server, live_conn):
        live_conn.login()
        with pytest.raises(FatalAPIError) as exc_info:
            live_conn.get("boom")
        assert exc_info.value.status == 500
        assert exc_info.value.error.message == "Something broke"
        with pytest.raises(FatalAPIError) as exc_info:
            live_conn.put("invalid", "size=-1")
        assert exc_info.value.status == 422
        assert b"ValidationError" in exc_info.value.body

    def test_parallel_gets_are_serialized(self, mock_server, live_conn):
        mock_server.state.delay = 0.02
        errors = []
        results = []

        def worker(i):
            try:
                results.append(get_data(live_conn.get(f"volumes/{i}", f"n={i}"))[0])
            except Exception as exc:  # collected and asserted below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        assert len(results) == 8
        assert mock_server.state.max_in_flight == 1
        assert mock_server.state.logins == 1
        paths = sorted(r["path"] for r in mock_server.state.requests)
        assert paths.count("volumes/0") >= 1
        for r in mock_server.state.requests:
            assert r["query"]["n"] == r["path"].split("/")[1]
