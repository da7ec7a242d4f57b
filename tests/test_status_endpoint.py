# tests/test_status_endpoint.py
from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

import api
from functions.utils.settings import Settings
from scripted_transport import ScriptedTransport


@pytest.fixture()
def client(settings: Settings, transport: ScriptedTransport) -> TestClient:
    return TestClient(api.create_app(settings=settings, transport=transport))


def _assert_json(r) -> None:
    assert r.headers["content-type"].startswith("application/json")


def test_health_ok(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    _assert_json(r)


def test_healthz_ok(client: TestClient) -> None:
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_health_ignores_upstream_reachability(client: TestClient, transport: ScriptedTransport) -> None:
    transport.fail(httpx.ConnectError("unreachable"))

    r = client.get("/health")

    assert r.status_code == 200
    assert transport.sent == []


def test_status_success_end_to_end(client: TestClient, transport: ScriptedTransport) -> None:
    transport.reply(200, {"default_branch": "main"})
    transport.reply(200, {"state": "success", "statuses": [], "total_count": 1})

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 200
    _assert_json(r)
    assert r.json() == {
        "owner": "acme",
        "repository": "widget",
        "branch": "main",
        "state": "success",
        "symbol": "✓",
    }


def test_status_pending_returns_202(client: TestClient, transport: ScriptedTransport) -> None:
    transport.reply(200, {"default_branch": "develop"})
    transport.reply(200, {"state": "pending", "statuses": [], "total_count": 1})

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 202
    body = r.json()
    assert body["branch"] == "develop"
    assert body["symbol"] == "●"
    assert "error" not in body


def test_status_failure_returns_417(client: TestClient, transport: ScriptedTransport) -> None:
    transport.reply(200, {"default_branch": "main"})
    transport.reply(200, {"state": "failure", "statuses": [], "total_count": 1})

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 417
    assert r.json()["symbol"] == "✗"


def test_status_unknown_returns_204_with_json_content_type(
    client: TestClient, transport: ScriptedTransport
) -> None:
    transport.reply(200, {"default_branch": "main"})
    transport.reply(404, "")

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 204
    _assert_json(r)
    assert r.content == b""


@pytest.mark.parametrize(
    "params",
    [{}, {"owner": "acme"}, {"repo": "widget"}, {"owner": "", "repo": ""}],
)
def test_status_missing_params_returns_400(client: TestClient, transport: ScriptedTransport, params) -> None:
    r = client.get("/status", params=params)

    assert r.status_code == 400
    _assert_json(r)
    assert r.json() == {
        "owner": "",
        "repository": "",
        "branch": "",
        "state": "",
        "symbol": "",
        "error": "Both 'owner' and 'repo' query parameters are required",
    }
    assert transport.sent == []


def test_status_repository_info_failure_returns_500(client: TestClient, transport: ScriptedTransport) -> None:
    transport.reply(401, '{"message": "token is required"}')

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 500
    _assert_json(r)
    body = r.json()
    assert body["owner"] == "acme"
    assert body["repository"] == "widget"
    assert body["branch"] == ""
    assert body["state"] == ""
    assert "401" in body["error"]
    assert body["error"].startswith("Failed to get repository info:")


def test_status_commit_status_failure_returns_500(client: TestClient, transport: ScriptedTransport) -> None:
    transport.reply(200, {"default_branch": "main"})
    transport.fail(httpx.ReadTimeout("timed out"))

    r = client.get("/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 500
    body = r.json()
    assert body["branch"] == "main"
    assert body["error"] == "Failed to get commit status: timed out"


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH"])
def test_status_other_methods_return_405(client: TestClient, transport: ScriptedTransport, method: str) -> None:
    r = client.request(method, "/status", params={"owner": "acme", "repo": "widget"})

    assert r.status_code == 405
    _assert_json(r)
    assert "error" in r.json()
    assert transport.sent == []


def test_correlation_id_is_echoed_or_generated(client: TestClient) -> None:
    r = client.get("/health", headers={"X-Correlation-Id": "corr-123"})
    assert r.headers.get("X-Correlation-Id") == "corr-123"

    r = client.get("/health")
    assert r.headers.get("X-Correlation-Id", "").startswith("corr_")


def test_correlation_id_present_on_error_responses(client: TestClient) -> None:
    r = client.get("/status")
    assert r.status_code == 400
    assert "X-Correlation-Id" in r.headers

    r = client.post("/status")
    assert r.status_code == 405
    assert "X-Correlation-Id" in r.headers


def test_app_owned_transport_is_closed_on_shutdown(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[bool] = []

    class _Transport:
        def __init__(self, timeout_seconds: float):
            self.timeout_seconds = timeout_seconds

        async def send(self, method, url, headers=None):
            raise AssertionError("no upstream calls expected")

        async def aclose(self) -> None:
            closed.append(True)

    monkeypatch.setattr(api, "HttpxTransport", _Transport)

    with TestClient(api.create_app(settings=settings)) as c:
        assert c.get("/health").status_code == 200
        assert closed == []

    assert closed == [True]


def test_create_app_requires_gitea_url_and_token(transport: ScriptedTransport) -> None:
    with pytest.raises(ValueError):
        api.create_app(settings=Settings(gitea_url=None, token=None), transport=transport)


@pytest.mark.parametrize("params", [{"owner": "..", "repo": "user"}, {"owner": "acme", "repo": "."}])
def test_status_dot_names_return_400(client: TestClient, transport: ScriptedTransport, params) -> None:
    r = client.get("/status", params=params)

    assert r.status_code == 400
    _assert_json(r)
    assert r.json()["error"] == "The 'owner' and 'repo' query parameters must not be '.' or '..'"
    assert transport.sent == []
