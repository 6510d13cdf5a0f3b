import pytest
import requests


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


@pytest.fixture
def fake_get(monkeypatch):
    """Replaces requests.get; returns (recorded calls, mutable response state)."""
    calls = []
    state = {"status": 200, "exc": None}

    def _get(url, timeout=None, headers=None):
        calls.append({"url": url, "timeout": timeout, "headers": headers})
        if state["exc"] is not None:
            raise state["exc"]
        return FakeResponse(state["status"])

    monkeypatch.setattr(requests, "get", _get)
    return calls, state


def test_trailing_slash_normalized(fake_get):
    from nanochat_desktop.backend_comm import validate_connection

    calls, _ = fake_get
    validate_connection("https://host/", "k")
    validate_connection("https://host", "k")
    validate_connection("https://host///", "k")
    assert {c["url"] for c in calls} == {"https://host/api/db/user-settings"}


def test_sends_bearer_and_json_headers(fake_get):
    from nanochat_desktop.backend_comm import validate_connection

    calls, _ = fake_get
    validate_connection("http://localhost:3000", "sk-123")
    assert calls[0]["headers"] == {
        "Authorization": "Bearer sk-123",
        "Content-Type": "application/json",
    }
    assert calls[0]["timeout"] is None


@pytest.mark.parametrize("status", [200, 204, 299])
def test_success_returns_true(fake_get, status):
    from nanochat_desktop.backend_comm import validate_connection

    _, state = fake_get
    state["status"] = status
    assert validate_connection("https://host", "k") is True


def test_401_is_auth_error(fake_get):
    from nanochat_desktop.backend_comm import AuthError, validate_connection

    _, state = fake_get
    state["status"] = 401
    with pytest.raises(AuthError, match="unauthorized") as excinfo:
        validate_connection("https://host", "bad")
    assert excinfo.value.kind == "auth"


def test_404_is_endpoint_not_found(fake_get):
    from nanochat_desktop.backend_comm import EndpointNotFoundError, validate_connection

    _, state = fake_get
    state["status"] = 404
    with pytest.raises(EndpointNotFoundError, match="not found") as excinfo:
        validate_connection("https://host/wrong", "k")
    assert "server URL" in str(excinfo.value)


def test_500_is_server_error_with_code(fake_get):
    from nanochat_desktop.backend_comm import ServerError, validate_connection

    _, state = fake_get
    state["status"] = 500
    with pytest.raises(ServerError) as excinfo:
        validate_connection("https://host", "k")
    assert excinfo.value.status_code == 500
    assert excinfo.value.reason == "Internal Server Error"
    assert "500" in str(excinfo.value)


def test_unknown_status_reason(fake_get):
    from nanochat_desktop.backend_comm import ServerError, validate_connection

    _, state = fake_get
    state["status"] = 599
    with pytest.raises(ServerError, match="599 - Unknown"):
        validate_connection("https://host", "k")


def test_redirect_status_is_not_success(fake_get):
    from nanochat_desktop.backend_comm import ServerError, validate_connection

    _, state = fake_get
    state["status"] = 302
    with pytest.raises(ServerError, match="302 - Found"):
        validate_connection("https://host", "k")


@pytest.mark.parametrize(
    "exc",
    [
        requests.exceptions.ConnectionError("Connection refused"),
        requests.exceptions.Timeout("timed out"),
        requests.exceptions.SSLError("certificate verify failed"),
        requests.exceptions.MissingSchema("No scheme supplied"),
    ],
)
def test_transport_failures_are_connection_errors(fake_get, exc):
    from nanochat_desktop.backend_comm import BackendConnectionError, validate_connection

    _, state = fake_get
    state["exc"] = exc
    with pytest.raises(BackendConnectionError, match="Connection failed") as excinfo:
        validate_connection("https://host", "k")
    assert excinfo.value.__cause__ is exc
    assert excinfo.value.kind == "connection"


def test_unencodable_api_key_is_connection_error(monkeypatch):
    from nanochat_desktop.backend_comm import BackendConnectionError, validate_connection

    def _get(url, timeout=None, headers=None):
        # what http.client raises when putting a non latin-1 header on the wire
        headers["Authorization"].encode("latin-1")
        raise AssertionError("header should not have encoded")

    monkeypatch.setattr(requests, "get", _get)
    with pytest.raises(BackendConnectionError, match="Connection failed") as excinfo:
        validate_connection("http://127.0.0.1:9", "clé€")
    assert isinstance(excinfo.value.__cause__, UnicodeEncodeError)


def test_unencodable_api_key_through_route(tmp_path, monkeypatch):
    monkeypatch.setenv("NANOCHAT_CONFIG_DIR", str(tmp_path))

    def _get(url, timeout=None, headers=None):
        headers["Authorization"].encode("latin-1")

    monkeypatch.setattr(requests, "get", _get)
    from nanochat_desktop.app import app

    resp = app.test_client().post(
        "/api/validate-connection", json={"server_url": "http://127.0.0.1:9", "api_key": "clé€"}
    )
    assert resp.status_code == 502
    assert resp.get_json()["kind"] == "connection"


def test_validator_errors_share_base_class():
    from nanochat_desktop import backend_comm

    for cls in (
        backend_comm.BackendConnectionError,
        backend_comm.AuthError,
        backend_comm.EndpointNotFoundError,
        backend_comm.ServerError,
    ):
        assert issubclass(cls, backend_comm.ValidationError)
