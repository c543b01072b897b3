"""
Tests for the storefront ApiClient.
"""

import pytest
import requests
from unittest.mock import MagicMock
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.api.client import ApiClient
from storefront.errors import MalformedResponse, NetworkFailure, Unauthorized


def make_response(status=200, body=None, reason="OK", invalid_json=False):
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    if invalid_json:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def http():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def client(http):
    return ApiClient("http://api.test/api/", timeout=12, http=http)


class TestApiClient:

    def test_default_headers(self, client, http):
        assert http.headers["Accept"] == "application/json"
        assert client.auth_header is None

    def test_url_joining(self, client):
        assert client.url_for("/auth/login") == "http://api.test/api/auth/login"
        assert client.url_for("auth/me") == "http://api.test/api/auth/me"

    def test_set_and_clear_token(self, client, http):
        client.set_auth_token("abc")
        assert http.headers["Authorization"] == "Bearer abc"

        client.clear_auth_token()
        client.clear_auth_token()
        assert "Authorization" not in http.headers

    def test_post_returns_body(self, client, http):
        http.request.return_value = make_response(200, {"token": "t", "data": {}})

        body = client.post("/auth/login", {"email": "a@b.com"})

        assert body == {"token": "t", "data": {}}
        http.request.assert_called_once_with(
            "POST", "http://api.test/api/auth/login",
            json={"email": "a@b.com"}, timeout=12
        )

    def test_timeout_override(self, client, http):
        http.request.return_value = make_response(200, {})

        client.get("/auth/logout", timeout=3)

        assert http.request.call_args.kwargs["timeout"] == 3

    def test_401_raises_unauthorized_with_backend_message(self, client, http):
        http.request.return_value = make_response(401, {"success": False, "message": "Invalid credentials"})

        with pytest.raises(Unauthorized) as excinfo:
            client.post("/auth/login", {})

        assert excinfo.value.message == "Invalid credentials"
        assert excinfo.value.status == 401

    def test_error_without_message_uses_status_text(self, client, http):
        http.request.return_value = make_response(503, invalid_json=True, reason="Service Unavailable")

        with pytest.raises(NetworkFailure) as excinfo:
            client.get("/auth/me")

        assert excinfo.value.message == "503 Service Unavailable"
        assert excinfo.value.status == 503

    def test_transport_error(self, client, http):
        http.request.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(NetworkFailure) as excinfo:
            client.get("/auth/me")

        assert excinfo.value.message == "Connection refused"

    def test_non_json_success_is_malformed(self, client, http):
        http.request.return_value = make_response(200, invalid_json=True)

        with pytest.raises(MalformedResponse):
            client.get("/auth/me")

    def test_non_object_success_is_malformed(self, client, http):
        http.request.return_value = make_response(200, ["not", "an", "object"])

        with pytest.raises(MalformedResponse):
            client.get("/auth/me")

    def test_close(self, client, http):
        client.close()
        http.close.assert_called_once()
