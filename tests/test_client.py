"""Tests for the runtime client and its configuration."""

import enum
from urllib.parse import parse_qsl

import pydantic
import pytest

from stripegen.client import ApiError, RestApiClient, encode_form
from stripegen.config import API_BASE_ENV, API_KEY_ENV, ConfigError, get_api_base, get_api_key

TEST_API_BASE = "https://api.test"
TEST_API_KEY = "sk_test_123"


class Widget(pydantic.BaseModel):
    id: str
    size: int | None = None


class Color(str, enum.Enum):
    red = "red"


class TestConfig:
    """API key and base URL lookup."""

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV, " sk_test_abc ")
        assert get_api_key() == "sk_test_abc"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        with pytest.raises(ConfigError, match=API_KEY_ENV):
            get_api_key()

    def test_blank_api_key(self, monkeypatch):
        monkeypatch.setenv("CUSTOM_KEY", "   ")
        with pytest.raises(ConfigError):
            get_api_key("CUSTOM_KEY")

    def test_api_base_default_and_override(self, monkeypatch):
        monkeypatch.delenv(API_BASE_ENV, raising=False)
        assert get_api_base() == "https://api.stripe.com"
        monkeypatch.setenv(API_BASE_ENV, "http://localhost:12111/")
        assert get_api_base() == "http://localhost:12111"


class TestEncodeForm:
    """Nested params flatten into bracketed form keys."""

    def test_flat(self):
        assert encode_form({"amount": 100, "currency": "usd"}) == [("amount", "100"), ("currency", "usd")]

    def test_nested_dict_and_list(self):
        pairs = encode_form({"metadata": {"order_id": "6735"}, "expand": ["customer", "invoice"]})
        assert pairs == [
            ("metadata[order_id]", "6735"),
            ("expand[0]", "customer"),
            ("expand[1]", "invoice"),
        ]

    def test_none_dropped(self):
        assert encode_form({"limit": None, "customer": "cus_1"}) == [("customer", "cus_1")]

    def test_bool_and_enum(self):
        assert encode_form({"capture": False, "color": Color.red}) == [("capture", "false"), ("color", "red")]

    def test_model(self):
        assert encode_form({"widget": Widget(id="w_1")}) == [("widget[id]", "w_1")]


class TestRestApiClient:
    """Requests issued by each invocation pattern."""

    def test_api_key_from_env(self, api_env):
        with RestApiClient(base_url=TEST_API_BASE) as client:
            assert client.api_key == TEST_API_KEY

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        with pytest.raises(ConfigError):
            RestApiClient()

    def test_get_validates_response(self, mock_client, recorded_requests):
        client = mock_client({"id": "w_1", "size": 3})
        widget = client.get("/v1/widgets/w_1", Widget)
        assert widget == Widget(id="w_1", size=3)
        (request,) = recorded_requests
        assert request.method == "GET"
        assert str(request.url) == f"{TEST_API_BASE}/v1/widgets/w_1"
        assert request.headers["Authorization"] == f"Bearer {TEST_API_KEY}"

    def test_get_query(self, mock_client, recorded_requests):
        client = mock_client({"id": "w_1"})
        client.get("/v1/widgets", Widget, query={"limit": 3, "starting_after": None})
        assert dict(recorded_requests[0].url.params) == {"limit": "3"}

    def test_get_with_sends_params_as_query(self, mock_client, recorded_requests):
        client = mock_client({"id": "w_1"})
        client.get_with("/v1/widgets/search", {"query": "size:3"}, Widget)
        request = recorded_requests[0]
        assert request.method == "GET"
        assert request.url.params["query"] == "size:3"
        assert request.content == b""

    def test_post_sends_form_body(self, mock_client, recorded_requests):
        client = mock_client({"id": "w_1"})
        client.post("/v1/widgets", {"size": 3, "metadata": {"k": "v"}}, Widget)
        request = recorded_requests[0]
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert parse_qsl(request.content.decode()) == [("size", "3"), ("metadata[k]", "v")]

    def test_post_without_and_delete(self, mock_client, recorded_requests):
        client = mock_client({"id": "w_1"})
        client.post_without("/v1/widgets/w_1/capture", Widget)
        client.delete("/v1/widgets/w_1", Widget)
        assert [r.method for r in recorded_requests] == ["POST", "DELETE"]

    def test_error_response(self, mock_client):
        client = mock_client({"error": {"message": "No such widget", "type": "invalid_request_error"}}, 404)
        with pytest.raises(ApiError) as exc_info:
            client.get("/v1/widgets/missing", Widget)
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "No such widget"
        assert exc_info.value.body["error"]["type"] == "invalid_request_error"

    def test_invalid_response_payload(self, mock_client):
        client = mock_client({"size": "large"})
        with pytest.raises(pydantic.ValidationError):
            client.get("/v1/widgets/w_1", Widget)
