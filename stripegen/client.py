"""Runtime HTTP client called by generated services.

Each public method matches one invocation pattern of a generated operation:
  get           GET, no payload
  get_with      GET, payload sent as query string
  post          POST, payload sent as form body
  post_without  POST, no payload
  delete        DELETE, no payload

Responses are validated into the operation's declared response type.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, TypeVar

import httpx
import pydantic

from .config import get_api_base, get_api_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0


class ApiError(RuntimeError):
    """Raised for non-2xx responses."""

    def __init__(self, status_code: int, message: str, body: Any = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def encode_form(params: Any, prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested params into bracketed form keys (metadata[order_id]=6735).

    None values are dropped.
    """
    if isinstance(params, pydantic.BaseModel):
        params = params.model_dump(by_alias=True, exclude_none=True)
    items = params.items() if isinstance(params, dict) else enumerate(params)
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, (dict, list, tuple, pydantic.BaseModel)):
            pairs.extend(encode_form(value, name))
        else:
            pairs.append((name, _form_value(value)))
    return pairs


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", response.reason_phrase), body
    return response.reason_phrase, body


class RestApiClient:
    """Synchronous API client authenticated with a secret key."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key or get_api_key()
        self._client = httpx.Client(
            base_url=base_url or get_api_base(),
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=transport,
            timeout=timeout,
        )

    def __enter__(self) -> RestApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(self, path: str, response_type: type[T], query: dict[str, Any] | None = None) -> T:
        return self._request("GET", path, response_type, query=query)

    def get_with(
        self,
        path: str,
        params: dict[str, Any] | None,
        response_type: type[T],
        query: dict[str, Any] | None = None,
    ) -> T:
        return self._request("GET", path, response_type, query={**(query or {}), **(params or {})})

    def post(
        self,
        path: str,
        params: dict[str, Any] | None,
        response_type: type[T],
        query: dict[str, Any] | None = None,
    ) -> T:
        return self._request("POST", path, response_type, query=query, form=params or {})

    def post_without(self, path: str, response_type: type[T], query: dict[str, Any] | None = None) -> T:
        return self._request("POST", path, response_type, query=query)

    def delete(self, path: str, response_type: type[T], query: dict[str, Any] | None = None) -> T:
        return self._request("DELETE", path, response_type, query=query)

    def _request(
        self,
        method: str,
        path: str,
        response_type: type[T],
        query: dict[str, Any] | None = None,
        form: dict[str, Any] | None = None,
    ) -> T:
        logger.debug(f"Making {method} request to {path}")
        response = self._client.request(
            method,
            path,
            params=encode_form(query) if query else None,
            data=dict(encode_form(form)) if form is not None else None,
        )
        logger.debug(f"Response status: {response.status_code}")
        if response.is_error:
            message, body = _error_message(response)
            logger.warning(f"{method} {path} failed: {response.status_code} {message}")
            raise ApiError(response.status_code, message, body)
        return pydantic.TypeAdapter(response_type).validate_python(response.json())
