"""Shared fixtures for stripegen tests.

Session-scoped fixtures parse spec/openapi.json once and resolve its types
and services; the generated package is written to a temporary directory and
imported fresh.
"""

from __future__ import annotations

import importlib
import sys
from typing import Any

import httpx
import pytest

from stripegen.client import RestApiClient
from stripegen.codegen import generate
from stripegen.config import API_KEY_ENV
from stripegen.loader import SchemaDocument, load_spec
from stripegen.service_builder import build_services
from stripegen.type_builder import build_type_model

GENERATED_PACKAGE = "stripe_generated"
TEST_API_KEY = "sk_test_123"
TEST_API_BASE = "https://api.test"


# ---------------------------------------------------------------------------
# Resolved sample document
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def spec() -> dict[str, Any]:
    return load_spec()


@pytest.fixture(scope="session")
def document(spec) -> SchemaDocument:
    return SchemaDocument.from_dict(spec)


@pytest.fixture(scope="session")
def types(document):
    return build_type_model(document.schemas)


@pytest.fixture(scope="session")
def services(document, types):
    return build_services(document, types)


# ---------------------------------------------------------------------------
# Generated package: written once, imported with a fresh module cache
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def generated_dir(tmp_path_factory, types, services):
    root = tmp_path_factory.mktemp("generated")
    generate(types, services, root / GENERATED_PACKAGE)
    return root


@pytest.fixture(scope="session")
def generated(generated_dir):
    """Import the generated package; returns (models, services) modules."""
    sys.path.insert(0, str(generated_dir))
    for name in (f"{GENERATED_PACKAGE}.services", f"{GENERATED_PACKAGE}.models", GENERATED_PACKAGE):
        sys.modules.pop(name, None)
    try:
        models = importlib.import_module(f"{GENERATED_PACKAGE}.models")
        service_module = importlib.import_module(f"{GENERATED_PACKAGE}.services")
        yield models, service_module
    finally:
        sys.path.remove(str(generated_dir))


# ---------------------------------------------------------------------------
# Runtime client: requests recorded by a mock transport
# ---------------------------------------------------------------------------

@pytest.fixture
def api_env(monkeypatch):
    monkeypatch.setenv(API_KEY_ENV, TEST_API_KEY)


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_client(recorded_requests):
    """Return a factory building a client whose transport answers with `payload`."""
    clients: list[RestApiClient] = []

    def _make(payload: Any, status_code: int = 200) -> RestApiClient:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return httpx.Response(status_code, json=payload)

        client = RestApiClient(
            api_key=TEST_API_KEY,
            base_url=TEST_API_BASE,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
