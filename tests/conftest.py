"""
Shared pytest fixtures for policy update service tests.

This module provides common fixtures including:
- FakeConfigMapStore: in-memory stand-in for the Kubernetes ConfigMap API
- A configured application and FastAPI test client
- Helpers building Basic and Bearer Authorization headers
"""

import base64
import copy
import threading
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from policy_update.config.provider import EnvConfigProvider
from policy_update.main import create_app
from policy_update.modules.policy.store import ConfigDocument

TEST_ENV = {
    "LISTENING_PORT": "8443",
    "NAMESPACE": "icap-adaptation",
    "CONFIGMAP_NAME": "policy-update-config",
    "USERNAME": "operator",
    "PASSWORD": "s3cret-password",
    "TOKEN_SIGNING_KEY": "test-signing-key-0123456789abcdef0123",
}


# =============================================================================
# ConfigMap Mocking Infrastructure
# =============================================================================

class FakeConfigMapStore:
    """
    In-memory ConfigMaps keyed by (namespace, name).

    Usage:
        def test_update(configmap_store):
            configmap_store.create("ns", "name", {"other": "value"})
            ...
            assert configmap_store.data("ns", "name")["policy"] == "..."
    """

    def __init__(self):
        self._documents: Dict[Tuple[str, str], Dict[str, str]] = {}
        self._lock = threading.Lock()
        self.writes: List[ConfigDocument] = []
        self.sessions_opened = 0
        self.sessions_closed = 0
        self.acquire_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None

    def create(self, namespace: str, name: str, data: Optional[Dict[str, str]] = None) -> None:
        self._documents[(namespace, name)] = dict(data or {})

    def data(self, namespace: str, name: str) -> Dict[str, str]:
        return dict(self._documents[(namespace, name)])

    def factory(self) -> "FakeConfigMapClient":
        if self.acquire_error is not None:
            raise self.acquire_error
        self.sessions_opened += 1
        return FakeConfigMapClient(self)


class FakeConfigMapClient:
    """DocumentClient over a FakeConfigMapStore."""

    def __init__(self, store: FakeConfigMapStore):
        self.store = store

    def read_document(self, namespace: str, name: str, timeout: Optional[float] = None) -> ConfigDocument:
        with self.store._lock:
            if (namespace, name) not in self.store._documents:
                raise LookupError(f'configmaps "{name}" not found')
            data = copy.deepcopy(self.store._documents[(namespace, name)])
        return ConfigDocument(namespace=namespace, name=name, data=data)

    def write_document(self, document: ConfigDocument, timeout: Optional[float] = None) -> None:
        if self.store.write_error is not None:
            raise self.store.write_error
        with self.store._lock:
            self.store._documents[(document.namespace, document.name)] = dict(document.data)
            self.store.writes.append(document)

    def close(self) -> None:
        self.store.sessions_closed += 1


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def test_env() -> Dict[str, str]:
    return dict(TEST_ENV)


@pytest.fixture
def config_provider(test_env) -> EnvConfigProvider:
    return EnvConfigProvider(environ=test_env)


@pytest.fixture
def configmap_store(test_env) -> FakeConfigMapStore:
    store = FakeConfigMapStore()
    store.create(test_env["NAMESPACE"], test_env["CONFIGMAP_NAME"], {"unrelated": "kept"})
    return store


@pytest.fixture
def app(config_provider, configmap_store):
    return create_app(config_provider, store_client_factory=configmap_store.factory)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def basic_header(username: str, password: str) -> Dict[str, str]:
    encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {encoded}"}


def bearer_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def operator_headers(test_env) -> Dict[str, str]:
    return basic_header(test_env["USERNAME"], test_env["PASSWORD"])


@pytest.fixture
def bearer_headers(client, operator_headers) -> Dict[str, str]:
    """Authorization header carrying a freshly issued token."""
    response = client.get("/api/v1/auth/token", headers=operator_headers)
    assert response.status_code == 200
    return bearer_header(response.text)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
