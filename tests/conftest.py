"""Shared test fixtures for Workbench SDK tests."""

from __future__ import annotations

import pytest
from starlette.testclient import TestClient as StarletteTestClient

from tests.stub_server import StubWorkbench, create_stub_app
from workbench_sdk import WorkbenchClient

BASE_URL = "http://testserver"


@pytest.fixture
def stub():
    return StubWorkbench()


@pytest.fixture
def stub_app(stub):
    return create_stub_app(stub)


def make_client(app, *, dry_run: bool = False, password: str = "s3cret") -> WorkbenchClient:
    """Create an SDK client backed by a starlette TestClient (no real network)."""
    inner = StarletteTestClient(app, base_url=BASE_URL)
    return WorkbenchClient(BASE_URL, "admin", password, dry_run=dry_run, http_client=inner)


@pytest.fixture
def anon_swb(stub_app):
    """Client that has not logged in yet."""
    return make_client(stub_app)


@pytest.fixture
def swb(stub_app, stub):
    """Logged-in client; the request log is cleared after login."""
    client = make_client(stub_app)
    client.login()
    stub.requests.clear()
    return client


@pytest.fixture
def dry_swb(stub_app, stub):
    """Logged-in client in dry-run mode."""
    client = make_client(stub_app, dry_run=True)
    client.login()
    stub.requests.clear()
    return client


@pytest.fixture
def make_swb(stub_app):
    """Factory for clients with non-default options."""
    def _make(**kwargs) -> WorkbenchClient:
        return make_client(stub_app, **kwargs)
    return _make
