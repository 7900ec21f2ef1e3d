"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Provide reusable test fixtures (tokens, stores, profile clients)
  - Isolate settings and in-memory repositories per test
  - Configure test environment

Collaborators:
  - pytest: Test framework
  - httpx.MockTransport: fake profile endpoint
  - utility_portal.identity: stores, principals

Notes:
  - Fixtures are auto-discovered by pytest
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
import time
from pathlib import Path
from typing import Callable

import httpx
import jwt
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from utility_portal.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from utility_portal import container  # noqa: E402
from utility_portal.identity.credential_store import (  # noqa: E402
    CookieJar,
    CredentialStore,
    MemoryTier,
)
from utility_portal.identity.principals import PrincipalKind  # noqa: E402


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _isolated_state():
    """R: Fresh settings + repositories for every test."""
    app_config.get_settings.cache_clear()
    container.reset_repositories()
    yield
    app_config.get_settings.cache_clear()
    container.reset_repositories()


# ============================================================================
# Tokens
# ============================================================================


@pytest.fixture
def make_token() -> Callable[..., str]:
    """R: Build a signed JWT whose exp is `expires_in` seconds from now."""

    def _make(expires_in: int = 3600, **claims) -> str:
        payload = {"sub": "1", "exp": int(time.time()) + expires_in, **claims}
        return jwt.encode(payload, "test-secret", algorithm="HS256")

    return _make


# ============================================================================
# Profile payloads
# ============================================================================


def employee_payload(role: str = "ADMIN", employee_id: int = 7) -> dict:
    return {
        "employeeId": employee_id,
        "username": "jdoe",
        "email": "jdoe@utility.test",
        "role": role,
        "firstName": "Jane",
        "lastName": "Doe",
        "fullName": "Jane Doe",
    }


def customer_payload(customer_id: int = 42) -> dict:
    return {
        "customerId": customer_id,
        "firstName": "Carl",
        "lastName": "Client",
        "email": "carl@example.com",
        "phoneNumber": "555-0100",
    }


@pytest.fixture
def employee_profile() -> Callable[..., dict]:
    return employee_payload


@pytest.fixture
def customer_profile() -> Callable[..., dict]:
    return customer_payload


# ============================================================================
# Stores / clients
# ============================================================================


@pytest.fixture
def memory_store() -> Callable[..., CredentialStore]:
    """R: CredentialStore factory over two memory tiers + a cookie jar."""

    def _make(kind: PrincipalKind = PrincipalKind.EMPLOYEE, **kwargs) -> CredentialStore:
        return CredentialStore(
            kind,
            durable=kwargs.pop("durable", MemoryTier()),
            ephemeral=kwargs.pop("ephemeral", MemoryTier()),
            cookies=kwargs.pop("cookies", CookieJar(secure=False)),
            **kwargs,
        )

    return _make


class ProfileEndpoint:
    """R: Fake profile endpoint that records every call."""

    def __init__(self, status_code: int = 200, body=None, error: Exception | None = None):
        self.status_code = status_code
        self.body = body
        self.error = error
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self), base_url="http://api.test"
        )


@pytest.fixture
def profile_endpoint() -> Callable[..., ProfileEndpoint]:
    return ProfileEndpoint
