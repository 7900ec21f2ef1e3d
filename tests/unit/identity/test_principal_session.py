"""
Name: Principal Session Tests

Responsibilities:
  - Initialization from storage (missing, expired, rejected, valid tokens)
  - login(): save happens before resolve, bad tokens are refused
  - logout(): clears the store and returns the login path
  - Authorization helpers (has_role, permissions, dashboard_path)
"""

import httpx
import pytest

from utility_portal.crosscutting.exceptions import SessionUnavailableError
from utility_portal.identity.credential_store import MemoryTier
from utility_portal.identity.principals import PrincipalKind
from utility_portal.identity.resolver import IdentityResolver
from utility_portal.identity.roles import EmployeeRole, PermissionSet
from utility_portal.identity.session import (
    PrincipalSession,
    customer_session,
    employee_session,
)

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


class TestEnsureInitialized:
    async def test_no_token_is_unauthenticated_without_network(
        self, memory_store, profile_endpoint
    ):
        endpoint = profile_endpoint(status_code=500)
        async with endpoint.client() as client:
            session = employee_session(memory_store(), client)
            assert await session.ensure_initialized() is None

        assert session.is_authenticated is False
        assert session.is_initialized is True
        assert endpoint.calls == []

    async def test_expired_token_is_cleared_before_network(
        self, memory_store, profile_endpoint, make_token
    ):
        ephemeral = MemoryTier({"accessToken": make_token(expires_in=60)})
        endpoint = profile_endpoint(status_code=200)
        async with endpoint.client() as client:
            session = employee_session(memory_store(ephemeral=ephemeral), client)
            assert await session.ensure_initialized() is None

        assert endpoint.calls == []
        assert ephemeral.keys() == []

    async def test_malformed_token_is_cleared(self, memory_store, profile_endpoint):
        durable = MemoryTier({"accessToken": "not-a-jwt"})
        endpoint = profile_endpoint(status_code=200)
        async with endpoint.client() as client:
            session = employee_session(memory_store(durable=durable), client)
            assert await session.ensure_initialized() is None

        assert durable.keys() == []
        assert endpoint.calls == []

    async def test_forbidden_profile_clears_token(
        self, memory_store, profile_endpoint, make_token
    ):
        ephemeral = MemoryTier({"accessToken": make_token()})
        store = memory_store(ephemeral=ephemeral)
        endpoint = profile_endpoint(status_code=403, body={"detail": "forbidden"})
        async with endpoint.client() as client:
            session = employee_session(store, client)
            principal = await session.ensure_initialized()

        assert principal is None
        assert session.principal is None
        assert store.load() is None
        assert len(endpoint.calls) == 1

    async def test_valid_token_resolves_principal_once(
        self, memory_store, profile_endpoint, make_token, employee_profile
    ):
        ephemeral = MemoryTier({"accessToken": make_token()})
        endpoint = profile_endpoint(body=employee_profile("MANAGER"))
        async with endpoint.client() as client:
            session = employee_session(memory_store(ephemeral=ephemeral), client)
            first = await session.ensure_initialized()
            second = await session.ensure_initialized()

        assert first is second
        assert first.role == EmployeeRole.MANAGER
        assert len(endpoint.calls) == 1

    async def test_network_failure_keeps_token_and_propagates(
        self, memory_store, profile_endpoint, make_token
    ):
        token = make_token()
        store = memory_store(ephemeral=MemoryTier({"accessToken": token}))
        endpoint = profile_endpoint(error=httpx.ConnectTimeout("timeout"))
        async with endpoint.client() as client:
            session = employee_session(store, client)
            with pytest.raises(SessionUnavailableError):
                await session.ensure_initialized()

        assert store.load() == token
        assert session.is_initialized is False
        assert session.is_resolving is False


class TestLogin:
    async def test_login_saves_then_resolves(
        self, memory_store, make_token, employee_profile
    ):
        store = memory_store()
        token = make_token()
        seen_tokens = []

        def handler(request: httpx.Request) -> httpx.Response:
            # R: el token ya está persistido cuando sale la request de perfil.
            seen_tokens.append(store.load())
            return httpx.Response(200, json=employee_profile("CASHIER"))

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://api.test"
        ) as client:
            session = employee_session(store, client)
            principal = await session.login(token, remember=True)

        assert seen_tokens == [token]
        assert principal.role == EmployeeRole.CASHIER
        assert session.dashboard_path() == "/dashboard/cashier"

    async def test_login_refuses_expired_token(
        self, memory_store, profile_endpoint, make_token
    ):
        store = memory_store()
        endpoint = profile_endpoint(status_code=200)
        async with endpoint.client() as client:
            session = employee_session(store, client)
            assert await session.login(make_token(expires_in=-10)) is None

        assert store.load() is None
        assert endpoint.calls == []

    async def test_customer_login_caches_profile(
        self, memory_store, profile_endpoint, make_token, customer_profile
    ):
        store = memory_store(PrincipalKind.CUSTOMER)
        endpoint = profile_endpoint(body=customer_profile())
        async with endpoint.client() as client:
            session = customer_session(store, client)
            principal = await session.login(
                make_token(), remember=False, profile=customer_profile()
            )

        assert principal.email == "carl@example.com"
        assert session.cached_profile() == customer_profile()
        assert session.dashboard_path() == "/customer/dashboard"
        assert session.permissions() == PermissionSet.none()


class TestLogout:
    async def test_logout_clears_everything(
        self, memory_store, profile_endpoint, make_token, customer_profile
    ):
        store = memory_store(PrincipalKind.CUSTOMER)
        endpoint = profile_endpoint(body=customer_profile())
        async with endpoint.client() as client:
            session = customer_session(store, client)
            await session.login(make_token(), remember=True, profile=customer_profile())

            path = session.logout()

        assert path == "/auth/customer-login"
        assert session.principal is None
        assert store.load() is None
        assert store.load_profile() is None


class TestAuthorizationHelpers:
    async def test_helpers_without_principal(self, memory_store, profile_endpoint):
        async with profile_endpoint().client() as client:
            session = employee_session(memory_store(), client)
            await session.ensure_initialized()

        assert session.has_role(EmployeeRole.ADMIN) is False
        assert session.permissions() == PermissionSet.none()
        assert session.dashboard_path() == "/login"

    async def test_kind_mismatch_is_rejected(self, memory_store, profile_endpoint):
        async with profile_endpoint().client() as client:
            with pytest.raises(ValueError):
                PrincipalSession(
                    PrincipalKind.EMPLOYEE,
                    store=memory_store(PrincipalKind.CUSTOMER),
                    resolver=IdentityResolver(PrincipalKind.EMPLOYEE, client),
                )
