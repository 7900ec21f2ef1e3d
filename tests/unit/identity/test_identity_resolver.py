"""
Name: Identity Resolver Tests

Responsibilities:
  - Validate the profile request (path + bearer header)
  - Validate mapping of employee/customer payloads (plain and enveloped)
  - Validate TokenRejectedError on non-2xx and SessionUnavailableError on
    transport failures or unreadable payloads
"""

import httpx
import pytest

from utility_portal.crosscutting.exceptions import (
    SessionUnavailableError,
    TokenRejectedError,
)
from utility_portal.identity.principals import (
    CustomerPrincipal,
    EmployeePrincipal,
    PrincipalKind,
)
from utility_portal.identity.resolver import IdentityResolver
from utility_portal.identity.roles import EmployeeRole

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
class TestResolve:
    async def test_employee_profile_request(self, profile_endpoint, employee_profile):
        endpoint = profile_endpoint(body=employee_profile("CASHIER"))
        async with endpoint.client() as client:
            principal = await IdentityResolver(PrincipalKind.EMPLOYEE, client).resolve(
                "a.b.c"
            )

        (request,) = endpoint.calls
        assert request.method == "GET"
        assert request.url.path == "/api/v1/auth/profile"
        assert request.headers["Authorization"] == "Bearer a.b.c"
        assert isinstance(principal, EmployeePrincipal)
        assert principal.role == EmployeeRole.CASHIER
        assert principal.id == 7

    async def test_customer_profile_in_envelope(self, profile_endpoint, customer_profile):
        endpoint = profile_endpoint(body={"success": True, "data": customer_profile()})
        async with endpoint.client() as client:
            principal = await IdentityResolver(PrincipalKind.CUSTOMER, client).resolve(
                "a.b.c"
            )

        assert endpoint.calls[0].url.path == "/api/v1/customer/profile"
        assert isinstance(principal, CustomerPrincipal)
        assert principal.id == 42
        assert principal.phone_number == "555-0100"

    @pytest.mark.parametrize("status", [401, 403, 404, 500])
    async def test_non_success_is_rejection(self, profile_endpoint, status):
        endpoint = profile_endpoint(status_code=status, body={"detail": "nope"})
        async with endpoint.client() as client:
            with pytest.raises(TokenRejectedError) as exc_info:
                await IdentityResolver(PrincipalKind.EMPLOYEE, client).resolve("a.b.c")

        assert exc_info.value.status_code == status

    async def test_transport_failure_is_unavailable(self, profile_endpoint):
        endpoint = profile_endpoint(error=httpx.ConnectError("connection refused"))
        async with endpoint.client() as client:
            with pytest.raises(SessionUnavailableError):
                await IdentityResolver(PrincipalKind.EMPLOYEE, client).resolve("a.b.c")

    async def test_unknown_role_is_unavailable(self, profile_endpoint, employee_profile):
        endpoint = profile_endpoint(body=employee_profile("JANITOR"))
        async with endpoint.client() as client:
            with pytest.raises(SessionUnavailableError):
                await IdentityResolver(PrincipalKind.EMPLOYEE, client).resolve("a.b.c")

    async def test_missing_fields_are_unavailable(self, profile_endpoint):
        endpoint = profile_endpoint(body={"username": "x"})
        async with endpoint.client() as client:
            with pytest.raises(SessionUnavailableError):
                await IdentityResolver(PrincipalKind.EMPLOYEE, client).resolve("a.b.c")

    async def test_custom_profile_path(self, profile_endpoint, customer_profile):
        endpoint = profile_endpoint(body=customer_profile())
        async with endpoint.client() as client:
            resolver = IdentityResolver(
                PrincipalKind.CUSTOMER, client, profile_path="/v2/me"
            )
            await resolver.resolve("a.b.c")

        assert endpoint.calls[0].url.path == "/v2/me"
