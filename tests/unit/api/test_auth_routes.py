"""
Name: Auth API Tests

Responsibilities:
  - Employee login (username or email), profile and permissions
  - Customer registration, login and profile
  - Token kinds are not interchangeable
  - Staff customer registration requires can_register_customers
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from utility_portal.api.main import create_app
from utility_portal.container import get_customer_repository, get_employee_repository
from utility_portal.identity.auth_users import (
    JWT_ALGORITHM,
    create_access_token,
    hash_password,
)
from utility_portal.identity.principals import PrincipalKind
from utility_portal.identity.roles import EmployeeRole

pytestmark = pytest.mark.unit

PASSWORD = "s3cret-pass"


def _employee(role: EmployeeRole = EmployeeRole.ADMIN, *, username="jdoe", active=True):
    return get_employee_repository().create(
        username=username,
        email=f"{username}@utility.test",
        password_hash=hash_password(PASSWORD),
        role=role,
        first_name="Jane",
        last_name="Doe",
        is_active=active,
    )


def _customer(email="carl@example.com"):
    return get_customer_repository().create(
        email=email,
        password_hash=hash_password(PASSWORD),
        first_name="Carl",
        last_name="Client",
    )


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


class TestEmployeeLogin:
    def test_login_by_username(self, client):
        employee = _employee(EmployeeRole.CASHIER)

        response = client.post(
            "/api/v1/auth/login", json={"username": "JDOE", "password": PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["accessToken"]
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] == 480 * 60
        assert body["employee"]["employeeId"] == employee.id
        assert body["employee"]["role"] == "CASHIER"
        assert body["employee"]["lastLoginAt"] is not None

    def test_login_by_email(self, client):
        _employee()

        response = client.post(
            "/api/v1/auth/login",
            json={"username": "jdoe@utility.test", "password": PASSWORD},
        )

        assert response.status_code == 200

    def test_wrong_password_is_401_problem(self, client):
        _employee()

        response = client.post(
            "/api/v1/auth/login", json={"username": "jdoe", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_inactive_employee_is_403(self, client):
        _employee(active=False)

        response = client.post(
            "/api/v1/auth/login", json={"username": "jdoe", "password": PASSWORD}
        )

        assert response.status_code == 403

    def test_missing_fields_is_422(self, client):
        response = client.post("/api/v1/auth/login", json={"username": "jdoe"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestEmployeeProfile:
    def test_profile_with_bearer(self, client):
        employee = _employee(EmployeeRole.METER_READER)
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)

        response = client.get("/api/v1/auth/profile", headers=_bearer(token))

        assert response.status_code == 200
        body = response.json()
        assert body["employeeId"] == employee.id
        assert body["fullName"] == "Jane Doe"
        assert body["role"] == "METER_READER"

    def test_profile_with_cookie(self, client):
        employee = _employee()
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)
        client.cookies.set("employeeToken", token)

        response = client.get("/api/v1/auth/profile")

        assert response.status_code == 200

    def test_profile_without_token_is_401(self, client):
        assert client.get("/api/v1/auth/profile").status_code == 401

    def test_customer_token_is_not_an_employee_token(self, client):
        customer = _customer()
        token, _ = create_access_token(customer, PrincipalKind.CUSTOMER)

        response = client.get("/api/v1/auth/profile", headers=_bearer(token))

        assert response.status_code == 401

    def test_expired_token_is_401(self, client):
        employee = _employee()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": str(employee.id),
                "email": employee.email,
                "typ": "employee",
                "role": "ADMIN",
                "iat": int((now - timedelta(hours=9)).timestamp()),
                "exp": int((now - timedelta(hours=1)).timestamp()),
            },
            "dev-secret",
            algorithm=JWT_ALGORITHM,
        )

        response = client.get("/api/v1/auth/profile", headers=_bearer(token))

        assert response.status_code == 401
        assert response.json()["detail"] == "Token expirado."

    def test_deactivated_after_login_is_403(self, client):
        employee = _employee()
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)
        get_employee_repository().set_active(employee.id, False)

        response = client.get("/api/v1/auth/profile", headers=_bearer(token))

        assert response.status_code == 403

    def test_permissions_for_cashier(self, client):
        employee = _employee(EmployeeRole.CASHIER)
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)

        response = client.get("/api/v1/auth/permissions", headers=_bearer(token))

        assert response.status_code == 200
        body = response.json()
        assert body["label"] == "Cashier"
        assert body["dashboardPath"] == "/dashboard/cashier"
        assert body["permissions"]["can_collect_payments"] is True
        assert body["permissions"]["can_manage_payroll"] is False


class TestCustomerAuth:
    def test_register_then_login_then_profile(self, client):
        register = client.post(
            "/api/v1/customer/auth/register",
            json={
                "email": "New@Example.com",
                "password": "long-enough",
                "firstName": "Nina",
                "lastName": "New",
                "phoneNumber": "555-0199",
            },
        )
        assert register.status_code == 201
        assert register.json()["email"] == "new@example.com"

        login = client.post(
            "/api/v1/customer/auth/login",
            json={"email": "new@example.com", "password": "long-enough"},
        )
        assert login.status_code == 200
        token = login.json()["accessToken"]
        assert login.json()["customer"]["firstName"] == "Nina"

        profile = client.get("/api/v1/customer/profile", headers=_bearer(token))
        assert profile.status_code == 200
        assert profile.json()["phoneNumber"] == "555-0199"

    def test_duplicate_registration_is_409(self, client):
        _customer()

        response = client.post(
            "/api/v1/customer/auth/register",
            json={
                "email": "carl@example.com",
                "password": "long-enough",
                "firstName": "Carl",
                "lastName": "Again",
            },
        )

        assert response.status_code == 409

    def test_employee_token_is_not_a_customer_token(self, client):
        employee = _employee()
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)

        response = client.get("/api/v1/customer/profile", headers=_bearer(token))

        assert response.status_code == 401

    def test_wrong_customer_password_is_401(self, client):
        _customer()

        response = client.post(
            "/api/v1/customer/auth/login",
            json={"email": "carl@example.com", "password": "wrong"},
        )

        assert response.status_code == 401


class TestStaffCustomerRegistration:
    _PAYLOAD = {
        "email": "walkin@example.com",
        "password": "long-enough",
        "firstName": "Walk",
        "lastName": "In",
    }

    @pytest.mark.parametrize(
        "role", [EmployeeRole.ADMIN, EmployeeRole.ADMINISTRATIVE_STAFF]
    )
    def test_roles_with_permission_can_register(self, client, role):
        employee = _employee(role)
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)

        response = client.post(
            "/api/v1/customers", json=self._PAYLOAD, headers=_bearer(token)
        )

        assert response.status_code == 201

    @pytest.mark.parametrize(
        "role", [EmployeeRole.MANAGER, EmployeeRole.CASHIER, EmployeeRole.FIELD_OFFICER]
    )
    def test_roles_without_permission_are_forbidden(self, client, role):
        employee = _employee(role)
        token, _ = create_access_token(employee, PrincipalKind.EMPLOYEE)

        response = client.post(
            "/api/v1/customers", json=self._PAYLOAD, headers=_bearer(token)
        )

        assert response.status_code == 403
        assert get_customer_repository().get_by_email("walkin@example.com") is None
