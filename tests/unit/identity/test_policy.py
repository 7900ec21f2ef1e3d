"""
Name: Authorization Policy Tests

Responsibilities:
  - Every role has permissions and a dashboard
  - Permission table matches the business rules
  - has_role is fail-closed
  - Missing registry entries raise outside production and deny in production
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from utility_portal.crosscutting.exceptions import PolicyConfigurationError
from utility_portal.identity import policy
from utility_portal.identity.principals import CustomerPrincipal, EmployeePrincipal
from utility_portal.identity.roles import ROLE_REGISTRY, EmployeeRole, PermissionSet

pytestmark = pytest.mark.unit


def _employee(role: EmployeeRole) -> EmployeePrincipal:
    return EmployeePrincipal(
        id=1,
        username="u",
        email="u@utility.test",
        role=role,
        first_name="U",
        last_name="Ser",
        full_name="U Ser",
    )


class TestRegistryCoverage:
    @pytest.mark.parametrize("role", list(EmployeeRole))
    def test_every_role_has_permissions_and_dashboard(self, role):
        assert isinstance(policy.permissions_for(role), PermissionSet)
        assert policy.dashboard_for(role).startswith("/dashboard")

    def test_no_missing_roles(self):
        assert policy.missing_roles() == []

    def test_validate_registry_detects_gap(self):
        partial = {
            k: v for k, v in ROLE_REGISTRY.items() if k != EmployeeRole.CASHIER
        }

        with pytest.raises(PolicyConfigurationError):
            policy.validate_registry(partial)


class TestPermissionTable:
    def test_admin_has_everything(self):
        perms = policy.permissions_for(EmployeeRole.ADMIN)
        assert all(perms.to_dict().values())

    def test_manager_cannot_collect_payments_or_register_customers(self):
        perms = policy.permissions_for(EmployeeRole.MANAGER)
        assert perms.can_manage_payroll is True
        assert perms.can_view_reports is True
        assert perms.can_collect_payments is False
        assert perms.can_register_customers is False

    @pytest.mark.parametrize(
        "role,granted",
        [
            (EmployeeRole.CASHIER, "can_collect_payments"),
            (EmployeeRole.METER_READER, "can_submit_readings"),
            (EmployeeRole.FIELD_OFFICER, "can_manage_work_orders"),
            (EmployeeRole.ADMINISTRATIVE_STAFF, "can_register_customers"),
        ],
    )
    def test_operational_roles_have_exactly_one_permission(self, role, granted):
        perms = policy.permissions_for(role).to_dict()
        assert [name for name, on in perms.items() if on] == [granted]

    @pytest.mark.parametrize(
        "role,path",
        [
            (EmployeeRole.ADMIN, "/dashboard"),
            (EmployeeRole.MANAGER, "/dashboard"),
            (EmployeeRole.CASHIER, "/dashboard/cashier"),
            (EmployeeRole.METER_READER, "/dashboard/meter-reader"),
            (EmployeeRole.FIELD_OFFICER, "/dashboard/field-officer"),
            (EmployeeRole.ADMINISTRATIVE_STAFF, "/dashboard/admin-staff"),
        ],
    )
    def test_dashboards(self, role, path):
        assert policy.dashboard_for(role) == path

    def test_unknown_permission_name_raises(self):
        with pytest.raises(ValueError):
            PermissionSet.none().has("can_fly")


class TestHasRole:
    def test_none_principal_is_denied(self):
        assert policy.has_role(None, EmployeeRole.ADMIN) is False

    def test_empty_allowed_list_is_denied(self):
        assert policy.has_role(_employee(EmployeeRole.ADMIN)) is False

    def test_customer_never_has_a_role(self):
        customer = CustomerPrincipal(
            id=1, first_name="C", last_name="L", email="c@example.com"
        )
        assert policy.has_role(customer, EmployeeRole.ADMIN) is False

    def test_member_role_is_allowed(self):
        principal = _employee(EmployeeRole.CASHIER)
        assert policy.has_role(principal, EmployeeRole.ADMIN, "CASHIER") is True

    def test_non_member_role_is_denied(self):
        principal = _employee(EmployeeRole.CASHIER)
        assert policy.has_role(principal, EmployeeRole.ADMIN, EmployeeRole.MANAGER) is False


class TestMisconfiguration:
    def test_unknown_role_raises_outside_production(self):
        with pytest.raises(PolicyConfigurationError):
            policy.permissions_for("JANITOR")

    def test_unknown_role_denies_in_production(self):
        prod = SimpleNamespace(is_production=lambda: True)
        with patch("utility_portal.identity.policy.get_settings", return_value=prod):
            assert policy.permissions_for("JANITOR") == PermissionSet.none()
            assert policy.dashboard_for("JANITOR") == "/login"

    def test_role_missing_from_custom_registry_raises(self):
        with pytest.raises(PolicyConfigurationError):
            policy.dashboard_for(EmployeeRole.ADMIN, registry={})
