"""
===============================================================================
TARJETA CRC — identity/principals.py
===============================================================================

Módulo:
    Principals (Employee / Customer) + namespaces por tipo de principal

Responsabilidades:
    - Definir PrincipalKind y el namespace de cada tipo (claves de storage,
      cookie, rutas de login/perfil/home).
    - Definir los principals tipados y su mapeo desde el payload de perfil.

Colaboradores:
    - identity.credential_store: usa el namespace (claves + cookie).
    - identity.resolver: construye principals desde el JSON del endpoint.
    - identity.policy / identity.guard: consumen el principal.

Notas:
    - Employee y Customer NUNCA comparten claves, cookies ni vocabulario de roles.
    - El payload del backend viene en camelCase; aceptamos también snake_case.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union

from .roles import EmployeeRole


class PrincipalKind(str, Enum):
    """Tipos de principal soportados."""

    EMPLOYEE = "employee"
    CUSTOMER = "customer"

    @property
    def namespace(self) -> "PrincipalNamespace":
        return _NAMESPACES[self]


@dataclass(frozen=True, slots=True)
class PrincipalNamespace:
    """Claves y rutas propias de un tipo de principal."""

    token_key: str
    profile_key: Optional[str]
    cookie_name: str
    login_path: str
    logout_path: str
    profile_path: str
    home_path: str


_NAMESPACES: dict[PrincipalKind, PrincipalNamespace] = {
    PrincipalKind.EMPLOYEE: PrincipalNamespace(
        token_key="accessToken",
        profile_key=None,
        cookie_name="employeeToken",
        login_path="/login",
        logout_path="/logout",
        profile_path="/api/v1/auth/profile",
        home_path="/dashboard",
    ),
    PrincipalKind.CUSTOMER: PrincipalNamespace(
        token_key="customerToken",
        profile_key="customerData",
        cookie_name="customerToken",
        login_path="/auth/customer-login",
        logout_path="/customer/logout",
        profile_path="/api/v1/customer/profile",
        home_path="/customer/dashboard",
    ),
}


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _require_text(data: Mapping[str, Any], *keys: str) -> str:
    value = _pick(data, *keys)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"campo requerido ausente: {keys[0]}")
    return value


def _require_id(data: Mapping[str, Any], *keys: str) -> int:
    value = _pick(data, *keys)
    if isinstance(value, bool) or value is None:
        raise ValueError(f"campo requerido ausente: {keys[0]}")
    return int(value)


@dataclass(frozen=True, slots=True)
class EmployeePrincipal:
    """Empleado autenticado."""

    kind: ClassVar[PrincipalKind] = PrincipalKind.EMPLOYEE

    id: int
    username: str
    email: str
    role: EmployeeRole
    first_name: str
    last_name: str
    full_name: str

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "EmployeePrincipal":
        first_name = _pick(data, "firstName", "first_name") or ""
        last_name = _pick(data, "lastName", "last_name") or ""
        full_name = _pick(data, "fullName", "full_name") or (
            f"{first_name} {last_name}".strip()
        )
        return cls(
            id=_require_id(data, "employeeId", "id"),
            username=_require_text(data, "username"),
            email=_require_text(data, "email"),
            role=EmployeeRole(_require_text(data, "role")),
            first_name=str(first_name),
            last_name=str(last_name),
            full_name=str(full_name),
        )


@dataclass(frozen=True, slots=True)
class CustomerPrincipal:
    """Cliente autenticado (sin roles)."""

    kind: ClassVar[PrincipalKind] = PrincipalKind.CUSTOMER

    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "CustomerPrincipal":
        return cls(
            id=_require_id(data, "customerId", "id"),
            first_name=str(_pick(data, "firstName", "first_name") or ""),
            last_name=str(_pick(data, "lastName", "last_name") or ""),
            email=_require_text(data, "email"),
            phone_number=_pick(data, "phoneNumber", "phone_number"),
            address=_pick(data, "address"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Forma cacheable en el credential store (misma que el endpoint)."""
        payload: dict[str, Any] = {
            "customerId": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }
        if self.phone_number is not None:
            payload["phoneNumber"] = self.phone_number
        if self.address is not None:
            payload["address"] = self.address
        return payload


Principal = Union[EmployeePrincipal, CustomerPrincipal]

PRINCIPAL_TYPES: dict[PrincipalKind, type] = {
    PrincipalKind.EMPLOYEE: EmployeePrincipal,
    PrincipalKind.CUSTOMER: CustomerPrincipal,
}


def principal_from_payload(kind: PrincipalKind, data: Mapping[str, Any]) -> Principal:
    """Construye el principal del tipo pedido (ValueError si el payload no encaja)."""
    return PRINCIPAL_TYPES[kind].from_payload(data)
