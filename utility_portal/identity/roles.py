"""
===============================================================================
TARJETA CRC — identity/roles.py
===============================================================================

Módulo:
    Registro de Roles de Empleado (fuente única de verdad)

Responsabilidades:
    - Definir el enum EmployeeRole.
    - Definir PermissionSet (booleans por capacidad de negocio).
    - Mantener UN registro indexado por rol con: label, colores de badge,
      permisos y dashboard por defecto.

Colaboradores:
    - identity.policy: consulta el registro (permissions_for / dashboard_for).
    - portal.pages: usa label/colores para el badge de rol.
    - domain.entities: EmployeeAccount.role.

Notas:
    - Agregar un rol = agregar UNA entrada a ROLE_REGISTRY. No hay otros mapas
      paralelos que mantener sincronizados.
    - Este módulo NO depende de FastAPI. Es data pura.
===============================================================================
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Mapping


class EmployeeRole(str, Enum):
    """Roles del back-office."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CASHIER = "CASHIER"
    METER_READER = "METER_READER"
    FIELD_OFFICER = "FIELD_OFFICER"
    ADMINISTRATIVE_STAFF = "ADMINISTRATIVE_STAFF"


@dataclass(frozen=True, slots=True)
class PermissionSet:
    """Capacidades de negocio habilitadas para un rol."""

    can_manage_employees: bool = False
    can_manage_payroll: bool = False
    can_view_reports: bool = False
    can_collect_payments: bool = False
    can_submit_readings: bool = False
    can_manage_work_orders: bool = False
    can_register_customers: bool = False

    @classmethod
    def none(cls) -> "PermissionSet":
        return cls()

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(cls.__dataclass_fields__)

    def has(self, name: str) -> bool:
        if name not in self.__dataclass_fields__:
            raise ValueError(f"permiso desconocido: {name}")
        return bool(getattr(self, name))

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class BadgeColors:
    bg: str
    text: str
    border: str


@dataclass(frozen=True, slots=True)
class RoleProfile:
    """Todo lo que el sistema sabe de un rol, en un solo lugar."""

    role: EmployeeRole
    label: str
    colors: BadgeColors
    permissions: PermissionSet
    dashboard_path: str


def _badge(color: str) -> BadgeColors:
    return BadgeColors(
        bg=f"bg-{color}-100", text=f"text-{color}-700", border=f"border-{color}-200"
    )


ROLE_REGISTRY: Mapping[EmployeeRole, RoleProfile] = {
    EmployeeRole.ADMIN: RoleProfile(
        role=EmployeeRole.ADMIN,
        label="Admin",
        colors=_badge("purple"),
        permissions=PermissionSet(
            can_manage_employees=True,
            can_manage_payroll=True,
            can_view_reports=True,
            can_collect_payments=True,
            can_submit_readings=True,
            can_manage_work_orders=True,
            can_register_customers=True,
        ),
        dashboard_path="/dashboard",
    ),
    EmployeeRole.MANAGER: RoleProfile(
        role=EmployeeRole.MANAGER,
        label="Manager",
        colors=_badge("blue"),
        permissions=PermissionSet(
            can_manage_employees=True,
            can_manage_payroll=True,
            can_view_reports=True,
            can_manage_work_orders=True,
        ),
        dashboard_path="/dashboard",
    ),
    EmployeeRole.CASHIER: RoleProfile(
        role=EmployeeRole.CASHIER,
        label="Cashier",
        colors=_badge("green"),
        permissions=PermissionSet(can_collect_payments=True),
        dashboard_path="/dashboard/cashier",
    ),
    EmployeeRole.METER_READER: RoleProfile(
        role=EmployeeRole.METER_READER,
        label="Meter Reader",
        colors=_badge("orange"),
        permissions=PermissionSet(can_submit_readings=True),
        dashboard_path="/dashboard/meter-reader",
    ),
    EmployeeRole.FIELD_OFFICER: RoleProfile(
        role=EmployeeRole.FIELD_OFFICER,
        label="Field Officer",
        colors=_badge("teal"),
        permissions=PermissionSet(can_manage_work_orders=True),
        dashboard_path="/dashboard/field-officer",
    ),
    EmployeeRole.ADMINISTRATIVE_STAFF: RoleProfile(
        role=EmployeeRole.ADMINISTRATIVE_STAFF,
        label="Admin Staff",
        colors=_badge("gray"),
        permissions=PermissionSet(can_register_customers=True),
        dashboard_path="/dashboard/admin-staff",
    ),
}

ALL_ROLES: tuple[EmployeeRole, ...] = tuple(EmployeeRole)
