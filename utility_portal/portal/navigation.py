"""
===============================================================================
TARJETA CRC — portal/navigation.py
===============================================================================

Módulo:
    Tabla de páginas del back-office y navegación lateral derivada de ella

Responsabilidades:
    - Declarar cada página una sola vez: path, título, roles y entrada de menú.
    - Derivar el sidebar de esa tabla, filtrar por rol sin duplicar hrefs
      y marcar la entrada activa.

Colaboradores:
    - identity.roles: EmployeeRole.
    - portal.pages: registra un endpoint con guard por cada EmployeePage.
    - portal.views: dibuja el sidebar.

Notas:
    - El guard de cada página y su visibilidad en el menú salen de los mismos
      roles; ocultar una entrada sigue siendo cosmético.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..identity.roles import EmployeeRole

_A = EmployeeRole.ADMIN
_M = EmployeeRole.MANAGER
_C = EmployeeRole.CASHIER
_R = EmployeeRole.METER_READER
_F = EmployeeRole.FIELD_OFFICER
_S = EmployeeRole.ADMINISTRATIVE_STAFF


@dataclass(frozen=True, slots=True)
class EmployeePage:
    path: str
    title: str
    roles: tuple[EmployeeRole, ...]
    dashboard: bool = False
    nav_name: Optional[str] = None

    @property
    def menu_name(self) -> str:
        return self.nav_name or self.title


@dataclass(frozen=True, slots=True)
class NavItem:
    name: str
    href: str
    roles: frozenset[EmployeeRole]

    def visible_to(self, role: EmployeeRole) -> bool:
        return role in self.roles


def _dashboard(path: str, title: str, *roles: EmployeeRole) -> EmployeePage:
    return EmployeePage(path, title, roles, dashboard=True, nav_name="Dashboard")


# R: el orden de la tabla es el orden del sidebar.
EMPLOYEE_PAGES: tuple[EmployeePage, ...] = (
    # Administración
    _dashboard("/dashboard", "Dashboard", _A, _M),
    EmployeePage("/dashboard/employees", "Employees", (_A, _M)),
    EmployeePage("/dashboard/payroll", "Payroll", (_A, _M)),
    # Caja
    _dashboard("/dashboard/cashier", "Cashier Dashboard", _C),
    EmployeePage("/dashboard/payments", "Payments", (_A, _M, _C)),
    # Lecturas
    _dashboard("/dashboard/meter-reader", "Meter Reader Dashboard", _R),
    EmployeePage("/dashboard/readings", "Readings", (_A, _M, _R)),
    # Campo
    _dashboard("/dashboard/field-officer", "Field Officer Dashboard", _F),
    EmployeePage("/dashboard/work-orders", "Work Orders", (_A, _M, _F)),
    # Atención
    _dashboard("/dashboard/admin-staff", "Admin Staff Dashboard", _S),
    EmployeePage("/dashboard/customers", "Customers", (_A, _M, _S)),
)


NAV_ITEMS: tuple[NavItem, ...] = tuple(
    NavItem(name=page.menu_name, href=page.path, roles=frozenset(page.roles))
    for page in EMPLOYEE_PAGES
)


def nav_for(role: EmployeeRole, items: tuple[NavItem, ...] = NAV_ITEMS) -> list[NavItem]:
    """Entradas visibles para el rol, en orden de tabla y sin hrefs repetidos."""
    seen: set[str] = set()
    visible: list[NavItem] = []
    for item in items:
        if not item.visible_to(role) or item.href in seen:
            continue
        seen.add(item.href)
        visible.append(item)
    return visible


def is_active(item: NavItem, path: str) -> bool:
    if item.href == "/dashboard":
        return path == item.href
    return path == item.href or path.startswith(item.href + "/")
