"""
===============================================================================
TARJETA CRC — identity/policy.py
===============================================================================

Módulo:
    Política de Autorización (rol -> permisos / dashboard)

Responsabilidades:
    - permissions_for(role): PermissionSet del rol.
    - dashboard_for(role): ruta de aterrizaje del rol.
    - has_role(principal, *allowed): chequeo de pertenencia (fail-closed).
    - validate_registry(): detectar roles sin entrada en el registro.

Colaboradores:
    - identity.roles: ROLE_REGISTRY (fuente única).
    - identity.principals: EmployeePrincipal / CustomerPrincipal.
    - crosscutting.config: decide raise (no-prod) vs deny (prod).
    - crosscutting.logger: error visible cuando se deniega por configuración.

Decisiones de diseño:
    - Un rol ausente del registro es un error de configuración, NO un caso
      recuperable: fuera de producción se lanza PolicyConfigurationError; en
      producción se loguea y se deniega (permisos vacíos / login).
    - has_role() sin roles permitidos devuelve False (nunca “siempre true”).
    - Funciones puras: nada se cachea ni persiste.
===============================================================================
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import PolicyConfigurationError
from ..crosscutting.logger import logger
from .principals import Principal, PrincipalKind
from .roles import ROLE_REGISTRY, EmployeeRole, PermissionSet, RoleProfile


def _coerce_role(role: EmployeeRole | str) -> Optional[EmployeeRole]:
    try:
        return EmployeeRole(role)
    except ValueError:
        return None


def _profile_for(
    role: EmployeeRole | str,
    registry: Mapping[EmployeeRole, RoleProfile],
) -> Optional[RoleProfile]:
    """Busca el perfil del rol; None significa error de configuración ya tratado."""
    coerced = _coerce_role(role)
    profile = registry.get(coerced) if coerced is not None else None
    if profile is not None:
        return profile

    message = f"Rol sin entrada en el registro de autorización: {role!r}"
    if not get_settings().is_production():
        raise PolicyConfigurationError(message)

    logger.error(
        "Configuración RBAC inválida; denegando",
        extra={"role": str(role)},
    )
    return None


def permissions_for(
    role: EmployeeRole | str,
    *,
    registry: Mapping[EmployeeRole, RoleProfile] = ROLE_REGISTRY,
) -> PermissionSet:
    """PermissionSet del rol (vacío si el rol no está configurado en producción)."""
    profile = _profile_for(role, registry)
    return profile.permissions if profile else PermissionSet.none()


def dashboard_for(
    role: EmployeeRole | str,
    *,
    registry: Mapping[EmployeeRole, RoleProfile] = ROLE_REGISTRY,
) -> str:
    """Dashboard del rol (login de empleados si el rol no está configurado en producción)."""
    profile = _profile_for(role, registry)
    if profile is None:
        return PrincipalKind.EMPLOYEE.namespace.login_path
    return profile.dashboard_path


def role_profile(role: EmployeeRole | str) -> Optional[RoleProfile]:
    return _profile_for(role, ROLE_REGISTRY)


def has_role(principal: Principal | None, *allowed: EmployeeRole | str) -> bool:
    """True si el principal es un empleado con alguno de los roles permitidos.

    Fail-closed:
        - principal ausente -> False
        - principal sin rol (cliente) -> False
        - sin roles permitidos -> False
    """
    if principal is None or not allowed:
        return False

    role = getattr(principal, "role", None)
    if role is None:
        return False

    allowed_roles = {_coerce_role(r) for r in allowed} - {None}
    return role in allowed_roles


def missing_roles(
    registry: Mapping[EmployeeRole, RoleProfile] = ROLE_REGISTRY,
    roles: Iterable[EmployeeRole] = tuple(EmployeeRole),
) -> list[EmployeeRole]:
    """Roles sin entrada (o con entrada inconsistente) en el registro."""
    missing: list[EmployeeRole] = []
    for role in roles:
        profile = registry.get(role)
        if profile is None or profile.role != role or not profile.dashboard_path:
            missing.append(role)
    return missing


def validate_registry(
    registry: Mapping[EmployeeRole, RoleProfile] = ROLE_REGISTRY,
) -> None:
    """Falla si algún rol no tiene perfil completo."""
    missing = missing_roles(registry)
    if missing:
        raise PolicyConfigurationError(
            "Roles sin permisos/dashboard: " + ", ".join(r.value for r in missing)
        )


# R: el registro cubre todos los roles al importar.
validate_registry()
