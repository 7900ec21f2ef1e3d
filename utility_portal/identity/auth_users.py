"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Autenticación de Empleados y Clientes (JWT emitido por el backend)

Responsabilidades:
    - Hashear/verificar passwords (Argon2).
    - Validar credenciales de empleados (username o email) y clientes (email).
    - Emitir JWT de acceso por tipo de principal (typ = employee | customer).
    - Decodificar y validar JWT (firma, exp, typ, claims mínimos).
    - Exponer dependencias FastAPI (require_employee, require_employee_roles,
      require_permission, require_customer).
    - Extraer token desde Authorization: Bearer o la cookie del tipo.

Colaboradores:
    - crosscutting.config.get_settings: secreto y TTLs.
    - crosscutting.error_responses: unauthorized/forbidden estándar.
    - container: repositorios de cuentas.
    - identity.policy: permisos por rol (el backend también los exige).

Decisiones de diseño:
    - Un token de empleado NUNCA sirve como token de cliente (y viceversa):
      el claim `typ` se valida siempre.
    - No loguear secretos ni tokens; solo info mínima y segura.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError
from fastapi import Header, Request

from ..container import get_customer_repository, get_employee_repository
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import forbidden, unauthorized
from ..crosscutting.logger import logger
from ..domain.entities import CustomerAccount, EmployeeAccount
from .policy import permissions_for
from .principals import PrincipalKind
from .roles import EmployeeRole, PermissionSet

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_EMAIL: str = "email"
CLAIM_TYP: str = "typ"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_USERNAME: str = "username"
CLAIM_ROLE: str = "role"

_password_hasher = PasswordHasher()

Account = Union[EmployeeAccount, CustomerAccount]


# ---------------------------------------------------------------------------
# Contratos internos
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    employee_token_ttl_minutes: int
    customer_token_ttl_minutes: int

    def ttl_seconds(self, kind: PrincipalKind) -> int:
        if kind == PrincipalKind.EMPLOYEE:
            return int(self.employee_token_ttl_minutes * 60)
        return int(self.customer_token_ttl_minutes * 60)


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Payload mínimo que esperamos de un access token."""

    subject_id: int
    email: str
    kind: PrincipalKind
    role: Optional[EmployeeRole] = None


def get_auth_settings() -> AuthSettings:
    """Construye un snapshot de settings de auth."""
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret,
        employee_token_ttl_minutes=s.employee_token_ttl_minutes,
        customer_token_ttl_minutes=s.customer_token_ttl_minutes,
    )


# ---------------------------------------------------------------------------
# Passwords (Argon2)
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Hashea un password usando Argon2."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verifica password vs hash almacenado."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError):
        return False


def authenticate_employee(identifier: str, password: str) -> EmployeeAccount | None:
    """Valida credenciales de empleado y retorna la cuenta activa o None.

    Seguridad:
        - Si el identificador contiene "@" se busca por email; si no, por username.
        - No diferenciamos “no existe” vs “password incorrecto” (retorna None).
        - Cuenta inactiva -> 403 explícito.
    """
    normalized = (identifier or "").strip().lower()
    if not normalized or not password:
        return None

    repo = get_employee_repository()
    if "@" in normalized:
        employee = repo.get_by_email(normalized)
    else:
        employee = repo.get_by_username(normalized)
    if not employee:
        return None

    if not employee.is_active:
        logger.warning(
            "Auth falló: empleado inactivo", extra={"employee_id": employee.id}
        )
        raise forbidden("La cuenta de empleado está inactiva.")

    if not verify_password(password, employee.password_hash):
        return None

    now = datetime.now(timezone.utc)
    repo.record_login(employee.id, now)
    employee.last_login_at = now
    return employee


def authenticate_customer(email: str, password: str) -> CustomerAccount | None:
    """Valida credenciales de cliente (email + password)."""
    normalized = (email or "").strip().lower()
    if not normalized or not password:
        return None

    customer = get_customer_repository().get_by_email(normalized)
    if not customer:
        return None

    if not customer.is_active:
        logger.warning(
            "Auth falló: cliente inactivo", extra={"customer_id": customer.id}
        )
        raise forbidden("La cuenta de cliente está inactiva.")

    if not verify_password(password, customer.password_hash):
        return None
    return customer


# ---------------------------------------------------------------------------
# Tokens JWT (emitir / decodificar)
# ---------------------------------------------------------------------------


def create_access_token(
    subject: Account,
    kind: PrincipalKind,
    settings: AuthSettings | None = None,
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado para el tipo de principal.

    Retorna:
        (token, expires_in_seconds)
    """
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = auth_settings.ttl_seconds(kind)

    payload: dict[str, object] = {
        CLAIM_SUB: str(subject.id),
        CLAIM_EMAIL: subject.email,
        CLAIM_TYP: kind.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    if kind == PrincipalKind.EMPLOYEE:
        if not isinstance(subject, EmployeeAccount):
            raise TypeError("un token de empleado requiere EmployeeAccount")
        payload[CLAIM_USERNAME] = subject.username
        payload[CLAIM_ROLE] = subject.role.value

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(
    token: str,
    kind: PrincipalKind,
    settings: AuthSettings | None = None,
) -> TokenPayload:
    """Decodifica y valida un JWT de acceso del tipo pedido.

    Errores:
        - 401 si expiró, la firma es inválida o el typ no coincide.
        - 401 si faltan claims mínimos.
    """
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_EMAIL, CLAIM_TYP, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token inválido.") from exc

    if payload.get(CLAIM_TYP) != kind.value:
        raise unauthorized("Tipo de token inválido.")

    try:
        subject_id = int(payload[CLAIM_SUB])
    except (TypeError, ValueError) as exc:
        raise unauthorized("Token inválido.") from exc

    role: EmployeeRole | None = None
    if kind == PrincipalKind.EMPLOYEE:
        try:
            role = EmployeeRole(str(payload.get(CLAIM_ROLE)))
        except ValueError as exc:
            raise unauthorized("Token inválido.") from exc

    return TokenPayload(
        subject_id=subject_id,
        email=str(payload[CLAIM_EMAIL]),
        kind=kind,
        role=role,
    )


def get_current_employee(token: str) -> EmployeeAccount:
    """Resuelve el empleado actual a partir del access token."""
    payload = decode_access_token(token, PrincipalKind.EMPLOYEE)
    employee = get_employee_repository().get_by_id(payload.subject_id)
    if not employee:
        raise unauthorized("Token inválido.")
    if not employee.is_active:
        raise forbidden("La cuenta de empleado está inactiva.")
    return employee


def get_current_customer(token: str) -> CustomerAccount:
    """Resuelve el cliente actual a partir del access token."""
    payload = decode_access_token(token, PrincipalKind.CUSTOMER)
    customer = get_customer_repository().get_by_id(payload.subject_id)
    if not customer:
        raise unauthorized("Token inválido.")
    if not customer.is_active:
        raise forbidden("La cuenta de cliente está inactiva.")
    return customer


# ---------------------------------------------------------------------------
# Extracción de token (header/cookie)
# ---------------------------------------------------------------------------


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def extract_access_token(
    request: Request, authorization: str | None, kind: PrincipalKind
) -> str | None:
    """Resuelve token desde Authorization o la cookie del tipo de principal."""
    token = _extract_bearer_token(authorization)
    if token:
        return token
    return request.cookies.get(kind.namespace.cookie_name) or None


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


def require_employee() -> Callable:
    """Dependency FastAPI: requiere empleado autenticado por JWT."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> EmployeeAccount:
        token = extract_access_token(request, authorization, PrincipalKind.EMPLOYEE)
        if not token:
            raise unauthorized("Falta token Bearer.")

        employee = get_current_employee(token)
        request.state.employee = employee
        return employee

    return dependency


def require_employee_roles(*roles: EmployeeRole | str) -> Callable:
    """Dependency FastAPI: requiere alguno de los roles indicados."""
    allowed = {EmployeeRole(r) for r in roles}
    if not allowed:
        raise ValueError("require_employee_roles necesita al menos un rol")

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> EmployeeAccount:
        employee = await require_employee()(request, authorization)
        if employee.role not in allowed:
            raise forbidden("Rol insuficiente.")
        return employee

    return dependency


def require_permission(name: str) -> Callable:
    """Dependency FastAPI: requiere un permiso del PermissionSet del rol."""
    # R: falla al declarar la ruta si el permiso no existe.
    PermissionSet.none().has(name)

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> EmployeeAccount:
        employee = await require_employee()(request, authorization)
        if not permissions_for(employee.role).has(name):
            logger.info(
                "Permiso denegado",
                extra={"employee_id": employee.id, "permission": name},
            )
            raise forbidden("Permiso insuficiente.")
        return employee

    return dependency


def require_customer() -> Callable:
    """Dependency FastAPI: requiere cliente autenticado por JWT."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> CustomerAccount:
        token = extract_access_token(request, authorization, PrincipalKind.CUSTOMER)
        if not token:
            raise unauthorized("Falta token Bearer.")

        customer = get_current_customer(token)
        request.state.customer = customer
        return customer

    return dependency
