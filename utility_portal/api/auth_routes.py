"""
===============================================================================
TARJETA CRC — utility_portal/api/auth_routes.py (Autenticación de Empleados y Clientes)
===============================================================================

Responsabilidades:
  - Exponer login de empleados (username o email) y de clientes (email).
  - Exponer los endpoints de perfil que el portal usa para resolver sesiones.
  - Exponer el PermissionSet + dashboard del empleado actual.
  - Registro de clientes (autoservicio y alta por personal autorizado).

Patrones aplicados:
  - Adapter / Presentation Layer: traduce HTTP ↔ identity/repositorios.
  - Fail-safe security: si la autenticación falla, se deniega por defecto.

Colaboradores:
  - identity.auth_users: authenticate_*, create_access_token, require_*
  - identity.policy: permissions_for / role_profile
  - container: repositorios de cuentas
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..container import get_customer_repository
from ..crosscutting.error_responses import (
    OPENAPI_ERROR_RESPONSES,
    conflict,
    unauthorized,
)
from ..crosscutting.logger import logger
from ..domain.entities import CustomerAccount, EmployeeAccount
from ..domain.repositories import CustomerRepository
from ..identity.auth_users import (
    authenticate_customer,
    authenticate_employee,
    create_access_token,
    hash_password,
    require_customer,
    require_employee,
    require_permission,
)
from ..identity.policy import role_profile
from ..identity.principals import PrincipalKind
from ..identity.roles import EmployeeRole

router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs, camelCase en el cable)
# -----------------------------------------------------------------------------


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmployeeLoginRequest(CamelModel):
    # R: username o email (si contiene "@").
    username: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("username")
    @classmethod
    def normalizar_identificador(cls, v: str) -> str:
        return v.strip()


class CustomerLoginRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("email")
    @classmethod
    def normalizar_email(cls, v: str) -> str:
        return v.strip().lower()


class CustomerRegisterRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=8, max_length=512)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str | None = Field(default=None, max_length=40)
    address: str | None = Field(default=None, max_length=500)

    @field_validator("email")
    @classmethod
    def validar_email(cls, v: str) -> str:
        normalized = v.strip().lower()
        if "@" not in normalized:
            raise ValueError("email inválido")
        return normalized


class EmployeeResponse(CamelModel):
    employee_id: int
    username: str
    email: str
    role: EmployeeRole
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    last_login_at: datetime | None = None


class CustomerResponse(CamelModel):
    customer_id: int
    email: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    address: str | None = None


class EmployeeLoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    employee: EmployeeResponse


class CustomerLoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    customer: CustomerResponse


class PermissionsResponse(CamelModel):
    role: EmployeeRole
    label: str
    permissions: dict[str, bool]
    dashboard_path: str


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _to_employee_response(employee: EmployeeAccount) -> EmployeeResponse:
    return EmployeeResponse(
        employee_id=employee.id,
        username=employee.username,
        email=employee.email,
        role=employee.role,
        first_name=employee.first_name,
        last_name=employee.last_name,
        full_name=employee.full_name,
        is_active=employee.is_active,
        last_login_at=employee.last_login_at,
    )


def _to_customer_response(customer: CustomerAccount) -> CustomerResponse:
    return CustomerResponse(
        customer_id=customer.id,
        email=customer.email,
        first_name=customer.first_name,
        last_name=customer.last_name,
        phone_number=customer.phone_number,
        address=customer.address,
    )


def _register(req: CustomerRegisterRequest, repo: CustomerRepository) -> CustomerAccount:
    if repo.get_by_email(req.email) is not None:
        raise conflict("Ya existe un cliente con ese email.")
    try:
        return repo.create(
            email=req.email,
            password_hash=hash_password(req.password),
            first_name=req.first_name.strip(),
            last_name=req.last_name.strip(),
            phone_number=req.phone_number,
            address=req.address,
        )
    except ValueError as exc:
        raise conflict("Ya existe un cliente con ese email.") from exc


# -----------------------------------------------------------------------------
# Empleados
# -----------------------------------------------------------------------------


@router.post("/auth/login", response_model=EmployeeLoginResponse, tags=["auth"])
def employee_login(req: EmployeeLoginRequest):
    """Inicia sesión de empleado y devuelve JWT (typ=employee)."""
    employee = authenticate_employee(req.username, req.password)
    if not employee:
        raise unauthorized("Credenciales inválidas.")

    token, expires_in = create_access_token(employee, PrincipalKind.EMPLOYEE)
    logger.info(
        "Login de empleado",
        extra={"employee_id": employee.id, "role": employee.role.value},
    )
    return EmployeeLoginResponse(
        access_token=token,
        expires_in=expires_in,
        employee=_to_employee_response(employee),
    )


@router.get("/auth/profile", response_model=EmployeeResponse, tags=["auth"])
def employee_profile(employee: EmployeeAccount = Depends(require_employee())):
    """Perfil del empleado autenticado."""
    return _to_employee_response(employee)


@router.get("/auth/permissions", response_model=PermissionsResponse, tags=["auth"])
def employee_permissions(employee: EmployeeAccount = Depends(require_employee())):
    """Permisos y dashboard del rol del empleado autenticado."""
    profile = role_profile(employee.role)
    if profile is None:
        # R: rol sin configuración en producción -> sin permisos.
        return PermissionsResponse(
            role=employee.role,
            label=employee.role.value,
            permissions={},
            dashboard_path=PrincipalKind.EMPLOYEE.namespace.login_path,
        )
    return PermissionsResponse(
        role=employee.role,
        label=profile.label,
        permissions=profile.permissions.to_dict(),
        dashboard_path=profile.dashboard_path,
    )


# -----------------------------------------------------------------------------
# Clientes
# -----------------------------------------------------------------------------


@router.post(
    "/customer/auth/login", response_model=CustomerLoginResponse, tags=["customer"]
)
def customer_login(req: CustomerLoginRequest):
    """Inicia sesión de cliente y devuelve JWT (typ=customer)."""
    customer = authenticate_customer(req.email, req.password)
    if not customer:
        raise unauthorized("Credenciales inválidas.")

    token, expires_in = create_access_token(customer, PrincipalKind.CUSTOMER)
    logger.info("Login de cliente", extra={"customer_id": customer.id})
    return CustomerLoginResponse(
        access_token=token,
        expires_in=expires_in,
        customer=_to_customer_response(customer),
    )


@router.post(
    "/customer/auth/register",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["customer"],
)
def customer_register(
    req: CustomerRegisterRequest,
    repo: CustomerRepository = Depends(get_customer_repository),
):
    """Autoregistro de cliente (409 si el email ya existe)."""
    customer = _register(req, repo)
    logger.info("Cliente registrado", extra={"customer_id": customer.id})
    return _to_customer_response(customer)


@router.get("/customer/profile", response_model=CustomerResponse, tags=["customer"])
def customer_profile(customer: CustomerAccount = Depends(require_customer())):
    """Perfil del cliente autenticado."""
    return _to_customer_response(customer)


@router.post(
    "/customers",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["customer"],
)
def register_customer_by_staff(
    req: CustomerRegisterRequest,
    employee: EmployeeAccount = Depends(require_permission("can_register_customers")),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    """Alta de cliente por personal con `can_register_customers`."""
    customer = _register(req, repo)
    logger.info(
        "Cliente registrado por personal",
        extra={"customer_id": customer.id, "employee_id": employee.id},
    )
    return _to_customer_response(customer)
