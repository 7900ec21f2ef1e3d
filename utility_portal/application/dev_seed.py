"""
===============================================================================
TASK: Dev Seed Demo Accounts (Local-only)
===============================================================================

Name:
    Dev Seed Demo Accounts

Qué es:
    Asegura una cuenta de empleado por rol y un cliente demo para desarrollo,
    cuando DEV_SEED_DEMO está habilitado.

Seguridad:
    - Guard estricto: solo corre con app_env "local" o "development".

Patrones:
    - Dependency Injection (repos + hasher)
    - Fail-fast guard (safety boundary)
    - Idempotencia (ensure-create; nunca pisa cuentas existentes)

CRC:
    Component: ensure_dev_demo_accounts
    Responsibilities:
      - Validar guard de ambiente
      - Crear las cuentas faltantes
    Collaborators:
      - employee_repo / customer_repo
      - password_hasher
      - Settings
===============================================================================
"""

from __future__ import annotations

from typing import Callable, Final

from ..crosscutting.config import Settings
from ..crosscutting.logger import logger
from ..domain.repositories import CustomerRepository, EmployeeRepository
from ..identity.roles import ALL_ROLES, EmployeeRole

_ALLOWED_ENVS: Final[frozenset[str]] = frozenset({"local", "development"})

DEMO_EMAIL_DOMAIN: Final[str] = "portal.local"
DEMO_CUSTOMER_EMAIL: Final[str] = f"customer@{DEMO_EMAIL_DOMAIN}"


def demo_username(role: EmployeeRole) -> str:
    """Username demo del rol (p.ej. METER_READER -> meter_reader)."""
    return role.value.lower()


def _assert_allowed_environment(settings: Settings) -> None:
    env = (settings.app_env or "").strip().lower()
    if env not in _ALLOWED_ENVS:
        raise RuntimeError(
            f"FATAL: DEV_SEED_DEMO is enabled but ENV is '{env}' "
            "(must be 'local' or 'development')."
        )


def ensure_dev_demo_accounts(
    settings: Settings,
    *,
    employee_repo: EmployeeRepository,
    customer_repo: CustomerRepository,
    password_hasher: Callable[[str], str],
) -> int:
    """
    Ensure demo accounts exist if configured.

    Returns:
      Number of accounts created (0 when disabled or already seeded).
    """
    if not settings.dev_seed_demo:
        return 0

    _assert_allowed_environment(settings)

    if not settings.dev_seed_password:
        raise ValueError("Dev seed demo is enabled but the password is empty")

    password_hash = password_hasher(settings.dev_seed_password)
    created = 0

    for role in ALL_ROLES:
        username = demo_username(role)
        if employee_repo.get_by_username(username) is not None:
            continue
        employee_repo.create(
            username=username,
            email=f"{username}@{DEMO_EMAIL_DOMAIN}",
            password_hash=password_hash,
            role=role,
            first_name="Demo",
            last_name=role.value.replace("_", " ").title(),
        )
        created += 1

    if customer_repo.get_by_email(DEMO_CUSTOMER_EMAIL) is None:
        customer_repo.create(
            email=DEMO_CUSTOMER_EMAIL,
            password_hash=password_hash,
            first_name="Demo",
            last_name="Customer",
        )
        created += 1

    logger.info(
        "Dev seed demo: cuentas aseguradas", extra={"accounts_created": created}
    )
    return created
