"""
===============================================================================
TARJETA CRC — utility_portal/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer los repositorios de cuentas (empleados / clientes).
  - Mantener singletons con caching (lru_cache).
  - Permitir reset explícito entre tests.

Colaboradores:
  - utility_portal.domain.repositories (puertos)
  - utility_portal.infrastructure.repositories (implementaciones in-memory)

Patrones aplicados:
  - Composition Root
  - Lazy singletons con lru_cache

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .domain.repositories import CustomerRepository, EmployeeRepository
from .infrastructure.repositories import (
    InMemoryCustomerRepository,
    InMemoryEmployeeRepository,
)

# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_employee_repository() -> EmployeeRepository:
    """Repositorio de empleados (in-memory)."""
    return InMemoryEmployeeRepository()


@lru_cache(maxsize=1)
def get_customer_repository() -> CustomerRepository:
    """Repositorio de clientes (in-memory)."""
    return InMemoryCustomerRepository()


def reset_repositories() -> None:
    """Descarta los singletons (tests)."""
    get_employee_repository.cache_clear()
    get_customer_repository.cache_clear()
