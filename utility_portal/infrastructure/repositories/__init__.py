"""
============================================================
TARJETA CRC — infrastructure/repositories/__init__.py
============================================================
Module: infrastructure.repositories (Public Export Surface)

Responsibilities:
  - Exponer los repositorios de cuentas disponibles.
  - Evitar paths largos en container y tests.

Policy:
  - Solo re-exporta símbolos; sin side effects.
============================================================
"""

from .in_memory import InMemoryCustomerRepository, InMemoryEmployeeRepository

__all__ = [
    "InMemoryEmployeeRepository",
    "InMemoryCustomerRepository",
]
