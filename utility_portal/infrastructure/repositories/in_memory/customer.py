"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/customer.py
============================================================
Class: InMemoryCustomerRepository

Responsibilities:
  - Almacenar cuentas de clientes en memoria (tests / local dev).
  - Búsquedas por id y email (case-insensitive, email único).

Collaborators:
  - domain.entities.CustomerAccount
  - domain.repositories.CustomerRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - Email duplicado -> ValueError (la API lo traduce a 409).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from ....domain.entities import CustomerAccount


class InMemoryCustomerRepository:
    """Repositorio in-memory, thread-safe, para clientes."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._customers: Dict[int, CustomerAccount] = {}
        self._next_id = 1

    @staticmethod
    def _norm(value: str) -> str:
        return (value or "").strip().lower()

    def get_by_id(self, customer_id: int) -> Optional[CustomerAccount]:
        with self._lock:
            customer = self._customers.get(customer_id)
            return replace(customer) if customer else None

    def get_by_email(self, email: str) -> Optional[CustomerAccount]:
        normalized = self._norm(email)
        with self._lock:
            for customer in self._customers.values():
                if customer.email == normalized:
                    return replace(customer)
            return None

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        phone_number: str | None = None,
        address: str | None = None,
    ) -> CustomerAccount:
        normalized = self._norm(email)
        if not normalized:
            raise ValueError("email es requerido")

        with self._lock:
            if any(c.email == normalized for c in self._customers.values()):
                raise ValueError("email ya registrado")

            customer = CustomerAccount(
                id=self._next_id,
                email=normalized,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                phone_number=phone_number,
                address=address,
                created_at=datetime.now(timezone.utc),
            )
            self._customers[customer.id] = customer
            self._next_id += 1
            return replace(customer)
