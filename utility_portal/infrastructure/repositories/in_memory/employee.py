"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/employee.py
============================================================
Class: InMemoryEmployeeRepository

Responsibilities:
  - Almacenar cuentas de empleados en memoria (tests / local dev).
  - Búsquedas por id, username y email (case-insensitive).
  - Registrar el último login.

Collaborators:
  - domain.entities.EmployeeAccount
  - domain.repositories.EmployeeRepository (contrato a implementar)

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock.
  - username y email son únicos; un duplicado levanta ValueError.
  - Copias: nunca se entrega la instancia interna al caller.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from ....domain.entities import EmployeeAccount
from ....identity.roles import EmployeeRole


class InMemoryEmployeeRepository:
    """
    Repositorio in-memory, thread-safe, para empleados.

    Modelo mental:
    - _employees es la "tabla" (id -> EmployeeAccount).
    - Los ids son secuenciales desde 1, como en una tabla con autoincremento.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._employees: Dict[int, EmployeeAccount] = {}
        self._next_id = 1

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _norm(value: str) -> str:
        return (value or "").strip().lower()

    def _find(self, *, username: str | None = None, email: str | None = None):
        for employee in self._employees.values():
            if username is not None and self._norm(employee.username) == username:
                return employee
            if email is not None and self._norm(employee.email) == email:
                return employee
        return None

    # =========================================================
    # Lecturas
    # =========================================================
    def get_by_id(self, employee_id: int) -> Optional[EmployeeAccount]:
        with self._lock:
            employee = self._employees.get(employee_id)
            return replace(employee) if employee else None

    def get_by_username(self, username: str) -> Optional[EmployeeAccount]:
        with self._lock:
            employee = self._find(username=self._norm(username))
            return replace(employee) if employee else None

    def get_by_email(self, email: str) -> Optional[EmployeeAccount]:
        with self._lock:
            employee = self._find(email=self._norm(email))
            return replace(employee) if employee else None

    def list_all(self) -> List[EmployeeAccount]:
        with self._lock:
            return [replace(e) for _, e in sorted(self._employees.items())]

    # =========================================================
    # Escrituras
    # =========================================================
    def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: EmployeeRole,
        first_name: str,
        last_name: str,
        is_active: bool = True,
    ) -> EmployeeAccount:
        normalized_username = self._norm(username)
        normalized_email = self._norm(email)
        if not normalized_username or not normalized_email:
            raise ValueError("username y email son requeridos")

        with self._lock:
            if self._find(username=normalized_username) or self._find(
                email=normalized_email
            ):
                raise ValueError("username o email ya registrado")

            employee = EmployeeAccount(
                id=self._next_id,
                username=username.strip(),
                email=normalized_email,
                password_hash=password_hash,
                role=EmployeeRole(role),
                first_name=first_name,
                last_name=last_name,
                is_active=is_active,
                created_at=self._now(),
            )
            self._employees[employee.id] = employee
            self._next_id += 1
            return replace(employee)

    def record_login(self, employee_id: int, at: datetime) -> None:
        with self._lock:
            employee = self._employees.get(employee_id)
            if employee is not None:
                employee.last_login_at = at

    def set_active(self, employee_id: int, is_active: bool) -> None:
        """Activa/desactiva una cuenta (no-op si no existe)."""
        with self._lock:
            employee = self._employees.get(employee_id)
            if employee is not None:
                employee.is_active = is_active
