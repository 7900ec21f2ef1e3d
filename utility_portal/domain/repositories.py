"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for employee and customer accounts (ports).
- Keep identity/api code independent from the storage technology.

Collaborators
- domain.entities: EmployeeAccount, CustomerAccount
- infrastructure.repositories: in-memory implementations

Notes
- We use typing.Protocol for structural subtyping ("duck typing").
- Lookups return None when the record does not exist (never raise).
"""

from datetime import datetime
from typing import List, Optional, Protocol

from ..identity.roles import EmployeeRole
from .entities import CustomerAccount, EmployeeAccount


class EmployeeRepository(Protocol):
    """R: Interface for employee account persistence."""

    def get_by_id(self, employee_id: int) -> Optional[EmployeeAccount]: ...

    def get_by_username(self, username: str) -> Optional[EmployeeAccount]: ...

    def get_by_email(self, email: str) -> Optional[EmployeeAccount]: ...

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
    ) -> EmployeeAccount: ...

    def record_login(self, employee_id: int, at: datetime) -> None: ...

    def list_all(self) -> List[EmployeeAccount]: ...


class CustomerRepository(Protocol):
    """R: Interface for customer account persistence."""

    def get_by_id(self, customer_id: int) -> Optional[CustomerAccount]: ...

    def get_by_email(self, email: str) -> Optional[CustomerAccount]: ...

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        phone_number: str | None = None,
        address: str | None = None,
    ) -> CustomerAccount: ...
