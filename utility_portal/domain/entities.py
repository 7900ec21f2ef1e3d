"""
CRC — domain/entities.py

Name
- Domain Entities (Employee / Customer accounts)

Responsibilities
- Represent the persisted account records that authentication reads.
- Keep the two identity spaces separate: employees carry a role, customers never do.
- Provide derived values (full_name) in one place.

Collaborators
- domain.repositories: persistence contracts for these records
- identity.auth_users: credential checks and token claims
- api.auth_routes: response DTO mapping

Constraints
- Pure data: no I/O, no framework imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..identity.roles import EmployeeRole


@dataclass
class EmployeeAccount:
    """R: Employee account as seen by the authentication boundary."""

    id: int
    username: str
    email: str
    password_hash: str
    role: EmployeeRole
    first_name: str
    last_name: str
    is_active: bool = True
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class CustomerAccount:
    """R: Customer account (self-registered or registered by staff)."""

    id: int
    email: str
    password_hash: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    address: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
