"""
Domain layer: account entities and repository ports.
"""

from .entities import CustomerAccount, EmployeeAccount
from .repositories import CustomerRepository, EmployeeRepository

__all__ = [
    "CustomerAccount",
    "CustomerRepository",
    "EmployeeAccount",
    "EmployeeRepository",
]
