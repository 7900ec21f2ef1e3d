"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .customer import InMemoryCustomerRepository
from .employee import InMemoryEmployeeRepository

__all__ = [
    "InMemoryEmployeeRepository",
    "InMemoryCustomerRepository",
]
