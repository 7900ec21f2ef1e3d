"""Utility Portal: back-office + customer portal session and authorization core."""

__version__ = "0.1.0"
