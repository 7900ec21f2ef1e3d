"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - ensure_dev_demo_accounts: seed de cuentas demo (solo entorno local)
===============================================================================
"""

from .dev_seed import DEMO_CUSTOMER_EMAIL, ensure_dev_demo_accounts

__all__ = ["DEMO_CUSTOMER_EMAIL", "ensure_dev_demo_accounts"]
