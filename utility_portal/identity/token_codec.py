"""
===============================================================================
TARJETA CRC — identity/token_codec.py
===============================================================================

Módulo:
    Token Codec (vista cliente del JWT)

Responsabilidades:
    - Decodificar claims de un bearer token SIN verificar firma.
    - Determinar expiración con buffer de seguridad (fail-closed, mínimo 300 s).
    - Validar formato básico (tres segmentos).

Colaboradores:
    - PyJWT: decodificación base64url/JSON del JWT.
    - crosscutting.config: token_expiry_buffer_seconds.
    - identity.session: descarta tokens expirados antes de ir a la red.

Notas:
    - La verificación de firma vive en el backend (identity.auth_users); acá
      solo decidimos si vale la pena intentar una sesión.
    - Funciones puras: sin efectos colaterales.
===============================================================================
"""

from __future__ import annotations

import math
import time
from typing import Any, Optional

import jwt

from ..crosscutting.config import get_settings

# R: header.payload.signature
TOKEN_SEGMENTS: int = 3

CLAIM_EXP: str = "exp"

# R: piso del buffer de expiración; la configuración sólo puede ampliarlo.
MIN_EXPIRY_BUFFER_SECONDS: int = 300


def is_valid_format(token: str | None) -> bool:
    """True si el token tiene la estructura de tres segmentos del JWT."""
    if not token or not isinstance(token, str):
        return False
    return len(token.split(".")) == TOKEN_SEGMENTS


def decode(token: str | None) -> Optional[dict[str, Any]]:
    """Claims del token o None si la estructura/payload no es válida."""
    if not is_valid_format(token):
        return None

    # R: PyJWT también parsea el header; un header ilegible cuenta como malformado.
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None

    if not isinstance(claims, dict):
        return None
    return claims


def is_expired(
    token: str | None,
    *,
    now: float | None = None,
    buffer_seconds: int | None = None,
) -> bool:
    """True si el token expira dentro del buffer o no se puede decodificar."""
    claims = decode(token)
    if claims is None:
        return True

    exp = claims.get(CLAIM_EXP)
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return True
    # R: json acepta NaN/Infinity; no son un exp utilizable.
    if not math.isfinite(exp):
        return True

    current = time.time() if now is None else now
    buffer = max(
        MIN_EXPIRY_BUFFER_SECONDS,
        get_settings().token_expiry_buffer_seconds
        if buffer_seconds is None
        else buffer_seconds,
    )
    return exp * 1000 < (current + buffer) * 1000
