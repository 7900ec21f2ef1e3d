# utility_portal/crosscutting/security.py
"""
===============================================================================
MÓDULO: Security headers (hardening HTTP)
===============================================================================

Responsabilidades:
  - Añadir headers de hardening a API y páginas del portal
  - Evitar cacheo de páginas autenticadas

Colaboradores:
  - crosscutting.config.get_settings
===============================================================================
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# El portal renderiza HTML server-side con un único bloque <style> inline.
_CSP = (
    "default-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data:; "
    "form-action 'self'; "
    "frame-ancestors 'none'"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      SecurityHeadersMiddleware

    Responsabilidades:
      - Agregar headers de seguridad OWASP
      - Cache-Control: no-store en respuestas que dependen de la sesión
      - HSTS solo si producción y request por HTTPS

    Colaboradores:
      - crosscutting.config
    ----------------------------------------------------------------------------
    """

    def __init__(self, app):
        super().__init__(app)
        from .config import get_settings

        self._is_production = get_settings().is_production()

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = _CSP
        response.headers.setdefault("Cache-Control", "no-store")

        if self._is_production:
            proto = (
                request.headers.get("x-forwarded-proto") or request.url.scheme or ""
            ).lower()
            if proto == "https":
                response.headers["Strict-Transport-Security"] = (
                    "max-age=31536000; includeSubDomains"
                )

        return response
