# utility_portal/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del portal (errores internos)
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message “humana” (sin filtrar tokens)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  PortalError + subclases

Responsabilidades:
  - Estandarizar errores del núcleo de sesión/autorización
  - Generar error_id para rastreo

Colaboradores:
  - identity.resolver (TokenRejectedError / SessionUnavailableError)
  - identity.policy (PolicyConfigurationError)
  - api/exception_handlers.py (mapea a respuestas HTTP)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class ErrorResponse:
    """Estructura mínima para responder errores de forma consistente."""

    error_code: str
    message: str
    error_id: str

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class PortalError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      PortalError

    Responsabilidades:
      - Base para errores internos del portal
      - Proveer error_code + error_id + message

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "PORTAL_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code, message=self.message, error_id=self.error_id
        )


class TokenRejectedError(PortalError):
    """El backend rechazó el token (401/403 u otra respuesta no exitosa)."""

    error_code: str = "TOKEN_REJECTED"

    def __init__(self, message: str, *, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class SessionUnavailableError(PortalError):
    """No se pudo establecer la sesión (falla de red / respuesta ilegible)."""

    error_code: str = "SESSION_UNAVAILABLE"


class PolicyConfigurationError(PortalError):
    """Rol ausente del registro de permisos/dashboards."""

    error_code: str = "POLICY_CONFIGURATION_ERROR"
