# utility_portal/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Problem Details (RFC 7807) para la API
===============================================================================

Responsabilidades:
  - Catálogo estable de códigos (ErrorCode) con su status HTTP por defecto.
  - Construir respuestas application/problem+json (problem_response).
  - AppHTTPException + factories para los errores de autenticación.

Colaboradores:
  - identity/auth_users.py: unauthorized / forbidden en las dependencias.
  - api/auth_routes.py: conflict, documentación OpenAPI de errores.
  - api/exception_handlers.py: mapea excepciones internas a problem_response.

Notas:
  - El portal (resolver) sólo mira el status: cualquier no-2xx descarta el
    token. `code` existe para clientes de la API y para los logs.
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


class ErrorDetail(BaseModel):
    """Cuerpo RFC 7807 + `code` estable y `errors` opcionales."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: Optional[str] = None
    request_id: Optional[str] = None
    errors: Optional[list[dict[str, Any]]] = None


OPENAPI_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {
        "model": ErrorDetail,
        "description": description,
        "content": {PROBLEM_JSON_MEDIA_TYPE: {}},
    }
    for status, description in (
        (401, "Token ausente, inválido o expirado"),
        (403, "Cuenta inactiva o permiso insuficiente"),
        (409, "Recurso duplicado"),
        (422, "Datos de entrada inválidos"),
    )
}


def problem_response(
    request: Request,
    *,
    status_code: int,
    code: ErrorCode,
    detail: str,
    errors: Optional[list[dict[str, Any]]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    body = ErrorDetail(
        type=f"urn:utility-portal:error:{code.value.lower()}",
        title=code.title,
        status=status_code,
        detail=detail,
        code=code,
        instance=request.url.path,
        request_id=getattr(request.state, "request_id", None),
        errors=errors or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=dict(headers) if headers else None,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


class AppHTTPException(HTTPException):
    """HTTPException con ErrorCode; se serializa como problem+json."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        *,
        errors: Optional[list[dict[str, Any]]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


def unauthorized(detail: str = "Autenticación requerida.") -> AppHTTPException:
    return AppHTTPException(
        401, ErrorCode.UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def forbidden(detail: str = "Acceso denegado.") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def conflict(detail: str) -> AppHTTPException:
    return AppHTTPException(409, ErrorCode.CONFLICT, detail)


async def app_exception_handler(request: Request, exc: AppHTTPException) -> JSONResponse:
    return problem_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        detail=str(exc.detail),
        errors=exc.errors,
        headers=exc.headers,
    )
