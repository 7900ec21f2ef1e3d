"""
===============================================================================
TARJETA CRC — utility_portal/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones de la aplicación a respuestas HTTP RFC7807 (API).
  - Traducir GuardRedirect a 303 + cookies pendientes (portal).
  - Sesión no resoluble: 503 (problem+json en /api, página con reintento
    en el portal).
  - Evitar filtrar detalles internos en errores no controlados.

Patrones aplicados:
  - Exception Mapping (Presentation Layer).
  - Fail-safe: cualquier excepción no tipada -> INTERNAL_ERROR (con logging).

Colaboradores:
  - crosscutting.error_responses: problem_response, AppHTTPException, ErrorCode
  - crosscutting.exceptions: PortalError y derivadas
  - portal.dependencies: GuardRedirect
  - portal.views: unavailable_page
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.responses import Response

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    problem_response,
)
from ..crosscutting.exceptions import (
    PolicyConfigurationError,
    PortalError,
    SessionUnavailableError,
)
from ..crosscutting.logger import logger
from ..portal.dependencies import GuardRedirect
from ..portal.views import unavailable_page

_API_PREFIX = "/api/"


def _is_api(request: Request) -> bool:
    return request.url.path.startswith(_API_PREFIX)


async def _handle_portal_error(
    request: Request,
    *,
    exc: PortalError,
    code: ErrorCode,
    status_code: int,
) -> JSONResponse:
    """Helper común para errores tipados del portal."""
    logger.error(
        "Error del portal",
        extra={"code": code.value, "error_id": exc.error_id, "error": exc.message},
    )
    return problem_response(
        request,
        status_code=status_code,
        code=code,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )


async def guard_redirect_handler(request: Request, exc: GuardRedirect) -> Response:
    response = RedirectResponse(exc.location, status_code=303)
    if exc.cookies is not None:
        exc.cookies.apply_to(response)
    return response


async def session_unavailable_handler(
    request: Request, exc: SessionUnavailableError
) -> Response:
    if _is_api(request):
        return await _handle_portal_error(
            request, exc=exc, code=ErrorCode.SERVICE_UNAVAILABLE, status_code=503
        )

    logger.warning(
        "Sesión no disponible; página de reintento",
        extra={"error_id": exc.error_id, "error": exc.message},
    )
    return HTMLResponse(unavailable_page(request.url.path), status_code=503)


async def policy_configuration_handler(
    request: Request, exc: PolicyConfigurationError
) -> JSONResponse:
    return await _handle_portal_error(
        request, exc=exc, code=ErrorCode.CONFIGURATION_ERROR, status_code=500
    )


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    # R: Errores base: tratamos como INTERNAL_ERROR por defecto.
    return await _handle_portal_error(
        request, exc=exc, code=ErrorCode.INTERNAL_ERROR, status_code=500
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return problem_response(
        request,
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Datos de entrada inválidos.",
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    logger.error("Excepción no controlada", exc_info=exc)

    # R: en producción el detalle nunca sale del servidor.
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return problem_response(
        request, status_code=500, code=ErrorCode.INTERNAL_ERROR, detail=detail
    )


def register_exception_handlers(app) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - AppHTTPException debe registrarse para respetar RFC7807.
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(GuardRedirect, guard_redirect_handler)
    app.add_exception_handler(SessionUnavailableError, session_unavailable_handler)
    app.add_exception_handler(PolicyConfigurationError, policy_configuration_handler)
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
