# utility_portal/crosscutting/middleware.py
"""
===============================================================================
MÓDULO: RequestContextMiddleware
===============================================================================

Responsabilidades:
  - Aceptar el X-Request-Id entrante (el portal lo reenvía a su API) o
    generar uno nuevo, y devolverlo en la respuesta.
  - Abrir un request_scope para que cada log lleve request_id/method/path.
  - Una línea de log por request con status y latencia.

Colaboradores:
  - utility_portal/context.py: request_scope
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..context import request_scope
from .logger import logger

REQUEST_ID_HEADER = "X-Request-Id"

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(incoming: str | None) -> str:
    """Id entrante si es razonable (charset acotado, <=128); si no, uno nuevo."""
    candidate = (incoming or "").strip()
    if _REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlación de logs por request (ver módulo)."""

    def __init__(self, app, quiet_paths: frozenset[str] = frozenset({"/healthz"})):
        super().__init__(app)
        self._quiet_paths = quiet_paths

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        path = request.url.path

        with request_scope(request_id=request_id, method=request.method, path=path):
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    "Request falló",
                    extra={"latency_ms": _elapsed_ms(started)},
                )
                raise

            response.headers[REQUEST_ID_HEADER] = request_id
            if path not in self._quiet_paths:
                logger.info(
                    "Request completado",
                    extra={
                        "status_code": response.status_code,
                        "latency_ms": _elapsed_ms(started),
                    },
                )
            return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
