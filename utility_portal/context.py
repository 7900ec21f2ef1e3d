"""
===============================================================================
TARJETA CRC — utility_portal/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar, por tarea asyncio, los datos de correlación de logs: request id,
    método, path y el principal resuelto (tipo + id, nunca el token).
  - request_scope(): fijar el contexto HTTP y restaurar el anterior al salir.

Colaboradores:
  - crosscutting.middleware: abre un request_scope por request.
  - crosscutting.logger: get_context_dict() en cada línea de log.
  - identity.session: set_principal_context() al resolver / cerrar sesión.

Notas:
  - El portal llama a su propia API in-process (ASGITransport) dentro del
    mismo request: el scope interno restaura el externo al terminar.
===============================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")
principal_kind_var: ContextVar[str] = ContextVar("principal_kind", default="")
principal_id_var: ContextVar[str] = ContextVar("principal_id", default="")

_FIELDS: tuple[tuple[str, ContextVar[str]], ...] = (
    ("request_id", request_id_var),
    ("method", http_method_var),
    ("path", http_path_var),
    ("principal_kind", principal_kind_var),
    ("principal_id", principal_id_var),
)


@contextmanager
def request_scope(*, request_id: str, method: str, path: str) -> Iterator[None]:
    """Contexto de un request HTTP; el principal arranca vacío."""
    tokens: list[tuple[ContextVar[str], Token[str]]] = [
        (var, var.set(value))
        for var, value in (
            (request_id_var, request_id),
            (http_method_var, method),
            (http_path_var, path),
            (principal_kind_var, ""),
            (principal_id_var, ""),
        )
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def set_principal_context(*, kind: str = "", principal_id: str = "") -> None:
    principal_kind_var.set(kind)
    principal_id_var.set(principal_id)


def get_context_dict() -> dict[str, str]:
    """Contexto actual sin claves vacías."""
    return {name: value for name, var in _FIELDS if (value := var.get())}
