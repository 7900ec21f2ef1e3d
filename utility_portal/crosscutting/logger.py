# utility_portal/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logging estructurado del portal
===============================================================================

Responsabilidades:
  - Emitir una línea JSON por evento, con el contexto del request y del
    principal resuelto (request_id, principal_kind, principal_id).
  - No filtrar credenciales: las claves sensibles se reemplazan y cualquier
    string con forma de JWT se enmascara aunque llegue bajo otra clave.
  - Permitir formato de texto plano para desarrollo (LOG_JSON=false).

Colaboradores:
  - utility_portal/context.py: get_context_dict()
  - api/main.py: configure_logging() con los Settings validados

Notas:
  - El logger global se crea al importar leyendo LOG_LEVEL / LOG_JSON del
    entorno; create_app() lo reconfigura con los Settings.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

LOGGER_NAME = "utility-portal"
REDACTED = "[redacted]"

# Atributos estándar de LogRecord; el resto vino por `extra=`.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_SENSITIVE_KEY = re.compile(
    r"(password|secret|token|authorization|cookie)", re.IGNORECASE
)
_JWT_SHAPE = re.compile(r"\beyJ[\w-]*\.[\w-]*\.[\w-]*")

_MAX_STR = 4_000
_MAX_DEPTH = 3


def scrub(value: Any, key: str = "", depth: int = 0) -> Any:
    """Copia serializable de `value` sin credenciales."""
    if key and _SENSITIVE_KEY.search(key):
        return REDACTED
    if depth > _MAX_DEPTH:
        return "..."
    if isinstance(value, str):
        value = _JWT_SHAPE.sub(REDACTED, value)
        return value if len(value) <= _MAX_STR else value[:_MAX_STR] + "..."
    if isinstance(value, Mapping):
        return {str(k): scrub(v, str(k), depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [scrub(v, key, depth + 1) for v in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return scrub(str(value), key, depth)


class JSONFormatter(logging.Formatter):
    """LogRecord -> una línea JSON (contexto + extras saneados)."""

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": scrub(record.getMessage()),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(get_context_dict())

        for name, value in record.__dict__.items():
            if name not in _RECORD_ATTRS:
                entry[name] = scrub(value, name)

        if record.exc_info and record.exc_info[0] is not None:
            entry["error_type"] = record.exc_info[0].__name__
            entry["error"] = scrub(str(record.exc_info[1]))
            entry["traceback"] = scrub(self.formatException(record.exc_info))

        return json.dumps(entry, ensure_ascii=False, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Formato legible para consola local; igual de cuidadoso con secretos."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        return _JWT_SHAPE.sub(REDACTED, super().format(record))


def configure_logging(level: str = "INFO", use_json: bool = True) -> logging.Logger:
    """(Re)configura el logger del portal. Idempotente: un único handler."""
    log = logging.getLogger(LOGGER_NAME)
    log.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    log.propagate = False

    formatter = JSONFormatter() if use_json else TextFormatter()
    if log.handlers:
        for handler in log.handlers:
            handler.setFormatter(formatter)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        log.addHandler(handler)
    return log


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


logger = configure_logging(
    os.getenv("LOG_LEVEL", "INFO"), _env_flag("LOG_JSON", True)
)
