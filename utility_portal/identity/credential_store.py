"""
===============================================================================
TARJETA CRC — identity/credential_store.py
===============================================================================

Módulo:
    Credential Store (token + perfil cacheado, por tipo de principal)

Responsabilidades:
    - Persistir / leer / borrar el token de sesión en dos tiers:
        * durable  ("remember me", sobrevive reinicios)
        * efímero  (vive lo que dura la sesión)
    - Espejar el token en una cookie compañera (<kind>Token) para que el
      servidor lo vea: max-age 30 días si se recuerda, cookie de sesión si no.
    - Cachear el perfil del cliente (solo tipos con profile_key).

Colaboradores:
    - identity.principals: namespace de claves/cookie por PrincipalKind.
    - crosscutting.config: max-age de la cookie recordada, flag Secure.
    - Starlette Response: destino final de las operaciones de cookie.

Invariantes:
    - load() consulta durable primero y luego efímero.
    - clear() vacía AMBOS tiers (token y perfil) y expira la cookie, sin
      importar qué tier usó el último save().
    - Sin I/O de red.
===============================================================================
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Optional, Protocol

from starlette.responses import Response

from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from .principals import PrincipalKind

# ---------------------------------------------------------------------------
# Tiers de almacenamiento
# ---------------------------------------------------------------------------


class StorageTier(Protocol):
    """Almacenamiento clave/valor de strings."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryTier:
    """Tier en memoria (sesión efímera / tests)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = Lock()
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Simula el fin de la sesión del navegador."""
        with self._lock:
            self._data.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JsonFileTier:
    """Tier durable: un documento JSON en disco (escritura atómica)."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Tier durable ilegible; se ignora", extra={"path": str(self._path)}
            )
            return {}

        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=".tier-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)


# ---------------------------------------------------------------------------
# Cookie compañera
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CookieOperation:
    name: str
    value: str
    max_age: Optional[int]
    delete: bool = False


class CookieJar:
    """Registra operaciones Set-Cookie y las aplica luego a una respuesta.

    Atributos fijos: path=/, SameSite=Lax, HttpOnly; Secure según settings.
    """

    PATH: str = "/"
    SAMESITE: str = "lax"

    def __init__(
        self, initial: dict[str, str] | None = None, *, secure: bool | None = None
    ) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._pending: list[CookieOperation] = []
        self._secure = get_settings().auth_cookie_secure if secure is None else secure

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    @property
    def pending(self) -> tuple[CookieOperation, ...]:
        return tuple(self._pending)

    def set_cookie(self, name: str, value: str, *, max_age: Optional[int]) -> None:
        self._values[name] = value
        self._pending.append(CookieOperation(name=name, value=value, max_age=max_age))

    def delete_cookie(self, name: str) -> None:
        self._values.pop(name, None)
        self._pending.append(CookieOperation(name=name, value="", max_age=0, delete=True))

    def apply_to(self, response: Response) -> Response:
        """Vuelca las operaciones pendientes en la respuesta (y las consume)."""
        for op in self._pending:
            if op.delete:
                response.delete_cookie(
                    key=op.name,
                    path=self.PATH,
                    samesite=self.SAMESITE,
                    secure=self._secure,
                    httponly=True,
                )
                continue
            response.set_cookie(
                key=op.name,
                value=op.value,
                max_age=op.max_age,
                path=self.PATH,
                samesite=self.SAMESITE,
                secure=self._secure,
                httponly=True,
            )
        self._pending.clear()
        return response


# ---------------------------------------------------------------------------
# Credential Store
# ---------------------------------------------------------------------------


class CredentialStore:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      CredentialStore

    Responsabilidades:
      - save/load/clear del token en el namespace del PrincipalKind
      - save_profile/load_profile para tipos con perfil cacheable (clientes)
      - Espejar el token en la cookie compañera

    Colaboradores:
      - StorageTier (durable + efímero)
      - CookieJar (opcional)
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        kind: PrincipalKind,
        *,
        durable: StorageTier,
        ephemeral: StorageTier,
        cookies: CookieJar | None = None,
        remember_max_age: int | None = None,
    ) -> None:
        self.kind = kind
        self._ns = kind.namespace
        self._durable = durable
        self._ephemeral = ephemeral
        self._cookies = cookies
        self._remember_max_age = (
            get_settings().remember_cookie_max_age_seconds
            if remember_max_age is None
            else remember_max_age
        )

    @property
    def cookies(self) -> CookieJar | None:
        return self._cookies

    # -----------------------
    # Token
    # -----------------------
    def save(self, token: str, remember: bool = False) -> None:
        """Guarda en UN tier y vacía el otro: load() nunca ve un token previo."""
        self._write(self._ns.token_key, token, remember)
        if self._ns.profile_key:
            # R: un token nuevo invalida el perfil cacheado del anterior.
            self._durable.remove(self._ns.profile_key)
            self._ephemeral.remove(self._ns.profile_key)
        self._set_cookie(token, max_age=self._remember_max_age if remember else None)

    def load(self) -> Optional[str]:
        token = self._durable.get(self._ns.token_key)
        if token:
            return token
        return self._ephemeral.get(self._ns.token_key) or None

    def clear(self) -> None:
        keys = [self._ns.token_key]
        if self._ns.profile_key:
            keys.append(self._ns.profile_key)

        for tier in (self._durable, self._ephemeral):
            for key in keys:
                tier.remove(key)

        if self._cookies is not None:
            self._cookies.delete_cookie(self._ns.cookie_name)

    # -----------------------
    # Perfil cacheado
    # -----------------------
    def _require_profile_key(self) -> str:
        if not self._ns.profile_key:
            raise ValueError(
                f"El principal '{self.kind.value}' no cachea perfil en el store"
            )
        return self._ns.profile_key

    def save_profile(self, data: dict[str, Any], remember: bool = False) -> None:
        key = self._require_profile_key()
        self._write(key, json.dumps(data, ensure_ascii=False), remember)

    def load_profile(self) -> Optional[dict[str, Any]]:
        key = self._require_profile_key()
        raw = self._durable.get(key) or self._ephemeral.get(key)
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    def _write(self, key: str, value: str, remember: bool) -> None:
        if remember:
            target, other = self._durable, self._ephemeral
        else:
            target, other = self._ephemeral, self._durable
        other.remove(key)
        target.set(key, value)

    def _set_cookie(self, token: str, *, max_age: Optional[int]) -> None:
        if self._cookies is None:
            return
        self._cookies.set_cookie(self._ns.cookie_name, token, max_age=max_age)


def durable_tier_for(kind: PrincipalKind, base_dir: Path | str | None = None) -> JsonFileTier:
    """Tier durable en disco para herramientas cliente (un archivo por tipo)."""
    root = Path(base_dir or get_settings().session_storage_dir)
    return JsonFileTier(root / f"{kind.value}.json")
