"""
===============================================================================
TARJETA CRC — identity/resolver.py
===============================================================================

Módulo:
    Identity Resolver (token -> principal vía endpoint de perfil)

Responsabilidades:
    - Enviar GET <profile_path> con Authorization: Bearer <token>.
    - 2xx: mapear el payload al principal tipado del PrincipalKind.
    - No-2xx: TokenRejectedError (el caller descarta el token).
    - Falla de red / payload ilegible: SessionUnavailableError.

Colaboradores:
    - httpx.AsyncClient: transporte (timeout/retry los define el cliente).
    - identity.principals: principal_from_payload.
    - crosscutting.logger: logs sin token.

Notas:
    - Única operación del núcleo que toca la red. Idempotente.
    - No reintenta: decide el caller.
===============================================================================
"""

from __future__ import annotations

from typing import Any

import httpx

from ..crosscutting.exceptions import SessionUnavailableError, TokenRejectedError
from ..crosscutting.logger import logger
from .principals import Principal, PrincipalKind, principal_from_payload


def _unwrap(body: Any) -> Any:
    # R: el backend puede envolver la respuesta como {"success": .., "data": {...}}
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body


class IdentityResolver:
    """Intercambia un token por el principal completo."""

    def __init__(
        self,
        kind: PrincipalKind,
        client: httpx.AsyncClient,
        *,
        profile_path: str | None = None,
    ) -> None:
        self.kind = kind
        self._client = client
        self._profile_path = profile_path or kind.namespace.profile_path

    async def resolve(self, token: str) -> Principal:
        try:
            response = await self._client.get(
                self._profile_path,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Perfil inaccesible",
                extra={"kind": self.kind.value, "error": type(exc).__name__},
            )
            raise SessionUnavailableError(
                "No se pudo establecer la sesión", original_error=exc
            ) from exc

        if not response.is_success:
            logger.info(
                "Token rechazado por el endpoint de perfil",
                extra={"kind": self.kind.value, "status_code": response.status_code},
            )
            raise TokenRejectedError(
                "Sesión inválida o expirada", status_code=response.status_code
            )

        try:
            payload = _unwrap(response.json())
            if not isinstance(payload, dict):
                raise ValueError("payload de perfil no es un objeto")
            return principal_from_payload(self.kind, payload)
        except (ValueError, TypeError) as exc:
            logger.warning(
                "Payload de perfil inválido",
                extra={"kind": self.kind.value, "error": str(exc)},
            )
            raise SessionUnavailableError(
                "Perfil ilegible; no se pudo establecer la sesión", original_error=exc
            ) from exc
