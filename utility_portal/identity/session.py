"""
===============================================================================
TARJETA CRC — identity/session.py
===============================================================================

Módulo:
    Principal Session (contexto de sesión explícito, genérico por tipo)

Responsabilidades:
    - Ser el dueño explícito del “usuario actual” de un tipo de principal
      (no hay singleton global de módulo).
    - Ciclo de vida:
        init     -> revisar storage en el primer uso (ensure_initialized)
        login    -> save(token) y LUEGO resolve(token)
        teardown -> logout() vacía el store
    - Fail-closed: token ausente/malformado/expirado/rechazado => sin principal.

Colaboradores:
    - identity.credential_store: CredentialStore del mismo PrincipalKind.
    - identity.resolver: IdentityResolver (única llamada de red).
    - identity.token_codec: chequeos locales antes de ir a la red.
    - identity.policy: permisos / dashboard / has_role.
    - context: principal_kind/principal_id para logs.

Patrones:
    - Una sola abstracción parametrizada por PrincipalKind, instanciada dos
      veces (employee_session / customer_session).
===============================================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Generic, Optional, TypeVar

import httpx

from ..context import set_principal_context
from ..crosscutting.exceptions import TokenRejectedError
from ..crosscutting.logger import logger
from . import token_codec
from .credential_store import CredentialStore
from .policy import dashboard_for, has_role, permissions_for
from .principals import CustomerPrincipal, EmployeePrincipal, PrincipalKind
from .resolver import IdentityResolver
from .roles import EmployeeRole, PermissionSet

P = TypeVar("P", EmployeePrincipal, CustomerPrincipal)


class PrincipalSession(Generic[P]):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      PrincipalSession

    Responsabilidades:
      - Mantener como máximo UN principal activo del tipo `kind`
      - Resolver el principal una vez por contexto (ensure_initialized)
      - Descartar tokens inválidos del store antes o después de la red

    Colaboradores:
      - CredentialStore, IdentityResolver, token_codec, policy
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        kind: PrincipalKind,
        *,
        store: CredentialStore,
        resolver: IdentityResolver,
    ) -> None:
        if store.kind != kind or resolver.kind != kind:
            raise ValueError("store/resolver deben pertenecer al mismo PrincipalKind")

        self.kind = kind
        self._store = store
        self._resolver = resolver
        self._principal: Optional[P] = None
        self._initialized = False
        self._resolving = False
        self._lock = asyncio.Lock()

    # -----------------------
    # Estado
    # -----------------------
    @property
    def principal(self) -> Optional[P]:
        return self._principal

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_resolving(self) -> bool:
        return self._resolving

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def login_path(self) -> str:
        return self.kind.namespace.login_path

    # -----------------------
    # Ciclo de vida
    # -----------------------
    async def ensure_initialized(self) -> Optional[P]:
        """Resuelve el principal desde el store la primera vez que se pide.

        Raises:
            SessionUnavailableError: si el perfil no pudo consultarse. El
            token se conserva y el próximo llamado vuelve a intentar.
        """
        async with self._lock:
            if self._initialized:
                return self._principal

            token = self._store.load()
            if not token:
                self._set_principal(None)
                self._initialized = True
                return None

            principal = await self._establish(token)
            self._initialized = True
            return principal

    async def login(
        self,
        token: str,
        remember: bool = False,
        profile: dict[str, Any] | None = None,
    ) -> Optional[P]:
        """Persiste el token y resuelve el principal (en ese orden)."""
        async with self._lock:
            if not token_codec.is_valid_format(token) or token_codec.is_expired(token):
                logger.warning(
                    "Login con token malformado o expirado",
                    extra={"kind": self.kind.value},
                )
                self._discard()
                self._initialized = True
                return None

            self._store.save(token, remember)
            if profile is not None and self.kind.namespace.profile_key:
                self._store.save_profile(profile, remember)

            principal = await self._establish(token)
            self._initialized = True
            return principal

    def logout(self) -> str:
        """Vacía el store y devuelve la ruta de login del tipo."""
        self._discard()
        self._initialized = True
        logger.info("Sesión cerrada", extra={"kind": self.kind.value})
        return self.login_path

    async def _establish(self, token: str) -> Optional[P]:
        if not token_codec.is_valid_format(token) or token_codec.is_expired(token):
            logger.info(
                "Token local malformado o expirado; descartado",
                extra={"kind": self.kind.value},
            )
            self._discard()
            return None

        self._resolving = True
        try:
            principal = await self._resolver.resolve(token)
        except TokenRejectedError as exc:
            logger.info(
                "Token rechazado; sesión descartada",
                extra={"kind": self.kind.value, "status_code": exc.status_code},
            )
            self._discard()
            return None
        finally:
            self._resolving = False

        self._set_principal(principal)
        return principal

    def _discard(self) -> None:
        self._store.clear()
        self._set_principal(None)

    def _set_principal(self, principal: Optional[P]) -> None:
        self._principal = principal
        set_principal_context(
            kind=self.kind.value if principal else "",
            principal_id=str(principal.id) if principal else "",
        )

    # -----------------------
    # Autorización
    # -----------------------
    def has_role(self, *roles: EmployeeRole | str) -> bool:
        return has_role(self._principal, *roles)

    def permissions(self) -> PermissionSet:
        if isinstance(self._principal, EmployeePrincipal):
            return permissions_for(self._principal.role)
        return PermissionSet.none()

    def dashboard_path(self) -> str:
        """Ruta de aterrizaje del principal actual (login si no hay)."""
        if self._principal is None:
            return self.login_path
        if isinstance(self._principal, EmployeePrincipal):
            return dashboard_for(self._principal.role)
        return self.kind.namespace.home_path

    def cached_profile(self) -> Optional[dict[str, Any]]:
        if not self.kind.namespace.profile_key:
            return None
        return self._store.load_profile()


# ---------------------------------------------------------------------------
# Factories (una instancia por tipo de principal)
# ---------------------------------------------------------------------------


def employee_session(
    store: CredentialStore, client: httpx.AsyncClient
) -> PrincipalSession[EmployeePrincipal]:
    return PrincipalSession(
        PrincipalKind.EMPLOYEE,
        store=store,
        resolver=IdentityResolver(PrincipalKind.EMPLOYEE, client),
    )


def customer_session(
    store: CredentialStore, client: httpx.AsyncClient
) -> PrincipalSession[CustomerPrincipal]:
    return PrincipalSession(
        PrincipalKind.CUSTOMER,
        store=store,
        resolver=IdentityResolver(PrincipalKind.CUSTOMER, client),
    )
