"""
===============================================================================
TARJETA CRC — identity/guard.py
===============================================================================

Módulo:
    Route Guard (gate de vistas por tipo de principal y rol)

Responsabilidades:
    - Evaluar una vista protegida contra la sesión del tipo correspondiente:
        sin principal          -> UNAUTHENTICATED (redirect a login del tipo)
        principal sin el rol   -> FORBIDDEN (redirect a SU dashboard)
        principal con el rol   -> AUTHORIZED
    - Exponer RESOLVING mientras la sesión consulta el perfil.
    - GuardedView: montar/desmontar una vista; un desmontaje durante la
      resolución descarta el resultado (no navega, no renderiza).

Colaboradores:
    - identity.session: PrincipalSession (ensure_initialized / has_role).
    - crosscutting.exceptions: SessionUnavailableError (resolución incompleta).

Invariantes:
    - Un FORBIDDEN nunca manda al login: el usuario ya está autenticado.
    - Cada mount re-evalúa; nada se cachea entre navegaciones.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..crosscutting.exceptions import SessionUnavailableError
from ..crosscutting.logger import logger
from .principals import Principal
from .roles import EmployeeRole
from .session import PrincipalSession


class GuardState(str, Enum):
    RESOLVING = "resolving"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    AUTHORIZED = "authorized"


@dataclass(frozen=True, slots=True)
class GuardDecision:
    """Resultado de evaluar una vista protegida.

    `error` solo se completa cuando la resolución no terminó (state RESOLVING).
    """

    state: GuardState
    redirect_to: Optional[str] = None
    principal: Optional[Principal] = None
    error: Optional[SessionUnavailableError] = None

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.AUTHORIZED


class RouteGuard:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      RouteGuard

    Responsabilidades:
      - Decidir AUTHORIZED / FORBIDDEN / UNAUTHENTICATED para una vista
      - Calcular el destino de la redirección

    Colaboradores:
      - PrincipalSession
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        session: PrincipalSession,
        *required_roles: EmployeeRole | str,
        require_roles: bool = True,
    ) -> None:
        self.session = session
        self.required_roles = tuple(required_roles)
        self._require_roles = require_roles

    @classmethod
    def any_principal(cls, session: PrincipalSession) -> "RouteGuard":
        """Guard que solo exige autenticación (vistas de clientes)."""
        return cls(session, require_roles=False)

    async def evaluate(self) -> GuardDecision:
        try:
            principal = await self.session.ensure_initialized()
        except SessionUnavailableError as exc:
            return GuardDecision(state=GuardState.RESOLVING, error=exc)

        if principal is None:
            return GuardDecision(
                state=GuardState.UNAUTHENTICATED,
                redirect_to=self.session.login_path,
            )

        if self._require_roles and not self.session.has_role(*self.required_roles):
            logger.info(
                "Acceso denegado por rol",
                extra={
                    "kind": self.session.kind.value,
                    "required_roles": [str(r) for r in self.required_roles],
                },
            )
            return GuardDecision(
                state=GuardState.FORBIDDEN,
                redirect_to=self.session.dashboard_path(),
                principal=principal,
            )

        return GuardDecision(state=GuardState.AUTHORIZED, principal=principal)


class GuardedView:
    """Vista protegida con ciclo mount/unmount.

    `render(principal)` dibuja la vista; `navigate(path)` redirige;
    `on_loading()` (opcional) muestra el indicador de carga; `on_error(exc)`
    (opcional) recibe la falla de resolución, si falta se relanza.
    """

    def __init__(
        self,
        guard: RouteGuard,
        render: Callable[[Principal], Any],
        navigate: Callable[[str], Any],
        *,
        on_loading: Callable[[], Any] | None = None,
        on_error: Callable[[SessionUnavailableError], Any] | None = None,
    ) -> None:
        self.guard = guard
        self._render = render
        self._navigate = navigate
        self._on_loading = on_loading
        self._on_error = on_error
        self._mounted = False
        self._generation = 0
        self.state: Optional[GuardState] = None

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> Optional[GuardDecision]:
        """Evalúa y navega/renderiza; None si la vista se desmontó antes."""
        self._mounted = True
        self._generation += 1
        generation = self._generation

        self.state = GuardState.RESOLVING
        if self._on_loading is not None:
            self._on_loading()

        decision = await self.guard.evaluate()

        if not self._mounted or generation != self._generation:
            logger.debug("Resultado del guard descartado (vista desmontada)")
            return None

        self.state = decision.state
        if decision.error is not None:
            if self._on_error is None:
                raise decision.error
            self._on_error(decision.error)
        elif decision.redirect_to:
            self._navigate(decision.redirect_to)
        else:
            self._render(decision.principal)
        return decision

    def unmount(self) -> None:
        self._mounted = False
        self._generation += 1
