"""
===============================================================================
TARJETA CRC — portal/dependencies.py
===============================================================================

Módulo:
    Dependencias del portal (sesión por request + guards de página)

Responsabilidades:
    - Construir, por request, un store por tipo de principal sembrado desde
      la cookie compañera del request.
    - Crear el cliente httpx hacia el backend (in-process si no hay base URL).
    - Evaluar guards de página y convertir sus redirecciones en GuardRedirect
      (que arrastra las operaciones de cookie pendientes).

Colaboradores:
    - identity.credential_store: CookieJar / MemoryTier / CredentialStore.
    - identity.session: employee_session / customer_session.
    - identity.guard: RouteGuard.
    - api.exception_handlers: traduce GuardRedirect a 303.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, Request
from starlette.responses import Response

from ..crosscutting.config import get_settings
from ..identity.credential_store import CookieJar, CredentialStore, MemoryTier
from ..identity.guard import RouteGuard
from ..identity.principals import CustomerPrincipal, EmployeePrincipal, PrincipalKind
from ..identity.roles import EmployeeRole
from ..identity.session import PrincipalSession, customer_session, employee_session

# R: host ficticio para el transporte ASGI in-process.
_IN_PROCESS_BASE_URL = "http://portal.internal"


class GuardRedirect(Exception):
    """Redirección emitida por un guard o flujo de login/logout (303)."""

    def __init__(self, location: str, cookies: Optional[CookieJar] = None) -> None:
        super().__init__(location)
        self.location = location
        self.cookies = cookies


async def get_backend_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    """Cliente httpx hacia la API (mismo proceso si API_BASE_URL está vacío)."""
    settings = get_settings()
    headers: dict[str, str] = {}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers["X-Request-Id"] = request_id

    if settings.api_base_url:
        client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.profile_timeout_seconds,
            headers=headers,
        )
    else:
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=request.app),
            base_url=_IN_PROCESS_BASE_URL,
            timeout=settings.profile_timeout_seconds,
            headers=headers,
        )

    async with client:
        yield client


def request_store(kind: PrincipalKind, request: Request, jar: CookieJar) -> CredentialStore:
    """Store del request: el tier efímero arranca con el token de la cookie."""
    seed: dict[str, str] = {}
    token = request.cookies.get(kind.namespace.cookie_name)
    if token:
        seed[kind.namespace.token_key] = token
    return CredentialStore(
        kind, durable=MemoryTier(), ephemeral=MemoryTier(seed), cookies=jar
    )


@dataclass
class PortalContext:
    """Sesiones y cookies de UN request del portal."""

    cookies: CookieJar
    client: httpx.AsyncClient
    employees: PrincipalSession[EmployeePrincipal]
    customers: PrincipalSession[CustomerPrincipal]

    def session_for(self, kind: PrincipalKind) -> PrincipalSession:
        if kind == PrincipalKind.EMPLOYEE:
            return self.employees
        return self.customers

    def redirect(self, location: str) -> GuardRedirect:
        return GuardRedirect(location, self.cookies)

    def finish(self, response: Response) -> Response:
        return self.cookies.apply_to(response)


async def get_portal(
    request: Request,
    client: httpx.AsyncClient = Depends(get_backend_client),
) -> PortalContext:
    jar = CookieJar(dict(request.cookies))
    return PortalContext(
        cookies=jar,
        client=client,
        employees=employee_session(
            request_store(PrincipalKind.EMPLOYEE, request, jar), client
        ),
        customers=customer_session(
            request_store(PrincipalKind.CUSTOMER, request, jar), client
        ),
    )


async def guard_page(
    portal: PortalContext,
    kind: PrincipalKind,
    *roles: EmployeeRole,
):
    """Principal autorizado para la página o GuardRedirect.

    Sin roles solo se exige autenticación del tipo pedido.
    """
    session = portal.session_for(kind)
    guard = RouteGuard(session, *roles) if roles else RouteGuard.any_principal(session)
    decision = await guard.evaluate()

    if decision.error is not None:
        raise decision.error
    if decision.redirect_to:
        raise portal.redirect(decision.redirect_to)
    return decision.principal
