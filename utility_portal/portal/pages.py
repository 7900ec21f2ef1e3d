"""
===============================================================================
TARJETA CRC — portal/pages.py (Portal server-rendered)
===============================================================================

Responsabilidades:
  - Login / logout de empleados y clientes (con "Recordarme").
  - Páginas del back-office protegidas por rol.
  - Dashboard del cliente protegido por sesión de cliente.

Patrones aplicados:
  - El portal es CLIENTE de la API: login vía POST /api/v1/.../login y
    resolución de sesión vía el endpoint de perfil (IdentityResolver).
  - Las redirecciones se emiten como GuardRedirect (303 + cookies pendientes).

Colaboradores:
  - portal.dependencies: get_portal / guard_page / GuardRedirect
  - portal.views: HTML
  - identity.session: login / logout / dashboard_path
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from ..crosscutting.exceptions import SessionUnavailableError
from ..crosscutting.logger import logger
from ..identity.principals import PrincipalKind
from . import views
from .dependencies import PortalContext, get_portal, guard_page
from .navigation import EMPLOYEE_PAGES, EmployeePage

router = APIRouter(default_response_class=HTMLResponse, include_in_schema=False)


# -----------------------------------------------------------------------------
# Páginas del back-office (tabla en portal.navigation)
# -----------------------------------------------------------------------------


def _employee_page_endpoint(page: EmployeePage):
    async def endpoint(request: Request, portal: PortalContext = Depends(get_portal)):
        principal = await guard_page(portal, PrincipalKind.EMPLOYEE, *page.roles)
        if page.dashboard:
            content = views.dashboard_content(principal, portal.employees.permissions())
        else:
            content = views.section_content(page.title)
        html = views.employee_page(principal, request.url.path, page.title, content)
        return portal.finish(HTMLResponse(html))

    endpoint.__name__ = "page_" + page.path.strip("/").replace("/", "_").replace("-", "_")
    return endpoint


for _page in EMPLOYEE_PAGES:
    router.add_api_route(
        _page.path,
        _employee_page_endpoint(_page),
        methods=["GET"],
        response_class=HTMLResponse,
    )


# -----------------------------------------------------------------------------
# Login contra la API
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LoginOutcome:
    token: Optional[str] = None
    error: Optional[str] = None
    status_code: int = 200


_LOGIN_ERRORS = {
    401: "Invalid credentials.",
    403: "This account is inactive.",
    422: "Please fill in all fields.",
}


async def _api_login(
    client: httpx.AsyncClient,
    kind: PrincipalKind,
    payload: dict[str, str],
) -> LoginOutcome:
    path = (
        "/api/v1/auth/login"
        if kind == PrincipalKind.EMPLOYEE
        else "/api/v1/customer/auth/login"
    )
    try:
        response = await client.post(path, json=payload)
    except httpx.HTTPError as exc:
        raise SessionUnavailableError(
            "No se pudo contactar la API de login", original_error=exc
        ) from exc

    if response.status_code in _LOGIN_ERRORS:
        return LoginOutcome(
            error=_LOGIN_ERRORS[response.status_code],
            status_code=response.status_code,
        )
    if not response.is_success:
        raise SessionUnavailableError(
            f"Login respondió {response.status_code}"
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise SessionUnavailableError(
            "Respuesta de login ilegible", original_error=exc
        ) from exc
    if not isinstance(body, dict):
        raise SessionUnavailableError("Respuesta de login ilegible")

    return LoginOutcome(token=body.get("accessToken"))


async def _login(
    portal: PortalContext,
    kind: PrincipalKind,
    *,
    identifier: str,
    payload: dict[str, str],
    remember: bool,
):
    outcome = await _api_login(portal.client, kind, payload)
    if outcome.error:
        html = views.login_page(kind, error=outcome.error, identifier=identifier)
        return HTMLResponse(html, status_code=outcome.status_code)

    session = portal.session_for(kind)
    # R: sin perfil: los tiers del portal viven un request; cada página resuelve.
    principal = await session.login(outcome.token or "", remember=remember)
    if principal is None:
        logger.warning("Login sin sesión resoluble", extra={"kind": kind.value})
        html = views.login_page(
            kind, error="Could not start your session.", identifier=identifier
        )
        return portal.finish(HTMLResponse(html, status_code=401))

    raise portal.redirect(session.dashboard_path())


async def _login_form(portal: PortalContext, kind: PrincipalKind):
    session = portal.session_for(kind)
    try:
        principal = await session.ensure_initialized()
    except SessionUnavailableError:
        logger.warning("Sesión previa no verificable; mostrando login")
        principal = None

    if principal is not None:
        raise portal.redirect(session.dashboard_path())
    return portal.finish(HTMLResponse(views.login_page(kind)))


# -----------------------------------------------------------------------------
# Empleados
# -----------------------------------------------------------------------------


@router.get("/login")
async def employee_login_form(portal: PortalContext = Depends(get_portal)):
    return await _login_form(portal, PrincipalKind.EMPLOYEE)


@router.post("/login")
async def employee_login_submit(
    username: str = Form(""),
    password: str = Form(""),
    remember: bool = Form(False),
    portal: PortalContext = Depends(get_portal),
):
    return await _login(
        portal,
        PrincipalKind.EMPLOYEE,
        identifier=username,
        payload={"username": username, "password": password},
        remember=remember,
    )


@router.get("/logout")
async def employee_logout(portal: PortalContext = Depends(get_portal)):
    raise portal.redirect(portal.employees.logout())


# -----------------------------------------------------------------------------
# Clientes
# -----------------------------------------------------------------------------


@router.get("/auth/customer-login")
async def customer_login_form(portal: PortalContext = Depends(get_portal)):
    return await _login_form(portal, PrincipalKind.CUSTOMER)


@router.post("/auth/customer-login")
async def customer_login_submit(
    email: str = Form(""),
    password: str = Form(""),
    remember: bool = Form(False),
    portal: PortalContext = Depends(get_portal),
):
    return await _login(
        portal,
        PrincipalKind.CUSTOMER,
        identifier=email,
        payload={"email": email, "password": password},
        remember=remember,
    )


@router.get("/customer/logout")
async def customer_logout(portal: PortalContext = Depends(get_portal)):
    raise portal.redirect(portal.customers.logout())


@router.get("/customer/dashboard")
async def customer_dashboard(portal: PortalContext = Depends(get_portal)):
    principal = await guard_page(portal, PrincipalKind.CUSTOMER)
    html = views.customer_dashboard_page(principal)
    return portal.finish(HTMLResponse(html))
