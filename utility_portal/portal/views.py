"""
===============================================================================
TARJETA CRC — portal/views.py
===============================================================================

Módulo:
    Vistas HTML del portal (render server-side, sin templates externos)

Responsabilidades:
    - Layout común (header + sidebar filtrado por rol).
    - Formularios de login (empleado / cliente) con "Recordarme".
    - Dashboards y páginas de sección del back-office.
    - Página 503 con link de reintento cuando la sesión no pudo resolverse.

Colaboradores:
    - portal.navigation: NAV_ITEMS / nav_for.
    - identity.policy: role_profile (etiqueta y colores del badge).

Restricciones:
    - Todo dato dinámico pasa por html.escape.
===============================================================================
"""

from __future__ import annotations

from html import escape
from typing import Optional

from ..identity.policy import role_profile
from ..identity.principals import CustomerPrincipal, EmployeePrincipal, PrincipalKind
from ..identity.roles import PermissionSet
from .navigation import is_active, nav_for

_STYLE = """
body{font-family:system-ui,sans-serif;margin:0;color:#1f2937;background:#f9fafb}
header{display:flex;justify-content:space-between;align-items:center;padding:12px 24px;background:#fff;border-bottom:1px solid #e5e7eb}
.layout{display:flex}
nav{width:220px;padding:16px;background:#fff;border-right:1px solid #e5e7eb;min-height:calc(100vh - 58px)}
nav a{display:block;padding:8px 12px;border-radius:6px;color:#374151;text-decoration:none}
nav a.active{background:#eff6ff;color:#1d4ed8;font-weight:600}
main{flex:1;padding:24px}
.card{background:#fff;border:1px solid #e5e7eb;border-radius:8px;padding:24px;max-width:420px;margin:48px auto}
.badge{display:inline-block;padding:2px 8px;border-radius:9999px;border:1px solid;font-size:12px}
.error{color:#b91c1c}
label{display:block;margin-top:12px}
input[type=text],input[type=email],input[type=password]{width:100%;padding:8px;box-sizing:border-box}
"""


def _document(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)} · Utility Portal</title>"
        f"<style>{_STYLE}</style></head>"
        f"<body>{body}</body></html>"
    )


def role_badge(principal: EmployeePrincipal) -> str:
    profile = role_profile(principal.role)
    if profile is None:
        return f'<span class="badge">{escape(principal.role.value)}</span>'
    classes = " ".join(
        (profile.colors.bg, profile.colors.text, profile.colors.border)
    )
    return f'<span class="badge {escape(classes)}">{escape(profile.label)}</span>'


def sidebar(principal: EmployeePrincipal, path: str) -> str:
    links = []
    for item in nav_for(principal.role):
        css = ' class="active"' if is_active(item, path) else ""
        links.append(f'<a href="{escape(item.href)}"{css}>{escape(item.name)}</a>')
    return "<nav>" + "".join(links) + "</nav>"


def employee_page(principal: EmployeePrincipal, path: str, title: str, content: str) -> str:
    logout = PrincipalKind.EMPLOYEE.namespace.logout_path
    header = (
        "<header><strong>Utility Portal</strong>"
        f"<span>{escape(principal.full_name or principal.username)} "
        f"{role_badge(principal)} "
        f'<a href="{logout}">Logout</a></span></header>'
    )
    main = f"<main><h1>{escape(title)}</h1>{content}</main>"
    return _document(title, header + '<div class="layout">' + sidebar(principal, path) + main + "</div>")


def permissions_list(permissions: PermissionSet) -> str:
    granted = [name for name, enabled in permissions.to_dict().items() if enabled]
    if not granted:
        return "<p>No business permissions.</p>"
    items = "".join(f"<li>{escape(name)}</li>" for name in granted)
    return f'<ul class="permissions">{items}</ul>'


def dashboard_content(principal: EmployeePrincipal, permissions: PermissionSet) -> str:
    return (
        f"<p>Welcome back, {escape(principal.first_name or principal.username)}.</p>"
        "<h2>Your permissions</h2>"
        f"{permissions_list(permissions)}"
    )


def section_content(title: str) -> str:
    return f'<section class="section"><p>{escape(title)} workspace.</p></section>'


def login_page(
    kind: PrincipalKind,
    *,
    error: Optional[str] = None,
    identifier: str = "",
) -> str:
    ns = kind.namespace
    if kind == PrincipalKind.EMPLOYEE:
        title = "Employee Login"
        field = (
            '<label>Username or email<input type="text" name="username" '
            f'value="{escape(identifier)}" required autofocus></label>'
        )
        other = '<p><a href="/auth/customer-login">Customer login</a></p>'
    else:
        title = "Customer Login"
        field = (
            '<label>Email<input type="email" name="email" '
            f'value="{escape(identifier)}" required autofocus></label>'
        )
        other = '<p><a href="/login">Employee login</a></p>'

    error_html = f'<p class="error" role="alert">{escape(error)}</p>' if error else ""
    form = (
        f'<form method="post" action="{ns.login_path}">'
        f"{field}"
        '<label>Password<input type="password" name="password" required></label>'
        '<label><input type="checkbox" name="remember" value="true"> Remember me</label>'
        '<p><button type="submit">Sign in</button></p>'
        "</form>"
    )
    return _document(
        title, f'<div class="card"><h1>{title}</h1>{error_html}{form}{other}</div>'
    )


def customer_dashboard_page(principal: CustomerPrincipal) -> str:
    logout = PrincipalKind.CUSTOMER.namespace.logout_path
    data = principal.to_payload()
    rows = "".join(
        f"<tr><th>{escape(label)}</th><td>{escape(str(data.get(key) or '-'))}</td></tr>"
        for label, key in (
            ("Email", "email"),
            ("Phone", "phoneNumber"),
            ("Address", "address"),
        )
    )
    name = f"{principal.first_name} {principal.last_name}".strip() or principal.email
    body = (
        "<header><strong>Utility Portal</strong>"
        f'<span>{escape(name)} <a href="{logout}">Logout</a></span></header>'
        f"<main><h1>My Account</h1><p>Welcome, {escape(name)}.</p>"
        f'<table class="profile">{rows}</table></main>'
    )
    return _document("My Account", body)


def unavailable_page(retry_path: str) -> str:
    body = (
        '<div class="card"><h1>Service unavailable</h1>'
        "<p>We could not verify your session right now.</p>"
        f'<p><a href="{escape(retry_path)}">Try again</a></p></div>'
    )
    return _document("Service unavailable", body)
