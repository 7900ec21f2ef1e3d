"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context, security headers)
  - Mount the auth API under /api/v1 and the server-rendered portal at /
  - Expose health check endpoint

Collaborators:
  - FastAPI: ASGI web framework
  - CORSMiddleware: Cross-Origin Resource Sharing handler
  - RequestContextMiddleware: Request ID and logging context
  - auth_routes.router: employee/customer authentication endpoints
  - portal.pages.router: login, logout and guarded pages

Notes:
  - Middleware order matters: RequestContext → SecurityHeaders → CORS → routes
  - /healthz follows Kubernetes health check convention
  - Settings are validated at startup (lifespan), and again by create_app()
    because CORS needs the origins list
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..application.dev_seed import ensure_dev_demo_accounts
from ..container import get_customer_repository, get_employee_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import configure_logging, logger
from ..crosscutting.middleware import RequestContextMiddleware
from ..crosscutting.security import SecurityHeadersMiddleware
from ..identity.auth_users import hash_password
from ..identity.policy import validate_registry
from ..portal.pages import router as portal_router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates the role registry and seeds demo data."""
    settings = get_settings()

    validate_registry()

    try:
        ensure_dev_demo_accounts(
            settings,
            employee_repo=get_employee_repository(),
            customer_repo=get_customer_repository(),
            password_hasher=hash_password,
        )
    except (RuntimeError, ValueError) as e:
        logger.error("Startup failed", extra={"error": str(e)})
        raise

    logger.info(
        "Utility Portal starting up",
        extra={
            "app_env": settings.app_env,
            "in_process_api": not settings.api_base_url,
            "dev_seed_demo": settings.dev_seed_demo,
            "pid": os.getpid(),
        },
    )

    yield

    logger.info("Utility Portal shutting down")


def create_app() -> FastAPI:
    """Build the ASGI app (API + portal)."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    # R: Create FastAPI application instance with API metadata
    app = FastAPI(
        title="Utility Portal",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Employee authentication (JWT)"},
            {"name": "customer", "description": "Customer authentication (JWT)"},
        ],
    )

    # R: Middleware order (bottom = first to execute)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    # R: API under /api/v1, portal pages at the root
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(portal_router)

    register_exception_handlers(app)

    @app.get("/healthz", include_in_schema=False)
    def healthz(request: Request):
        """Liveness check (no external dependencies to check)."""
        return {
            "ok": True,
            "version": __version__,
            "request_id": getattr(request.state, "request_id", None),
        }

    return app


app = create_app()
