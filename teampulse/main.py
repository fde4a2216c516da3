"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from teampulse.core.config import settings
from teampulse.core.middleware import setup_middleware
from teampulse.core.rate_limiter import limiter
from teampulse.core.exceptions import TeamPulseError
from teampulse.services.oidc_service import OIDCProvider, build_provider
from teampulse.services.session_service import SessionStore
from teampulse.storage import Storage, build_backends

from teampulse.api.auth import router as auth_router
from teampulse.api.oidc import router as oidc_router
from teampulse.api.progress import router as progress_router
from teampulse.api.projects import router as projects_router
from teampulse.api.tasks import router as tasks_router
from teampulse.api.teams import router as teams_router
from teampulse.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("teampulse")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)
    try:
        if app.state.storage.ping():
            logger.info("Storage backend reachable")
    except Exception as e:
        logger.warning("Storage backend not available: %s", e)
    if app.state.oidc_provider is None:
        logger.info("Federated sign-in disabled")

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as ``{"message": ...}``."""

    @app.exception_handler(TeamPulseError)
    async def teampulse_exception_handler(request: Request, exc: TeamPulseError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method,
                         request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"message": f"Too many requests: {exc.detail}"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    storage: Optional[Storage] = None,
    session_store: Optional[SessionStore] = None,
    oidc_provider: Optional[OIDCProvider] = None,
) -> FastAPI:
    """Build the API around the given backends, defaulting to the configured ones."""
    if storage is None or session_store is None:
        default_storage, default_store = build_backends()
        storage = storage or default_storage
        session_store = session_store or default_store
    if oidc_provider is None:
        oidc_provider = build_provider()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Team productivity tracking: daily updates, goals, projects and tasks",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.storage = storage
    app.state.session_store = session_store
    app.state.oidc_provider = oidc_provider

    # Middleware
    setup_middleware(app)

    # Rate limiting
    app.state.limiter = limiter

    register_exception_handlers(app)

    # Register routers
    app.include_router(auth_router, prefix="/api")
    if oidc_provider is not None:
        app.include_router(oidc_router, prefix="/api")
    app.include_router(progress_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(tasks_router, prefix="/api")
    app.include_router(teams_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    @app.get("/api/health")
    async def health():
        """Quick health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
