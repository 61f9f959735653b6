"""
Merchant Console API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from core.config import get_settings
from merchant_api import MerchantService, SessionExpiredError, WriteOperationError

settings = get_settings()
logger = structlog.get_logger()

# Routes that stay reachable with an expired credential
SESSION_EXEMPT_PREFIXES = ("/api/v1/session", "/health", "/docs", "/openapi.json")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Merchant Console API starting up", version=settings.app_version)
    yield
    await app.state.merchant_service.aclose()
    logger.info("Merchant Console API shutting down")


def create_app(service: MerchantService | None = None) -> FastAPI:
    """Build the API around one merchant service (and its session)."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Cluster-routed merchant administration console backend",
        lifespan=lifespan,
    )
    app.state.merchant_service = service or MerchantService(settings=settings)

    @app.middleware("http")
    async def expired_session_middleware(request: Request, call_next):
        """
        Answer 401 once the platform credential has expired, including
        when a read inside this request was the one that hit the 401.
        """
        path = request.scope.get("path", "")
        session = app.state.merchant_service.session
        exempt = path.startswith(SESSION_EXEMPT_PREFIXES)
        if not exempt and session.is_expired:
            return _session_expired_response()

        response = await call_next(request)
        if not exempt and session.is_expired and response.status_code < 400:
            logger.warning("api.session_expired_during_request", path=path)
            return _session_expired_response()
        return response

    @app.exception_handler(SessionExpiredError)
    async def session_expired_handler(request: Request, exc: SessionExpiredError):
        return _session_expired_response()

    @app.exception_handler(WriteOperationError)
    async def write_failed_handler(request: Request, exc: WriteOperationError):
        return JSONResponse(
            status_code=502,
            content={
                "detail": str(exc),
                "operation": exc.operation,
                "upstream_status": exc.status_code,
            },
        )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.v1.routers import artifacts, clusters, engagements, merchants, prompts, session, users

    app.include_router(session.router)
    app.include_router(clusters.router)
    app.include_router(merchants.router)
    app.include_router(prompts.router)
    app.include_router(artifacts.router)
    app.include_router(engagements.router)
    app.include_router(users.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "version": settings.app_version}

    return app


def _session_expired_response() -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": "Session expired; sign in again"},
    )


app = create_app()
