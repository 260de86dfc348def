"""FastAPI application entry point for the access registry."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accessreg.settings import settings
from accessreg.core import errors
from accessreg.core.db import init_db
from accessreg.core.registry import AccessRegistry
from accessreg.util.logging import get_logger, setup_logging

logger = get_logger(__name__)

_STATUS_BY_CATEGORY = {
    errors.VALIDATION: status.HTTP_400_BAD_REQUEST,
    errors.CONFLICT: status.HTTP_409_CONFLICT,
    errors.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    errors.TEMPORAL: status.HTTP_410_GONE,
    errors.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def _deploy_from_settings(registry: AccessRegistry) -> None:
    """Deploy the registry with ``OWNER_PRINCIPAL`` if it is not deployed yet."""
    if registry.is_deployed():
        owner = registry.get_owner()
        if settings.OWNER_PRINCIPAL and settings.OWNER_PRINCIPAL != owner:
            logger.warning(
                "OWNER_PRINCIPAL %s ignored: registry already owned by %s",
                settings.OWNER_PRINCIPAL,
                owner,
            )
        return
    if not settings.OWNER_PRINCIPAL:
        logger.warning("Registry not deployed; run accessreg-bootstrap or set OWNER_PRINCIPAL")
        return
    registry.deploy(settings.OWNER_PRINCIPAL)


async def registry_error_handler(request: Request, exc: errors.RegistryError) -> JSONResponse:
    return JSONResponse(
        status_code=_STATUS_BY_CATEGORY.get(exc.category, status.HTTP_400_BAD_REQUEST),
        content={"detail": exc.message, "code": exc.code},
    )


def create_app(registry: AccessRegistry | None = None) -> FastAPI:
    """Build the application.

    With no *registry* the lifespan creates the tables on the configured
    database and deploys from settings; a supplied registry is used as-is.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if app.state.registry is None:
            setup_logging()
            init_db()
            app.state.registry = AccessRegistry()
            _deploy_from_settings(app.state.registry)
        yield

    app = FastAPI(
        title="Access Registry",
        description="Binds principals to verified identities and time-bounded access grants.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry

    # -- CORS -----------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(errors.RegistryError, registry_error_handler)

    # -- Routers --------------------------------------------------------------

    from accessreg.identities.routes import router as identities_router
    from accessreg.access_requests.routes import router as access_requests_router
    from accessreg.verifiers.routes import router as verifiers_router
    from accessreg.registry.routes import router as registry_router

    app.include_router(identities_router)
    app.include_router(access_requests_router)
    app.include_router(verifiers_router)
    app.include_router(registry_router)

    # -- Health check ---------------------------------------------------------

    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        """Simple liveness check."""
        return {"status": "healthy"}

    return app


app = create_app()


def run() -> None:
    """Entry point for the ``accessreg`` console script."""
    import uvicorn

    uvicorn.run("accessreg.main:app", host="0.0.0.0", port=8000)
