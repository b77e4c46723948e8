"""
Main FastAPI application entry point.

``create_app`` builds a fully wired application for one configuration:
logging, database, decision engine, management services, the
authorization middleware and the v1 routes. Run it with::

    uvicorn authz.main:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authz import __version__
from authz.api.v1.router import api_router
from authz.config import AppConfig, get_config
from authz.config.logging import get_logger, setup_logging
from authz.container import ServiceContainer, build_container
from authz.core.exceptions import (
    AuthzError,
    ConflictError,
    ForbiddenOperation,
    InvalidPrincipal,
    NotFoundError,
    ValidationError,
)
from authz.db.seed import seed_database
from authz.middleware.authorization import AuthorizationMiddleware

logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ForbiddenOperation: status.HTTP_403_FORBIDDEN,
    InvalidPrincipal: status.HTTP_401_UNAUTHORIZED,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    container: ServiceContainer = app.state.container

    container.database.create_all()
    seed_database(
        container.database,
        container.config.seed,
        super_admin_role=container.config.security.super_admin_role,
    )
    logger.info("Authorization service started", extra={"version": __version__})

    yield

    container.database.dispose()
    logger.info("Authorization service stopped")


async def authz_error_handler(request: Request, exc: AuthzError) -> JSONResponse:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": f'Basic realm="{request.app.state.container.config.security.realm}"'}

    return JSONResponse(status_code=status_code, content={"message": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"Error: {field}: {first.get('msg')}" if field else "Error: Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": message,
            "errors": [{"loc": list(error.get("loc", ())), "msg": error.get("msg")} for error in errors],
        },
    )


def create_app(config: Optional[AppConfig] = None, configure_logging: bool = True) -> FastAPI:
    """
    Build the application.

    Args:
        config: Configuration to use. Loaded from YAML when omitted.
        configure_logging: Install the logging configuration from ``config``.

    Returns:
        The FastAPI application, with its ``ServiceContainer`` on
        ``app.state.container``.
    """
    if config is None:
        config = get_config()

    if configure_logging:
        setup_logging(
            log_level=config.logging.level,
            log_format=config.logging.format,
            log_file=config.logging.file,
            enable_access_log=config.server.access_log,
        )

    container = build_container(config)

    app = FastAPI(
        title="Authz Service",
        description="Dynamic, database-driven endpoint authorization",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config
    app.state.container = container

    app.add_exception_handler(AuthzError, authz_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    security = config.security
    app.add_middleware(
        AuthorizationMiddleware,
        engine=container.engine,
        authenticator=container.authenticator,
        public_paths=security.public_paths,
        anonymous_username=security.anonymous_username,
        realm=security.realm,
    )

    app.include_router(api_router)
    return app


def main() -> None:
    """Run the service with uvicorn using the loaded server settings."""
    config = get_config()
    uvicorn.run(
        "authz.main:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        workers=config.server.workers,
        reload=config.server.reload,
        log_level=config.server.log_level,
        access_log=config.server.access_log,
    )


if __name__ == "__main__":
    main()
