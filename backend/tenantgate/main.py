import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.engine import Engine

from tenantgate.api.main import api_router
from tenantgate.core.config import settings
from tenantgate.core.db import engine as default_engine
from tenantgate.core.gateway import (
    DatabaseClientCredentialLookup,
    Gateway,
    GatewayMiddleware,
    JsonSchemaValidator,
    JwtTokenVerifier,
    build_gateway_config,
)
from tenantgate.services import build_handler_registry

_logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


def build_gateway(engine: Engine) -> Gateway:
    """Wire the gateway once at startup: config, collaborators, handlers."""
    return Gateway(
        build_gateway_config(settings),
        token_verifier=JwtTokenVerifier(),
        credential_lookup=DatabaseClientCredentialLookup(engine),
        schema_validator=JsonSchemaValidator.from_directory(settings.SCHEMA_DIR),
        registry=build_handler_registry(engine),
    )


def create_app(engine: Engine | None = None) -> FastAPI:
    db_engine = engine if engine is not None else default_engine
    application = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        generate_unique_id_function=custom_generate_unique_id,
    )
    gateway = build_gateway(db_engine)
    application.state.engine = db_engine
    application.state.gateway = gateway

    # -----------------------------------------------------------------------
    # Catch-all for pass-through routes (the gateway handles its own)
    # -----------------------------------------------------------------------

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions: log and return 500 with safe message."""
        _logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    application.add_middleware(GatewayMiddleware, gateway=gateway)

    # Pass-through routes live outside the managed /api/v1/ prefix
    application.include_router(api_router, prefix="/api")
    return application


app = create_app()
