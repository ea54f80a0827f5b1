"""
FastAPI application entry point.

    uvicorn api.main:app --port 3000
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.middleware import (
    ApiKeyMiddleware,
    BodySizeLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from api.models.responses import HealthResponse
from api.routers import databases, procedures
from config.logging_utils import configure_logging
from config.settings import Config
from core.access import AccessGate, Whitelist
from core.errors import GatewayError
from core.gateway import QueryGateway
from db.connection import DatabaseClient

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "UnauthorizedDatabase": 403,
    "InvalidIdentifier": 400,
    "InvalidStatement": 400,
    "NotFound": 404,
    "UpstreamFailure": 500,
}


def build_gateway(config: Config, client=None) -> QueryGateway:
    """Wire the whitelist, access gate and database client together."""
    whitelist = Whitelist.from_names(config.gateway.allowed_databases)
    return QueryGateway(
        client=client if client is not None else DatabaseClient(config.db),
        gate=AccessGate(whitelist),
        row_cap=config.gateway.max_rows,
    )


def create_app(config: Optional[Config] = None, client=None) -> FastAPI:
    config = config or Config.load()
    configure_logging(config.gateway.log_level, config.gateway.log_dir)
    gateway = build_gateway(config, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        allowed = ", ".join(gateway.allowed_databases) or "NONE"
        logger.info("Query gateway started. Allowed databases: %s", allowed)
        if config.gateway.api_key is None:
            logger.warning("API_KEY is not set; every /api request will be rejected")
        yield
        close = getattr(gateway.client, "close", None)
        if callable(close):
            close()
        logger.info("Query gateway stopped")

    app = FastAPI(
        title="SQL Query Gateway",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.gateway = gateway

    # Last added is outermost: headers on every response, size check before auth
    app.add_middleware(ApiKeyMiddleware, api_key=config.gateway.api_key)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=config.gateway.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.gateway.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(databases.router)
    app.include_router(procedures.router)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(
            status_code=STATUS_BY_KIND.get(exc.kind, 500),
            content={"error": exc.kind, "message": exc.reason},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found"
            return JSONResponse(status_code=404, content={"error": "Not Found", "message": message})
        return JSONResponse(status_code=exc.status_code, content={"error": "HTTPException", "message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if config.gateway.development else "An unexpected error occurred"
        return JSONResponse(status_code=500, content={"error": "Internal Server Error", "message": message})

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            allowed_databases=list(gateway.allowed_databases),
        )

    return app


app = create_app()
