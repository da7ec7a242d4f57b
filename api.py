"""
api.py

WHAT THIS FILE IS FOR
---------------------
This module defines the FastAPI application for the Gitea Status Relay.

It is responsible for:
- Building the app via create_app() with an explicitly constructed
  BuildStatusService (stored on app.state, injected into handlers)
- Registering middleware for:
    - Correlation ID propagation (X-Correlation-Id)
    - Request logging (method, path, status, duration)
- Rendering framework HTTP errors (404 / 405) as JSON
- Exposing HTTP endpoints:
    - GET /status?owner=<owner>&repo=<repo>
    - GET /health and /healthz
- Running the service under uvicorn (serve())

RESPONSE CONTRACT
-----------------
GET /status always answers application/json with a BuildStatusResult:

    {"owner", "repository", "branch", "state", "symbol"[, "error"]}

HTTP status is derived from the Gitea state on success
(200/202/204/417/500), 400 for missing parameters, and 500 for any
upstream failure. Other methods on /status get 405.

DESIGN INTENT
-------------
This file contains ONLY the HTTP layer:
- app construction
- routing
- middleware
- exception rendering

It must NOT contain:
- Gitea API logic (functions/orchestrator/gitea_client.py)
- state mapping (functions/orchestrator/status_normalizer.py)
- orchestration rules (functions/orchestrator/build_status_service.py)
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from functions.orchestrator.build_status_service import BuildStatusService
from functions.orchestrator.gitea_client import GiteaClient
from functions.utils.http_client import HttpTransport, HttpxTransport
from functions.utils.logging_config import configure_logging
from functions.utils.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"

# "unknown" maps to 204, which HTTP sends without a body; the result is still logged
NO_CONTENT_STATUS = 204


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _get_or_create_correlation_id(request: Request) -> str:
    incoming = request.headers.get(CORRELATION_HEADER)
    return incoming.strip() if incoming and incoming.strip() else f"corr_{uuid.uuid4().hex}"


def get_build_status_service(request: Request) -> BuildStatusService:
    return request.app.state.build_status_service


# -------------------------------------------------------------------
# App factory
# -------------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[HttpTransport] = None,
) -> FastAPI:
    """
    Build the application.

    - settings: defaults to get_settings() (env + parameters.yaml)
    - transport: defaults to an HttpxTransport owned (and closed) by the app
    """
    settings = settings or get_settings()
    if not settings.gitea_url or not settings.token:
        raise ValueError("gitea_url and token are required")

    owned_transport: Optional[HttpxTransport] = None
    if transport is None:
        owned_transport = HttpxTransport(timeout_seconds=settings.http_timeout_seconds)
        transport = owned_transport

    client = GiteaClient(
        base_url=str(settings.gitea_url),
        token=settings.token.get_secret_value(),
        transport=transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owned_transport is not None:
            await owned_transport.aclose()

    app = FastAPI(
        title="Gitea Status Relay",
        version="1.0.0",
        description="Republishes the commit status of a Gitea repository's default branch.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.build_status_service = BuildStatusService(client)

    # ---------------------------------------------------------------
    # Middleware (last registered runs first)
    # ---------------------------------------------------------------
    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = _get_or_create_correlation_id(request)
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    # ---------------------------------------------------------------
    # Exception handlers
    # ---------------------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            "http_exception",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            detail=str(exc.detail),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    # ---------------------------------------------------------------
    # Endpoints
    # ---------------------------------------------------------------
    @app.get("/healthz")
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/status")
    async def build_status(
        owner: Optional[str] = Query(default=None),
        repo: Optional[str] = Query(default=None),
        service: BuildStatusService = Depends(get_build_status_service),
    ) -> Response:
        outcome = await service.resolve(owner, repo)
        if outcome.http_status == NO_CONTENT_STATUS:
            return Response(status_code=outcome.http_status, media_type="application/json")
        return JSONResponse(status_code=outcome.http_status, content=outcome.result.to_payload())

    return app


def serve() -> None:
    """Console entrypoint: load settings, configure logging, run uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("service_starting", port=settings.port, gitea_url=str(settings.gitea_url))
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    serve()
