"""HTTP API for a scanner worker.

Usage:
    uvicorn token_scanner.api.app:create_app --factory --port 3000

Endpoints:
    POST /scan        - Scan token addresses (API key required)
    GET  /health      - Health check with config and rate-limit status
    GET  /rate-limit  - Rate limiter status
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.config import ScannerConfig
from ..providers.rate_limiter import RateLimiter
from ..resolution.token_resolver import build_resolver
from ..scanner.batch_scanner import BatchScanner
from .auth import ApiKeyAuth

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _rate_limits(rate_limiter: RateLimiter) -> dict[str, Any]:
    return {
        key: status.model_dump(by_alias=True)
        for key, status in rate_limiter.status_all().items()
    }


def create_app(
    config: ScannerConfig | None = None,
    scanner: BatchScanner | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """
    Build the worker application.

    Args:
        config: Settings (loaded from the environment when omitted)
        scanner: Pre-built scanner; when omitted one is wired on startup
                 around a shared httpx client
        rate_limiter: Limiter shared with the scanner's providers

    Returns:
        FastAPI application
    """
    config = config or ScannerConfig.load()
    rate_limiter = rate_limiter or RateLimiter(
        limit=config.rate_limit,
        window_ms=config.rate_window_ms,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.scanner is not None:
            yield
            return
        async with httpx.AsyncClient(
            limits=httpx.Limits(max_connections=config.concurrency_limit),
        ) as client:
            resolver = build_resolver(config, client, rate_limiter)
            app.state.scanner = BatchScanner(
                resolver,
                concurrency_limit=config.concurrency_limit,
                max_tokens=config.max_tokens_per_request,
            )
            logger.info(
                f"Scanner ready: concurrency={config.concurrency_limit}, "
                f"timeout={config.request_timeout_ms}ms, retries={config.retry_attempts}"
            )
            yield
            app.state.scanner = None

    app = FastAPI(title="Token Market Data Scanner", lifespan=lifespan)
    app.state.config = config
    app.state.scanner = scanner
    app.state.rate_limiter = rate_limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    require_api_key = ApiKeyAuth(config)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown routes and unsupported methods share one envelope
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "Endpoint not found",
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )

    @app.post("/scan", dependencies=[Depends(require_api_key)])
    async def scan(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            body = None
        tokens = body.get("tokens") if isinstance(body, dict) else None

        scanner: BatchScanner = request.app.state.scanner
        validation = scanner.validate(tokens)
        if not validation.valid:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": validation.error},
            )

        result = await scanner.scan(tokens)
        return JSONResponse(
            content={
                "success": True,
                "data": [record.to_wire() for record in result.records],
                "meta": result.meta.model_dump(by_alias=True),
            }
        )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "success": True,
            "status": "healthy",
            "timestamp": _timestamp(),
            "config": config.summary(),
            "rateLimits": _rate_limits(rate_limiter),
        }

    @app.get("/rate-limit")
    async def rate_limit() -> dict[str, Any]:
        return {
            "success": True,
            "timestamp": _timestamp(),
            "rateLimits": _rate_limits(rate_limiter),
        }

    return app
