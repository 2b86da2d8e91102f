"""
Async Patterns Demo Server
==========================
FastAPI application exposing one endpoint per asynchronous idiom.

Launch:
    python -m asyncdemo start            # Via CLI
    uvicorn --factory asyncdemo.server:create_app   # Any ASGI server

Endpoints:
    GET  /          → Service description and endpoint list
    GET  /callback  → Delayed fetch consumed through a callback
    GET  /promise   → Delayed fetch consumed as a future (may fail)
    GET  /async     → Delayed fetch awaited as a coroutine (may fail)
    GET  /file      → Write-then-read round trip on sample.txt
    GET  /chain     → login → fetch_data → render, one after another

Unknown paths get a 404 envelope; uncaught errors get a 500 envelope.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from asyncdemo import __version__
from asyncdemo.config import ServerConfig
from asyncdemo.handlers import AVAILABLE_ENDPOINTS, ROUTE_SUMMARIES, DemoService, EndpointFailure
from asyncdemo.models import ErrorEnvelope, NotFoundEnvelope
from asyncdemo.patterns import FailurePolicy

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  Routes
# ─────────────────────────────────────────────────────────────

router = APIRouter()


def get_service(request: Request) -> DemoService:
    return request.app.state.service


@router.get("/")
async def index(service: DemoService = Depends(get_service)):
    """Describe the service and list the demo endpoints."""
    return JSONResponse(service.describe().to_json())


@router.get("/callback")
async def callback_demo(service: DemoService = Depends(get_service)):
    envelope = await service.callback()
    return JSONResponse(envelope.to_json())


@router.get("/promise")
async def promise_demo(service: DemoService = Depends(get_service)):
    envelope = await service.promise()
    return JSONResponse(envelope.to_json())


@router.get("/async")
async def async_demo(service: DemoService = Depends(get_service)):
    envelope = await service.async_await()
    return JSONResponse(envelope.to_json())


@router.get("/file")
async def file_demo(service: DemoService = Depends(get_service)):
    envelope = await service.file_roundtrip()
    return JSONResponse(envelope.to_json())


@router.get("/chain")
async def chain_demo(service: DemoService = Depends(get_service)):
    envelope = await service.chain()
    return JSONResponse(envelope.to_json())


# ─────────────────────────────────────────────────────────────
#  Error Envelopes
# ─────────────────────────────────────────────────────────────

async def endpoint_failure_handler(request: Request, exc: EndpointFailure):
    body = ErrorEnvelope(error=exc.error, message=exc.message)
    return JSONResponse(body.to_json(), status_code=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Method mismatches on known paths are reported the same way as unknown paths.
    if exc.status_code in (404, 405):
        body = NotFoundEnvelope(
            error="Endpoint not found",
            message=f"The endpoint {request.url.path} was not found",
            available_endpoints=list(AVAILABLE_ENDPOINTS),
        )
        return JSONResponse(body.to_json(), status_code=404)
    body = ErrorEnvelope(error="Request failed", message=str(exc.detail))
    return JSONResponse(body.to_json(), status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Global error handler: %s", exc)
    body = ErrorEnvelope(error="Internal server error", message=str(exc))
    return JSONResponse(body.to_json(), status_code=500)


# ─────────────────────────────────────────────────────────────
#  App Factory
# ─────────────────────────────────────────────────────────────

def configure_logging(log_level: str = "info"):
    """Send the handlers' log lines to stderr. No-op if logging is already set up."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def create_app(config: Optional[ServerConfig] = None, policy: Optional[FailurePolicy] = None) -> FastAPI:
    """Build the application.

    `policy` overrides the random failure policy built from the config,
    which lets tests force /promise and /async to succeed or fail.
    """
    config = config or ServerConfig.from_env()
    configure_logging()

    # No trailing-slash redirects: /callback/ is an unknown path whether or
    # not the static directory is mounted.
    app = FastAPI(title="Async Patterns Demo", version=__version__, redirect_slashes=False)
    app.state.config = config
    app.state.service = DemoService.from_config(config, policy=policy)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info("%s %s -> %d (%.0f ms)", request.method, request.url.path,
                    response.status_code, elapsed_ms)
        return response

    app.add_exception_handler(EndpointFailure, endpoint_failure_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)

    # Mounted last so the API routes above take precedence over files.
    if os.path.isdir(config.public_dir):
        app.mount("/", StaticFiles(directory=config.public_dir), name="public")
    else:
        logger.debug("Static directory %s not found; not serving static files", config.public_dir)

    return app


# ─────────────────────────────────────────────────────────────
#  Startup
# ─────────────────────────────────────────────────────────────

def print_banner(config: ServerConfig):
    host = "localhost" if config.host in ("0.0.0.0", "") else config.host
    print("\n◬ ─── CPAN 212 Lab 2 server ───")
    print(f"  http://{host}:{config.port}")
    print("  Available endpoints:")
    for path, summary in ROUTE_SUMMARIES:
        print(f"    GET {path:<9} - {summary}")
    print("  Press Ctrl+C to stop\n")


def run_server(config: Optional[ServerConfig] = None, log_level: str = "info"):
    """Launch the demo server with uvicorn."""
    import uvicorn

    config = config or ServerConfig.from_env()
    configure_logging(log_level)

    print_banner(config)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level="warning")
    print("\n◬ Server shutting down gracefully...")


if __name__ == "__main__":
    run_server()
