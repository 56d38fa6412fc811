"""
FastAPI Key Wrapper Application Factory
=======================================

This is the main entry point for the wrapper service that sits between
OpenAI API clients and the upstream AI gateway.

Architecture:
    Client (dummy key) → Key Wrapper (this service) → AI Gateway (real key) → OpenAI

Routers:
    - /v1/*         : Forwarded to the AI gateway after validation
    - everything else: Rejected with unknown_url

Environment Variables:
    - AI_GATEWAY_ENDPOINT_URL: Upstream gateway base URL
    - DUMMY_WRAPPER_KEY: Key clients present instead of the real one
    - REAL_OPENAI_KEY: Key forwarded upstream
    - UPSTREAM_TIMEOUT_SECONDS: Upstream timeout (default: 600, 0 disables)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (default: no CORS)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn key_wrapper.app.main:app --reload --host 0.0.0.0 --port 8787

    Production:
        uvicorn key_wrapper.app.main:app --host 0.0.0.0 --port 8787 --workers 4

    Installed console script:
        openai-key-wrapper
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from key_wrapper.app.config import Settings, get_settings, validate_configuration
from key_wrapper.app.models import ErrorCode, WrapperError, error_response
from key_wrapper.app.proxy import proxy_router


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


class AppState:
    """
    Application state container.

    Holds the settings override and the pooled upstream HTTP client.
    No per-request state lives here.
    """
    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.http_client = http_client
        self.owns_http_client = http_client is None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Report configuration problems (requests still get per-code errors)
        - Create the pooled upstream HTTP client unless one was injected

    Shutdown:
        - Close the upstream HTTP client if this app created it
    """
    app_state: AppState = app.state.app_state
    settings = app_state.settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("key_wrapper.main")

    status = validate_configuration(settings)
    for error in status["errors"]:
        logger.warning(f"Configuration error: {error}")
    for warning in status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")

    if app_state.http_client is None:
        app_state.http_client = httpx.AsyncClient(timeout=settings.upstream_timeout)
        app_state.owns_http_client = True

    logger.info(
        "Key wrapper started",
        extra={
            "service": "key-wrapper",
            "config_valid": status["valid"],
        }
    )

    yield

    logger.info("Shutting down key wrapper")
    if app_state.owns_http_client and app_state.http_client is not None:
        await app_state.http_client.aclose()
        app_state.http_client = None
        logger.info("Closed upstream HTTP client")


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Settings to use instead of the environment (tests)
        http_client: Upstream client to use instead of creating one (tests)

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="OpenAI Key Wrapper",
        description="Swaps a dummy API key for the real one and forwards to an AI gateway",
        version="1.0.0",
        lifespan=lifespan,
        # Every path belongs to the proxy
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    if settings is not None:
        app.dependency_overrides[get_settings] = lambda: settings
    effective_settings = settings or get_settings()

    if effective_settings.allowed_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=effective_settings.allowed_origins_list,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["*"]
        )

    app.include_router(proxy_router)

    @app.exception_handler(WrapperError)
    async def wrapper_error_handler(request: Request, exc: WrapperError) -> JSONResponse:
        """Render a wrapper error as the flat JSON error record."""
        logger = logging.getLogger("key_wrapper.main")
        logger.warning(
            f"Request rejected: {exc.code.value}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "code": exc.code.value,
                "status_code": exc.status_code,
            }
        )
        return error_response(exc.code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Anything escaping the proxy happened while forwarding, so it is
        reported as a forwarding failure.
        """
        logger = logging.getLogger("key_wrapper.main")
        logger.error(
            f"Unhandled exception: {type(exc).__name__}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )
        return error_response(ErrorCode.FORWARDING_FAILED)

    app.state.app_state = AppState(settings, http_client)
    return app


app = create_app()


def run() -> None:
    """Console script entry point; binds to WRAPPER_HOST:WRAPPER_PORT."""
    settings = get_settings()
    uvicorn.run(
        "key_wrapper.app.main:app",
        host=settings.WRAPPER_HOST,
        port=settings.WRAPPER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
