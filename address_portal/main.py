"""
Main FastAPI application for the Address Portal.

This module creates and configures the application with its middleware,
exception handlers, the shared address API client and the page routers.
"""

import os
import time
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.sessions import SessionMiddleware
import structlog

from address_portal.application.api.routes import addresses, health
from address_portal.application.models import AppConfig
from address_portal.application.templating import render
from address_portal.infrastructure.address_api import AddressApiService, create_http_client
from address_portal.infrastructure.logging.config import configure_logging
from address_portal.infrastructure.resilience import ResiliencePolicy
from address_portal.shared.exceptions import AddressPortalError, get_http_status_code, should_log_error

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def create_application(
    config: Optional[AppConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    policy: Optional[ResiliencePolicy] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration; read from the environment if omitted
        transport: Replacement HTTP transport for the address API client
        policy: Replacement resilience policy for the address API client

    Returns:
        Configured application
    """
    config = config or AppConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the HTTP client for the lifetime of the application."""
        logger.info("Starting Address Portal", api_base_url=config.api_base_url)

        client = create_http_client(config, transport=transport)
        app.state.address_service = AddressApiService(client, config.api_base_url, policy=policy)

        yield

        logger.info("Shutting down Address Portal")
        await client.aclose()

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        lifespan=lifespan
    )
    app.state.config = config

    setup_middleware(app, config)
    setup_exception_handlers(app, config)
    setup_routes(app)
    setup_prometheus_metrics(app)

    return app


def setup_middleware(app: FastAPI, config: AppConfig) -> None:
    """Configure application middleware."""

    # Signed cookie session carrying flash notices
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret_key,
        session_cookie="address_portal_session",
        https_only=config.session_https_only,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests with correlation IDs."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or f"req_{uuid4().hex[:12]}"
        request.state.correlation_id = correlation_id

        with structlog.contextvars.bound_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        ):
            start_time = time.perf_counter()
            logger.info("Request started")

            try:
                response = await call_next(request)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(
                    "Request failed",
                    error=str(e),
                    duration_ms=round(duration * 1000, 2)
                )
                raise

            response.headers[CORRELATION_HEADER] = correlation_id

            duration = time.perf_counter() - start_time
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )
            return response


def setup_exception_handlers(app: FastAPI, config: AppConfig) -> None:
    """Render an error page instead of a stack trace."""

    def error_page(request: Request, exc: Exception, status_code: int):
        context = {
            "correlation_id": getattr(request.state, "correlation_id", None),
            "status_code": status_code,
        }
        if config.is_development:
            context["diagnostics"] = {
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            }
        return render(request, "error.html", context, status_code=status_code)

    @app.exception_handler(AddressPortalError)
    async def address_portal_exception_handler(request: Request, exc: AddressPortalError):
        """Handle Address Portal custom exceptions."""
        status_code = get_http_status_code(exc)

        if should_log_error(exc):
            logger.error(
                "Address Portal error occurred",
                error_type=type(exc).__name__,
                error_message=exc.message,
                error_code=exc.error_code,
                status_code=status_code
            )

        return error_page(request, exc, status_code)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "Unexpected error occurred",
            error_type=type(exc).__name__,
            error_message=str(exc),
            request_method=request.method,
            request_url=str(request.url),
            exc_info=exc
        )

        return error_page(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


def setup_routes(app: FastAPI) -> None:
    """Setup application routes."""

    app.include_router(
        addresses.router,
        prefix="/addresses",
        tags=["Addresses"]
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"]
    )

    @app.get("/", include_in_schema=False)
    async def root(request: Request):
        """Send visitors to the address list."""
        return RedirectResponse(
            url=str(request.url_for("list_addresses")),
            status_code=status.HTTP_303_SEE_OTHER
        )


def setup_prometheus_metrics(app: FastAPI) -> None:
    """Setup Prometheus metrics collection, enabled by ENABLE_METRICS=true."""

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health"],
        env_var_name="ENABLE_METRICS",
        inprogress_name="address_portal_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


def app_factory() -> FastAPI:
    """Build the application from the environment with logging configured."""
    config = AppConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    return create_application(config)


def main() -> None:
    """Development server entry point."""
    import uvicorn

    uvicorn.run(
        "address_portal.main:app_factory",
        factory=True,
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
        log_config=None,  # Use our custom logging configuration
        access_log=False,  # Handled by our middleware
    )


if __name__ == "__main__":
    main()
