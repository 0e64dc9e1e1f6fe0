"""Global exception handlers — map gateway errors to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
import structlog

from ai_gateway.domain.exceptions import (
    AllProvidersFailedError,
    ConfigurationError,
    GatewayError,
    QuotaExceededError,
    RegistryUnavailableError,
)

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all error→HTTP mappings."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ConfigurationError)
    async def handle_configuration(request: Request, exc: ConfigurationError) -> ORJSONResponse:
        return ORJSONResponse(status_code=503, content={"error": exc.message})

    @app.exception_handler(AllProvidersFailedError)
    async def handle_all_failed(request: Request, exc: AllProvidersFailedError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=500,
            content={"error": "All AI providers failed", "lastError": exc.last_error},
        )

    @app.exception_handler(QuotaExceededError)
    async def handle_quota(request: Request, exc: QuotaExceededError) -> ORJSONResponse:
        return ORJSONResponse(status_code=429, content={"error": exc.message})

    @app.exception_handler(RegistryUnavailableError)
    async def handle_registry(request: Request, exc: RegistryUnavailableError) -> ORJSONResponse:
        logger.error("registry_unavailable_http", message=exc.message)
        return ORJSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(GatewayError)
    async def handle_gateway(request: Request, exc: GatewayError) -> ORJSONResponse:
        logger.error("gateway_error_http", code=exc.code, message=exc.message)
        return ORJSONResponse(
            status_code=500,
            content={"error": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_exception", error=str(exc))
        return ORJSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "detail": str(exc)},
        )
