"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: Consistent error responses with proper status codes
HOW: FastAPI exception handlers for custom exceptions
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime

from ..llm.types import ProviderError, RouterError
from ..utils.exceptions import (
    CompletionBackendException,
    ConfigurationError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


async def router_error_handler(request: Request, exc: RouterError):
    """
    Handle RouterError.

    WHAT: No provider could start a stream
    WHY: The user has to start a daemon or configure a key
    HOW: Return 503 with the remediation hint
    """
    logger.error(f"No backend available: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": exc.kind.value,
            "message": exc.hint,
            "details": exc.to_dict(),
            "timestamp": datetime.now().isoformat()
        }
    )


async def provider_error_handler(request: Request, exc: ProviderError):
    """
    Handle ProviderError.

    WHAT: Provider failed after the stream had started
    WHY: Upstream contract violation or outage
    HOW: Return 502 bad gateway with the error kind
    """
    logger.error(f"Provider error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": f"LLM_{exc.kind.value}",
            "message": exc.message,
            "details": exc.to_dict(),
            "timestamp": datetime.now().isoformat()
        }
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload
    HOW: Return 400 with field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")

    # Clean up error details to be JSON serializable
    cleaned_errors = []
    for error in exc.errors():
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": cleaned_errors,
            "timestamp": datetime.now().isoformat()
        }
    )


async def backend_exception_handler(request: Request, exc: CompletionBackendException):
    """
    Handle CompletionBackendException.

    WHAT: Malformed request or misconfiguration
    WHY: Both fail loudly instead of being defaulted
    HOW: 500 for configuration errors, 400 otherwise
    """
    if isinstance(exc, ConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.error(f"Configuration error: {exc.code} - {exc.message}")
    else:
        status_code = status.HTTP_400_BAD_REQUEST
        logger.warning(f"Invalid request: {exc.code} - {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "details": exc.details,
            "timestamp": datetime.now().isoformat()
        }
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # LLM exceptions
    app.add_exception_handler(RouterError, router_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)

    # API exceptions
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(CompletionBackendException, backend_exception_handler)

    logger.info("Exception handlers registered")
