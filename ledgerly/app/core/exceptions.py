"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Every error leaves the API as {"error_code", "message", "details"}.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """
    Raised when a tenant-scoped lookup matches no row.

    The same response is returned whether the row does not exist or belongs
    to another user, so ids of other tenants cannot be discovered.
    """

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} not found or access denied.",
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Unauthorized. Please sign in to continue."):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class FeatureNotAvailableError(AppException):
    """Raised when the user's plan does not include a feature."""

    def __init__(self, feature: str, upgrade_required: Optional[str] = "pro"):
        super().__init__(
            message="This feature is not available on your current plan. Please upgrade to access.",
            error_code="ERR_PLAN_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"feature": feature, "upgrade_required": upgrade_required}
        )


class CustomerLimitExceededError(AppException):
    """Raised when creating a customer would exceed the plan's customer limit."""

    def __init__(self, plan: str, limit: int, used: int, upgrade_required: Optional[str] = None):
        super().__init__(
            message=f"Customer limit reached ({used}/{limit}). Please upgrade your plan to add more customers.",
            error_code="ERR_PLAN_002",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"plan": plan, "limit": limit, "used": used, "upgrade_required": upgrade_required}
        )


class InvalidRequestError(AppException):
    """Raised for request parameters that fail business validation."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_BAD_REQUEST",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    errors = jsonable_encoder(exc.errors())
    message = errors[0]["msg"] if errors else "Validation error"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": message,
            "details": {
                "errors": errors
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
