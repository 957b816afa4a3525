"""
Centralized error handling for the authentication service.
Provides consistent error responses, logging, and HTTP status codes across all services.
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime

from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class ServiceErrorCode:
    """Standard error codes for services"""

    # Validation
    INVALID_INPUT = "INVALID_INPUT"
    CONFLICT = "CONFLICT"

    # Authentication
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
    INVALID_TOKEN = "INVALID_TOKEN"
    NOT_FOUND = "NOT_FOUND"

    # System
    STORE_ERROR = "STORE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(Exception):
    """
    Standardized service error for internal use.
    Gets converted to proper HTTP response by error handler.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.context = context or {}
        super().__init__(message)


class ErrorResponseBuilder:
    """Builds standardized error responses"""

    @staticmethod
    def build_error_response(
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build standardized error response"""

        response = {
            "success": False,
            "error": {
                "code": error_code,
                "message": message,
                "timestamp": datetime.utcnow().isoformat() + "Z"
            }
        }

        if details:
            response["error"]["details"] = details

        if request_id:
            response["error"]["request_id"] = request_id

        return response

    @staticmethod
    def build_validation_error_response(
        validation_errors: list,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build validation error response"""

        return ErrorResponseBuilder.build_error_response(
            error_code=ServiceErrorCode.INVALID_INPUT,
            message="Validation failed",
            details={
                "validation_errors": validation_errors
            },
            request_id=request_id
        )


def _request_context(request: Request) -> Dict[str, Any]:
    """Correlation fields attached to every error log line"""
    return {
        "request_id": getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown"),
        "path": request.url.path,
        "method": request.method
    }


class GlobalErrorHandler:
    """Turns exceptions escaping the routes into the JSON error envelope"""

    @staticmethod
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Domain errors: expected ones log as warnings, store failures as errors"""
        context = _request_context(request)
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Service error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "context": exc.context,
                **context
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponseBuilder.build_error_response(
                error_code=exc.code,
                message=exc.message,
                details=exc.details,
                request_id=context["request_id"]
            )
        )

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Request bodies that do not match the DTO schema"""
        context = _request_context(request)
        validation_errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "input": error.get("input")
            }
            for error in exc.errors()
        ]

        logger.warning(
            f"Validation error: {len(validation_errors)} errors",
            extra={"validation_errors": validation_errors, **context}
        )

        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(ErrorResponseBuilder.build_validation_error_response(
                validation_errors=validation_errors,
                request_id=context["request_id"]
            ))
        )

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything else is a 500; internals are only shown in DEBUG"""
        context = _request_context(request)
        logger.error(
            f"Unexpected error: {type(exc).__name__}",
            extra={
                "error_type": type(exc).__name__,
                "error_message": str(exc),
                **context
            },
            exc_info=True
        )

        if settings.DEBUG:
            message = f"Internal error: {str(exc)}"
            details = {"traceback": traceback.format_exc()}
        else:
            message = "An unexpected error occurred. Please try again."
            details = {}

        return JSONResponse(
            status_code=500,
            content=ErrorResponseBuilder.build_error_response(
                error_code=ServiceErrorCode.INTERNAL_ERROR,
                message=message,
                details=details,
                request_id=context["request_id"]
            )
        )
