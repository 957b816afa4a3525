from typing import Any, Dict, Optional
from fastapi import status

from src.core.exceptions.handler import ServiceError, ServiceErrorCode


class ValidationError(ServiceError):
    """Malformed input, reported with the offending field"""

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        super().__init__(
            code=ServiceErrorCode.INVALID_INPUT,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field} if field else None,
        )
        self.field = field


class NotFoundOrExpiredError(ServiceError):
    """Challenge missing, in the wrong status, or past its expiry.

    The message never says which of those applied.
    """

    def __init__(self, status_code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(
            code=ServiceErrorCode.CHALLENGE_NOT_FOUND,
            message="Incorrect or expired token",
            status_code=status_code,
        )


class ConflictError(ServiceError):
    def __init__(self, message: str = "Conflict", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.CONFLICT,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            context=context,
        )


class VerificationError(ServiceError):
    """Signature could not be parsed or recovered.

    A well-formed signature from the wrong key is not an error.
    """

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            code=ServiceErrorCode.INVALID_SIGNATURE,
            message="Error with signature verification",
            status_code=status.HTTP_400_BAD_REQUEST,
            context={"reason": reason} if reason else None,
        )
        self.reason = reason


class StoreError(ServiceError):
    def __init__(self, message: str = "Storage error", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.STORE_ERROR,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            context=context,
        )


class UnauthorizedError(ServiceError):
    def __init__(self, message: str = "Please authenticate", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ServiceErrorCode.INVALID_TOKEN,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            context=context,
        )


class NotFoundError(ServiceError):
    def __init__(self, message: str = "Not found"):
        super().__init__(
            code=ServiceErrorCode.NOT_FOUND,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )
