from typing import Optional

from fastapi import Request
from fastapi.security import HTTPBearer

from src.core.exceptions.base import UnauthorizedError
from src.core.logger.logger import logger


class CustomHTTPBearer(HTTPBearer):
    """
    Extracts the raw bearer token from the Authorization header.
    Token verification is left to JWTService so revocation is honoured.
    """

    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            logger.info("Missing authorization header", extra={"path": request.url.path})
            raise UnauthorizedError()

        try:
            scheme, credentials = auth_header.split()
        except ValueError:
            logger.warning("Malformed authorization header", extra={"path": request.url.path})
            raise UnauthorizedError()

        if scheme.lower() != "bearer":
            logger.warning(
                "Invalid authentication scheme",
                extra={"scheme": scheme, "path": request.url.path}
            )
            raise UnauthorizedError()

        return credentials
