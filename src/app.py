from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from src.infra.config.settings import settings
from src.infra.database import get_database_manager
from src.core.logger.logger import logger
from src.api.router import health, auth, users
from src.api.middleware.logging.request_logging import RequestLoggingMiddleware
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
Wallet sign-in API.

## Flow
1. `POST /api/v1/auth/start-session` issues a nonce for a login session token
2. The wallet signs the nonce and the signature goes to `POST /api/v1/auth/authenticate`
3. `POST /api/v1/auth/login` redeems the authenticated token for the user and a token pair

## Authentication
Protected endpoints require a JWT Bearer access token.
        """,
        version=settings.APP_VERSION,
        docs_url="/",
        redoc_url="/redoc"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,  # 10 minutes
    )

    # Request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "Starting API",
            extra={"service": settings.APP_NAME, "version": settings.APP_VERSION}
        )

        try:
            await get_database_manager().create_tables()
        except Exception as e:
            logger.error("Failed to initialize database on startup", extra={"error": str(e)})

    @app.on_event("shutdown")
    async def shutdown_event():
        await get_database_manager().close()
        logger.info(
            "Shutting down API",
            extra={"service": settings.APP_NAME, "version": settings.APP_VERSION}
        )

    return app
