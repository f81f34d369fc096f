import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

# Load environment variables as early as possible
load_dotenv()

from .container import Container, build_container
from .core.config import Settings, get_settings
from .exceptions import (
    RelayError,
    StoreUnavailable,
    http_exception_handler,
    relay_exception_handler,
    store_exception_handler,
    validation_exception_handler,
)
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, RequestSizeLimitMiddleware, SecurityMiddleware
from .routers import auth_router, devices_router, notifications_router, telemetry_router, webhooks_router
from .utils import utcnow

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: Container = app.state.container
    logger.info(f"Starting {container.settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        await container.database.connect()
    except StoreUnavailable as e:
        # Do not crash the app; report via health endpoint, requests retry the connection
        app.state.db_init_ok = False
        app.state.db_init_error = e.message
        logger.error("Database initialization failed")
    yield
    logger.info(f"Shutting down {container.settings.APP_NAME}...")
    container.close()


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    settings = settings or (container.settings if container else get_settings())

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )
    app.state.container = container or build_container(settings)
    app.state.db_init_ok = True
    app.state.db_init_error = None

    app.add_exception_handler(RelayError, relay_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(OperationalError, store_exception_handler)

    app.add_middleware(ErrorHandlingMiddleware, debug=settings.DEBUG)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware, hsts=settings.is_production)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)

    # GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

    origins = settings.allowed_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # browsers refuse credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=settings.allowed_methods_list,
        allow_headers=settings.allowed_headers_list,
    )

    app.include_router(webhooks_router.router)
    app.include_router(auth_router.router)
    app.include_router(telemetry_router.router)
    app.include_router(devices_router.router)
    app.include_router(notifications_router.router)

    @app.get("/health")
    def health_check(request: Request):
        container: Container = request.app.state.container
        database_ok = container.database.is_connected
        return {
            "success": True,
            "status": "healthy" if database_ok else "degraded",
            "message": "Server is running",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": utcnow().isoformat(),
            "environment": settings.ENVIRONMENT,
            "database": {
                "connected": database_ok,
                "error": None if database_ok else request.app.state.db_init_error,
            },
            "gateways": {
                "sms": settings.SMS_PROVIDER.lower(),
                "push": settings.push_configured,
                "directory": bool(settings.DIRECTORY_API_URL),
            },
        }

    return app


app = create_app()
