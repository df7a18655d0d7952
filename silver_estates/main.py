"""
FastAPI application entry point for the remote store service.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from silver_estates.config import settings
from silver_estates.database import check_database_connection, create_tables, close_db_connection
from silver_estates.routers import auth_router, tables_router
from silver_estates.utils.exceptions import APIException
from silver_estates.services.error_handler import ErrorHandlerService
from silver_estates.middleware import RequestLoggingMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates missing tables on startup and disposes the engine on shutdown.
    """
    logger.info(f"Starting {settings.app_name} remote store v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await check_database_connection()
    if db_connected:
        await create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=f"{settings.app_name} remote store",
    version=settings.app_version,
    description="""
    Auth and table storage for The Silver Estates listings application.

    ## Tables

    * `profiles`: public account fields, read-only
    * `sale_properties`: properties for sale
    * `rental_properties`: properties for rent

    Listings are inserted by signed-in users for themselves and deleted only by their owner.

    ## Authentication

    Sign in through `/api/v1/auth/sign-in` and send the returned token as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign-up, sign-in, sign-out and sessions"
        },
        {
            "name": "Tables",
            "description": "Query, fetch, insert and delete rows"
        },
        {
            "name": "Health",
            "description": "Service health"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)

app.add_middleware(
    RequestLoggingMiddleware,
    enable_request_logging=not settings.is_testing
)

app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(tables_router, prefix=settings.api_v1_prefix)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by Docker health checks and load balancers.
    """
    db_healthy = await check_database_connection()

    if not db_healthy:
        error_response = ErrorHandlerService.format_error_response(
            error_code="SERVICE_UNAVAILABLE",
            message="Database connection failed"
        )
        return JSONResponse(status_code=503, content=error_response)

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "silver_estates.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
