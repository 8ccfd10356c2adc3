import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from apikey_service.api.router import api_router
from apikey_service.config import settings
from apikey_service.core.exceptions import KeyServiceException, StoreUnavailableException
from apikey_service.core.logging_config import setup_logging, cleanup_old_logs
from apikey_service.core.logging_utils import get_request_id, sanitize_log_message
from apikey_service.database import init_db, close_db
from apikey_service.middleware.logging_middleware import LoggingMiddleware
from apikey_service.middleware.rate_limit import setup_rate_limiting
from apikey_service.middleware.csrf import setup_csrf_protection
from apikey_service.middleware.security import setup_security_middleware

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
)


@app.on_event("startup")
async def startup_event():
    """Initialize logging and the database on application startup."""
    setup_logging()
    cleanup_old_logs()
    if settings.DB_CREATE_TABLES:
        await init_db()
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled database connections."""
    await close_db()
    logger.info("Application shutdown complete")


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-CSRF-Token", "X-Request-ID", "Accept", "Origin"],
)

# Security middleware (request size limit + security headers)
setup_security_middleware(app, max_request_size=settings.MAX_REQUEST_SIZE)

# Logging middleware (after CORS, before routes)
if settings.LOG_ENABLE_REQUEST_LOGGING:
    app.add_middleware(LoggingMiddleware)

# CSRF protection middleware
setup_csrf_protection(app)

# Rate limiting
setup_rate_limiting(app)

app.include_router(api_router)


@app.exception_handler(StoreUnavailableException)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableException):
    logger.error(
        sanitize_log_message(
            "Store unavailable",
            RequestID=get_request_id(request),
            Path=request.url.path,
            Method=request.method,
            IP=request.client.host if request.client else None
        )
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(KeyServiceException)
async def key_service_exception_handler(request: Request, exc: KeyServiceException):
    logger.warning(
        sanitize_log_message(
            type(exc).__name__,
            RequestID=get_request_id(request),
            Path=request.url.path,
            Method=request.method,
            IP=request.client.host if request.client else None,
            StatusCode=exc.status_code,
            Detail=exc.detail
        )
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers
    )


# Generic exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(
        sanitize_log_message(
            f"Unhandled exception: {type(exc).__name__}",
            RequestID=get_request_id(request),
            Path=request.url.path,
            Method=request.method,
            IP=request.client.host if request.client else None,
            ExceptionMessage=str(exc)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error" if settings.is_production else str(exc)
        }
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs"
    }
