from contextlib import asynccontextmanager
from typing import AsyncGenerator

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from miniapp import __version__
from miniapp.api.routes import dating, listings, moderation
from miniapp.config import settings
from miniapp.utils.database import init_database
from miniapp.utils.errors import ErrorCode, MiniAppError
from miniapp.utils.logging import configure_logging, get_logger, log_error

logger = get_logger(__name__)

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    logger.info("Initializing Sentry...")
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
            integrations=[
                FastApiIntegration(transaction_style="url"),
                SqlalchemyIntegration(),
            ],
        )
        logger.info("Sentry initialized")
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan."""
    configure_logging()
    logger.info("Starting Mini App API...")

    try:
        init_database()
    except Exception as e:
        error_details = {}
        if hasattr(e, "details"):
            error_details = e.details
        logger.error("Failed to initialize database", error=str(e), details=error_details)
        raise

    yield

    logger.info("Shutting down Mini App API...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Mini App API: dating, listings and moderation",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(dating.router)
app.include_router(listings.router)
app.include_router(moderation.router)


@app.exception_handler(MiniAppError)
async def miniapp_error_handler(request: Request, exc: MiniAppError) -> JSONResponse:
    """Turn domain errors into ``{"ok": false, "error": CODE}`` responses."""
    if exc.status_code >= 500:
        log_error(logger, exc, "Request failed", extra={"path": request.url.path})
    else:
        logger.info("Request rejected", path=request.url.path, error_code=exc.code.value, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.code.value})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request body", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"ok": False, "error": ErrorCode.INVALID_INPUT.value})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(logger, exc, "Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"ok": False, "error": ErrorCode.INTERNAL_ERROR.value})


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "ok",
            "app": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
        },
    )


@app.get("/")
async def root() -> JSONResponse:
    """Root endpoint."""
    return JSONResponse(
        content={
            "message": f"{settings.APP_NAME} API is running",
            "docs_url": "/docs",
        }
    )
