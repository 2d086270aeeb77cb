"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from authcore.api import router as api_router
from authcore.config import get_settings
from authcore.errors import (
    AuthCoreError,
    EditConflictError,
    ConflictError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Password credentials and opaque bearer tokens",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": exc.errors},
    )


@app.exception_handler(AuthCoreError)
async def core_error_handler(request: Request, exc: AuthCoreError):
    """Map the remaining core errors to HTTP responses."""
    if isinstance(exc, NotFoundError):
        code, message = status.HTTP_404_NOT_FOUND, "the requested resource could not be found"
    elif isinstance(exc, EditConflictError):
        code = status.HTTP_409_CONFLICT
        message = "unable to update the record due to an edit conflict, please try again"
    elif isinstance(exc, ConflictError):
        code, message = status.HTTP_409_CONFLICT, str(exc)
    elif isinstance(exc, UnavailableError):
        code, message = status.HTTP_503_SERVICE_UNAVAILABLE, "the service is temporarily unavailable"
    else:
        logger.error(f"{type(exc).__name__} while handling {request.method} {request.url.path}")
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = "the server encountered a problem and could not process your request"
    return JSONResponse(status_code=code, content={"error": message})


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
