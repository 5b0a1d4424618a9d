"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.middleware import LoggingMiddleware
from storefront.api.routes import router
from storefront.config import get_settings
from storefront.database.mongodb import mongodb
from storefront.exceptions import SignatureVerificationError, StorefrontError
from storefront.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting application...")
    try:
        await mongodb.connect()
        logger.info("Database connection established")

        yield

    finally:
        logger.info("Shutting down application...")
        await mongodb.disconnect()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Order placement, payment confirmation and order tracking for the storefront",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(router)


# Exception handlers
@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Translate pipeline errors into their HTTP status and a safe message."""
    request_id = getattr(request.state, "request_id", None)
    log_extra = {"requestId": request_id, "path": request.url.path, "status_code": exc.status_code}

    if isinstance(exc, SignatureVerificationError):
        logger.critical("Payment proof rejected: %s", exc.message, extra=log_extra)
    elif exc.status_code >= 500:
        logger.error("%s: %s (%s)", type(exc).__name__, exc.message, exc.cause, extra=log_extra)
    else:
        logger.info("%s: %s", type(exc).__name__, exc.message, extra=log_extra)

    content: dict = {"error": exc.message}
    if exc.status_code >= 500 and settings.is_production:
        content["error"] = "Failed to process the request"
    elif exc.cause and not settings.is_production:
        content["detail"] = exc.cause
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are a 400, like every other validation failure."""
    content: dict = {"error": "Invalid request."}
    if not settings.is_production:
        content["detail"] = [
            {"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()
        ]
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    content = {"error": "Internal Server Error", "message": "An unexpected error occurred"}
    if not settings.is_production:
        content["message"] = str(exc) or content["message"]
    return JSONResponse(status_code=500, content=content)


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
