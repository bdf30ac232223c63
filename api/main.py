"""
FastAPI application initialization
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Any, Dict, Optional
from api.routes import health, pipeline, records
from api.middleware import RequestContextMiddleware
from core.config import settings, validate_config
from core.database import engine
from core.exceptions import ETLException
from core.logging import setup_logging
from schemas.api import ErrorResponse, ErrorDetail
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Generative ETL Service",
    description="Extract, clean, validate, enrich and load semi-structured records",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(pipeline.router)
app.include_router(records.router)


def error_response(
    message: str,
    status: int,
    timestamp: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """{success: false, error: {message, status, timestamp, details?}}"""
    body = ErrorResponse(error=ErrorDetail(
        message=message,
        status=status,
        timestamp=timestamp or datetime.utcnow().isoformat(),
        details=details or None,
    ))
    return JSONResponse(status_code=status, content=jsonable_encoder(body.dict(exclude_none=True)))


@app.exception_handler(ETLException)
async def etl_exception_handler(request: Request, exc: ETLException):
    if exc.status_code >= 500:
        logger.error(f"Unhandled error: {str(exc)}")
    else:
        logger.warning(f"Operational error: {exc.message}")

    details = {k: v for k, v in exc.context.items() if k != "error_timestamp"}
    return error_response(exc.message, exc.status_code, exc.timestamp.isoformat(), details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"Invalid request body: {errors}")
    return error_response("Invalid request", 400, details={"errors": errors})


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error: {str(exc)}")
    return error_response("An unexpected error occurred", 500)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Generative ETL Service")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info(f"Text generation: {settings.OLLAMA_MODEL} at {settings.OLLAMA_ENDPOINT}")
    validate_config()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Generative ETL Service")
    await engine.dispose()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Generative ETL Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "extract": "/extract",
            "transform": "/transform",
            "load": "/load",
            "orchestrate": "/orchestrate",
            "records": "/records/{record_id}"
        }
    }
