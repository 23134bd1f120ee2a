"""
Gutachterportal backend entry point
"""

from datetime import datetime, UTC
import logging
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
import structlog
from contextlib import asynccontextmanager

from core.config import settings
from core.database import validate_database_connection
from core.exceptions import (
    CaseManagementException,
    StorageError,
    case_management_exception_handler,
    validation_exception_handler,
    http_exception_handler
)
from api.v1.api import api_router
from schemas.base import HealthCheck
from services.blob_store_service import BlobStoreService

logging.basicConfig(level=settings.LOG_LEVEL, format="%(message)s")

# JSON log lines through the stdlib handler
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

async def _storage_ready() -> bool:
    try:
        await BlobStoreService().ensure_bucket()
        return True
    except StorageError as e:
        logger.warning("Object storage unavailable", bucket=settings.S3_BUCKET_NAME, error=e.underlying_error)
        return False

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Gutachterportal backend starting", version=settings.VERSION)

    # a missing database or bucket is reported, startup continues
    if await validate_database_connection():
        logger.info("Database reachable")
    else:
        logger.error("Database not reachable at startup")

    if await _storage_ready():
        logger.info("Object storage bucket ready", bucket=settings.S3_BUCKET_NAME)

    yield

    logger.info("Gutachterportal backend stopped")

app = FastAPI(
    title="Gutachterportal API",
    description="""
    Practitioners open cases, upload documents into object storage and send
    the finished case (PDF overview plus document attachments) to the back office
    by mail, with a confirmation copy to themselves.

    Every route under `/api/v1` expects `Authorization: Bearer <token>`.

    Failures share one body shape,
    `{"erfolg": false, "nachricht", "fehler", "error_code", "details"}`,
    with status 400 for invalid input, 401/403 for missing or insufficient
    rights, 404 for unknown cases or documents and 500 when rendering,
    storage or mail delivery fails.
    """,
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_tags=[
        {"name": "cases", "description": "Cases, notes, privacy consent and transmission"},
        {"name": "documents", "description": "Document upload, listing, download links and deletion"}
    ],
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CaseManagementException, case_management_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": "Gutachterportal API", "version": settings.VERSION}

@app.get("/health")
async def health_check():
    """Liveness probe, no backing services touched"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": settings.VERSION
    }

@app.get("/health/ready", response_model=HealthCheck)
async def readiness_check():
    """Readiness probe: database required, object storage reported"""
    if not await validate_database_connection():
        raise HTTPException(status_code=503, detail="Datenbank nicht erreichbar")
    storage = "connected" if await _storage_ready() else "unavailable"
    return HealthCheck(object_storage=storage)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
