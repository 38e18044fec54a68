"""
Marketplace Platform - Backend API
Order settlement, supplier trust and revenue reporting for the multi-vendor marketplace
"""
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from marketplace.api import orders, products, reports, suppliers
from marketplace.core.config import settings
from marketplace.core.database import get_db_connection_dict_with_retry, init_schema
from marketplace.core.errors import (
    ConflictError,
    MarketplaceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup when AUTO_CREATE_SCHEMA is set"""
    if settings.AUTO_CREATE_SCHEMA:
        init_schema()
    yield


# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(suppliers.router, prefix="/api/v1/suppliers", tags=["Suppliers"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Reports"])


# ============================================================================
# Error mapping
# ============================================================================

STATUS_BY_ERROR = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PersistenceError, 503),
)


def status_for(error: MarketplaceError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error": exc.code,
            "field": getattr(exc, "field", None),
            "detail": exc.message,
        },
    )


@app.get("/")
async def root():
    """Endpoint raíz - Verificación de estado de la API"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
def health():
    """Health check endpoint para monitoreo - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Test database connection with minimal retry (fast check)
        conn = get_db_connection_dict_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()
        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "marketplace-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": settings.DB_CONNECTION_TIMEOUT
        },
        "total_latency_ms": total_latency_ms
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("marketplace.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True)
