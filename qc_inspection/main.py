"""
QC Inspection Tracking API

A FastAPI service that records sampling inspections of production lots,
generates their inspection numbers and sampling rounds, opens SIV
follow-up inspections from OQA records and reports weekly LAR / DPPM.

Main application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware

from qc_inspection.core import database
from qc_inspection.core.config import get_settings
from qc_inspection.core.database import init_db, close_db, Base
from qc_inspection.core.exceptions import QCError
from qc_inspection.core.logging import setup_logging, get_logger
from qc_inspection.core.middleware import RequestLoggingMiddleware
from qc_inspection.api import (
    routes_health,
    routes_inspection,
    routes_master_data,
    routes_reports,
    routes_fiscal_calendar,
)

# Import all models to ensure they're registered with Base
from qc_inspection.models import InspectionRecord, Defect, DefectData, Part, SamplingReason  # noqa: F401

# Initialize application settings
settings = get_settings()

# Setup structured logging
setup_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: engine / session factory, tables created if missing
    (Alembic owns schema changes). Shutdown: dispose the engine.
    """
    await init_db()

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "QC Inspection API starting",
        host=settings.api_host,
        port=settings.api_port,
        database=settings.database_url.split("@")[-1],  # Hide credentials
        cors_origins=settings.cors_origins,
        derived_station=settings.derived_station,
    )

    yield

    await close_db()
    logger.info("QC Inspection API shut down")


app = FastAPI(
    title="QC Inspection API",
    description="""
    ## QC Inspection Tracking

    ### Key Features:
    - **Inspection records**: CRUD over sampling inspections (`/api/inspectiondata`)
    - **Inspection numbers**: `{station}{fiscalYY}{MM}{WW}-{DD}{NNNN}`, e.g. `OQA260806-100001`
    - **Sampling rounds**: per station and lot, starting at 1
    - **SIV from OQA**: open a follow-up inspection for the lot of an OQA record
    - **LAR report**: weekly Line Acceptance Rate and DPPM of first-round OQA inspections
    - **Master data**: parts, defect types, sampling reasons, defect observations

    ### Fiscal calendar:
    - Fiscal year starts in July, weeks start on Saturday (configurable)
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time", "X-Request-ID"],
)

app.add_middleware(GZipMiddleware, minimum_size=1024)

# Custom middleware for request logging and timing
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(QCError)
async def qc_error_handler(request: Request, exc: QCError) -> JSONResponse:
    """Map service errors to their HTTP status."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request rejected",
        error=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    content = {"detail": exc.message, "error": exc.code}
    errors = getattr(exc, "errors", None)
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=exc.status_code, content=content)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors."""
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": getattr(request.state, "request_id", "unknown"),
        }
    )


# Include API routers
app.include_router(
    routes_health.router,
    prefix="/healthz",
    tags=["Health Check"]
)

app.include_router(
    routes_inspection.router,
    prefix="/api/inspectiondata",
    tags=["Inspection Data"]
)

app.include_router(
    routes_master_data.defect_data_router,
    prefix="/api/defectdata",
    tags=["Defect Data"]
)

app.include_router(
    routes_master_data.defects_router,
    prefix="/api/defects",
    tags=["Master Data"]
)

app.include_router(
    routes_master_data.parts_router,
    prefix="/api/parts",
    tags=["Master Data"]
)

app.include_router(
    routes_master_data.sampling_reasons_router,
    prefix="/api/sampling-reasons",
    tags=["Master Data"]
)

app.include_router(
    routes_reports.router,
    prefix="/api/reports",
    tags=["Reports"]
)

app.include_router(
    routes_fiscal_calendar.router,
    prefix="/api/fiscal-calendar",
    tags=["Fiscal Calendar"]
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with basic API information."""
    return {
        "message": "QC Inspection API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    # Run the application directly (for development)
    uvicorn.run(
        "qc_inspection.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
