"""
Health check endpoints.

- Basic liveness / service metadata
- Database connectivity
- Fiscal calendar configuration (the week currently used for new numbers)
"""

from datetime import date, datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.config import get_settings
from qc_inspection.core.database import get_db
from qc_inspection.utils.fiscal_calendar import format_fiscal_week

router = APIRouter()

SERVICE_NAME = "qc-inspection-api"
SERVICE_VERSION = "1.0.0"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", summary="Basic Health Check")
@router.get("/", summary="Basic Health Check")
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": _timestamp(),
        "environment": get_settings().environment,
    }


@router.get("/detailed", summary="Detailed Health Check")
async def detailed_health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Health check with database and fiscal calendar checks.

    A failing database marks the service ``degraded`` (still 200);
    an unusable fiscal calendar configuration is ``unhealthy`` (503)
    because no inspection number can be generated.
    """
    settings = get_settings()
    health_data = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": _timestamp(),
        "environment": settings.environment,
        "checks": {}
    }

    try:
        result = await db.execute(text("SELECT 1"))
        if result.scalar() != 1:
            raise SQLAlchemyError("Unexpected health check response")
        health_data["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except SQLAlchemyError as e:
        health_data["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {e}"
        }
        health_data["status"] = "degraded"

    try:
        current_week = format_fiscal_week(
            date.today(),
            week_start_day=settings.fiscal_week_start_day,
            start_month=settings.fiscal_year_start_month,
        )
        health_data["checks"]["fiscal_calendar"] = {
            "status": "healthy",
            "message": f"Current fiscal week {current_week}"
        }
    except ValueError as e:
        health_data["checks"]["fiscal_calendar"] = {
            "status": "unhealthy",
            "message": f"Fiscal calendar error: {e}"
        }
        health_data["status"] = "unhealthy"

    if health_data["status"] == "unhealthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=health_data
        )
    return health_data


@router.get("/ready", summary="Readiness Check")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> Dict[str, str]:
    """Readiness probe: the database answers."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "not_ready",
                "message": f"Service not ready: {e}"
            }
        )
    return {
        "status": "ready",
        "message": "Service is ready to accept traffic"
    }


@router.get("/live", summary="Liveness Check")
async def liveness_check() -> Dict[str, str]:
    return {
        "status": "alive",
        "message": "Service is running"
    }
