"""
Health check endpoints for the Parques Admin API.

Provides:
- /live - Liveness probe (service alive)
- /ready - Readiness probe (DB connectivity)
- /schema - Which of the tables the park pages read are present
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api import deps
from app.core.config import settings
from app.db.introspection import SchemaIntrospector

router = APIRouter(tags=["health"])

CORE_TABLES = ("parks",)
DEPENDENT_TABLES = (
    "municipalities",
    "park_images",
    "park_documents",
    "amenities",
    "park_amenities",
    "activities",
    "activity_images",
    "trees",
    "assets",
    "asset_categories",
)


class ServiceHealth(BaseModel):
    """Health status of an individual service."""

    status: Literal["healthy", "degraded", "unhealthy"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


def check_database(db: Session) -> ServiceHealth:
    """Check database connectivity and latency."""
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1"))
        latency = (time.perf_counter() - start) * 1000
        return ServiceHealth(status="healthy", latency_ms=round(latency, 2))
    except SQLAlchemyError as e:
        return ServiceHealth(status="unhealthy", message=str(e)[:100])


@router.get(
    "/live",
    summary="Liveness probe",
    description="Quick check if the service is alive.",
)
def liveness_probe() -> Dict[str, Any]:
    """Kubernetes-style liveness probe."""
    return {"alive": True, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/ready",
    summary="Readiness probe",
    description="Quick check if the service is ready to accept traffic.",
)
def readiness_probe(db: Session = Depends(deps.get_db)):
    """Kubernetes-style readiness probe."""
    result = check_database(db)
    status_code = 200 if result.status == "healthy" else 503
    return JSONResponse(
        content={"ready": status_code == 200, "database": result.model_dump()},
        status_code=status_code,
    )


@router.get(
    "/schema",
    summary="Schema check",
    description="""
    Reports which tables read by the park pages exist in the configured schema.

    **Status levels:**
    - `healthy`: every table present
    - `degraded`: some dependent tables missing (their collections come back empty)
    - `unhealthy`: the parks table is missing or the catalog cannot be read
    """,
)
def schema_check(db: Session = Depends(deps.get_db)):
    introspector = SchemaIntrospector(db, settings.DB_SCHEMA)
    try:
        tables = {
            table: introspector.table_exists(table)
            for table in CORE_TABLES + DEPENDENT_TABLES
        }
    except SQLAlchemyError as e:
        db.rollback()
        return JSONResponse(
            content={"status": "unhealthy", "message": str(e)[:100]},
            status_code=503,
        )

    if not all(tables[table] for table in CORE_TABLES):
        overall, status_code = "unhealthy", 503
    elif not all(tables.values()):
        overall, status_code = "degraded", 200
    else:
        overall, status_code = "healthy", 200
    return JSONResponse(
        content={"status": overall, "schema": settings.DB_SCHEMA, "tables": tables},
        status_code=status_code,
    )
