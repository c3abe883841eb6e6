from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db, get_telemetry_sink
from app.db.telemetry import TelemetrySink

router = APIRouter(
    prefix="/api/health",
    tags=["health"],
)


@router.get("")
def liveness():
    return {
        "status": "Active",
        "message": "City Archive API is running.",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }


@router.get("/ready")
def readiness(
    db: Session = Depends(get_db),
    sink: TelemetrySink = Depends(get_telemetry_sink),
):
    mongodb = "connected" if sink.available else "disconnected"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "mysql": "disconnected", "mongodb": mongodb, "error": str(exc)},
        )
    return {"status": "healthy", "mysql": "connected", "mongodb": mongodb}
