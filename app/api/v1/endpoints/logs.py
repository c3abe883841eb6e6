import logging

from fastapi import APIRouter, Depends, status

from app.api.v1.dependencies import get_telemetry_sink
from app.api.v1.dependencies_auth import require_staff
from app.db.telemetry import TelemetrySink
from app.schemas.telemetry import (
    TelemetryAccepted,
    TelemetryEvent,
    TelemetryLogList,
)

logger = logging.getLogger("api.telemetry")

router = APIRouter(
    prefix="/api/logs",
    tags=["telemetry"],
)

DEFAULT_LOG_LIMIT = 10
MAX_LOG_LIMIT = 50


@router.post(
    "/telemetry",
    response_model=TelemetryAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
def record_telemetry(
    event: TelemetryEvent,
    sink: TelemetrySink = Depends(get_telemetry_sink),
):
    # Si Mongo no está disponible se acepta igual: la telemetría nunca bloquea
    inserted_id = sink.record(event.action, event.metadata)

    logger.debug(
        "telemetry_received",
        extra={
            "operation": "telemetry_record",
            "resource": "telemetry",
            "action": event.action,
            "stored": inserted_id is not None,
        },
    )
    return TelemetryAccepted(stored=inserted_id is not None)


@router.get(
    "/telemetry",
    response_model=TelemetryLogList,
    dependencies=[Depends(require_staff)],
)
def list_telemetry(
    limit: int = DEFAULT_LOG_LIMIT,
    sink: TelemetrySink = Depends(get_telemetry_sink),
):
    limit = min(max(limit, 1), MAX_LOG_LIMIT)
    return TelemetryLogList(logs=sink.recent(limit))
