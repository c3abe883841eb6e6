from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TelemetryEvent(BaseModel):
    action: str = Field(min_length=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TelemetryAccepted(BaseModel):
    status: str = "ok"
    stored: bool


class TelemetryLogRead(BaseModel):
    id: str
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class TelemetryLogList(BaseModel):
    logs: List[TelemetryLogRead]
