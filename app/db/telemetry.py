from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("db.mongo")

COLLECTION_NAME = "user_telemetry_logs"


class TelemetrySink:
    """
    Destino de eventos de telemetría sobre MongoDB.

    Es opcional: si no hay conexión, record() y recent() no hacen nada
    y el resto del servicio sigue funcionando.
    """

    def __init__(self, collection=None):
        self._client: Optional[MongoClient] = None
        self._collection = collection

    @property
    def available(self) -> bool:
        return self._collection is not None

    def connect(self, uri: Optional[str], database: str, timeout_ms: int) -> bool:
        if not uri:
            logger.warning(
                "telemetry_disabled",
                extra={"operation": "bootstrap", "resource": "mongodb", "reason": "MONGO_URI is not set"},
            )
            return False

        client = None
        try:
            client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
            client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                client.close()
            logger.error(
                "mongo_connection_failed",
                extra={"operation": "bootstrap", "resource": "mongodb", "error": str(exc)},
            )
            return False

        self._client = client
        self._collection = client[database][COLLECTION_NAME]
        logger.info("mongo_connected", extra={"operation": "bootstrap", "resource": "mongodb"})
        return True

    def record(
        self,
        event_type: str,
        payload: Dict[str, Any],
        timestamp: Optional[datetime] = None,
    ) -> Optional[str]:
        if not self.available:
            return None

        doc = {
            "event_type": event_type,
            "payload": payload or {},
            "timestamp": timestamp or datetime.now(timezone.utc),
        }
        try:
            result = self._collection.insert_one(doc)
        except PyMongoError as exc:
            logger.warning(
                "telemetry_write_failed",
                extra={"operation": "telemetry_record", "resource": "mongodb", "error": str(exc)},
            )
            return None
        return str(result.inserted_id)

    def recent(self, limit: int) -> List[Dict[str, Any]]:
        if not self.available:
            return []

        try:
            docs = list(self._collection.find().sort("timestamp", DESCENDING).limit(limit))
        except PyMongoError as exc:
            logger.warning(
                "telemetry_read_failed",
                extra={"operation": "telemetry_list", "resource": "mongodb", "error": str(exc)},
            )
            return []

        return [
            {
                "id": str(d["_id"]),
                "event_type": d.get("event_type"),
                "payload": d.get("payload") or {},
                "timestamp": d.get("timestamp"),
            }
            for d in docs
        ]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._collection = None


telemetry_sink = TelemetrySink()


def connect_mongo(sink: TelemetrySink = None) -> bool:
    """Un solo intento al arrancar; si falla, la telemetría queda desactivada."""
    sink = sink or telemetry_sink
    return sink.connect(settings.MONGO_URI, settings.MONGO_DATABASE, settings.MONGO_TIMEOUT_MS)
