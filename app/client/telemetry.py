import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Mapping, Optional, Set

from app.client.api_client import ApiClient

logger = logging.getLogger("client.telemetry")

TELEMETRY_PATH = "/api/logs/telemetry"


class TelemetryReporter:
    """
    Envía eventos de telemetría sin bloquear a quien llama.

    track() nunca lanza: cualquier fallo (red o HTTP) se loguea en DEBUG
    y se descarta. No hay orden garantizado entre eventos.
    """

    def __init__(self, client: ApiClient, max_workers: int = 2):
        self._client = client
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="telemetry")
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def track(self, action: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        try:
            body = {"action": action, "metadata": dict(metadata or {})}
            future = self._executor.submit(self._client.post, TELEMETRY_PATH, json=body)
        except (RuntimeError, TypeError, ValueError) as exc:
            logger.debug("telemetry_dropped", extra={"action": action, "error": str(exc)})
            return

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.debug("telemetry_failed", extra={"error": str(exc)})

    def flush(self, timeout: Optional[float] = None) -> None:
        """Espera a que terminen los eventos en vuelo."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
