# app/core/logging.py
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import Logger
from typing import Any, Dict, Optional

from .config import settings


# Contexto por request / principal, usado en dependencies_auth y en el middleware
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
principal_id_ctx: ContextVar[Optional[str]] = ContextVar("principal_id", default=None)

# Atributos propios de LogRecord que no son "extra"
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# Marca para reconocer el handler que instalamos nosotros
_HANDLER_FLAG = "_city_archive_handler"


class JsonFormatter(logging.Formatter):
    """
    Formatea cada registro como una línea JSON.

    Todo lo que se pase en `extra={...}` se copia tal cual al documento
    (operation, resource, member_id, status_code, etc.).
    """

    def format(self, record: logging.LogRecord) -> str:
        log: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in log:
                log[key] = value

        req_id = request_id_ctx.get()
        if req_id is not None and "request_id" not in log:
            log["request_id"] = req_id

        pid = principal_id_ctx.get()
        if pid is not None and "principal_id" not in log:
            log["principal_id"] = pid

        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log, ensure_ascii=False, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Instala el handler JSON en el logger raíz.

    Se puede llamar varias veces: solo reemplaza el handler que instaló
    antes, los demás (pytest, uvicorn) se dejan como están.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    for h in list(root.handlers):
        if getattr(h, _HANDLER_FLAG, False):
            root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    setattr(handler, _HANDLER_FLAG, True)
    root.addHandler(handler)


def get_logger(name: str) -> Logger:
    """
    Ejemplo:
        logger = get_logger("api.members")
    """
    return logging.getLogger(name)
