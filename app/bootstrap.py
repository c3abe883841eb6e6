import uvicorn

from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.db.session import connect_mysql, init_schema
from app.db.telemetry import connect_mongo
from app.main import app

logger = get_logger("bootstrap")


def serve() -> None:
    """
    Arranque del proceso:
    1) MySQL (obligatorio, sale con código 1 si no responde)
    2) MongoDB (opcional, si falla la telemetría queda como no-op)
    3) listener HTTP
    """
    configure_logging()

    connect_mysql()
    if settings.MYSQL_CREATE_SCHEMA:
        init_schema()

    connect_mongo()

    logger.info("http_listener_starting", extra={"operation": "bootstrap", "port": settings.PORT})
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    serve()
