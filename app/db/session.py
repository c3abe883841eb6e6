import sys

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger("db.mysql")


def build_database_url(cfg: Settings) -> "str | URL":
    if cfg.DATABASE_URL:
        return cfg.DATABASE_URL

    return URL.create(
        "mysql+mysqlconnector",
        username=cfg.MYSQL_USER,
        password=cfg.MYSQL_PASSWORD or None,
        host=cfg.MYSQL_HOST,
        port=cfg.MYSQL_PORT,
        database=cfg.MYSQL_DATABASE,
    )


def create_pool(cfg: Settings) -> Engine:
    """
    Pool acotado a MYSQL_CONNECTION_LIMIT conexiones físicas.

    Sin overflow y con pool_timeout=None: cuando el pool está lleno,
    quien pide conexión espera en cola sin límite, nunca se le rechaza.
    """
    url = build_database_url(cfg)
    backend = make_url(url).get_backend_name()

    connect_args = {}
    if backend.startswith("mysql"):
        connect_args["connection_timeout"] = cfg.MYSQL_CONNECT_TIMEOUT
    elif backend.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        pool_size=cfg.MYSQL_CONNECTION_LIMIT,
        max_overflow=0,
        pool_timeout=None,
        connect_args=connect_args,
    )


# Engine: pool de conexiones a MySQL
engine = create_pool(settings)

# SessionLocal: lo que inyectaremos en los endpoints
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)

# Base: clase base para los modelos SQLAlchemy
Base = declarative_base()


def connect_mysql(bind: Engine = None) -> None:
    """
    Toma y devuelve una conexión de prueba.

    MySQL es obligatorio: si no responde, el proceso termina con código 1.
    """
    bind = bind or engine
    try:
        with bind.connect():
            pass
    except SQLAlchemyError as exc:
        logger.critical(
            "mysql_connection_failed",
            extra={"operation": "bootstrap", "resource": "mysql", "error": str(exc)},
        )
        sys.exit(1)

    logger.info(
        "mysql_pool_connected",
        extra={"operation": "bootstrap", "resource": "mysql", "pool_size": bind.pool.size()},
    )


def init_schema(bind: Engine = None) -> None:
    # Importar los modelos para que queden registrados en Base.metadata
    from app.db import models  # noqa: F401

    Base.metadata.create_all(bind or engine)
