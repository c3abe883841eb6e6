from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_API_ORIGIN = "http://localhost:5000"


class ClientSettings(BaseSettings):
    # Origen explícito de la API; si no hay, se decide con DEV
    API_URL: Optional[str] = None
    DEV: bool = False
    SESSION_FILE: Optional[str] = None
    REQUEST_TIMEOUT: float = 10.0
    TELEMETRY_WORKERS: int = 2

    class Config:
        env_prefix = "CITY_ARCHIVE_"
        env_file = ".env"
        extra = "ignore"


def resolve_api_base(api_url: Optional[str], dev: bool) -> str:
    """
    1) origen configurado explícitamente
    2) en desarrollo, origen vacío: el proxy del mismo origen enruta y
       las cookies quedan en ese dominio
    3) origen por defecto
    """
    if api_url:
        return api_url.rstrip("/")
    if dev:
        return ""
    return DEFAULT_API_ORIGIN
