from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # MySQL: almacén relacional obligatorio
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""
    MYSQL_DATABASE: str = "city_archive"
    MYSQL_CONNECTION_LIMIT: int = 10
    MYSQL_CONNECT_TIMEOUT: int = 5  # segundos
    MYSQL_CREATE_SCHEMA: bool = False
    # Si se define, reemplaza la URL construida a partir de MYSQL_*
    DATABASE_URL: Optional[str] = None

    # MongoDB: telemetría opcional
    MONGO_URI: Optional[str] = None
    MONGO_DATABASE: str = "city_archive"
    MONGO_TIMEOUT_MS: int = 5000

    JWT_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    BUILTIN_ADMIN_EMAIL: str = "admin@cityarchive.local"
    BUILTIN_ADMIN_PASSWORD: str = "admin123"

    PORT: int = 5000
    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_THRESHOLD_MS: int = 1000  # 1 segundo

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
