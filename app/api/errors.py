"""
Handlers globales de errores.

Toda respuesta de error sale con la misma forma:
    {"status": "error", "message": "..."}
que es lo que el cliente lee para construir su ApiError.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger

logger = get_logger("api.errors")


def error_body(message: str) -> dict:
    return {"status": "error", "message": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request."
    return JSONResponse(status_code=422, content=error_body(message))


MYSQL_DUP_ENTRY = 1062


def is_duplicate_entry(exc: IntegrityError) -> bool:
    # MySQL: errno 1062 (ER_DUP_ENTRY). SQLite (tests): "UNIQUE constraint failed"
    if getattr(exc.orig, "errno", None) == MYSQL_DUP_ENTRY:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    if is_duplicate_entry(exc):
        status_code, message = 409, "Duplicate entry."
    else:
        status_code, message = 400, "A database constraint was violated."

    logger.warning(
        "db_integrity_error",
        extra={"path": request.url.path, "status_code": status_code, "error": str(exc.orig)},
    )
    return JSONResponse(status_code=status_code, content=error_body(message))


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(
        "db_unavailable",
        extra={"path": request.url.path, "status_code": 503, "error": str(exc.orig)},
    )
    return JSONResponse(status_code=503, content=error_body("Database temporarily unavailable."))


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "db_error",
        extra={"path": request.url.path, "status_code": 500},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=error_body("A database error occurred."))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
