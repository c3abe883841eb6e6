import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from app.api.errors import register_exception_handlers
from app.api.v1.endpoints import auth, authors, books, dashboard, fines, health, loans, logs, members
from app.core.config import settings
from app.core.logging import configure_logging, get_logger, principal_id_ctx, request_id_ctx
from app.db.session import SessionLocal
from app.services.init_admin import ensure_builtin_admin


# Configurar logging global al arrancar el módulo
configure_logging()
request_logger = get_logger("api.request")

app = FastAPI(
    title="City Archive Library API",
    version="1.0.0",
)

# Con cookies de sesión el origen tiene que ser explícito
if settings.FRONTEND_URL:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Routers de la API
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(logs.router)
app.include_router(members.router)
app.include_router(authors.router)
app.include_router(books.router)
app.include_router(loans.router)
app.include_router(fines.router)
app.include_router(dashboard.router)


@app.on_event("startup")
def startup_event():
    if not hasattr(app.state, "revoked_tokens"):
        app.state.revoked_tokens = set()
    db = SessionLocal()
    try:
        ensure_builtin_admin(db)
    finally:
        db.close()


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    """
    - Asigna un request_id (si no viene en cabecera).
    - Mide el tiempo de respuesta.
    - Loguea la petición; WARNING si supera SLOW_REQUEST_THRESHOLD_MS.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start = time.perf_counter()

    request.state.request_id = request_id
    request_id_ctx.set(request_id)
    principal_id_ctx.set(None)

    try:
        response: Response = await call_next(request)
    except Exception:
        process_time_ms = (time.perf_counter() - start) * 1000
        request_logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": 500,
                "duration_ms": round(process_time_ms, 2),
                "client_host": request.client.host if request.client else None,
            },
            exc_info=True,
        )
        raise

    process_time_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id

    level = logging.INFO
    if process_time_ms > settings.SLOW_REQUEST_THRESHOLD_MS:
        level = logging.WARNING

    request_logger.log(
        level,
        "request_completed",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(process_time_ms, 2),
            "client_host": request.client.host if request.client else None,
        },
    )

    return response


@app.get("/")
def root():
    return {"message": "City Archive API running"}
