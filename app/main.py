from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from app.api.v1.router import api_router
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.core.metrics import get_metrics_payload, observe_request
from app.core.request_context import reset_request_id, set_request_id
from app.core.settings import settings
from app.core.telemetry import setup_telemetry
from app.db.base import Base
from app.db.session import get_engine, init_engine


logger = logging.getLogger("app")

_QUIET_PATHS = frozenset({"/health", "/metrics"})


def _uses_local_schema() -> bool:
    """Create tables on startup only for the SQLite dev database; others go through alembic."""
    return (
        settings.storage_backend == "database"
        and settings.db_auto_create
        and settings.database_url.startswith("sqlite")
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, settings.log_file)
    init_engine(settings.database_url)
    setup_telemetry(app, service_name="worldkeeper")
    if _uses_local_schema():
        Base.metadata.create_all(bind=get_engine())

    logger.info(
        "startup",
        extra={
            "storage_backend": settings.storage_backend,
            "auth_provider": settings.auth_provider,
            "media_backend": settings.media_backend,
        },
    )
    yield
    logger.info("shutdown")


app = FastAPI(title="worldkeeper", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images in the local media backend are served from here.
app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=settings.media_root, check_dir=False),
    name="media",
)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = set_request_id(request_id)
    started = time.perf_counter()
    fields = {"method": request.method, "path": request.url.path}
    try:
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", extra={**fields, "duration_ms": (time.perf_counter() - started) * 1000})
            raise

        elapsed = time.perf_counter() - started
        observe_request(request.method, _route_template(request), response.status_code, elapsed)
        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        log("request_complete", extra={**fields, "status": response.status_code, "duration_ms": elapsed * 1000})
        response.headers["x-request-id"] = request_id
        return response
    finally:
        reset_request_id(token)


def _error_response(request: Request, status_code: int, detail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": getattr(request.state, "request_id", None)},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app_error", extra={"error": str(exc), "error_type": type(exc).__name__})
    return _error_response(request, exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and query parameters are client errors, reported as 400.
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return _error_response(request, 400, errors)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error_response(request, 400, str(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", exc_info=exc, extra={"error_type": type(exc).__name__})
    return _error_response(request, 500, "Internal server error")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics_endpoint():
    return PlainTextResponse(get_metrics_payload(), media_type="text/plain; version=0.0.4; charset=utf-8")


app.include_router(api_router)
