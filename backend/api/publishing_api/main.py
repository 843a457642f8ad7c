from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Optional

import structlog
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import db_ping, get_engine
from .errors import ApiError
from .log import configure_logging
from .routes import ROUTERS, respond
from .schemas import Envelope
from .workflow import list_states

logger = structlog.get_logger(__name__)

VERSION = "1.0.0"


def error_response(status: int, message: str, data: Optional[dict[str, Any]] = None) -> JSONResponse:
    body = Envelope(ok=False, status=status, message=message, data=data)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        return error_response(exc.status, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return error_response(400, "Invalid request", {"fields": fields})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError):
        logger.warning("integrity_error", method=request.method, path=request.url.path)
        return error_response(409, "Conflicting record")

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("unhandled_error", method=request.method, path=request.url.path)
        return error_response(500, "Internal server error")


def _register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        request_logger = structlog.get_logger("publishing_api.request").bind(request_id=request_id)
        start_time = time.time()
        request_logger.info("request_started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time_ms=round((time.time() - start_time) * 1000, 2),
            )
            raise

        request_logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory. Run with:

        uvicorn publishing_api.main:create_app --factory
    """
    explicit = settings is not None
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Serial Publishing API", version=VERSION)
    if explicit:
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    _register_request_logging(app)
    _register_error_handlers(app)

    # -----------------------------
    # Health checks
    # -----------------------------
    @app.get("/")
    def root():
        return respond(200, "Welcome to the Serial Publishing API", {"version": VERSION})

    @app.get("/healthz")
    def healthz():
        return respond(200, "Service is healthy", {"status": "ok"})

    @app.get("/readyz")
    def readyz(engine: Engine = Depends(get_engine)):
        db_ping(engine)
        return respond(200, "Service is ready", {"status": "ready", "db": "ok"})

    # -----------------------------
    # Workflow helpers
    # -----------------------------
    @app.get("/workflow/states")
    def workflow_states():
        return respond(200, "Moderation states", {"states": list_states()})

    for router in ROUTERS:
        app.include_router(router)

    return app
