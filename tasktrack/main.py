from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .database import create_db_engine, create_session_factory, create_tables
from .errors import StoreError, TaskTrackError, ValidationError
from .routers import auth, tasks
from .tokens import TokenService

logger = logging.getLogger(__name__)


def _error_response(exc: TaskTrackError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": ..., "code": ...}``."""

    @app.exception_handler(TaskTrackError)
    async def handle_domain_error(request: Request, exc: TaskTrackError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            # Drop the "body"/"query" prefix FastAPI puts in front of the field name.
            field = ".".join(str(part) for part in first["loc"][1:]) or str(first["loc"][0])
            message = f"{field}: {first['msg']}"
        else:
            message = "Invalid request"
        return _error_response(ValidationError(message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": "HTTP_%d" % exc.status_code},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Store failure on %s %s", request.method, request.url.path)
        return _error_response(StoreError())


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API.

    ``settings`` defaults to the environment; startup fails if the signing
    secrets are missing. Pass ``engine`` to share one database engine (tests).
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Task Tracker API",
        description="Personal task tracking with access/refresh token auth",
        version="1.0.0",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if engine is None:
        engine = create_db_engine(settings.database_url)
    create_tables(engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.tokens = TokenService(
        settings.jwt_secret,
        settings.refresh_secret,
        access_ttl=settings.access_token_ttl,
        refresh_ttl=settings.refresh_token_ttl,
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    logger.info("Task Tracker API ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return app
