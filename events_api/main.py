import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from events_api.core.config import Settings, cors_origins_from_env
from events_api.core.errors import InternalError, ServiceError
from events_api.core.logging_config import setup_logging
from events_api.core.redis_config import make_redis_client
from events_api.database.db import Database
from events_api.routes import auth, events

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InternalError)
    async def internal_error_handler(request: Request, exc: InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, f"Invalid input: {problems}")

    @app.exception_handler(SQLAlchemyError)
    @app.exception_handler(redis.exceptions.RedisError)
    async def data_store_error_handler(request: Request, exc: Exception):
        logger.exception("Data store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    redis_client: redis.Redis | None = None,
) -> FastAPI:
    """
    Build the application. The database handle and the Redis client are
    opened when the app starts (unless passed in) and closed at shutdown.
    Settings are read from the environment at startup when not given.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or Settings.from_env()
        setup_logging(app_settings.log_level)

        app.state.settings = app_settings
        app.state.database = database or Database(app_settings.database_url)
        app.state.redis = redis_client or make_redis_client(app_settings.redis_url)

        # Create all tables (in production, use migrations such as Alembic)
        app.state.database.create_all()
        logger.info("Event registration API started")
        try:
            yield
        finally:
            app.state.database.dispose()
            app.state.redis.close()
            logger.info("Event registration API stopped")

    app = FastAPI(title="Event Registration API", lifespan=lifespan)

    cors_origins = settings.cors_origins if settings else cors_origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    def root():
        return "Event Management API is running"

    app.include_router(auth.router)
    app.include_router(events.router)
    return app


app = create_app()
