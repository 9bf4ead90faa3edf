"""LifeCherry API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from src.audit import AuditService
from src.audit.router import router as audit_router
from src.comments import CommentRepository, CommentService
from src.comments.router import router as comments_router
from src.config import get_settings
from src.core.database import init_async_cassandra, shutdown_async_cassandra
from src.core.errors import register_exception_handlers
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.core.redis import init_redis, shutdown_redis
from src.health import router as health_router
from src.lessons import LessonService
from src.users import UserService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def build_services(app: FastAPI, session, redis_client=None) -> None:
    """Create the Cassandra-backed services and attach them to ``app.state``."""
    settings = get_settings()
    keyspace = settings.cassandra_keyspace

    app.state.cassandra_session = session
    app.state.user_service = UserService(session=session, keyspace=keyspace)
    app.state.lesson_service = LessonService(session=session, keyspace=keyspace)
    app.state.audit_service = AuditService(session=session, keyspace=keyspace)
    app.state.comment_service = CommentService(
        repository=CommentRepository(session=session, keyspace=keyspace),
        lesson_service=app.state.lesson_service,
        audit_service=app.state.audit_service,
        redis=redis_client,
        max_write_retries=settings.comment_write_max_retries,
        max_content_length=settings.comment_max_length,
        comments_per_minute=settings.comments_per_minute,
        comments_per_hour=settings.comments_per_hour,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect backing stores on startup, release them on shutdown.

    Neither store is fatal: without Redis the creation rate limit is off,
    without Cassandra the data routes answer 503 and health reports degraded.
    """
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    redis_client = None
    try:
        redis_client = await init_redis()
    except Exception as e:
        logger.warning("redis_unavailable", error=str(e))
    app.state.redis = redis_client

    try:
        session = await init_async_cassandra()
        build_services(app, session, redis_client)
        logger.info("services_initialized", redis_enabled=redis_client is not None)
    except Exception as e:
        logger.warning("database_unavailable", error=str(e))

    yield

    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    docs_enabled = settings.is_development

    # debug stays off so stack traces never reach a response
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LifeCherry - life lessons sharing API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(comments_router)
    app.include_router(audit_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "LifeCherry API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and workers."""
    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.api_reload and settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    run()
