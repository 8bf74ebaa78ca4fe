"""FastAPI application factory."""

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from activity_logger import __version__
from activity_logger.api.router import build_api_router
from activity_logger.config import Settings, get_settings
from activity_logger.core.activity.hook import ActivityLoggerHook
from activity_logger.core.activity.store import SQLAlchemyRecordStore
from activity_logger.core.auth import JWTTokenVerifier
from activity_logger.core.blueprints import Blueprints
from activity_logger.core.database import (
    Base,
    create_engine,
    create_session_factory,
    create_tables,
)
from activity_logger.core.errors import register_exception_handlers
from activity_logger.core.logging import configure_logging
from activity_logger.modules import default_models


logger = structlog.get_logger()


def _build_lifespan(settings: Settings, engine: AsyncEngine | None):
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler.

        Handles startup and shutdown events.
        """
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            environment=settings.environment,
        )

        if engine is not None and settings.database_create_tables:
            await create_tables(engine)
            logger.info("database_tables_created")

        yield

        logger.info("application_shutdown")

        if engine is not None:
            await engine.dispose()
            logger.info("database_engine_disposed")

    return lifespan


def create_app(
    settings: Settings | None = None,
    *,
    models: Mapping[str, type[Base]] | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to the environment)
        models: Entity type -> model served by the generic CRUD routes
        session_factory: Session factory to use instead of one built from
            ``settings.database_url``; the caller then owns the engine

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    engine: AsyncEngine | None = None
    if session_factory is None:
        engine = create_engine(settings)
        session_factory = create_session_factory(engine)

    app = FastAPI(
        title=settings.app_name,
        description="Audit trail for record mutations",
        version=__version__,
        debug=settings.debug,
        lifespan=_build_lifespan(settings, engine),
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app, settings.api_docs_base_url)

    store = SQLAlchemyRecordStore(
        session_factory,
        default_models() if models is None else models,
    )
    # Generic CRUD serves host models only; the activity log is read-only
    blueprints = Blueprints(store, store.entity_types)

    token_verifier = None
    if settings.jwt_secret_key:
        token_verifier = JWTTokenVerifier(settings.jwt_secret_key, [settings.jwt_algorithm])

    hook = ActivityLoggerHook(settings.activity_logger, store, token_verifier)
    hook.initialize(app, blueprints)

    app.state.settings = settings
    app.state.record_store = store
    app.state.activity_logger = hook

    app.include_router(build_api_router(blueprints))

    return app
