from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationContextRegistry,
    NotificationStore,
    PushServiceConfig,
    demo_notifications,
)
from app.config import Settings, get_settings
from app.infrastructure.database import (
    build_engine,
    build_session_factory,
    initialize_database,
)
from app.infrastructure.generator import StoredProcedureGenerator
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    WebSocketHostRegistry,
)
from app.infrastructure.repositories import SqlNotificationPersistence
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


def _store_factory(settings: Settings, session_factory: Callable[[], Session]):
    """Return a callable building the notification store of a user."""

    if settings.notification_mode == "ephemeral":

        def build_ephemeral(user_id: str) -> NotificationStore:
            seed = demo_notifications() if settings.seed_demo_notifications else ()
            return NotificationStore.ephemeral(seed)

        return build_ephemeral

    def build_durable(user_id: str) -> NotificationStore:
        persistence = SqlNotificationPersistence(session_factory, user_id)
        return NotificationStore.durable(persistence, limit=settings.notification_fetch_limit)

    return build_durable


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database on startup and release notification state on shutdown."""

    initialize_database(app.state.engine)
    logger.info("Notification service started in %s mode", app.state.settings.notification_mode)
    yield
    await app.state.notification_contexts.aclose()
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)
    connections = NotificationConnectionManager()
    hosts = WebSocketHostRegistry(
        connections, response_timeout=settings.host_response_timeout_seconds
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.notification_connections = connections
    app.state.notification_hosts = hosts
    app.state.notification_contexts = NotificationContextRegistry(
        host_factory=hosts,
        store_factory=_store_factory(settings, session_factory),
        push_config=PushServiceConfig(
            vapid_public_key=settings.vapid_public_key,
            service_worker_path=settings.service_worker_path,
        ),
        max_contexts=settings.notification_context_limit,
        is_active=connections.is_connected,
        on_evict=hosts.discard,
    )
    app.state.notification_generator = StoredProcedureGenerator(
        session_factory, settings.generation_procedure
    )

    register_routes(app)
    return app


app = create_app()
