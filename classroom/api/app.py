"""
FastAPI application for the classroom backend.

Run with:
    uvicorn classroom.api.app:create_app --factory

The factory wires the session core onto `app.state`; resource routers
from the rest of the backend depend on `require_roles()` and the
visibility helpers and are mounted alongside the auth router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classroom.api.handlers import register_exception_handlers
from classroom.auth.gate import AuthorizationGate
from classroom.auth.routes import router as auth_router
from classroom.auth.service import Authenticator
from classroom.auth.store import CredentialStore, InMemoryCredentialStore
from classroom.auth.tokens import TokenCodec
from classroom.auth.transport import SessionTransport
from classroom.config import Settings, configure_logging, get_settings
from classroom.integrations.email import Notifier, get_notifier
from classroom.integrations.sentry import init_sentry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown."""
    logger.info(f"Classroom API starting in {app.state.settings.environment} mode")
    yield
    logger.info("Classroom API shutting down")


def create_app(
    settings: Settings | None = None,
    store: CredentialStore | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    """
    Build the application.

    Raises:
        ConfigurationError: signing secrets are missing or shared
    """
    settings = settings or get_settings()
    settings.validate_security()
    configure_logging(settings)
    init_sentry(settings)

    if store is None:
        logger.warning("No credential store configured - using in-memory store")
        store = InMemoryCredentialStore()

    codec = TokenCodec(settings)

    app = FastAPI(
        title="Classroom API",
        description="Role-based academic records backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.codec = codec
    app.state.gate = AuthorizationGate(store, codec, settings.store_timeout_seconds)
    app.state.authenticator = Authenticator(
        store=store,
        codec=codec,
        notifier=notifier or get_notifier(settings),
        settings=settings,
    )
    app.state.transport = SessionTransport(settings)

    # Cookies must cross origins, so credentials are allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(auth_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
