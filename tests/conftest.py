import asyncio
from typing import Any

import pytest
from fastapi.testclient import TestClient

from classroom.api.app import create_app
from classroom.auth.passwords import hash_password
from classroom.auth.roles import Role
from classroom.auth.service import Authenticator
from classroom.auth.gate import AuthorizationGate
from classroom.auth.store import InMemoryCredentialStore
from classroom.auth.tokens import TokenCodec
from classroom.config import Settings
from classroom.integrations.email import Notifier

TEST_ITERATIONS = 1_000
PASSWORD = "secret123"


class RecordingNotifier(Notifier):
    """Keeps messages in memory instead of delivering them."""

    def __init__(self, fail_with: Exception | None = None, delay: float = 0.0):
        self.sent: list[dict[str, Any]] = []
        self.fail_with = fail_with
        self.delay = delay

    async def send(self, destination: str, purpose: str, payload: dict[str, Any]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise self.fail_with
        self.sent.append({"to": destination, "purpose": purpose, "payload": payload})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings():
    return Settings(
        jwt_access_secret="access-secret-for-tests-0123456789abcdef",
        jwt_refresh_secret="refresh-secret-for-tests-0123456789abcdef",
        jwt_reset_secret="reset-secret-for-tests-0123456789abcdef",
        password_hash_iterations=TEST_ITERATIONS,
        frontend_url="https://school.example",
        cors_origins="https://school.example",
        sentry_dsn="",
        aws_access_key_id="",
        aws_secret_access_key="",
    )


@pytest.fixture
def store():
    """Store seeded with one account per role plus a suspended one."""
    store = InMemoryCredentialStore()
    digest = hash_password(PASSWORD, TEST_ITERATIONS)
    store.add("alice@example.com", "Alice", digest, Role.STUDENT,
              student_class="class-1", principal_id="user_alice")
    store.add("bob@example.com", "Bob", digest, Role.TEACHER, principal_id="user_bob")
    store.add("carol@example.com", "Carol", digest, Role.ADMIN, principal_id="user_carol")
    store.add("pat@example.com", "Pat", digest, Role.PARENT, principal_id="user_pat")
    store.add("dave@example.com", "Dave", digest, Role.STUDENT, is_active=False,
              student_class="class-1", principal_id="user_dave")
    return store


@pytest.fixture
def codec(settings):
    return TokenCodec(settings)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def authenticator(store, codec, notifier, settings):
    return Authenticator(store=store, codec=codec, notifier=notifier, settings=settings)


@pytest.fixture
def gate(store, codec, settings):
    return AuthorizationGate(store, codec, settings.store_timeout_seconds)


@pytest.fixture
def client(settings, store, notifier):
    app = create_app(settings=settings, store=store, notifier=notifier)
    with TestClient(app, base_url="https://testserver") as client:
        yield client
