"""
Tests for the notifier, job attribution and Sentry event filtering.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from classroom.auth.context import Principal
from classroom.auth.roles import Role
from classroom.errors import DependencyUnavailable, Forbidden
from classroom.integrations.email import (
    LoggingNotifier,
    SesNotifier,
    get_notifier,
    render,
)
from classroom.integrations.jobs import JobDispatcher, dispatch_as
from classroom.integrations.sentry import _filter_events, capture_exception, init_sentry

RESET_PAYLOAD = {"name": "Alice", "reset_url": "https://school.example/r?token=t", "expires_minutes": 5}


# =============================================================================
# Notifier
# =============================================================================


class TestRender:
    def test_password_reset(self):
        message = render("password_reset", RESET_PAYLOAD)

        assert message["subject"] == "Reset your password"
        assert "https://school.example/r?token=t" in message["text"]
        assert "Hello Alice" in message["html"]

    def test_missing_variable(self):
        with pytest.raises(KeyError):
            render("password_reset", {"name": "Alice"})


class TestGetNotifier:
    def test_logging_without_aws(self, settings):
        assert isinstance(get_notifier(settings), LoggingNotifier)

    def test_ses_with_aws(self, settings):
        settings.aws_access_key_id = "AKIA"
        settings.aws_secret_access_key = "secret"
        settings.aws_ses_from_email = "noreply@school.example"

        assert isinstance(get_notifier(settings), SesNotifier)


class TestSesNotifier:
    async def test_sends(self, settings):
        settings.aws_ses_from_email = "noreply@school.example"
        notifier = SesNotifier(settings)
        notifier._client = MagicMock()
        notifier._client.send_email.return_value = {"MessageId": "m-1"}

        await notifier.send("alice@example.com", "password_reset", RESET_PAYLOAD)

        kwargs = notifier._client.send_email.call_args.kwargs
        assert kwargs["Source"] == "noreply@school.example"
        assert kwargs["Destination"] == {"ToAddresses": ["alice@example.com"]}

    async def test_provider_error(self, settings):
        notifier = SesNotifier(settings)
        notifier._client = MagicMock()
        notifier._client.send_email.side_effect = ClientError(
            {"Error": {"Code": "Throttling", "Message": "slow down"}}, "SendEmail"
        )

        with pytest.raises(DependencyUnavailable):
            await notifier.send("alice@example.com", "password_reset", RESET_PAYLOAD)


async def test_logging_notifier_does_not_raise():
    await LoggingNotifier().send("alice@example.com", "password_reset", RESET_PAYLOAD)


# =============================================================================
# Jobs
# =============================================================================


class RecordingDispatcher(JobDispatcher):
    def __init__(self):
        self.jobs: list[tuple[str, dict[str, Any]]] = []

    async def dispatch(self, name: str, data: dict[str, Any]) -> None:
        self.jobs.append((name, data))


async def test_dispatch_as_attributes_job():
    dispatcher = RecordingDispatcher()
    teacher = Principal(id="user_bob", role=Role.TEACHER)

    await dispatch_as(dispatcher, teacher, "exam/generate", {"subject": "math"})

    assert dispatcher.jobs == [
        ("exam/generate", {"subject": "math", "triggered_by": {"user_id": "user_bob", "role": "teacher"}}),
    ]


# =============================================================================
# Sentry
# =============================================================================


class TestSentryFilter:
    def test_init_skipped_without_dsn(self, settings):
        assert init_sentry(settings) is False

    def test_capture_skipped_without_client(self):
        assert capture_exception(DependencyUnavailable()) is None

    def test_drops_expected_auth_errors(self):
        error = Forbidden()

        assert _filter_events({}, {"exc_info": (type(error), error, None)}) is None

    def test_keeps_dependency_failures(self):
        error = DependencyUnavailable()
        event = {"message": "x"}

        assert _filter_events(event, {"exc_info": (type(error), error, None)}) is event

    def test_scrubs_credentials(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer abc", "Accept": "json"},
                "cookies": {"access_token": "abc"},
            }
        }

        result = _filter_events(event, {})

        assert result["request"]["headers"] == {"Authorization": "[Filtered]", "Accept": "json"}
        assert result["request"]["cookies"] == "[Filtered]"
