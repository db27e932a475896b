# =============================================================================
# Notifier - out-of-band delivery (AWS SES)
# =============================================================================
#
# Setup:
#   1. Verify your sending email in AWS SES console
#   2. Set env vars:
#      - AWS_SES_FROM_EMAIL=noreply@yourdomain.com
#      - AWS_ACCESS_KEY_ID=...
#      - AWS_SECRET_ACCESS_KEY=...
#      - AWS_REGION=us-east-1
#
# Without AWS credentials a LoggingNotifier is used instead, which writes
# the message to the log rather than sending it.
#
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from classroom.config import Settings
from classroom.errors import DependencyUnavailable

logger = logging.getLogger(__name__)


# =============================================================================
# Email Templates
# =============================================================================

TEMPLATES = {
    "password_reset": {
        "subject": "Reset your password",
        "html": """
        <html>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #333;">Reset Your Password</h1>
            <p>Hello {name},</p>
            <p>We received a request to reset your password. Click the button below to choose a new one:</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{reset_url}" style="background: #4A90A4; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Reset Password
                </a>
            </p>
            <p style="color: #666; font-size: 14px;">Or copy this link: {reset_url}</p>
            <p style="color: #666; font-size: 14px;">This link expires in {expires_minutes} minutes.</p>
            <p style="color: #666; font-size: 14px;">If you didn't request this, you can safely ignore this email.</p>
        </body>
        </html>
        """,
        "text": """
Hello {name},

We received a request to reset your password. Visit this link to choose a new one:
{reset_url}

This link expires in {expires_minutes} minutes.

If you didn't request this, you can safely ignore this email.
        """,
    },
}


def render(purpose: str, payload: dict[str, Any]) -> dict[str, str]:
    """Fill a template; unknown purposes and missing variables are programming errors."""
    tpl = TEMPLATES[purpose]
    return {
        "subject": tpl["subject"],
        "html": tpl["html"].format(**payload),
        "text": tpl["text"].format(**payload),
    }


# =============================================================================
# Notifier Interface
# =============================================================================

class Notifier(ABC):
    """Delivers a purpose-specific message to a user out of band."""

    @abstractmethod
    async def send(self, destination: str, purpose: str, payload: dict[str, Any]) -> None:
        """
        Send a message.

        Raises:
            DependencyUnavailable: the delivery provider failed
        """
        pass


class LoggingNotifier(Notifier):
    """Development notifier: logs the rendered text instead of sending."""

    async def send(self, destination: str, purpose: str, payload: dict[str, Any]) -> None:
        message = render(purpose, payload)
        logger.warning(f"Email not configured - would send '{purpose}' to {destination}")
        logger.info(f"Email content: {message['text']}")


class SesNotifier(Notifier):
    """Send emails via AWS SES."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._client = None

    @property
    def client(self):
        """Lazy-load SES client."""
        if self._client is None:
            self._client = boto3.client(
                "ses",
                region_name=self.settings.aws_region,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
            )
        return self._client

    async def send(self, destination: str, purpose: str, payload: dict[str, Any]) -> None:
        message = render(purpose, payload)
        try:
            response = await run_in_threadpool(
                self.client.send_email,
                Source=self.settings.aws_ses_from_email,
                Destination={"ToAddresses": [destination]},
                Message={
                    "Subject": {"Data": message["subject"], "Charset": "UTF-8"},
                    "Body": {
                        "Html": {"Data": message["html"], "Charset": "UTF-8"},
                        "Text": {"Data": message["text"], "Charset": "UTF-8"},
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to send '{purpose}' email: {e}")
            raise DependencyUnavailable("Email delivery failed") from e

        logger.info(f"Email sent: {purpose} (MessageId: {response['MessageId']})")


def get_notifier(settings: Settings) -> Notifier:
    """SES when credentials and a sender are configured, log output otherwise."""
    if settings.use_aws and settings.aws_ses_from_email:
        return SesNotifier(settings)
    return LoggingNotifier()
