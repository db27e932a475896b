"""
Session transport - tokens at the HTTP boundary.

Every lifecycle transition writes the same token state to two channels:
an http-only cookie pair for browsers and the JSON body for API clients.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request, Response

from classroom.auth.service import Session
from classroom.config import Settings


class SessionTransport:
    """Attaches, reads and clears the access/refresh cookie pair."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _set(self, response: Response, name: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=name,
            value=value,
            max_age=max_age,
            expires=max_age,
            path="/",
            domain=self.settings.cookie_domain,
            secure=self.settings.cookie_secure,
            httponly=True,
            samesite=self.settings.cookie_samesite,
        )

    def attach(self, response: Response, session: Session) -> None:
        """Set both cookies, each living exactly as long as its token."""
        tokens = session.tokens
        self._set(response, self.settings.access_cookie_name, tokens.access_token, tokens.expires_in)
        self._set(response, self.settings.refresh_cookie_name, tokens.refresh_token, tokens.refresh_expires_in)

    def clear(self, response: Response) -> None:
        """Overwrite both cookies with an empty, already-expired value."""
        self._set(response, self.settings.access_cookie_name, "", 0)
        self._set(response, self.settings.refresh_cookie_name, "", 0)

    def refresh_token_from(self, request: Request, body_token: str | None = None) -> str | None:
        """An explicit token from the request body wins over the cookie."""
        return body_token or request.cookies.get(self.settings.refresh_cookie_name) or None

    @staticmethod
    def body(session: Session) -> dict[str, Any]:
        tokens = session.tokens
        return {
            "success": True,
            "accessToken": tokens.access_token,
            "refreshToken": tokens.refresh_token,
            "tokenType": tokens.token_type,
            "expiresIn": tokens.expires_in,
            "user": session.user.model_dump(mode="json"),
        }
