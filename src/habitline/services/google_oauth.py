"""Minimal Google OAuth 2.0 client for the sign-in flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..config import GoogleOAuthSettings
from ..errors import AuthenticationError
from ..logging_config import get_logger

logger = get_logger("services.google_oauth")

AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
SCOPES = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)


@dataclass(frozen=True)
class GoogleUserInfo:
    """Profile fields returned by the userinfo endpoint."""

    id: str
    email: str
    name: str = ""
    picture: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GoogleUserInfo":
        google_id = str(payload.get("id") or "")
        email = payload.get("email") or ""
        if not google_id or not email:
            raise AuthenticationError("Google profile is missing id or email")
        return cls(
            id=google_id,
            email=email,
            name=payload.get("name") or "",
            picture=payload.get("picture"),
        )


class GoogleOAuthClient:
    """Talks to Google's authorization, token and userinfo endpoints."""

    def __init__(
        self,
        settings: GoogleOAuthSettings,
        http: Optional[requests.Session] = None,
        *,
        timeout: float = 10,
    ) -> None:
        self.settings = settings
        self.http = http or requests.Session()
        self.timeout = timeout

    def authorization_url(self, state: str) -> str:
        """Build the consent-screen URL the browser is redirected to."""

        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_url,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "access_type": "offline",
        }
        return requests.Request("GET", AUTH_URL, params=params).prepare().url

    def exchange_code(self, code: str) -> str:
        """Trade an authorization code for a Google access token."""

        if not code:
            raise AuthenticationError("missing authorization code")
        data = {
            "code": code,
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "redirect_uri": self.settings.redirect_url,
            "grant_type": "authorization_code",
        }
        payload = self._request("POST", TOKEN_URL, data=data)
        access_token = payload.get("access_token")
        if not access_token:
            raise AuthenticationError("token response did not include an access token")
        return access_token

    def fetch_user_info(self, access_token: str) -> GoogleUserInfo:
        """Return the signed-in user's Google profile."""

        payload = self._request(
            "GET", USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
        )
        return GoogleUserInfo.from_payload(payload)

    def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.warning("Google OAuth request failed", extra={"url": url})
            raise AuthenticationError("Google sign-in failed") from exc
        except ValueError as exc:
            raise AuthenticationError("Google returned an unreadable response") from exc
        if not isinstance(payload, dict):
            raise AuthenticationError("Google returned an unexpected response")
        return payload


__all__ = ["GoogleOAuthClient", "GoogleUserInfo"]
