import httpx
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from urllib.parse import urlencode
from pydantic import BaseModel
from pydantic_settings import BaseSettings

from core.exceptions import OAuthError

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"
YOUTUBE_READONLY_SCOPE = "https://www.googleapis.com/auth/youtube.readonly"

# Assumed lifetime when the token endpoint omits expires_in
DEFAULT_EXPIRES_IN = 3600

class GoogleOAuthSettings(BaseSettings):
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    oauth_dashboard_url: str = "/dashboard"

    class Config:
        env_file = ".env"
        extra = "ignore"

class OAuthTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime

class GoogleOAuthClient:
    """Authorization-code, refresh-token and revoke calls against Google OAuth 2.0"""

    def __init__(self, http_client: Optional[httpx.Client] = None, clock=None):
        self.settings = GoogleOAuthSettings()
        self.client = http_client or httpx.Client(timeout=10.0)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.client.close()

    def build_auth_url(self, state: str) -> str:
        """Consent URL; state carries the child ID through the round trip"""
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": YOUTUBE_READONLY_SCOPE,
            # offline + consent so Google always issues a refresh token
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> OAuthTokens:
        """Exchange an authorization code for an access/refresh token pair"""
        data = self._post_token({
            "code": code,
            "client_id": self.settings.google_client_id,
            "client_secret": self.settings.google_client_secret,
            "redirect_uri": self.settings.google_redirect_uri,
            "grant_type": "authorization_code",
        })
        return self._to_tokens(data)

    def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        """Exchange a refresh token for a new access token"""
        data = self._post_token({
            "refresh_token": refresh_token,
            "client_id": self.settings.google_client_id,
            "client_secret": self.settings.google_client_secret,
            "grant_type": "refresh_token",
        })
        tokens = self._to_tokens(data)
        # Google keeps the original refresh token unless it rotates it
        if tokens.refresh_token is None:
            tokens.refresh_token = refresh_token
        return tokens

    def revoke(self, token: str) -> None:
        try:
            response = self.client.post(REVOKE_URL, data={"token": token})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise OAuthError(f"Token revoke failed: {e}")

    def _post_token(self, form: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.client.post(TOKEN_URL, data=form)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Token endpoint returned HTTP {e.response.status_code}")
            raise OAuthError(f"Token exchange failed: HTTP {e.response.status_code} {e.response.text[:200]}")
        except (httpx.RequestError, ValueError) as e:
            logger.error(f"Token endpoint request failed: {e}")
            raise OAuthError(f"Token exchange failed: {e}")

    def _to_tokens(self, data: Dict[str, Any]) -> OAuthTokens:
        if not data.get("access_token"):
            raise OAuthError("Token response missing access_token")

        expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=self._clock() + timedelta(seconds=expires_in)
        )
