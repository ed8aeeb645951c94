"""Per-child OAuth token guardian"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotConnected, NotFound, OAuthError, TokenRefreshFailed
from core.models import Child
from collection.clients.google_oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on read)"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class TokenGuardian:
    """Hands out a currently-valid YouTube access token for a child.

    Every refresh is a single read-check-write against the child's row; there
    is no in-process cache.
    """

    def __init__(
        self,
        session: Session,
        oauth_client: GoogleOAuthClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.oauth_client = oauth_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_valid_access_token(self, child_id: str) -> str:
        child = self.session.get(Child, child_id)
        if child is None:
            raise NotFound(f"Child {child_id} not found")

        if not child.youtube_access_token or not child.youtube_refresh_token:
            raise NotConnected("YouTube not connected for this child")

        expires_at = as_utc(child.token_expires_at)
        if expires_at is not None and self._clock() < expires_at:
            return child.youtube_access_token

        logger.info("Access token expired, refreshing", extra={"child_id": child_id})
        try:
            tokens = self.oauth_client.refresh_access_token(child.youtube_refresh_token)
        except OAuthError as e:
            logger.warning("Token refresh failed", extra={"child_id": child_id})
            raise TokenRefreshFailed(f"Could not refresh YouTube token: {e.message}")

        child.youtube_access_token = tokens.access_token
        child.token_expires_at = tokens.expires_at
        if tokens.refresh_token:
            child.youtube_refresh_token = tokens.refresh_token
        self.session.commit()

        return tokens.access_token
