"""YouTube account connection: OAuth start, callback and disconnect"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.exceptions import InvalidInput, NotFound, OAuthError
from collection.clients.google_oauth import GoogleOAuthClient
from collection.clients.youtube import YouTubeClient
from service.children_service import get_child_for_parent

logger = logging.getLogger(__name__)


def start_youtube_connection(child_id: Optional[str], *, parent_id: str, session: Session,
                             oauth_client: GoogleOAuthClient) -> str:
    """Return the Google consent URL carrying the child ID as state"""
    if not child_id:
        raise InvalidInput("Child ID required")

    get_child_for_parent(session, parent_id, child_id)
    return oauth_client.build_auth_url(state=child_id)


def complete_youtube_connection(
    *,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    parent_id: str,
    session: Session,
    oauth_client: GoogleOAuthClient,
    youtube_factory: Callable[[str], YouTubeClient] = YouTubeClient,
) -> str:
    """
    Finish the OAuth round trip and store the child's YouTube binding.

    Returns:
        str: dashboard status query, e.g. "success=youtube_connected" or "error=oauth_denied"
    """
    if error == "access_denied":
        return "error=oauth_denied"

    if not code or not state:
        return "error=oauth_failed"

    child_id = state
    try:
        child = get_child_for_parent(session, parent_id, child_id)
    except NotFound:
        return "error=invalid_child"

    try:
        tokens = oauth_client.exchange_code(code)
    except OAuthError as e:
        logger.error(f"OAuth callback error: {e.message}", extra={"child_id": child_id})
        return "error=oauth_error"

    if not tokens.access_token or not tokens.refresh_token:
        return "error=token_exchange_failed"

    try:
        with youtube_factory(tokens.access_token) as youtube:
            channel = youtube.get_my_channel()
    except Exception as e:
        logger.error(f"Channel lookup failed: {e}", extra={"child_id": child_id})
        return "error=oauth_error"

    if not channel or not channel.get("id"):
        return "error=no_youtube_channel"

    try:
        child.youtube_channel_id = channel["id"]
        child.youtube_access_token = tokens.access_token
        child.youtube_refresh_token = tokens.refresh_token
        child.token_expires_at = tokens.expires_at
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to save tokens: {e}", extra={"child_id": child_id})
        return "error=save_failed"

    logger.info("YouTube connected", extra={"parent_id": parent_id, "child_id": child_id})
    return "success=youtube_connected"


def disconnect_youtube(child_id: Optional[str], *, parent_id: str, session: Session,
                       oauth_client: GoogleOAuthClient) -> None:
    """Revoke (best effort) and clear the child's YouTube binding"""
    if not child_id:
        raise InvalidInput("childId required")

    child = get_child_for_parent(session, parent_id, child_id)

    if child.youtube_access_token:
        try:
            oauth_client.revoke(child.youtube_access_token)
        except OAuthError as e:
            logger.warning(f"Failed to revoke tokens: {e.message}", extra={"child_id": child_id})

    child.youtube_channel_id = None
    child.youtube_access_token = None
    child.youtube_refresh_token = None
    child.token_expires_at = None
    session.commit()

    logger.info("YouTube disconnected", extra={"parent_id": parent_id, "child_id": child_id})
