"""Watch-history retrieval with the history → likes → uploads fallback"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Dict, Any

import httpx
from pydantic import BaseModel

from core.exceptions import HistoryFetchFailed, YouTubeAuthExpired
from collection.clients.youtube import (
    YouTubeClient,
    MAX_PAGE_SIZE,
    WATCH_HISTORY_PLAYLIST,
    medium_thumbnail,
)
from collection.tokens import TokenGuardian

logger = logging.getLogger(__name__)

class HistoryItem(BaseModel):
    video_id: str
    watched_at: datetime
    title: str = ""
    channel_name: str = ""
    channel_id: str = ""
    thumbnail: str = ""
    source: str = "history"

def parse_timestamp(value: str) -> datetime:
    """ISO-8601 timestamp; missing or unparseable values fall back to now"""
    if value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable timestamp {value!r}, using current time")
    return datetime.now(timezone.utc)

def clamp_page_size(max_results: int) -> int:
    return max(1, min(int(max_results), MAX_PAGE_SIZE))

class WatchHistoryFetcher:
    """Returns at most one page (50) of a child's recent videos"""

    def __init__(self, guardian: TokenGuardian,
                 youtube_factory: Callable[[str], YouTubeClient] = YouTubeClient):
        self.guardian = guardian
        self.youtube_factory = youtube_factory

    def fetch_watch_history(self, child_id: str, max_results: int = MAX_PAGE_SIZE) -> List[HistoryItem]:
        access_token = self.guardian.get_valid_access_token(child_id)
        page_size = clamp_page_size(max_results)

        try:
            with self.youtube_factory(access_token) as youtube:
                return self._fetch_tiers(youtube, page_size, child_id)

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                raise YouTubeAuthExpired("YouTube authentication expired. Please reconnect.")
            raise HistoryFetchFailed(f"Failed to fetch watch history: {e.response.text[:200] or e}")
        except Exception as e:
            logger.error(f"Error fetching watch history: {e}", extra={"child_id": child_id})
            raise HistoryFetchFailed(f"Failed to fetch watch history: {e}")

    def _fetch_tiers(self, youtube: YouTubeClient, page_size: int, child_id: str) -> List[HistoryItem]:
        history = self._map_playlist_items(
            youtube.list_playlist_items(WATCH_HISTORY_PLAYLIST, page_size), "history"
        )
        if history:
            logger.info(f"Found {len(history)} videos in watch history", extra={"child_id": child_id})
            return history

        # publishedAt stands in for watch time below; neither tier is real history
        logger.info("No watch history available, falling back to liked videos",
                    extra={"child_id": child_id})
        liked = self._map_liked_videos(youtube.list_liked_videos(page_size))
        if liked:
            logger.info(f"Found {len(liked)} liked videos", extra={"child_id": child_id})
            return liked

        logger.info("No liked videos, falling back to channel uploads", extra={"child_id": child_id})
        uploads_playlist_id = youtube.get_uploads_playlist_id()
        if not uploads_playlist_id:
            return []

        uploads = self._map_playlist_items(
            youtube.list_playlist_items(uploads_playlist_id, page_size), "uploads"
        )
        logger.info(f"Found {len(uploads)} uploaded videos", extra={"child_id": child_id})
        return uploads

    def _map_playlist_items(self, items: List[Dict[str, Any]], source: str) -> List[HistoryItem]:
        mapped = []
        for item in items:
            video_id = (item.get("contentDetails") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            mapped.append(HistoryItem(
                video_id=video_id,
                # For the HL playlist this is when the video was added to history
                watched_at=parse_timestamp(snippet.get("publishedAt", "")),
                title=snippet.get("title", ""),
                channel_name=snippet.get("channelTitle", ""),
                channel_id=snippet.get("channelId", ""),
                thumbnail=medium_thumbnail(snippet),
                source=source
            ))
        return mapped

    def _map_liked_videos(self, items: List[Dict[str, Any]]) -> List[HistoryItem]:
        mapped = []
        for item in items:
            if not item.get("id"):
                continue
            snippet = item.get("snippet") or {}
            mapped.append(HistoryItem(
                video_id=item["id"],
                watched_at=parse_timestamp(snippet.get("publishedAt", "")),
                title=snippet.get("title", ""),
                channel_name=snippet.get("channelTitle", ""),
                channel_id=snippet.get("channelId", ""),
                thumbnail=medium_thumbnail(snippet),
                source="likes"
            ))
        return mapped
