import httpx
import logging
import re
from typing import List, Dict, Any, Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

logger = logging.getLogger(__name__)

# YouTube Data API page-size / id-batch ceiling
MAX_PAGE_SIZE = 50

# Special playlist ID for the signed-in account's watch history
WATCH_HISTORY_PLAYLIST = "HL"

DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")

class YouTubeSettings(BaseSettings):
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        extra = "ignore"

class VideoMetadata(BaseModel):
    video_id: str
    title: str = ""
    description: str = ""
    channel_name: str = ""
    channel_id: str = ""
    thumbnail: str = ""
    duration: int = 0
    published_at: str = ""
    tags: List[str] = []
    category_id: str = ""

def parse_duration(duration: Optional[str]) -> int:
    """Decode an ISO-8601 style PT#H#M#S token into seconds; unparseable input is 0"""
    if not duration:
        return 0

    match = DURATION_PATTERN.search(duration)
    if not match:
        return 0

    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds

def medium_thumbnail(snippet: Dict[str, Any]) -> str:
    return ((snippet.get("thumbnails") or {}).get("medium") or {}).get("url", "")

def _is_transient(exc: BaseException) -> bool:
    """Retry on 429 (rate limit), 5xx (server errors) and transport failures"""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.RequestError)

class YouTubeClient:
    """Authenticated YouTube Data API v3 client for one account's access token"""

    def __init__(self, access_token: str, http_client: Optional[httpx.Client] = None):
        self.settings = YouTubeSettings()
        self.base_url = self.settings.youtube_api_base_url
        self.access_token = access_token
        self.client = http_client or httpx.Client(
            timeout=self.settings.youtube_timeout_seconds,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2)
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def list_playlist_items(self, playlist_id: str, max_results: int = MAX_PAGE_SIZE) -> List[Dict[str, Any]]:
        """Fetch a single page of playlist items"""
        response = self._make_request("playlistItems", {
            "part": "snippet,contentDetails",
            "playlistId": playlist_id,
            "maxResults": max_results
        })
        return response.get("items", [])

    def list_liked_videos(self, max_results: int = MAX_PAGE_SIZE) -> List[Dict[str, Any]]:
        """Fetch a single page of videos the account rated 'like'"""
        response = self._make_request("videos", {
            "part": "snippet,contentDetails",
            "myRating": "like",
            "maxResults": max_results
        })
        return response.get("items", [])

    def get_my_channel(self) -> Optional[Dict[str, Any]]:
        """Fetch the signed-in account's own channel resource"""
        response = self._make_request("channels", {
            "part": "id,contentDetails",
            "mine": "true"
        })
        items = response.get("items", [])
        return items[0] if items else None

    def get_uploads_playlist_id(self) -> Optional[str]:
        channel = self.get_my_channel()
        if not channel:
            return None
        related = (channel.get("contentDetails") or {}).get("relatedPlaylists") or {}
        return related.get("uploads")

    def list_videos(self, video_ids: List[str]) -> List[Dict[str, Any]]:
        """Fetch detailed video resources for up to 50 ids"""
        if len(video_ids) > MAX_PAGE_SIZE:
            raise ValueError(f"At most {MAX_PAGE_SIZE} video ids per request, got {len(video_ids)}")

        response = self._make_request("videos", {
            "part": "snippet,contentDetails,statistics",
            "id": ",".join(video_ids)
        })
        return response.get("items", [])

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=30, jitter=0.2),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            f"Retry {retry_state.attempt_number}: {retry_state.outcome.exception()}"
        )
    )
    def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make HTTP request with retry logic for 429/5xx errors"""
        try:
            response = self.client.get(
                f"{self.base_url}/{endpoint}",
                params=params,
                headers={"Authorization": f"Bearer {self.access_token}"}
            )

            if response.status_code == 429 or response.status_code >= 500:
                logger.warning(f"HTTP {response.status_code}: retrying request")

            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} on {endpoint}: {e}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Request error on {endpoint}: {e}")
            raise

def parse_video_metadata(item: Dict[str, Any]) -> VideoMetadata:
    """Map a videos.list resource to VideoMetadata"""
    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}

    return VideoMetadata(
        video_id=item["id"],
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        channel_name=snippet.get("channelTitle", ""),
        channel_id=snippet.get("channelId", ""),
        thumbnail=medium_thumbnail(snippet),
        duration=parse_duration(content_details.get("duration", "")),
        published_at=snippet.get("publishedAt", ""),
        tags=snippet.get("tags", []),
        category_id=snippet.get("categoryId", "")
    )
