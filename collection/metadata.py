"""Batched video metadata lookup"""
import logging
from typing import Callable, List

from collection.clients.youtube import (
    YouTubeClient,
    VideoMetadata,
    MAX_PAGE_SIZE,
    parse_video_metadata,
)

logger = logging.getLogger(__name__)

def chunked(items: List[str], size: int = MAX_PAGE_SIZE) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]

def fetch_video_metadata(
    video_ids: List[str],
    access_token: str,
    youtube_factory: Callable[[str], YouTubeClient] = YouTubeClient,
) -> List[VideoMetadata]:
    """Fetch full metadata for the ids, 50 per request.

    A failed chunk is logged and skipped; its videos are simply absent from the
    result and callers skip them.
    """
    videos: List[VideoMetadata] = []
    if not video_ids:
        return videos

    with youtube_factory(access_token) as youtube:
        for batch in chunked(video_ids):
            try:
                items = youtube.list_videos(batch)
            except Exception as e:
                logger.error(f"Error fetching video metadata batch of {len(batch)}: {e}")
                continue

            for item in items:
                try:
                    videos.append(parse_video_metadata(item))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(f"Failed to parse video {item.get('id', 'unknown')}: {e}")

    return videos
