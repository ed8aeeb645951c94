#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import PipelineSettings
from core.db import SessionLocal
from core.models import Child, Video
from core.logging import setup_json_logging
from core.pacing import FixedDelay
from collection.clients.google_oauth import GoogleOAuthClient
from collection.clients.transcripts import TranscriptFetcher, TranscriptResult
from collection.clients.youtube import YouTubeClient, VideoMetadata
from collection.history import WatchHistoryFetcher, HistoryItem
from collection.metadata import fetch_video_metadata
from collection.tokens import TokenGuardian

logger = logging.getLogger(__name__)

class ScanSummary(BaseModel):
    videos_processed: int = 0
    videos_saved: int = 0
    videos_skipped: int = 0
    transcripts_found: int = 0

class HistoryScanner:
    """Pulls a child's recent YouTube history into unanalyzed Video rows"""

    def __init__(
        self,
        session: Optional[Session] = None,
        oauth_client: Optional[GoogleOAuthClient] = None,
        transcript_fetcher: Optional[TranscriptFetcher] = None,
        youtube_factory: Callable[[str], YouTubeClient] = YouTubeClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._owns_session = session is None
        self.db = session or SessionLocal()
        settings = PipelineSettings()
        self.youtube_factory = youtube_factory
        self._owned_oauth_client = None if oauth_client else GoogleOAuthClient()
        self.guardian = TokenGuardian(self.db, oauth_client or self._owned_oauth_client, clock=clock)
        self.history_fetcher = WatchHistoryFetcher(self.guardian, youtube_factory)
        self.transcript_fetcher = transcript_fetcher or TranscriptFetcher(
            delay=FixedDelay(settings.transcript_delay_seconds)
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owned_oauth_client is not None:
            self._owned_oauth_client.close()
        if self._owns_session:
            self.db.close()

    def scan(self, child_id: str, max_results: int = 50) -> ScanSummary:
        """Fetch history, enrich, fetch transcripts and store new videos"""
        trace_id = f"scan_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

        logger.info("Starting history scan", extra={
            "trace_id": trace_id,
            "job": "scan_history",
            "child_id": child_id,
            "max_results": max_results
        })

        watch_history = self.history_fetcher.fetch_watch_history(child_id, max_results)

        if not watch_history:
            logger.info("No videos found in watch history", extra={
                "trace_id": trace_id,
                "child_id": child_id
            })
            return ScanSummary()

        video_ids = list(dict.fromkeys(item.video_id for item in watch_history))

        logger.info(f"Fetching metadata for {len(video_ids)} videos", extra={"trace_id": trace_id})
        access_token = self.guardian.get_valid_access_token(child_id)
        metadata = fetch_video_metadata(video_ids, access_token, self.youtube_factory)
        metadata_by_id = {meta.video_id: meta for meta in metadata}

        logger.info(f"Fetching transcripts for {len(video_ids)} videos", extra={"trace_id": trace_id})
        transcripts = self.transcript_fetcher.fetch_multiple_transcripts(video_ids)

        saved, skipped = self._store_videos(child_id, watch_history, metadata_by_id, transcripts, trace_id)

        summary = ScanSummary(
            videos_processed=len(watch_history),
            videos_saved=saved,
            videos_skipped=skipped,
            transcripts_found=sum(1 for result in transcripts.values() if result.found)
        )

        logger.info("Scan completed", extra={
            "trace_id": trace_id,
            "job": "scan_history",
            "child_id": child_id,
            **summary.model_dump()
        })

        return summary

    def _store_videos(
        self,
        child_id: str,
        watch_history: List[HistoryItem],
        metadata_by_id: Dict[str, VideoMetadata],
        transcripts: Dict[str, TranscriptResult],
        trace_id: str,
    ) -> Tuple[int, int]:
        """Insert one row per new (child, video) pair; each insert commits on its own"""
        saved = 0
        skipped = 0

        for item in watch_history:
            meta = metadata_by_id.get(item.video_id)
            if meta is None:
                logger.info("Skipping video - no metadata", extra={
                    "trace_id": trace_id, "video_id": item.video_id
                })
                skipped += 1
                continue

            if self._exists(child_id, item.video_id):
                logger.info("Skipping video - already exists", extra={
                    "trace_id": trace_id, "video_id": item.video_id
                })
                skipped += 1
                continue

            transcript = transcripts.get(item.video_id)

            try:
                self.db.add(Video(
                    child_id=child_id,
                    youtube_video_id=item.video_id,
                    title=meta.title,
                    channel_name=meta.channel_name,
                    channel_id=meta.channel_id,
                    description=meta.description,
                    thumbnail_url=meta.thumbnail,
                    duration=meta.duration,
                    watched_at=item.watched_at,
                    has_transcript=bool(transcript and transcript.found),
                    transcript_fetch_failed=bool(transcript and transcript.fetch_failed),
                    transcript_text=transcript.transcript if transcript else None
                ))
                self.db.commit()
                saved += 1

            except IntegrityError:
                # Lost a race with a concurrent scan of the same child
                self.db.rollback()
                logger.info("Skipping video - inserted concurrently", extra={
                    "trace_id": trace_id, "video_id": item.video_id
                })
                skipped += 1

            except Exception as e:
                self.db.rollback()
                logger.error(f"Error inserting video: {e}", extra={
                    "trace_id": trace_id, "video_id": item.video_id
                })
                skipped += 1

        return saved, skipped

    def _exists(self, child_id: str, youtube_video_id: str) -> bool:
        stmt = select(Video.id).where(
            Video.child_id == child_id,
            Video.youtube_video_id == youtube_video_id
        )
        return self.db.execute(stmt).first() is not None

def connected_child_ids(session: Session) -> List[str]:
    stmt = select(Child.id).where(
        Child.youtube_access_token.is_not(None),
        Child.youtube_refresh_token.is_not(None)
    ).order_by(Child.created_at)
    return list(session.execute(stmt).scalars())

def scan_all_connected(max_results: Optional[int] = None) -> Dict[str, ScanSummary]:
    """Scan every child with a YouTube binding; one child's failure does not stop the rest"""
    max_results = max_results or PipelineSettings().scheduled_scan_max_results
    results: Dict[str, ScanSummary] = {}

    with HistoryScanner() as scanner:
        for child_id in connected_child_ids(scanner.db):
            try:
                results[child_id] = scanner.scan(child_id, max_results)
            except Exception as e:
                scanner.db.rollback()
                logger.error(f"Scan failed: {e}", extra={"job": "scan_history", "child_id": child_id})

    return results

def main():
    parser = argparse.ArgumentParser(description="Scan children's YouTube watch history")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--child-id", help="Child to scan")
    target.add_argument("--all", action="store_true", help="Scan every connected child")
    parser.add_argument("--max-results", type=int, default=50, help="Max videos to fetch (default: 50, ceiling 50)")

    args = parser.parse_args()

    setup_json_logging()

    if args.all:
        scan_all_connected(args.max_results)
        return

    with HistoryScanner() as scanner:
        summary = scanner.scan(args.child_id, args.max_results)
    print(summary.model_dump_json(indent=2))

if __name__ == "__main__":
    sys.exit(main())
