#!/usr/bin/env python3
import sys
import logging
import argparse
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import PipelineSettings
from core.db import SessionLocal
from core.exceptions import NotFound, PersistenceFailed, PreferencesMissing
from core.logging import setup_json_logging
from core.models import Child, ParentPreferences, Video
from core.pacing import DelayPolicy, FixedDelay, paced
from collection.clients.transcripts import TranscriptFetcher
from classification.clients.factory import build_classifier_client
from classification.clients.model_client import VideoClassifierClient
from classification.schemas.verdict import (
    ClassificationOutcome,
    ClassificationRequest,
    FallbackVerdict,
    PreferenceSet,
    VideoExcerpt,
)

logger = logging.getLogger(__name__)

class AnalysisSummary(BaseModel):
    videos_analyzed: int = 0
    videos_failed: int = 0
    total_videos: int = 0

def preference_set(preferences: ParentPreferences) -> PreferenceSet:
    return PreferenceSet(
        allowed_topics=preferences.allowed_topics or [],
        blocked_topics=preferences.blocked_topics or [],
        allow_mild_language=bool(preferences.allow_mild_language),
        educational_priority=preferences.educational_priority or "high"
    )

def build_classification_request(
    video: Video,
    transcript: Optional[str],
    child_age: int,
    preferences: PreferenceSet,
    settings: PipelineSettings,
) -> ClassificationRequest:
    """Combine a bounded excerpt of the video with the child profile and parent preferences"""
    return ClassificationRequest(
        video=VideoExcerpt(
            title=video.title or "",
            description=(video.description or "")[:settings.description_prompt_chars],
            channel_name=video.channel_name or "",
            duration=video.duration or 0,
            transcript=transcript[:settings.transcript_prompt_chars] if transcript else None
        ),
        child_age=child_age,
        preferences=preferences
    )

def classify_with_fallback(
    client: VideoClassifierClient,
    request: ClassificationRequest,
    trace_id: str,
) -> ClassificationOutcome:
    """Run the classifier; any failure becomes a FallbackVerdict instead of an exception"""
    try:
        return client.classify(request, trace_id)
    except Exception as e:
        logger.warning(f"Classifier failed, using fallback verdict: {e}", extra={
            "trace_id": trace_id
        })
        return FallbackVerdict(error=f"{type(e).__name__}: {e}")

class VideoAnalyzer:
    """Classifies a child's unanalyzed videos one at a time"""

    def __init__(
        self,
        session: Optional[Session] = None,
        classifier: Optional[VideoClassifierClient] = None,
        transcript_fetcher: Optional[TranscriptFetcher] = None,
        delay: Optional[DelayPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._owns_session = session is None
        self.db = session or SessionLocal()
        self.settings = PipelineSettings()
        self._owns_classifier = classifier is None
        self.classifier = classifier or build_classifier_client()
        self.transcript_fetcher = transcript_fetcher or TranscriptFetcher()
        self.delay = delay or FixedDelay(self.settings.analysis_delay_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_classifier:
            self.classifier.close()
        if self._owns_session:
            self.db.close()

    def analyze(self, child_id: str, limit: int = 10) -> AnalysisSummary:
        """Classify up to `limit` unanalyzed videos for the child"""
        trace_id = f"analyze_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

        child = self.db.get(Child, child_id)
        if child is None:
            raise NotFound(f"Child {child_id} not found")

        preferences = self.db.execute(
            select(ParentPreferences).where(ParentPreferences.parent_id == child.parent_id)
        ).scalar_one_or_none()
        if preferences is None:
            raise PreferencesMissing("Parent preferences not found. Please complete onboarding.")

        videos = self._unanalyzed_videos(child_id, limit)
        summary = AnalysisSummary(total_videos=len(videos))

        if not videos:
            logger.info("No videos to analyze", extra={"trace_id": trace_id, "child_id": child_id})
            return summary

        logger.info(f"Analyzing {len(videos)} videos", extra={
            "trace_id": trace_id,
            "job": "analyze_videos",
            "child_id": child_id,
            "child_age": child.age
        })

        prefs = preference_set(preferences)

        for video in paced(videos, self.delay):
            try:
                transcript = self._ensure_transcript(video)
                request = build_classification_request(video, transcript, child.age, prefs, self.settings)
                outcome = classify_with_fallback(self.classifier, request, trace_id)
                self._save_verdict(video, outcome)

                summary.videos_analyzed += 1
                logger.info(f"{outcome.decision} (confidence: {outcome.confidence}%)", extra={
                    "trace_id": trace_id,
                    "video_id": video.youtube_video_id,
                    "source": outcome.source
                })

            except Exception as e:
                self.db.rollback()
                summary.videos_failed += 1
                logger.error(f"Error analyzing video: {e}", extra={
                    "trace_id": trace_id,
                    "video_id": video.youtube_video_id
                })

        logger.info("Analysis completed", extra={
            "trace_id": trace_id,
            "job": "analyze_videos",
            "child_id": child_id,
            **summary.model_dump()
        })

        return summary

    def _unanalyzed_videos(self, child_id: str, limit: int) -> List[Video]:
        stmt = (
            select(Video)
            .where(Video.child_id == child_id, Video.ai_decision.is_(None))
            .order_by(Video.created_at, Video.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def _ensure_transcript(self, video: Video) -> Optional[str]:
        """Fetch a transcript just in time unless one is stored or a previous fetch failed"""
        if video.has_transcript:
            return video.transcript_text
        if video.transcript_fetch_failed:
            return None

        result = self.transcript_fetcher.fetch_transcript(video.youtube_video_id)
        video.has_transcript = result.found
        video.transcript_fetch_failed = result.fetch_failed
        video.transcript_text = result.transcript
        self.db.commit()

        return result.transcript

    def _save_verdict(self, video: Video, outcome: ClassificationOutcome) -> None:
        """Write the whole verdict block in a single commit"""
        video.ai_decision = outcome.decision
        video.ai_confidence = outcome.confidence
        video.ai_category = outcome.category
        video.educational_value = outcome.educational_value
        video.concerns = list(outcome.concerns)
        video.ai_reasoning = outcome.reasoning
        video.analysis_source = outcome.source
        video.analyzed_at = self._clock()
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailed(f"Failed to save verdict for {video.youtube_video_id}: {e}")

def analyze_all_children(limit: Optional[int] = None) -> Dict[str, AnalysisSummary]:
    """Analyze pending videos for every child whose parent has preferences"""
    limit = limit or PipelineSettings().scheduled_analyze_limit
    results: Dict[str, AnalysisSummary] = {}

    with VideoAnalyzer() as analyzer:
        child_ids = analyzer.db.execute(
            select(Child.id)
            .join(ParentPreferences, ParentPreferences.parent_id == Child.parent_id)
            .order_by(Child.created_at)
        ).scalars().all()

        for child_id in child_ids:
            try:
                results[child_id] = analyzer.analyze(child_id, limit)
            except Exception as e:
                analyzer.db.rollback()
                logger.error(f"Analysis failed: {e}", extra={"job": "analyze_videos", "child_id": child_id})

    return results

def main():
    parser = argparse.ArgumentParser(description="Classify unanalyzed videos")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--child-id", help="Child whose videos to analyze")
    target.add_argument("--all", action="store_true", help="Analyze every child with parent preferences")
    parser.add_argument("--limit", type=int, default=10, help="Max videos per child (default: 10)")

    args = parser.parse_args()

    setup_json_logging()

    if args.all:
        analyze_all_children(args.limit)
        return

    with VideoAnalyzer() as analyzer:
        summary = analyzer.analyze(args.child_id, args.limit)
    print(summary.model_dump_json(indent=2))

if __name__ == "__main__":
    sys.exit(main())
