"""Common dependencies for FastAPI dependency injection"""
import uuid
from datetime import datetime, timezone
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.api.errors import from_service_error
from core.config import PipelineSettings
from core.db import SessionLocal
from core.exceptions import NotAuthenticated
from core.pacing import FixedDelay
from collection.clients.google_oauth import GoogleOAuthClient
from collection.clients.transcripts import TranscriptFetcher
from collection.jobs.scan_history import HistoryScanner
from classification.clients.factory import build_classifier_client
from classification.clients.model_client import VideoClassifierClient
from classification.jobs.analyze_videos import VideoAnalyzer


def get_db_session() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_trace_id() -> str:
    """
    Generate unique trace ID for request tracking.

    Returns:
        str: Unique trace ID
    """
    return f"api_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


def get_parent_id(
    x_parent_id: Optional[str] = Header(None),
    trace_id: str = Depends(get_trace_id)
) -> str:
    """
    Parent identity asserted by the upstream auth proxy.

    Raises:
        HTTPException: 401 when the header is absent
    """
    if not x_parent_id:
        raise from_service_error(NotAuthenticated("Not authenticated"), trace_id)
    return x_parent_id


def get_oauth_client() -> Generator[GoogleOAuthClient, None, None]:
    with GoogleOAuthClient() as client:
        yield client


def get_model_client() -> Generator[VideoClassifierClient, None, None]:
    """
    Model client dependency, selected by CLASSIFIER_BACKEND.

    Yields:
        VideoClassifierClient: Model client instance, closed after the request
    """
    with build_classifier_client() as client:
        yield client


def get_transcript_fetcher() -> TranscriptFetcher:
    return TranscriptFetcher(delay=FixedDelay(PipelineSettings().transcript_delay_seconds))


def get_history_scanner(
    session: Session = Depends(get_db_session),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    transcript_fetcher: TranscriptFetcher = Depends(get_transcript_fetcher)
) -> HistoryScanner:
    return HistoryScanner(session=session, oauth_client=oauth_client,
                          transcript_fetcher=transcript_fetcher)


def get_video_analyzer(
    session: Session = Depends(get_db_session),
    model_client: VideoClassifierClient = Depends(get_model_client),
    transcript_fetcher: TranscriptFetcher = Depends(get_transcript_fetcher)
) -> VideoAnalyzer:
    return VideoAnalyzer(session=session, classifier=model_client,
                         transcript_fetcher=transcript_fetcher)
