"""Video scan/analysis orchestration and parent review operations"""
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from core.exceptions import InvalidInput, NotConnected, NotFound
from core.models import Child, Video
from collection.jobs.scan_history import HistoryScanner
from collection.clients.youtube import MAX_PAGE_SIZE
from classification.guardrails.rules import DECISIONS, validate_decision
from classification.jobs.analyze_videos import VideoAnalyzer
from service.children_service import get_child_for_parent
from service.dto import (
    AnalyzeRequestDTO,
    AnalyzeResponseDTO,
    ScanRequestDTO,
    ScanResponseDTO,
    UpdateDecisionRequestDTO,
    VideoDTO,
    VideoStatsDTO,
)

logger = logging.getLogger(__name__)

PARENT_OVERRIDE_REASONING = "Decision set manually by parent"


def run_scan(
    dto: ScanRequestDTO,
    *,
    trace_id: str,
    parent_id: str,
    session: Session,
    scanner: HistoryScanner
) -> ScanResponseDTO:
    """
    Scan a child's YouTube history into unanalyzed videos.

    Raises:
        InvalidInput: missing child ID or non-positive maxResults
        NotFound: child missing or owned by another parent
        NotConnected: child has no YouTube binding
    """
    if not dto.child_id:
        raise InvalidInput("Child ID required")
    if dto.max_results < 1:
        raise InvalidInput("maxResults must be at least 1")

    child = get_child_for_parent(session, parent_id, dto.child_id)
    if not child.youtube_connected:
        raise NotConnected("YouTube not connected for this child")

    start_time = time.time()
    summary = scanner.scan(child.id, min(dto.max_results, MAX_PAGE_SIZE))

    logger.info("Scan request completed", extra={
        "trace_id": trace_id,
        "child_id": child.id,
        "latency_ms": int((time.time() - start_time) * 1000)
    })

    if summary.videos_processed == 0:
        message = "No videos found in watch history"
    else:
        message = f"Successfully scanned {summary.videos_processed} videos"

    return ScanResponseDTO(message=message, **summary.model_dump())


def run_analysis(
    dto: AnalyzeRequestDTO,
    *,
    trace_id: str,
    parent_id: str,
    session: Session,
    analyzer: VideoAnalyzer
) -> AnalyzeResponseDTO:
    """
    Classify a child's pending videos.

    Raises:
        InvalidInput: missing child ID or non-positive limit
        NotFound: child missing or owned by another parent
        PreferencesMissing: parent has not saved preferences
    """
    if not dto.child_id:
        raise InvalidInput("Child ID required")
    if dto.limit < 1:
        raise InvalidInput("limit must be at least 1")

    child = get_child_for_parent(session, parent_id, dto.child_id)

    start_time = time.time()
    summary = analyzer.analyze(child.id, dto.limit)

    logger.info("Analyze request completed", extra={
        "trace_id": trace_id,
        "child_id": child.id,
        "latency_ms": int((time.time() - start_time) * 1000)
    })

    if summary.total_videos == 0:
        message = "No videos to analyze"
    else:
        message = f"Successfully analyzed {summary.videos_analyzed} videos"

    return AnalyzeResponseDTO(message=message, **summary.model_dump())


def override_decision(dto: UpdateDecisionRequestDTO, *, parent_id: str, session: Session) -> None:
    """
    Parent override of a video's decision.

    An unanalyzed video gets a complete parent verdict block, so the verdict
    columns stay all-set or all-null.
    """
    if not dto.video_id or not dto.decision:
        raise InvalidInput("Video ID and decision required")
    if validate_decision(dto.decision):
        raise InvalidInput("Invalid decision")

    video = session.execute(
        select(Video)
        .join(Child, Child.id == Video.child_id)
        .where(Video.id == dto.video_id, Child.parent_id == parent_id)
    ).scalar_one_or_none()

    if video is None:
        raise NotFound("Video not found")

    if video.is_analyzed:
        video.ai_decision = dto.decision
        video.analysis_source = "parent"
    else:
        video.ai_decision = dto.decision
        video.ai_confidence = 100
        video.ai_category = "other"
        video.educational_value = 5
        video.concerns = []
        video.ai_reasoning = PARENT_OVERRIDE_REASONING
        video.analysis_source = "parent"
        video.analyzed_at = datetime.now(timezone.utc)

    session.commit()
    logger.info("Decision overridden by parent", extra={
        "parent_id": parent_id,
        "video_id": video.youtube_video_id,
        "decision": dto.decision
    })


def list_videos(child_id: str, *, parent_id: str, session: Session,
                decision: Optional[str] = None) -> List[VideoDTO]:
    """Videos for a child, most recently watched first, optionally filtered by decision"""
    get_child_for_parent(session, parent_id, child_id)

    stmt = select(Video).where(Video.child_id == child_id)
    if decision is not None:
        if decision not in DECISIONS:
            raise InvalidInput("Invalid decision")
        stmt = stmt.where(Video.ai_decision == decision)

    stmt = stmt.order_by(Video.watched_at.desc(), Video.created_at.desc())
    return [VideoDTO.model_validate(video) for video in session.execute(stmt).scalars()]


def video_stats(child_id: str, *, parent_id: str, session: Session) -> VideoStatsDTO:
    get_child_for_parent(session, parent_id, child_id)

    rows = session.execute(
        select(Video.ai_decision, func.count(Video.id), func.avg(Video.educational_value))
        .where(Video.child_id == child_id)
        .group_by(Video.ai_decision)
    ).all()

    counts = {decision: count for decision, count, _ in rows}
    stats = VideoStatsDTO(
        total=sum(counts.values()),
        pending=counts.get(None, 0),
        allowed=counts.get("ALLOW", 0),
        review=counts.get("REVIEW", 0),
        blocked=counts.get("BLOCK", 0),
    )
    stats.analyzed = stats.total - stats.pending

    if stats.analyzed:
        weighted = sum(float(avg) * count for decision, count, avg in rows
                       if decision is not None and avg is not None)
        stats.average_educational_value = round(weighted / stats.analyzed, 2)

    return stats
