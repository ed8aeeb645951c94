import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import from_service_error, from_unexpected_error
from app.deps.common import (
    get_db_session,
    get_trace_id,
    get_parent_id,
    get_history_scanner,
    get_video_analyzer,
)
from core.exceptions import ServiceError
from collection.jobs.scan_history import HistoryScanner
from classification.jobs.analyze_videos import VideoAnalyzer
from service.dto import (
    AnalyzeRequestDTO,
    AnalyzeResponseDTO,
    ScanRequestDTO,
    ScanResponseDTO,
    SuccessResponseDTO,
    UpdateDecisionRequestDTO,
    VideoDTO,
    VideoStatsDTO,
)
from service import videos_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["videos"])


@router.post("/videos/scan", response_model=ScanResponseDTO)
def scan_videos(
    request: ScanRequestDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id),
    scanner: HistoryScanner = Depends(get_history_scanner)
) -> ScanResponseDTO:
    """Pull the child's recent YouTube history into unanalyzed videos"""
    logger.info("Scan API request received", extra={
        "trace_id": trace_id,
        "parent_id": parent_id,
        "child_id": request.child_id
    })
    try:
        return videos_service.run_scan(
            request,
            trace_id=trace_id,
            parent_id=parent_id,
            session=session,
            scanner=scanner
        )
    except ServiceError as e:
        raise from_service_error(e, trace_id)
    except Exception as e:
        raise from_unexpected_error(e, trace_id)


@router.post("/videos/analyze", response_model=AnalyzeResponseDTO)
def analyze_videos(
    request: AnalyzeRequestDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id),
    analyzer: VideoAnalyzer = Depends(get_video_analyzer)
) -> AnalyzeResponseDTO:
    """Classify the child's pending videos"""
    logger.info("Analyze API request received", extra={
        "trace_id": trace_id,
        "parent_id": parent_id,
        "child_id": request.child_id
    })
    try:
        return videos_service.run_analysis(
            request,
            trace_id=trace_id,
            parent_id=parent_id,
            session=session,
            analyzer=analyzer
        )
    except ServiceError as e:
        raise from_service_error(e, trace_id)
    except Exception as e:
        raise from_unexpected_error(e, trace_id)


@router.post("/videos/update-decision", response_model=SuccessResponseDTO)
def update_decision(
    request: UpdateDecisionRequestDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> SuccessResponseDTO:
    try:
        videos_service.override_decision(request, parent_id=parent_id, session=session)
        return SuccessResponseDTO()
    except ServiceError as e:
        raise from_service_error(e, trace_id)
    except Exception as e:
        raise from_unexpected_error(e, trace_id)


@router.get("/children/{child_id}/videos", response_model=List[VideoDTO])
def list_child_videos(
    child_id: str,
    decision: Optional[str] = Query(None),
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> List[VideoDTO]:
    try:
        return videos_service.list_videos(child_id, parent_id=parent_id, session=session,
                                          decision=decision)
    except ServiceError as e:
        raise from_service_error(e, trace_id)


@router.get("/children/{child_id}/videos/stats", response_model=VideoStatsDTO)
def child_video_stats(
    child_id: str,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> VideoStatsDTO:
    try:
        return videos_service.video_stats(child_id, parent_id=parent_id, session=session)
    except ServiceError as e:
        raise from_service_error(e, trace_id)
