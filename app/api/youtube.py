import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.errors import from_service_error, from_unexpected_error
from app.deps.common import get_db_session, get_trace_id, get_parent_id, get_oauth_client
from core.exceptions import ServiceError
from collection.clients.google_oauth import GoogleOAuthClient
from service.dto import ChildIdRequestDTO, SuccessResponseDTO
from service import youtube_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/youtube", tags=["youtube"])


@router.get("/oauth/start")
def oauth_start(
    child_id: Optional[str] = Query(None, alias="childId"),
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client)
) -> RedirectResponse:
    """Redirect the parent to Google's consent screen for the child's account"""
    try:
        auth_url = youtube_service.start_youtube_connection(
            child_id, parent_id=parent_id, session=session, oauth_client=oauth_client
        )
    except ServiceError as e:
        raise from_service_error(e, trace_id)
    return RedirectResponse(auth_url)


@router.get("/oauth/callback")
def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client)
) -> RedirectResponse:
    """Store the child's tokens and send the parent back to the dashboard with a status"""
    try:
        status = youtube_service.complete_youtube_connection(
            code=code,
            state=state,
            error=error,
            parent_id=parent_id,
            session=session,
            oauth_client=oauth_client
        )
    except Exception as e:
        logger.error(f"OAuth callback error: {e}", exc_info=True)
        status = "error=oauth_error"

    return RedirectResponse(f"{oauth_client.settings.oauth_dashboard_url}?{status}")


@router.post("/disconnect", response_model=SuccessResponseDTO)
def disconnect(
    request: ChildIdRequestDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client)
) -> SuccessResponseDTO:
    try:
        youtube_service.disconnect_youtube(
            request.child_id, parent_id=parent_id, session=session, oauth_client=oauth_client
        )
        return SuccessResponseDTO()
    except ServiceError as e:
        raise from_service_error(e, trace_id)
    except Exception as e:
        raise from_unexpected_error(e, trace_id)
