from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import from_service_error
from app.deps.common import get_db_session, get_trace_id, get_parent_id
from core.exceptions import ServiceError
from service.dto import ChildDTO, CreateChildRequestDTO, PreferencesDTO, SuccessResponseDTO
from service import children_service

router = APIRouter(tags=["children"])


@router.post("/children", response_model=ChildDTO)
def create_child(
    request: CreateChildRequestDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> ChildDTO:
    try:
        return children_service.create_child(request, parent_id=parent_id, session=session)
    except ServiceError as e:
        raise from_service_error(e, trace_id)


@router.get("/children", response_model=List[ChildDTO])
def list_children(
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session)
) -> List[ChildDTO]:
    return children_service.list_children(parent_id=parent_id, session=session)


@router.delete("/children/{child_id}", response_model=SuccessResponseDTO)
def delete_child(
    child_id: str,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> SuccessResponseDTO:
    try:
        children_service.delete_child(child_id, parent_id=parent_id, session=session)
        return SuccessResponseDTO()
    except ServiceError as e:
        raise from_service_error(e, trace_id)


@router.put("/preferences", response_model=PreferencesDTO)
def save_preferences(
    request: PreferencesDTO,
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session)
) -> PreferencesDTO:
    """Create or overwrite the parent's preferences as a whole"""
    return children_service.save_preferences(request, parent_id=parent_id, session=session)


@router.get("/preferences", response_model=PreferencesDTO)
def get_preferences(
    parent_id: str = Depends(get_parent_id),
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> PreferencesDTO:
    try:
        return children_service.get_preferences(parent_id=parent_id, session=session)
    except ServiceError as e:
        raise from_service_error(e, trace_id)
