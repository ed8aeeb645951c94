"""Child profile and parent preference management"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.exceptions import InvalidInput, NotFound
from core.models import Child, ParentPreferences
from service.dto import ChildDTO, CreateChildRequestDTO, PreferencesDTO

logger = logging.getLogger(__name__)

MIN_CHILD_AGE = 1
MAX_CHILD_AGE = 18


def get_child_for_parent(session: Session, parent_id: str, child_id: str) -> Child:
    """
    Load a child owned by the parent.

    Raises:
        NotFound: child missing, or owned by a different parent
    """
    child = session.execute(
        select(Child).where(Child.id == child_id, Child.parent_id == parent_id)
    ).scalar_one_or_none()

    if child is None:
        raise NotFound("Child not found or unauthorized")
    return child


def create_child(dto: CreateChildRequestDTO, *, parent_id: str, session: Session) -> ChildDTO:
    name = (dto.name or "").strip()
    if not name or dto.age is None or not MIN_CHILD_AGE <= dto.age <= MAX_CHILD_AGE:
        raise InvalidInput("Invalid name or age")

    child = Child(parent_id=parent_id, name=name, age=dto.age)
    session.add(child)
    session.commit()
    session.refresh(child)

    logger.info("Child created", extra={"parent_id": parent_id, "child_id": child.id})
    return ChildDTO.model_validate(child)


def list_children(*, parent_id: str, session: Session) -> List[ChildDTO]:
    children = session.execute(
        select(Child).where(Child.parent_id == parent_id).order_by(Child.created_at)
    ).scalars()
    return [ChildDTO.model_validate(child) for child in children]


def delete_child(child_id: str, *, parent_id: str, session: Session) -> None:
    """Delete the child and, through the cascade, its videos"""
    child = get_child_for_parent(session, parent_id, child_id)
    session.delete(child)
    session.commit()
    logger.info("Child deleted", extra={"parent_id": parent_id, "child_id": child_id})


def _topic_set(topics: List[str]) -> List[str]:
    return sorted({topic.strip() for topic in topics if topic and topic.strip()})


def save_preferences(dto: PreferencesDTO, *, parent_id: str, session: Session) -> PreferencesDTO:
    """Create or overwrite the parent's whole preference record"""
    preferences = session.execute(
        select(ParentPreferences).where(ParentPreferences.parent_id == parent_id)
    ).scalar_one_or_none()

    if preferences is None:
        preferences = ParentPreferences(parent_id=parent_id)
        session.add(preferences)

    preferences.allowed_topics = _topic_set(dto.allowed_topics)
    preferences.blocked_topics = _topic_set(dto.blocked_topics)
    preferences.allow_mild_language = dto.allow_mild_language
    preferences.educational_priority = dto.educational_priority
    session.commit()

    logger.info("Preferences saved", extra={"parent_id": parent_id})
    return PreferencesDTO.model_validate(preferences)


def get_preferences(*, parent_id: str, session: Session) -> PreferencesDTO:
    preferences = session.execute(
        select(ParentPreferences).where(ParentPreferences.parent_id == parent_id)
    ).scalar_one_or_none()

    if preferences is None:
        raise NotFound("Parent preferences not found")
    return PreferencesDTO.model_validate(preferences)
