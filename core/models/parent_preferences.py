import uuid

from sqlalchemy import Column, String, Boolean, TIMESTAMP, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.db import Base

# SQL NULL for None, so "IS NULL" filters and checks see unset lists
JsonList = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

class ParentPreferences(Base):
    """One content-preference record per parent, saved as a whole"""
    __tablename__ = "parent_preferences"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    parent_id = Column(String, nullable=False, unique=True)
    allowed_topics = Column(JsonList, nullable=False, default=list,
                            comment="Allowed topics, deduplicated and sorted")
    blocked_topics = Column(JsonList, nullable=False, default=list,
                            comment="Blocked topics, deduplicated and sorted")
    allow_mild_language = Column(Boolean, nullable=False, default=False)
    educational_priority = Column(String(10), nullable=False, default="high",
                                  comment="high | medium | low")

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(),
                        onupdate=func.now())
