import uuid

from sqlalchemy import (
    Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey,
    UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.db import Base
from core.models.parent_preferences import JsonList

VERDICT_COLUMNS = (
    "ai_decision",
    "ai_confidence",
    "ai_category",
    "educational_value",
    "concerns",
    "ai_reasoning",
    "analyzed_at",
    "analysis_source",
)

def _all_or_nothing(columns) -> str:
    all_null = " AND ".join(f"{c} IS NULL" for c in columns)
    all_set = " AND ".join(f"{c} IS NOT NULL" for c in columns)
    return f"({all_null}) OR ({all_set})"

class Video(Base):
    """A video from a child's history; (child_id, youtube_video_id) is the dedup key"""
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    child_id = Column(String(36), ForeignKey("children.id", ondelete="CASCADE"), nullable=False)
    youtube_video_id = Column(String, nullable=False, comment="YouTube video ID")

    title = Column(Text, comment="Video title")
    channel_name = Column(Text, comment="Channel name")
    channel_id = Column(String, comment="Channel ID")
    description = Column(Text, comment="Video description")
    thumbnail_url = Column(Text)
    duration = Column(Integer, comment="Duration in seconds")
    watched_at = Column(TIMESTAMP(timezone=True), comment="History timestamp (UTC)")

    has_transcript = Column(Boolean, nullable=False, default=False)
    transcript_fetch_failed = Column(Boolean, nullable=False, default=False)
    transcript_text = Column(Text)

    # Verdict block: all NULL until analyzed, then written in one update
    ai_decision = Column(String(10), comment="ALLOW | REVIEW | BLOCK")
    ai_confidence = Column(Integer, comment="0-100")
    ai_category = Column(Text)
    educational_value = Column(Integer, comment="0-10")
    concerns = Column(JsonList)
    ai_reasoning = Column(Text)
    analyzed_at = Column(TIMESTAMP(timezone=True))
    analysis_source = Column(String(10), comment="model | fallback | parent")

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    child = relationship("Child", back_populates="videos")

    __table_args__ = (
        UniqueConstraint("child_id", "youtube_video_id", name="uq_videos_child_youtube_video"),
        CheckConstraint(_all_or_nothing(VERDICT_COLUMNS), name="ck_videos_verdict_all_or_nothing"),
        Index("idx_videos_child_decision", "child_id", "ai_decision"),
    )

    @property
    def is_analyzed(self) -> bool:
        return self.ai_decision is not None
