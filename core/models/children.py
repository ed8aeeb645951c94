import uuid

from sqlalchemy import Column, String, Text, Integer, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.db import Base

class Child(Base):
    """Monitored child profile, optionally bound to a YouTube account"""
    __tablename__ = "children"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    parent_id = Column(String, nullable=False, index=True, comment="Owning parent identity")
    name = Column(Text, nullable=False)
    age = Column(Integer, nullable=False)

    youtube_channel_id = Column(String, comment="Bound YouTube channel ID")
    youtube_access_token = Column(Text)
    youtube_refresh_token = Column(Text)
    token_expires_at = Column(TIMESTAMP(timezone=True), comment="Access token expiry (UTC)")

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(),
                        onupdate=func.now())

    videos = relationship("Video", back_populates="child", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("age BETWEEN 1 AND 18", name="ck_children_age_range"),
    )

    @property
    def youtube_connected(self) -> bool:
        return bool(self.youtube_access_token and self.youtube_refresh_token)
