"""Data Transfer Objects for service layer"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the web client uses"""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ScanRequestDTO(CamelModel):
    """Service layer DTO for history scan requests"""
    child_id: Optional[str] = Field(None, alias="childId")
    max_results: int = Field(50, alias="maxResults")


class ScanResponseDTO(CamelModel):
    success: bool = True
    message: str = ""
    videos_processed: int = Field(0, alias="videosProcessed")
    videos_saved: int = Field(0, alias="videosSaved")
    videos_skipped: int = Field(0, alias="videosSkipped")
    transcripts_found: int = Field(0, alias="transcriptsFound")


class AnalyzeRequestDTO(CamelModel):
    """Service layer DTO for classification requests"""
    child_id: Optional[str] = Field(None, alias="childId")
    limit: int = 10


class AnalyzeResponseDTO(CamelModel):
    success: bool = True
    message: str = ""
    videos_analyzed: int = Field(0, alias="videosAnalyzed")
    videos_failed: int = Field(0, alias="videosFailed")
    total_videos: int = Field(0, alias="totalVideos")


class UpdateDecisionRequestDTO(CamelModel):
    video_id: Optional[str] = Field(None, alias="videoId")
    decision: Optional[str] = None


class ChildIdRequestDTO(CamelModel):
    child_id: Optional[str] = Field(None, alias="childId")


class CreateChildRequestDTO(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None


class ChildDTO(CamelModel):
    id: str
    name: str
    age: int
    youtube_channel_id: Optional[str] = Field(None, alias="youtubeChannelId")
    youtube_connected: bool = Field(False, alias="youtubeConnected")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class PreferencesDTO(CamelModel):
    allowed_topics: List[str] = Field(default_factory=list, alias="allowedTopics")
    blocked_topics: List[str] = Field(default_factory=list, alias="blockedTopics")
    allow_mild_language: bool = Field(False, alias="allowMildLanguage")
    educational_priority: Literal["high", "medium", "low"] = Field("high", alias="educationalPriority")


class VideoDTO(CamelModel):
    id: str
    youtube_video_id: str = Field(..., alias="youtubeVideoId")
    title: Optional[str] = None
    channel_name: Optional[str] = Field(None, alias="channelName")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    duration: Optional[int] = None
    watched_at: Optional[datetime] = Field(None, alias="watchedAt")
    has_transcript: bool = Field(False, alias="hasTranscript")
    ai_decision: Optional[str] = Field(None, alias="aiDecision")
    ai_confidence: Optional[int] = Field(None, alias="aiConfidence")
    ai_category: Optional[str] = Field(None, alias="aiCategory")
    educational_value: Optional[int] = Field(None, alias="educationalValue")
    concerns: Optional[List[str]] = None
    ai_reasoning: Optional[str] = Field(None, alias="aiReasoning")
    analysis_source: Optional[str] = Field(None, alias="analysisSource")
    analyzed_at: Optional[datetime] = Field(None, alias="analyzedAt")


class VideoStatsDTO(CamelModel):
    total: int = 0
    analyzed: int = 0
    pending: int = 0
    allowed: int = 0
    review: int = 0
    blocked: int = 0
    average_educational_value: Optional[float] = Field(None, alias="averageEducationalValue")


class SuccessResponseDTO(BaseModel):
    success: bool = True


class HealthResponseDTO(BaseModel):
    """Service layer DTO for health check responses"""
    ok: bool = True
    timestamp: Optional[str] = None
    version: Optional[str] = None
