"""Pydantic schemas for video classification with guardrails validation"""
from typing import List, Optional, Literal, Union
from pydantic import BaseModel, Field, validator
from classification.guardrails.rules import (
    validate_decision,
    validate_score,
    validate_concerns,
    CONFIDENCE_RANGE,
    EDUCATIONAL_VALUE_RANGE,
)

FALLBACK_CONCERN = "ai_analysis_failed"
FALLBACK_REASONING = "AI analysis failed - manual review needed"

class VideoExcerpt(BaseModel):
    """Bounded slice of a video's metadata sent to the classifier"""
    title: str = ""
    description: str = ""
    channel_name: str = ""
    duration: int = 0
    transcript: Optional[str] = None

class PreferenceSet(BaseModel):
    allowed_topics: List[str] = Field(default_factory=list)
    blocked_topics: List[str] = Field(default_factory=list)
    allow_mild_language: bool = False
    educational_priority: Literal["high", "medium", "low"] = "high"

class ClassificationRequest(BaseModel):
    """Request schema for video classification"""
    video: VideoExcerpt
    child_age: int = Field(..., ge=1, le=18)
    preferences: PreferenceSet

class Verdict(BaseModel):
    """Classifier verdict with guardrails validation"""
    source: Literal["model", "fallback", "parent"] = "model"
    decision: str
    confidence: int
    category: str = Field(..., min_length=1)
    educational_value: int = Field(..., alias="educationalValue")
    concerns: List[str]
    reasoning: str

    class Config:
        populate_by_name = True

    @validator('confidence', 'educational_value', pre=True)
    def round_scores(cls, v):
        if isinstance(v, float):
            return round(v)
        return v

    @validator('decision')
    def validate_decision_guardrails(cls, v):
        violations = validate_decision(v)
        if violations:
            raise ValueError(f"Decision guardrail violations: {violations}")
        return v

    @validator('confidence')
    def validate_confidence_guardrails(cls, v):
        violations = validate_score("confidence", v, CONFIDENCE_RANGE)
        if violations:
            raise ValueError(f"Confidence guardrail violations: {violations}")
        return v

    @validator('educational_value')
    def validate_educational_value_guardrails(cls, v):
        violations = validate_score("educationalValue", v, EDUCATIONAL_VALUE_RANGE)
        if violations:
            raise ValueError(f"Educational value guardrail violations: {violations}")
        return v

    @validator('concerns')
    def validate_concerns_guardrails(cls, v):
        violations = validate_concerns(v)
        if violations:
            raise ValueError(f"Concerns guardrail violations: {violations}")
        return v

    @property
    def is_fallback(self) -> bool:
        return False

class FallbackVerdict(Verdict):
    """Synthetic low-confidence REVIEW substituted when the classifier fails"""
    source: Literal["fallback"] = "fallback"
    decision: str = "REVIEW"
    confidence: int = 0
    category: str = "other"
    educational_value: int = Field(5, alias="educationalValue")
    concerns: List[str] = Field(default_factory=lambda: [FALLBACK_CONCERN])
    reasoning: str = FALLBACK_REASONING
    error: str = ""

    @property
    def is_fallback(self) -> bool:
        return True

ClassificationOutcome = Union[Verdict, FallbackVerdict]
