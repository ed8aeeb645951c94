"""Abstract model client interface for video classification"""
from abc import ABC, abstractmethod
from typing import List
from classification.schemas.verdict import ClassificationRequest, Verdict

class VideoClassifierClient(ABC):
    """Abstract base class for video classification model clients"""

    name = "abstract"

    @abstractmethod
    def classify(self, request: ClassificationRequest, trace_id: str) -> Verdict:
        """Return a validated verdict, or raise on transport/parse failure"""
        pass

    def close(self):
        """Release network resources; clients without any keep the no-op"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

def _matches(topics: List[str], text: str) -> List[str]:
    return [topic for topic in topics if topic and topic.lower() in text]

class StubClassifierClient(VideoClassifierClient):
    """Offline keyword classifier for development and tests without API calls"""

    name = "stub-client"

    def classify(self, request: ClassificationRequest, trace_id: str) -> Verdict:
        video = request.video
        text = " ".join([video.title, video.description, video.transcript or ""]).lower()

        blocked = _matches(request.preferences.blocked_topics, text)
        if blocked:
            return Verdict(
                decision="BLOCK",
                confidence=80,
                category="other",
                educational_value=2,
                concerns=[f"blocked_topic:{topic}" for topic in blocked],
                reasoning=f"Mentions blocked topics: {', '.join(blocked)}"
            )

        allowed = _matches(request.preferences.allowed_topics, text)
        if allowed:
            return Verdict(
                decision="ALLOW",
                confidence=70,
                category="educational",
                educational_value=7,
                concerns=[],
                reasoning=f"Matches allowed topics: {', '.join(allowed)}"
            )

        return Verdict(
            decision="REVIEW",
            confidence=40,
            category="other",
            educational_value=5,
            concerns=[],
            reasoning="No preference topics matched; parent review suggested"
        )
