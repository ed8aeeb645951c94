import logging
from typing import Dict, List, Optional

from pydantic import BaseModel
from youtube_transcript_api import YouTubeTranscriptApi

from core.pacing import DelayPolicy, FixedDelay, paced

logger = logging.getLogger(__name__)

class TranscriptResult(BaseModel):
    transcript: Optional[str] = None
    fetch_failed: bool

    @property
    def found(self) -> bool:
        return self.transcript is not None

class TranscriptFetcher:
    """Best-effort caption text for a video; never raises.

    Roughly a third of videos have captions disabled or unavailable, so a
    failed lookup is an expected outcome and is reported as fetch_failed.
    """

    def __init__(self, api: Optional[YouTubeTranscriptApi] = None,
                 delay: Optional[DelayPolicy] = None):
        self.api = api or YouTubeTranscriptApi()
        self.delay = delay or FixedDelay(0.1)

    def fetch_transcript(self, video_id: str) -> TranscriptResult:
        try:
            segments = self.api.fetch(video_id)
            texts = [segment.text for segment in segments] if segments else []
            transcript = " ".join(texts).strip()

            if not transcript:
                return TranscriptResult(transcript=None, fetch_failed=True)

            return TranscriptResult(transcript=transcript, fetch_failed=False)

        except Exception as e:
            logger.warning(f"Transcript fetch failed: {e}", extra={"video_id": video_id})
            return TranscriptResult(transcript=None, fetch_failed=True)

    def fetch_multiple_transcripts(self, video_ids: List[str]) -> Dict[str, TranscriptResult]:
        """Sequential lookups with a pause after each, to stay under the caption rate limit"""
        results: Dict[str, TranscriptResult] = {}
        for video_id in paced(video_ids, self.delay):
            results[video_id] = self.fetch_transcript(video_id)
        return results
