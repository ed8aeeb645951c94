import httpx
import json
import logging
import time
from typing import Dict, Any, Optional
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from core.exceptions import ClassifierInvalidOutput
from classification.guardrails.rules import CATEGORIES, validate_verdict
from classification.schemas.verdict import ClassificationRequest, Verdict
from classification.clients.model_client import VideoClassifierClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a content analysis AI specialized in determining if YouTube videos are "
    "appropriate for children. Always respond with valid JSON only."
)

class ClaudeSettings(BaseSettings):
    anthropic_api_key: str = ""
    claude_model: str = "claude-3-haiku-20240307"
    claude_max_attempts: int = 2

    class Config:
        env_file = ".env"
        extra = "ignore"

class ClaudeClassifierClient(VideoClassifierClient):
    name = "claude"

    def __init__(self, http_client: Optional[httpx.Client] = None):
        self.settings = ClaudeSettings()
        self.client = http_client or httpx.Client(
            timeout=60.0,
            headers={
                "x-api-key": self.settings.anthropic_api_key,
                "content-type": "application/json",
                "anthropic-version": "2023-06-01"
            }
        )

    def close(self):
        self.client.close()

    def classify(self, request: ClassificationRequest, trace_id: str) -> Verdict:
        """Classify a video with a bounded number of attempts"""
        max_attempts = max(1, self.settings.claude_max_attempts)
        last_error: Exception = None

        for attempt in range(max_attempts):
            try:
                start_time = time.time()

                response_data = self._call_claude_api(request)
                verdict = self._parse_response(response_data, trace_id, attempt)

                logger.info("Classification successful", extra={
                    "trace_id": trace_id,
                    "attempt": attempt + 1,
                    "latency_ms": int((time.time() - start_time) * 1000)
                })

                return verdict

            except Exception as e:
                last_error = e
                logger.warning(f"Classification attempt {attempt + 1} failed: {e}", extra={
                    "trace_id": trace_id,
                    "attempt": attempt + 1
                })

        raise last_error

    def _call_claude_api(self, request: ClassificationRequest) -> Dict[str, Any]:
        """Call Claude API to classify the video"""
        payload = {
            "model": self.settings.claude_model,
            "max_tokens": 800,
            "temperature": 0.3,
            "system": SYSTEM_PROMPT,
            "messages": [
                {
                    "role": "user",
                    "content": build_prompt(request)
                }
            ]
        }

        response = self.client.post(
            "https://api.anthropic.com/v1/messages",
            json=payload
        )

        response.raise_for_status()
        return response.json()

    def _parse_response(self, response_data: Dict[str, Any], trace_id: str, attempt: int) -> Verdict:
        """Parse Claude API response and validate"""
        try:
            content = response_data["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise ClassifierInvalidOutput("No text content in classifier response")

        # Extract JSON from response
        json_start = content.find('{')
        json_end = content.rfind('}') + 1

        if json_start == -1 or json_end == 0:
            raise ClassifierInvalidOutput("No JSON found in classifier response")

        try:
            parsed_data = json.loads(content[json_start:json_end])
            if not isinstance(parsed_data, dict):
                raise ValueError("Classifier output is not a JSON object")

            violations = validate_verdict(parsed_data)
            if violations:
                raise ValueError(f"Guardrail violations: {violations}")

            parsed_data.pop("source", None)
            return Verdict(**parsed_data, source="model")

        except (ValueError, TypeError, ValidationError) as e:
            logger.error(f"Failed to parse response: {e}", extra={
                "trace_id": trace_id,
                "attempt": attempt + 1,
                "response_content": content[:200]
            })
            raise ClassifierInvalidOutput(f"Invalid classifier output: {e}")

def format_duration(seconds: int) -> str:
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d} ({seconds} seconds)"

def build_prompt(request: ClassificationRequest) -> str:
    """Build the classification prompt from the bounded video excerpt and preferences"""
    video = request.video
    prefs = request.preferences
    category_options = " | ".join(f'"{c}"' for c in CATEGORIES)

    if video.transcript:
        transcript_line = f"- Transcript (excerpt): {video.transcript}"
    else:
        transcript_line = "- Transcript: Not available"

    prompt = f"""You are analyzing a YouTube video to determine if it's appropriate for a child.

CHILD PROFILE:
- Age: {request.child_age} years old

PARENT PREFERENCES:
- Allowed topics: {', '.join(prefs.allowed_topics)}
- Blocked topics: {', '.join(prefs.blocked_topics)}
- Allow mild language in educational content: {'Yes' if prefs.allow_mild_language else 'No'}
- Educational priority: {prefs.educational_priority}

VIDEO INFORMATION:
- Title: {video.title}
- Channel: {video.channel_name}
- Duration: {format_duration(video.duration)}
- Description: {video.description}
{transcript_line}

Analyze this video and respond ONLY with valid JSON matching this exact structure:
{{
  "decision": "ALLOW" | "REVIEW" | "BLOCK",
  "confidence": 0-100,
  "category": {category_options},
  "educationalValue": 0-10,
  "concerns": ["array", "of", "concerns"],
  "reasoning": "Brief explanation (max 100 words)"
}}

Decision guidelines:
- ALLOW: Content aligns with preferences and is age-appropriate
- REVIEW: Uncertain or borderline content that parent should review
- BLOCK: Clear violation of preferences or age-inappropriate

Consider:
1. Child's age and maturity
2. Parent's allowed/blocked topics
3. Educational value
4. Language, violence, inappropriate themes
5. Context (educational content may have mild language if allowed)
"""
    return prompt
