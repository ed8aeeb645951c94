"""Pipeline tuning shared by the scan and analysis jobs"""
from pydantic_settings import BaseSettings


class PipelineSettings(BaseSettings):
    transcript_delay_seconds: float = 0.1
    analysis_delay_seconds: float = 0.2
    description_prompt_chars: int = 500
    transcript_prompt_chars: int = 4000
    scheduled_scan_max_results: int = 50
    scheduled_analyze_limit: int = 10

    class Config:
        env_file = ".env"
        extra = "ignore"
