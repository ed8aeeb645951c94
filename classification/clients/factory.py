"""Classifier backend selection"""
from pydantic_settings import BaseSettings

from classification.clients.model_client import VideoClassifierClient, StubClassifierClient
from classification.clients.claude import ClaudeClassifierClient

class ClassifierSettings(BaseSettings):
    classifier_backend: str = "stub"

    class Config:
        env_file = ".env"
        extra = "ignore"

def build_classifier_client() -> VideoClassifierClient:
    """stub (offline keyword rules) or claude (Anthropic Messages API)"""
    backend = ClassifierSettings().classifier_backend.lower()
    if backend == "claude":
        return ClaudeClassifierClient()
    if backend == "stub":
        return StubClassifierClient()
    raise ValueError(f"Unknown classifier backend: {backend}")
