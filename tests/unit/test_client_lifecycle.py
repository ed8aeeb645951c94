"""Tests that HTTP clients built per request or per job are closed afterwards"""
import pytest

from core.pacing import NoDelay
from app.deps import common
from collection.jobs.scan_history import HistoryScanner
from classification.clients.model_client import StubClassifierClient
from classification.jobs import analyze_videos
from classification.jobs.analyze_videos import VideoAnalyzer


class RecordingClassifier(StubClassifierClient):
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def built_classifier(monkeypatch):
    classifier = RecordingClassifier()
    monkeypatch.setattr(common, "build_classifier_client", lambda: classifier)
    monkeypatch.setattr(analyze_videos, "build_classifier_client", lambda: classifier)
    return classifier


class TestClientLifecycle:

    def test_model_client_dependency_closed_after_request(self, built_classifier):
        dependency = common.get_model_client()

        assert next(dependency) is built_classifier
        assert not built_classifier.closed

        dependency.close()

        assert built_classifier.closed

    def test_analyzer_closes_classifier_it_built(self, db_session, transcript_fetcher, built_classifier):
        with VideoAnalyzer(session=db_session, transcript_fetcher=transcript_fetcher, delay=NoDelay()):
            pass

        assert built_classifier.closed

    def test_analyzer_leaves_injected_classifier_open(self, db_session, transcript_fetcher):
        classifier = RecordingClassifier()

        with VideoAnalyzer(session=db_session, classifier=classifier,
                           transcript_fetcher=transcript_fetcher, delay=NoDelay()):
            pass

        assert not classifier.closed

    def test_scanner_closes_oauth_client_it_built(self, db_session, transcript_fetcher):
        with HistoryScanner(session=db_session, transcript_fetcher=transcript_fetcher) as scanner:
            owned = scanner.guardian.oauth_client

        assert owned.client.is_closed

    def test_scanner_leaves_injected_oauth_client_open(self, db_session, transcript_fetcher, oauth_client):
        with HistoryScanner(session=db_session, oauth_client=oauth_client,
                            transcript_fetcher=transcript_fetcher):
            pass

        assert not oauth_client.client.is_closed
