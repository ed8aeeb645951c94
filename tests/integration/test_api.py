"""HTTP tests for the parent-facing API"""
import pytest
from fastapi.testclient import TestClient

from conftest import FIXED_NOW, OTHER_PARENT_ID, PARENT_ID
from core.pacing import NoDelay
from collection.jobs.scan_history import HistoryScanner
from classification.clients.model_client import StubClassifierClient
from classification.jobs.analyze_videos import VideoAnalyzer
from app.deps.common import (
    get_db_session,
    get_history_scanner,
    get_oauth_client,
    get_video_analyzer,
)
from app.main import app

HEADERS = {"X-Parent-Id": PARENT_ID}


@pytest.fixture
def client(db_session, oauth_client, transcript_fetcher, youtube_api):
    app.dependency_overrides[get_db_session] = lambda: db_session
    app.dependency_overrides[get_oauth_client] = lambda: oauth_client
    app.dependency_overrides[get_history_scanner] = lambda: HistoryScanner(
        session=db_session,
        oauth_client=oauth_client,
        transcript_fetcher=transcript_fetcher,
        youtube_factory=youtube_api.factory,
        clock=lambda: FIXED_NOW,
    )
    app.dependency_overrides[get_video_analyzer] = lambda: VideoAnalyzer(
        session=db_session,
        classifier=StubClassifierClient(),
        transcript_fetcher=transcript_fetcher,
        delay=NoDelay(),
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def error_code(response):
    return response.json()["detail"]["error"]["code"]


class TestHealthAndAuth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["version"] == "0.1.0"

    def test_missing_parent_header_is_401(self, client):
        response = client.get("/api/v1/children")

        assert response.status_code == 401
        assert error_code(response) == "NOT_AUTHENTICATED"
        assert response.json()["detail"]["error"]["trace_id"].startswith("api_")


class TestChildrenAndPreferences:

    def test_create_and_list_children(self, client):
        created = client.post("/api/v1/children", json={"name": " Mia ", "age": 9}, headers=HEADERS)

        assert created.status_code == 200
        assert created.json()["name"] == "Mia"
        assert created.json()["youtubeConnected"] is False

        listed = client.get("/api/v1/children", headers=HEADERS)
        assert [c["id"] for c in listed.json()] == [created.json()["id"]]

        other = client.get("/api/v1/children", headers={"X-Parent-Id": OTHER_PARENT_ID})
        assert other.json() == []

    @pytest.mark.parametrize("body", [{"name": "Mia", "age": 0}, {"name": "Mia", "age": 19},
                                      {"name": "  ", "age": 9}, {"age": 9}])
    def test_invalid_child_rejected(self, client, body):
        response = client.post("/api/v1/children", json=body, headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

    def test_delete_child_cascades_videos(self, client, db_session, make_child, make_video):
        child = make_child()
        make_video(child)

        response = client.delete(f"/api/v1/children/{child.id}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get(f"/api/v1/children/{child.id}/videos", headers=HEADERS).status_code == 404

    def test_cannot_delete_other_parents_child(self, client, make_child):
        child = make_child(parent_id=OTHER_PARENT_ID)

        response = client.delete(f"/api/v1/children/{child.id}", headers=HEADERS)

        assert response.status_code == 404

    def test_preferences_saved_as_whole(self, client):
        assert client.get("/api/v1/preferences", headers=HEADERS).status_code == 404

        client.put("/api/v1/preferences", headers=HEADERS, json={
            "allowedTopics": ["science", "art", "science"],
            "blockedTopics": ["violence"],
            "allowMildLanguage": True,
            "educationalPriority": "medium",
        })
        client.put("/api/v1/preferences", headers=HEADERS, json={
            "allowedTopics": ["math"],
            "educationalPriority": "low",
        })

        prefs = client.get("/api/v1/preferences", headers=HEADERS).json()
        assert prefs == {
            "allowedTopics": ["math"],
            "blockedTopics": [],
            "allowMildLanguage": False,
            "educationalPriority": "low",
        }

    def test_topics_deduplicated_and_sorted(self, client):
        response = client.put("/api/v1/preferences", headers=HEADERS, json={
            "allowedTopics": ["science", "art", "science", " "],
        })

        assert response.json()["allowedTopics"] == ["art", "science"]

    def test_invalid_priority_rejected(self, client):
        response = client.put("/api/v1/preferences", headers=HEADERS, json={"educationalPriority": "urgent"})

        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"
        assert "educationalPriority" in response.json()["detail"]["error"]["message"]


class TestScanEndpoint:

    def test_scan_stores_history(self, client, make_child, youtube_api, yt_items):
        child = make_child()
        youtube_api.history = [yt_items.playlist("a"), yt_items.playlist("b")]
        youtube_api.videos = {"a": yt_items.video("a"), "b": yt_items.video("b")}

        response = client.post("/api/v1/videos/scan", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["videosProcessed"] == 2
        assert body["videosSaved"] == 2
        assert body["message"] == "Successfully scanned 2 videos"

    def test_empty_history_message(self, client, make_child):
        response = client.post("/api/v1/videos/scan", json={"childId": make_child().id}, headers=HEADERS)

        assert response.json()["message"] == "No videos found in watch history"

    def test_child_id_required(self, client):
        response = client.post("/api/v1/videos/scan", json={}, headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

    def test_missing_body_is_invalid_input(self, client):
        response = client.post("/api/v1/videos/scan", headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"
        assert response.json()["detail"]["error"]["trace_id"].startswith("api_")

    def test_non_positive_max_results(self, client, make_child):
        response = client.post("/api/v1/videos/scan", json={"childId": make_child().id, "maxResults": 0},
                               headers=HEADERS)

        assert response.status_code == 400

    def test_other_parents_child_is_404(self, client, make_child):
        child = make_child(parent_id=OTHER_PARENT_ID)

        response = client.post("/api/v1/videos/scan", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 404

    def test_not_connected(self, client, make_child):
        child = make_child(connected=False)

        response = client.post("/api/v1/videos/scan", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "YOUTUBE_NOT_CONNECTED"

    def test_auth_expired_is_500(self, client, make_child, youtube_api):
        child = make_child()
        youtube_api.fail_status = {"playlistItems": 401}

        response = client.post("/api/v1/videos/scan", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 500
        assert error_code(response) == "YOUTUBE_AUTH_EXPIRED"


class TestAnalyzeEndpoint:

    def test_analyze_pending_videos(self, client, make_child, make_preferences, make_video):
        child = make_child()
        make_preferences()
        make_video(child, transcript_fetch_failed=True)

        response = client.post("/api/v1/videos/analyze", json={"childId": child.id, "limit": 5},
                               headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["videosAnalyzed"] == 1
        assert response.json()["totalVideos"] == 1
        assert response.json()["message"] == "Successfully analyzed 1 videos"

    def test_nothing_to_analyze(self, client, make_child, make_preferences):
        child = make_child()
        make_preferences()

        response = client.post("/api/v1/videos/analyze", json={"childId": child.id}, headers=HEADERS)

        assert response.json()["message"] == "No videos to analyze"

    @pytest.mark.parametrize("body", [None, {"childId": "x", "limit": None}, {"childId": "x", "limit": "ten"}])
    def test_malformed_body_is_invalid_input(self, client, body):
        response = client.post("/api/v1/videos/analyze", json=body, headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"

    def test_zero_limit(self, client, make_child, make_preferences):
        response = client.post("/api/v1/videos/analyze", json={"childId": make_child().id, "limit": 0},
                               headers=HEADERS)

        assert response.status_code == 400

    def test_preferences_missing(self, client, make_child, make_video):
        child = make_child()
        make_video(child)

        response = client.post("/api/v1/videos/analyze", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 400
        assert error_code(response) == "PREFERENCES_MISSING"


class TestParentReview:

    def test_override_of_unanalyzed_video_fills_verdict(self, client, db_session, make_child, make_video):
        child = make_child()
        video = make_video(child)

        response = client.post("/api/v1/videos/update-decision", headers=HEADERS,
                               json={"videoId": video.id, "decision": "BLOCK"})

        assert response.status_code == 200
        db_session.refresh(video)
        assert video.ai_decision == "BLOCK"
        assert video.ai_confidence == 100
        assert video.ai_category == "other"
        assert video.educational_value == 5
        assert video.concerns == []
        assert video.ai_reasoning == "Decision set manually by parent"
        assert video.analysis_source == "parent"
        assert video.analyzed_at is not None

    def test_override_keeps_model_details(self, client, db_session, make_child, make_video):
        child = make_child()
        video = make_video(child, ai_decision="BLOCK", ai_confidence=80, ai_category="gaming",
                           educational_value=2, concerns=["violence"], ai_reasoning="Shooter game",
                           analyzed_at=FIXED_NOW, analysis_source="model")

        client.post("/api/v1/videos/update-decision", headers=HEADERS,
                    json={"videoId": video.id, "decision": "ALLOW"})

        db_session.refresh(video)
        assert video.ai_decision == "ALLOW"
        assert video.ai_category == "gaming"
        assert video.ai_reasoning == "Shooter game"
        assert video.analysis_source == "parent"

    @pytest.mark.parametrize("decision", ["allow", "MAYBE", None])
    def test_invalid_decision(self, client, make_child, make_video, decision):
        video = make_video(make_child())

        response = client.post("/api/v1/videos/update-decision", headers=HEADERS,
                               json={"videoId": video.id, "decision": decision})

        assert response.status_code == 400

    def test_other_parents_video_is_404(self, client, make_child, make_video):
        video = make_video(make_child(parent_id=OTHER_PARENT_ID))

        response = client.post("/api/v1/videos/update-decision", headers=HEADERS,
                               json={"videoId": video.id, "decision": "ALLOW"})

        assert response.status_code == 404

    def test_list_and_stats(self, client, make_child, make_video):
        child = make_child()
        verdict = dict(ai_confidence=80, ai_category="other", concerns=[], ai_reasoning="r",
                       analyzed_at=FIXED_NOW, analysis_source="model")
        make_video(child, youtube_video_id="a", ai_decision="ALLOW", educational_value=8, **verdict)
        make_video(child, youtube_video_id="b", ai_decision="BLOCK", educational_value=2, **verdict)
        make_video(child, youtube_video_id="c")

        everything = client.get(f"/api/v1/children/{child.id}/videos", headers=HEADERS).json()
        blocked = client.get(f"/api/v1/children/{child.id}/videos?decision=BLOCK", headers=HEADERS).json()
        stats = client.get(f"/api/v1/children/{child.id}/videos/stats", headers=HEADERS).json()

        assert len(everything) == 3
        assert [v["youtubeVideoId"] for v in blocked] == ["b"]
        assert stats == {
            "total": 3,
            "analyzed": 2,
            "pending": 1,
            "allowed": 1,
            "review": 0,
            "blocked": 1,
            "averageEducationalValue": 5.0,
        }

    def test_invalid_filter(self, client, make_child):
        response = client.get(f"/api/v1/children/{make_child().id}/videos?decision=maybe", headers=HEADERS)

        assert response.status_code == 400


class TestYouTubeEndpoints:

    def test_oauth_start_redirects_to_google(self, client, make_child):
        child = make_child(connected=False)

        response = client.get(f"/api/v1/youtube/oauth/start?childId={child.id}", headers=HEADERS,
                              follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"].startswith("https://accounts.google.com/")
        assert f"state={child.id}" in response.headers["location"]

    def test_oauth_start_requires_child(self, client):
        response = client.get("/api/v1/youtube/oauth/start", headers=HEADERS, follow_redirects=False)

        assert response.status_code == 400

    def test_callback_denied(self, client):
        response = client.get("/api/v1/youtube/oauth/callback?error=access_denied", headers=HEADERS,
                              follow_redirects=False)

        assert response.headers["location"] == "/dashboard?error=oauth_denied"

    def test_callback_for_unknown_child(self, client):
        response = client.get("/api/v1/youtube/oauth/callback?code=abc&state=missing", headers=HEADERS,
                              follow_redirects=False)

        assert response.headers["location"] == "/dashboard?error=invalid_child"

    def test_disconnect_clears_binding(self, client, db_session, make_child, token_endpoint):
        child = make_child()

        response = client.post("/api/v1/youtube/disconnect", json={"childId": child.id}, headers=HEADERS)

        assert response.status_code == 200
        db_session.refresh(child)
        assert child.youtube_access_token is None
        assert child.youtube_refresh_token is None
        assert child.youtube_channel_id is None
        assert child.token_expires_at is None
        assert token_endpoint.requests[0].url.path.endswith("/revoke")
