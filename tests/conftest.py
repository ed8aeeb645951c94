"""Common test fixtures for all test modules"""
import os

# core.db reads DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLASSIFIER_BACKEND", "stub")

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db import Base
from core.models import Child, ParentPreferences, Video
from core.pacing import NoDelay
from collection.clients.google_oauth import GoogleOAuthClient
from collection.clients.transcripts import TranscriptFetcher
from collection.clients.youtube import YouTubeClient

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
PARENT_ID = "parent-1"
OTHER_PARENT_ID = "parent-2"


@pytest.fixture
def engine():
    """Fresh in-memory database per test, shared across threads"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def make_child(db_session):
    """Create a child; connected=True gives it a valid token pair"""
    def _make(parent_id=PARENT_ID, name="Mia", age=9, connected=True,
              expires_at=FIXED_NOW + timedelta(hours=1)):
        child = Child(parent_id=parent_id, name=name, age=age)
        if connected:
            child.youtube_channel_id = "UC_child"
            child.youtube_access_token = "access-old"
            child.youtube_refresh_token = "refresh-1"
            child.token_expires_at = expires_at
        db_session.add(child)
        db_session.commit()
        return child
    return _make


@pytest.fixture
def make_preferences(db_session):
    def _make(parent_id=PARENT_ID, allowed=("science", "math"), blocked=("violence",),
              allow_mild_language=False, educational_priority="high"):
        prefs = ParentPreferences(
            parent_id=parent_id,
            allowed_topics=list(allowed),
            blocked_topics=list(blocked),
            allow_mild_language=allow_mild_language,
            educational_priority=educational_priority,
        )
        db_session.add(prefs)
        db_session.commit()
        return prefs
    return _make


@pytest.fixture
def make_video(db_session):
    def _make(child, youtube_video_id="vid1", title="Fun science experiments", **fields):
        video = Video(
            child_id=child.id,
            youtube_video_id=youtube_video_id,
            title=title,
            channel_name="Science Channel",
            description=fields.pop("description", "Volcano experiment for kids"),
            duration=fields.pop("duration", 300),
            watched_at=fields.pop("watched_at", FIXED_NOW),
            **fields,
        )
        db_session.add(video)
        db_session.commit()
        return video
    return _make


class FakeTranscriptApi:
    """Stands in for YouTubeTranscriptApi: texts maps video id to caption lines"""

    def __init__(self, texts=None, fail=()):
        self.texts = texts or {}
        self.fail = set(fail)
        self.calls = []

    def fetch(self, video_id):
        self.calls.append(video_id)
        if video_id in self.fail:
            raise RuntimeError("Subtitles are disabled for this video")
        return [SimpleNamespace(text=line) for line in self.texts.get(video_id, [])]


@pytest.fixture
def transcript_api():
    return FakeTranscriptApi()


@pytest.fixture
def transcript_fetcher(transcript_api):
    return TranscriptFetcher(api=transcript_api, delay=NoDelay())


def playlist_item(video_id, published_at="2025-01-01T10:00:00Z", title=None):
    return {
        "snippet": {
            "title": title or f"Video {video_id}",
            "channelTitle": "Some Channel",
            "channelId": "UC_some",
            "publishedAt": published_at,
            "thumbnails": {"medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"}},
        },
        "contentDetails": {"videoId": video_id},
    }


def video_resource(video_id, duration="PT5M30S", title=None, description="A video"):
    return {
        "id": video_id,
        "snippet": {
            "title": title or f"Video {video_id}",
            "description": description,
            "channelTitle": "Some Channel",
            "channelId": "UC_some",
            "publishedAt": "2024-12-01T00:00:00Z",
            "thumbnails": {"medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"}},
        },
        "contentDetails": {"duration": duration},
    }


class FakeYouTubeApi:
    """Routes YouTube Data API requests to canned responses.

    history/liked are item lists, videos maps id to resource, fail_status makes
    every request on that endpoint return the status.
    """

    def __init__(self, history=None, liked=None, uploads=None, videos=None,
                 uploads_playlist_id=None, fail_status=None):
        self.history = history or []
        self.liked = liked or []
        self.uploads = uploads or []
        self.videos = videos or {}
        self.uploads_playlist_id = uploads_playlist_id
        self.fail_status = fail_status or {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params

        if endpoint in self.fail_status:
            return httpx.Response(self.fail_status[endpoint], json={"error": {"message": "nope"}})

        if endpoint == "playlistItems":
            items = self.history if params["playlistId"] == "HL" else self.uploads
            return httpx.Response(200, json={"items": items})

        if endpoint == "videos" and params.get("myRating") == "like":
            return httpx.Response(200, json={"items": self.liked})

        if endpoint == "videos":
            ids = params["id"].split(",")
            return httpx.Response(200, json={"items": [self.videos[i] for i in ids if i in self.videos]})

        if endpoint == "channels":
            if not self.uploads_playlist_id:
                return httpx.Response(200, json={"items": []})
            return httpx.Response(200, json={"items": [{
                "id": "UC_child",
                "contentDetails": {"relatedPlaylists": {"uploads": self.uploads_playlist_id}},
            }]})

        return httpx.Response(404)

    def factory(self, access_token):
        return YouTubeClient(access_token, http_client=httpx.Client(transport=httpx.MockTransport(self.handler)))

    def requests_to(self, endpoint):
        return [r for r in self.requests if r.url.path.endswith("/" + endpoint)]


@pytest.fixture
def youtube_api():
    return FakeYouTubeApi()


class FakeTokenEndpoint:
    """Google token/revoke endpoint returning a fixed payload or status"""

    def __init__(self, payload=None, status=200, revoke_status=200):
        self.payload = payload if payload is not None else {
            "access_token": "access-new",
            "expires_in": 3600,
        }
        self.status = status
        self.revoke_status = revoke_status
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/revoke"):
            return httpx.Response(self.revoke_status)
        return httpx.Response(self.status, content=json.dumps(self.payload))

    def client(self, clock=lambda: FIXED_NOW):
        return GoogleOAuthClient(
            http_client=httpx.Client(transport=httpx.MockTransport(self.handler)),
            clock=clock,
        )


@pytest.fixture
def token_endpoint():
    return FakeTokenEndpoint()


@pytest.fixture
def oauth_client(token_endpoint):
    return token_endpoint.client()


@pytest.fixture
def yt_items():
    """Builders for YouTube API resources"""
    return SimpleNamespace(playlist=playlist_item, video=video_resource)
