import json
from copy import deepcopy
from typing import List, Optional

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from models import ProjectTrack
from services.project_store import BACKING_TRACK_TYPE, INACTIVE_COLLABORATOR_STATUSES
from services.suno_client import PollPolicy, SunoClient

OWNER_ID = "user-owner"
COLLABORATOR_ID = "user-collab"
STRANGER_ID = "user-stranger"
PROJECT_ID = "project-1"


class FakeStore:
    """In-memory stand-in for ProjectStore."""

    def __init__(self, projects: Optional[List[dict]] = None, collaborators: Optional[List[dict]] = None):
        self.projects = {p["id"]: deepcopy(p) for p in projects or []}
        self.collaborators = list(collaborators or [])
        self.tracks: List[dict] = []
        self.timeline_items: List[dict] = []
        self.calls: List[str] = []

    async def ensure_indexes(self) -> None:
        self.calls.append("ensure_indexes")

    async def get_project(self, project_id):
        self.calls.append("get_project")
        project = self.projects.get(project_id)
        return deepcopy(project) if project else None

    async def is_collaborator(self, project_id, user_id):
        self.calls.append("is_collaborator")
        return any(
            c["project_id"] == project_id
            and c["user_id"] == user_id
            and c.get("status") not in INACTIVE_COLLABORATOR_STATUSES
            for c in self.collaborators
        )

    async def find_backing_track(self, project_id):
        for track in self.tracks:
            if track["project_id"] == project_id and track["track_type"] == BACKING_TRACK_TYPE:
                return deepcopy(track)
        return None

    async def get_or_create_backing_track(self, project_id):
        self.calls.append("get_or_create_backing_track")
        existing = await self.find_backing_track(project_id)
        if existing:
            return existing
        track = ProjectTrack(
            project_id=project_id,
            track_name="AI Backing Track",
            track_order=0,
            track_type=BACKING_TRACK_TYPE,
            is_backing_track=True,
        ).model_dump()
        self.tracks.append(track)
        return deepcopy(track)

    async def insert_timeline_item(self, item):
        self.calls.append("insert_timeline_item")
        self.timeline_items.append(deepcopy(item))
        return item

    async def list_timeline_items(self, track_id):
        return [deepcopy(i) for i in self.timeline_items if i["track_id"] == track_id]


class SunoStub:
    """httpx handler that plays back start and status responses."""

    def __init__(self, statuses=None, start_response: Optional[httpx.Response] = None):
        self.statuses = list(statuses or [])
        self.start_response = start_response
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return self.start_response or httpx.Response(200, json={"id": "gen-1", "status": "queued"})
        body = self.statuses.pop(0)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    @property
    def start_payloads(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]

    @property
    def poll_count(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")


class FakeRedisClient:
    def __init__(self, fail_ping: bool = False, fail_publish: bool = False):
        self.fail_ping = fail_ping
        self.fail_publish = fail_publish
        self.published = []
        self.closed = False

    async def ping(self):
        if self.fail_ping:
            raise RedisConnectionError("connection refused")
        return True

    async def publish(self, channel, message):
        if self.fail_publish:
            raise RedisConnectionError("connection lost")
        self.published.append((channel, message))
        return 1

    async def aclose(self):
        self.closed = True


def make_suno(stub: SunoStub, api_key: Optional[str] = "test-key", max_attempts: int = 30) -> SunoClient:
    return SunoClient(
        api_key=api_key,
        base_url="https://suno.test/v1",
        poll_policy=PollPolicy(max_attempts=max_attempts, interval=0),
        transport=httpx.MockTransport(stub),
    )


def complete_status(audio_url="https://cdn.suno.test/gen-1.mp3", duration=16.0):
    return {"id": "gen-1", "status": "complete", "audio_url": audio_url, "duration": duration}


@pytest.fixture
def project():
    return {
        "id": PROJECT_ID,
        "creator_id": OWNER_ID,
        "title": "Late night sketch",
        "tempo": 96,
        "key": {"root": 9, "scale": "minor", "name": "A Minor"},
    }


@pytest.fixture
def store(project):
    return FakeStore(
        projects=[project],
        collaborators=[
            {"project_id": PROJECT_ID, "user_id": COLLABORATOR_ID, "status": "accepted"},
            {"project_id": PROJECT_ID, "user_id": "user-invited", "status": "pending"},
        ],
    )
