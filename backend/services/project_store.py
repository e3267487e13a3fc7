import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from models import ProjectTrack

logger = logging.getLogger(__name__)

BACKING_TRACK_TYPE = "backing"
INACTIVE_COLLABORATOR_STATUSES = ["pending", "removed"]


class ProjectStore:
    """MongoDB access for projects, collaborators, tracks and timeline items."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.projects = db.projects
        self.collaborators = db.project_collaborators
        self.tracks = db.project_tracks
        self.timeline_items = db.project_timeline_items

    async def ensure_indexes(self) -> None:
        # One backing track per project; lick/audio tracks stay unconstrained
        await self.tracks.create_index(
            [("project_id", ASCENDING), ("track_type", ASCENDING)],
            unique=True,
            partialFilterExpression={"track_type": BACKING_TRACK_TYPE},
            name="unique_backing_track_per_project",
        )
        await self.tracks.create_index([("project_id", ASCENDING), ("track_order", ASCENDING)])
        await self.timeline_items.create_index([("track_id", ASCENDING), ("created_at", ASCENDING)])
        await self.collaborators.create_index([("project_id", ASCENDING), ("user_id", ASCENDING)])

    async def get_project(self, project_id: str) -> Optional[dict]:
        return await self.projects.find_one({"id": project_id}, {"_id": 0})

    async def is_collaborator(self, project_id: str, user_id: str) -> bool:
        doc = await self.collaborators.find_one({
            "project_id": project_id,
            "user_id": user_id,
            "status": {"$nin": INACTIVE_COLLABORATOR_STATUSES},
        })
        return doc is not None

    async def find_backing_track(self, project_id: str) -> Optional[dict]:
        return await self.tracks.find_one(
            {"project_id": project_id, "track_type": BACKING_TRACK_TYPE},
            {"_id": 0},
        )

    async def get_or_create_backing_track(self, project_id: str) -> dict:
        """Upsert the project's backing track with default mixer settings."""
        defaults = ProjectTrack(
            project_id=project_id,
            track_name="AI Backing Track",
            track_order=0,
            track_type=BACKING_TRACK_TYPE,
            is_backing_track=True,
        ).model_dump()
        defaults.pop("project_id")
        defaults.pop("track_type")

        try:
            return await self.tracks.find_one_and_update(
                {"project_id": project_id, "track_type": BACKING_TRACK_TYPE},
                {"$setOnInsert": defaults},
                projection={"_id": 0},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # A concurrent request inserted it first
            logger.info(f"Backing track for project {project_id} created concurrently, re-reading")
            return await self.find_backing_track(project_id)

    async def insert_timeline_item(self, item: dict) -> dict:
        await self.timeline_items.insert_one(dict(item))
        return item

    async def list_timeline_items(self, track_id: str) -> List[dict]:
        return await self.timeline_items.find(
            {"track_id": track_id},
            {"_id": 0},
        ).sort("created_at", 1).to_list(1000)
