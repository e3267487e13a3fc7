import json
import logging
from typing import Optional

from redis.exceptions import RedisError

from models import TimelineItem
from services.cache import RedisConnection
from services.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

TIMELINE_ITEM_ADDED = "timeline:item-added"


def project_channel(project_id: str) -> str:
    return f"project:{project_id}"


class CollaborationNotifier:
    """Publishes project timeline changes to collaborators listening on Redis."""

    def __init__(self, connection: Optional[RedisConnection]):
        self.connection = connection

    async def timeline_item_added(self, project_id: str, item: TimelineItem) -> bool:
        if self.connection is None:
            return False

        event = {
            "event": TIMELINE_ITEM_ADDED,
            "projectId": project_id,
            "item": item.model_dump(mode="json"),
        }
        try:
            # Reopens a handle that failed at startup or was closed
            client = await self.connection.client()
            await client.publish(project_channel(project_id), json.dumps(event))
        except (RedisError, CacheUnavailableError) as e:
            # The item is already stored; collaborators pick it up on next load
            logger.warning(f"Could not publish timeline event for project {project_id}: {e}")
            return False
        return True
