import logging
from typing import Optional

from models import (
    AIMetadata,
    BackingTrackRequest,
    BackingTrackResult,
    BackingTrackView,
    Project,
    ProjectTrack,
    TimelineItem,
)
from services.collaboration import CollaborationNotifier
from services.errors import AuthorizationError, NotFoundError
from services.project_store import ProjectStore
from services.prompt_builder import DEFAULT_DURATION, build_backing_prompt, chord_names, resolve_generation_params
from services.suno_client import SunoClient

logger = logging.getLogger(__name__)


class BackingTrackService:
    """Generates an AI backing track and appends it to the project's timeline.

    A request either ends with exactly one new timeline item or raises. The
    backing track itself is created before generation starts, so it survives
    a failed generation.
    """

    def __init__(
        self,
        store: ProjectStore,
        suno: SunoClient,
        notifier: Optional[CollaborationNotifier] = None,
    ):
        self.store = store
        self.suno = suno
        self.notifier = notifier

    async def authorize(self, project_id: str, user_id: str) -> Project:
        doc = await self.store.get_project(project_id)
        if not doc:
            raise NotFoundError("Project not found")

        project = Project(**doc)
        if project.creator_id == user_id:
            return project
        if await self.store.is_collaborator(project.id, user_id):
            return project
        raise AuthorizationError("You do not have access to this project")

    async def generate(self, project_id: str, user_id: str, request: BackingTrackRequest) -> BackingTrackResult:
        chord_names(request.chords)  # rejects empty progressions before any lookup

        project = await self.authorize(project_id, user_id)
        track = await self.store.get_or_create_backing_track(project.id)

        params = resolve_generation_params(request, project)
        prompt = build_backing_prompt(
            params.chord_names,
            instrument=params.instrument,
            style=params.style,
            tempo=params.tempo,
            key=params.key,
        )
        logger.info(f"Generating AI backing track with prompt: {prompt}")

        generation = await self.suno.start_generation(prompt, params.duration)
        logger.info(f"Suno generation started: {generation.id}")

        audio = await self.suno.await_completion(generation.id)
        logger.info(f"Suno generation complete: {audio.audio_url}")

        item = TimelineItem(
            track_id=track["id"],
            user_id=user_id,
            start_time=0,
            duration=audio.duration or params.duration or DEFAULT_DURATION,
            offset=0,
            type="lick",
            audio_url=audio.audio_url,
            loop_enabled=False,
            playback_rate=1,
            ai_generated=True,
            ai_metadata=AIMetadata(
                chords=", ".join(params.chord_names),
                instrument=params.instrument,
                style=params.style,
                tempo=params.tempo,
                key=params.key,
                provider="suno",
            ),
        )
        await self.store.insert_timeline_item(item.model_dump())

        if self.notifier is not None:
            await self.notifier.timeline_item_added(project.id, item)

        return BackingTrackResult(timeline_item=item, audio_url=audio.audio_url, duration=audio.duration)

    async def get_backing_track(self, project_id: str, user_id: str) -> BackingTrackView:
        project = await self.authorize(project_id, user_id)
        track = await self.store.find_backing_track(project.id)
        if not track:
            raise NotFoundError("No backing track for this project")

        items = await self.store.list_timeline_items(track["id"])
        return BackingTrackView(
            track=ProjectTrack(**track),
            timeline_items=[TimelineItem(**item) for item in items],
        )
