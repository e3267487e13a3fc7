from pydantic import BaseModel, Field, ConfigDict, NonNegativeFloat, NonNegativeInt
from typing import Optional, List, Union, Dict, Any
from datetime import datetime, timezone
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Request Models
class ChordRef(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    chord_name: str = Field(alias="chordName", min_length=1)


class BackingTrackRequest(BaseModel):
    chords: Optional[List[Union[str, ChordRef]]] = None
    instrument: Optional[str] = None
    style: Optional[str] = None
    tempo: Optional[int] = Field(default=None, ge=0, le=400)
    key: Optional[str] = None
    # Whole seconds stay integers on the way to Suno
    duration: Optional[Union[NonNegativeInt, NonNegativeFloat]] = None


# Project Models
class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    creator_id: str
    title: str = ""
    tempo: Optional[int] = 120
    # Either a plain name ("C Major") or the {root, scale, name} object the studio stores
    key: Optional[Union[str, Dict[str, Any]]] = None

    @property
    def key_name(self) -> Optional[str]:
        if isinstance(self.key, dict):
            return self.key.get("name")
        return self.key


class ProjectTrack(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str
    track_name: str = "Track"
    track_order: int = 0
    track_type: str = "lick"  # backing, lick, midi, audio
    is_backing_track: bool = False
    color: str = "#2563eb"
    volume: float = 1.0
    pan: float = 0.0
    muted: bool = False
    solo: bool = False


class AIMetadata(BaseModel):
    chords: str
    instrument: str
    style: str
    tempo: int
    key: str
    provider: str = "suno"


class TimelineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    track_id: str
    user_id: str
    start_time: float = 0
    duration: float
    offset: float = 0
    type: str = "lick"
    audio_url: str
    loop_enabled: bool = False
    playback_rate: float = 1
    ai_generated: bool = False
    ai_metadata: Optional[AIMetadata] = None
    created_at: datetime = Field(default_factory=_now)


# Generation Models
class GenerationParams(BaseModel):
    chord_names: List[str]
    instrument: str
    style: str
    tempo: int
    key: str
    duration: Union[int, float]


class SunoGeneration(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    status: Optional[str] = None


class SunoAudio(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: Optional[str] = None
    status: str
    audio_url: str
    duration: Optional[float] = None
    title: Optional[str] = None
    image_url: Optional[str] = None


class BackingTrackResult(BaseModel):
    timeline_item: TimelineItem
    audio_url: str
    duration: Optional[float] = None


class BackingTrackView(BaseModel):
    track: ProjectTrack
    timeline_items: List[TimelineItem]
