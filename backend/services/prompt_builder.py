from typing import List, Optional, Sequence, Union

from models import BackingTrackRequest, ChordRef, GenerationParams, Project
from services.errors import ValidationError

DEFAULT_INSTRUMENT = "Piano"
DEFAULT_STYLE = "Jazz"
DEFAULT_TEMPO = 120
DEFAULT_KEY = "C Major"
DEFAULT_DURATION = 30

BACKING_PROMPT = (
    "Backing track: {instrument} playing chord progression {chords} in {key} at {tempo}BPM. "
    "{style} style. Clean chords only, no melody, no vocals. "
    "Professional studio quality. Instrumental only."
)


def chord_names(chords: Optional[Sequence[Union[str, ChordRef]]]) -> List[str]:
    if not chords:
        raise ValidationError("chords array is required")

    names = []
    for chord in chords:
        name = chord.chord_name if isinstance(chord, ChordRef) else chord
        name = name.strip()
        if not name:
            raise ValidationError("chord names must not be empty")
        names.append(name)
    return names


def build_backing_prompt(
    chords: Sequence[Union[str, ChordRef]],
    instrument: str,
    style: str,
    tempo: int,
    key: str,
) -> str:
    """Describe an instrumental, vocal-free accompaniment for the given progression."""
    return BACKING_PROMPT.format(
        instrument=instrument,
        chords=", ".join(chord_names(chords)),
        key=key,
        tempo=tempo,
        style=style,
    )


def resolve_generation_params(request: BackingTrackRequest, project: Project) -> GenerationParams:
    """Fill the request's gaps from the project, then from the studio defaults.

    Zero and empty values count as missing.
    """
    return GenerationParams(
        chord_names=chord_names(request.chords),
        instrument=request.instrument or DEFAULT_INSTRUMENT,
        style=request.style or DEFAULT_STYLE,
        tempo=request.tempo or project.tempo or DEFAULT_TEMPO,
        key=request.key or project.key_name or DEFAULT_KEY,
        duration=request.duration or DEFAULT_DURATION,
    )
