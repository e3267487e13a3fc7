import pytest

from models import BackingTrackRequest, ChordRef, Project
from services.errors import ValidationError
from services.prompt_builder import build_backing_prompt, chord_names, resolve_generation_params


def test_prompt_matches_studio_template():
    prompt = build_backing_prompt(
        ["Cmaj7", "Am7", "Dm7", "G7"],
        instrument="Piano",
        style="Jazz",
        tempo=120,
        key="C Major",
    )
    assert prompt == (
        "Backing track: Piano playing chord progression Cmaj7, Am7, Dm7, G7 in C Major at 120BPM. "
        "Jazz style. Clean chords only, no melody, no vocals. Professional studio quality. "
        "Instrumental only."
    )


def test_prompt_accepts_chord_objects_and_keeps_order():
    chords = [ChordRef(chordName="Em7"), "A7", ChordRef(chord_name="Dmaj7")]
    prompt = build_backing_prompt(chords, instrument="Guitar", style="Bossa", tempo=88, key="D Major")

    assert "Em7, A7, Dmaj7" in prompt
    for chord in ("Em7", "A7", "Dmaj7"):
        assert prompt.count(chord) == 1
    assert "Guitar" in prompt
    assert "D Major" in prompt
    assert "88BPM" in prompt


@pytest.mark.parametrize("chords", [None, []])
def test_missing_chords_are_rejected(chords):
    with pytest.raises(ValidationError, match="chords array is required"):
        chord_names(chords)


def test_blank_chord_name_is_rejected():
    with pytest.raises(ValidationError):
        chord_names(["C", "  "])


def test_defaults_come_from_project_then_studio():
    project = Project(id="p", creator_id="u", tempo=96, key={"root": 9, "scale": "minor", "name": "A Minor"})
    params = resolve_generation_params(BackingTrackRequest(chords=["Am", "F"]), project)

    assert params.chord_names == ["Am", "F"]
    assert params.instrument == "Piano"
    assert params.style == "Jazz"
    assert params.tempo == 96
    assert params.key == "A Minor"
    assert params.duration == 30


def test_request_values_win_and_zero_counts_as_missing():
    project = Project(id="p", creator_id="u", tempo=None, key=None)
    request = BackingTrackRequest(chords=["C"], instrument="Rhodes", style="Soul", tempo=0, key="E Major", duration=12)
    params = resolve_generation_params(request, project)

    assert params.instrument == "Rhodes"
    assert params.style == "Soul"
    assert params.tempo == 120
    assert params.key == "E Major"
    assert params.duration == 12
