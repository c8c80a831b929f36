"""
Schema definitions for wfc-composer.

This module defines the Pydantic models that validate a generation request
and structure its result:

    RhythmPatternOptions  - limits on the rhythm drawn under each chord
    HigherValues          - the context bag threaded down the hierarchy
    GenerationSettings    - search budget and rhythm density
    GenerationConfig      - everything one generation run needs
    GenerationResult      - the time-ordered output of a resolved tree
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wfc_composer.data.values import Chord, ChordPrototype, Note, Section
from wfc_composer.theory.harmony import VALID_MODES, normalize_note
from wfc_composer.wfc.constraints import Constraint


# =============================================================================
# VALID OPTIONS
# =============================================================================

MIN_BPM = 20
MAX_BPM = 300

# Upper bound for every per-level count; deep trees multiply quickly
MAX_LEVEL_SIZE = 64


def _check_key(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    return normalize_note(v)


def _check_mode(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v_lower = v.lower()
    if v_lower not in VALID_MODES:
        raise ValueError(f"Mode must be one of {VALID_MODES}. Got: '{v}'")
    return v_lower


# =============================================================================
# CONTEXT BAG
# =============================================================================

class RhythmPatternOptions(BaseModel):
    """
    Limits on the rhythm drawn for the notes under one chord.

    Attributes:
        minimum_number_of_notes: Sounding notes per chord (capped at the slot count)
        only_start_on_note: The first slot under a chord must sound
        maximum_rest_length: Longest run of silent slots
    """

    model_config = ConfigDict(frozen=True)

    minimum_number_of_notes: int = Field(
        default=1,
        ge=0,
        description="Sounding notes per chord (capped at the slot count)",
        examples=[1, 3],
    )

    only_start_on_note: bool = Field(
        default=True,
        description="The first slot under a chord must sound",
    )

    maximum_rest_length: int = Field(
        default=2,
        ge=0,
        description="Longest run of consecutive silent slots",
        examples=[0, 2],
    )


class HigherValues(BaseModel):
    """
    Parameters inherited and extended down the section → chord → note tree.

    The root receives these from the configuration; each level adds the
    value its parent tile resolved to (`section`, then `chord`).

    Example:
        >>> hv = HigherValues(key="G", bpm=120)
        >>> hv.extend(num_chords=2).num_chords
        2
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # ---------------------------
    # Harmony
    # ---------------------------

    key: str = Field(default="C", description="Key of the piece", examples=["C", "F#", "Bb"])
    mode: str = Field(default="major", description="Major or minor mode", examples=["major", "minor"])
    melody_key: Optional[str] = Field(default=None, description="Key of the melody when it differs")
    melody_mode: Optional[str] = Field(default=None, description="Mode of the melody when it differs")

    # ---------------------------
    # Timing
    # ---------------------------

    bpm: int = Field(default=100, ge=MIN_BPM, le=MAX_BPM, description="Tempo in beats per minute")
    beats_per_chord: float = Field(default=4.0, gt=0, description="Length of one chord in beats")
    use_rhythm: bool = Field(default=True, description="Draw a rhythm pattern under each chord")
    sustain_notes: bool = Field(default=False, description="Notes ring through the rests after them")
    rhythm: RhythmPatternOptions = Field(default_factory=RhythmPatternOptions)

    # ---------------------------
    # Counts
    # ---------------------------

    num_sections: int = Field(default=2, ge=1, le=MAX_LEVEL_SIZE, description="Sections in the piece")
    num_chords: int = Field(default=4, ge=1, le=MAX_LEVEL_SIZE, description="Chords per section")
    melody_length: int = Field(default=4, ge=1, le=MAX_LEVEL_SIZE, description="Note slots per chord")

    # ---------------------------
    # Inherited from resolved parent tiles
    # ---------------------------

    section: Optional[Any] = None
    chord: Optional[Any] = None

    @field_validator("key", "melody_key")
    @classmethod
    def validate_key(cls, v: Optional[str]) -> Optional[str]:
        """Store keys in sharp form (Bb → A#)."""
        return _check_key(v)

    @field_validator("mode", "melody_mode")
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        """Ensure mode is major or minor (case-insensitive)."""
        return _check_mode(v)

    @property
    def melody_key_and_mode(self) -> Tuple[str, str]:
        return (self.melody_key or self.key, self.melody_mode or self.mode)

    def extend(self, **updates) -> "HigherValues":
        """
        A validated copy with `updates` applied; the parent's bag is left
        untouched.

        Raises:
            ValidationError: if an update breaks a field bound (a section
                asking for more than MAX_LEVEL_SIZE chords, say)
        """
        return type(self).model_validate({**dict(self), **updates})


# =============================================================================
# GENERATION REQUEST
# =============================================================================

class GenerationSettings(BaseModel):
    """Search budget and rhythm density."""

    max_steps: Optional[int] = Field(
        default=None,
        ge=1,
        description="Choose/collapse/backtrack steps before giving up (None = run until solved or exhausted)",
    )

    rest_probability: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Chance that a slot which may rest does rest",
    )


class GenerationConfig(BaseModel):
    """
    One generation request.

    Domains, overrides and constraints are given per level. Overrides map a
    position (negative counts from the end) to allowed values or labels.

    Example:
        >>> config = GenerationConfig(
        ...     sections=[Section("Verse")],
        ...     chordesques=[Chord("C"), Chord("G")],
        ...     context=HigherValues(num_sections=1, num_chords=2, melody_length=2),
        ...     seed=7,
        ... )
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    sections: List[Any] = Field(..., min_length=1, description="Section domain")
    chordesques: List[Any] = Field(..., min_length=1, description="Chords and chord prototypes")
    notes: List[Any] = Field(default_factory=Note.all, min_length=1, description="Note domain")

    section_overrides: Dict[int, List[Any]] = Field(default_factory=dict)
    chord_overrides: Dict[int, List[Any]] = Field(default_factory=dict)
    note_overrides: Dict[int, List[Any]] = Field(default_factory=dict)

    section_constraints: List[Any] = Field(default_factory=list)
    chord_constraints: List[Any] = Field(default_factory=list)
    note_constraints: List[Any] = Field(default_factory=list)

    context: HigherValues = Field(default_factory=HigherValues)
    seed: Optional[int] = Field(default=None, ge=0, description="Seed for reproducible runs")
    settings: GenerationSettings = Field(default_factory=GenerationSettings)

    @field_validator("sections")
    @classmethod
    def validate_sections(cls, v: List[Any]) -> List[Any]:
        """Ensure every section is a Section"""
        invalid = [s for s in v if not isinstance(s, Section)]
        if invalid:
            raise ValueError(f"Sections must be Section instances. Got: {invalid}")
        oversized = [s.name for s in v if s.chord_count is not None and s.chord_count > MAX_LEVEL_SIZE]
        if oversized:
            raise ValueError(f"Sections may hold at most {MAX_LEVEL_SIZE} chords. Got: {oversized}")
        return v

    @field_validator("chordesques")
    @classmethod
    def validate_chordesques(cls, v: List[Any]) -> List[Any]:
        """Ensure every chordesque is a Chord or ChordPrototype"""
        invalid = [c for c in v if not isinstance(c, (Chord, ChordPrototype))]
        if invalid:
            raise ValueError(f"Chordesques must be Chord or ChordPrototype instances. Got: {invalid}")
        return v

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: List[Any]) -> List[Any]:
        """Ensure every note is a Note"""
        invalid = [n for n in v if not isinstance(n, Note)]
        if invalid:
            raise ValueError(f"Notes must be Note instances. Got: {invalid}")
        return v

    @field_validator("section_constraints", "chord_constraints", "note_constraints")
    @classmethod
    def validate_constraints(cls, v: List[Any]) -> List[Any]:
        """Ensure every constraint implements Constraint"""
        invalid = [c for c in v if not isinstance(c, Constraint)]
        if invalid:
            raise ValueError(f"Constraints must be Constraint instances. Got: {invalid}")
        return v


# =============================================================================
# GENERATION RESULT
# =============================================================================

class TimedNote(BaseModel):
    """A sounding note; times are in beats from the start of the piece."""

    pitch: int = Field(..., ge=0, le=127, description="MIDI pitch")
    name: str = Field(..., description="Pitch name", examples=["C4", "F#5"])
    start: float = Field(..., ge=0)
    duration: float = Field(..., gt=0)


class TimedChord(BaseModel):
    name: str = Field(..., description="Chordesque label", examples=["Am", "Home(C)"])
    start: float = Field(..., ge=0)
    duration: float = Field(..., gt=0)


class TimedSection(BaseModel):
    name: str
    start: float = Field(..., ge=0)
    duration: float = Field(..., gt=0)


class GenerationResult(BaseModel):
    """
    Time-ordered output of a fully resolved tree.

    Handed to whatever projects it into MIDI or audio.
    """

    seed: int
    bpm: int
    notes: List[TimedNote] = Field(default_factory=list)
    chords: List[TimedChord] = Field(default_factory=list)
    sections: List[TimedSection] = Field(default_factory=list)
    end: float = Field(default=0.0, ge=0, description="Length of the piece in beats")

    def seconds(self, beats: float) -> float:
        """Convert a beat offset to seconds at this result's tempo."""
        return beats * 60.0 / self.bpm

    @property
    def duration_seconds(self) -> float:
        return self.seconds(self.end)
