"""
Domain Values for the Three Levels
==================================

    Section          a named song part (Verse, Chorus, ...) that restricts
                     which chordesques may appear inside it
    Chord            a concrete chord: root + quality ("A" + "m" → "Am")
    ChordPrototype   a user-named stand-in for a chord ("Home" → C)
    Note             a MIDI pitch

Chord and ChordPrototype together form the chordesque level. All values are
immutable and hashable; `labels` lists every name a value answers to, which
is what constraints and overrides match against.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from wfc_composer.theory.harmony import CHROMATIC_SCALE, chord_pitch_classes, normalize_note, pitch_name


# MIDI range used when no note domain is given (C3 to C6)
DEFAULT_LOWEST_PITCH = 48
DEFAULT_HIGHEST_PITCH = 84


@dataclass(frozen=True)
class Note:
    pitch: int

    @property
    def pitch_class(self) -> int:
        return self.pitch % 12

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return frozenset({self.pitch_class})

    @property
    def name(self) -> str:
        return pitch_name(self.pitch)

    @property
    def labels(self) -> FrozenSet[str]:
        return frozenset({self.name, CHROMATIC_SCALE[self.pitch_class]})

    @classmethod
    def all(cls, lowest: int = DEFAULT_LOWEST_PITCH, highest: int = DEFAULT_HIGHEST_PITCH) -> List["Note"]:
        """Every note from `lowest` to `highest` inclusive."""
        return [cls(pitch) for pitch in range(lowest, highest + 1)]

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Chord:
    root: str
    quality: str = ""

    def __post_init__(self):
        object.__setattr__(self, "root", normalize_note(self.root))
        # validates the quality
        chord_pitch_classes(self.root, self.quality)

    @property
    def name(self) -> str:
        return self.root + self.quality

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return chord_pitch_classes(self.root, self.quality)

    @property
    def labels(self) -> FrozenSet[str]:
        return frozenset({self.name})

    @classmethod
    def all_basic(cls) -> List["Chord"]:
        """The 24 major and minor triads."""
        return [cls(root, quality) for root in CHROMATIC_SCALE for quality in ("", "m")]

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ChordPrototype:
    """A user-named chord; answers both to its own name and its chord's."""

    name: str
    chord: Chord

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return self.chord.pitch_classes

    @property
    def labels(self) -> FrozenSet[str]:
        return frozenset({self.name, self.chord.name})

    def __str__(self) -> str:
        return f"{self.name}({self.chord.name})"


@dataclass(frozen=True)
class Section:
    """
    A song part.

    Attributes:
        name: Label used by constraints and overrides
        chord_count: Chords in this section (None → the global count)
        allowed_chords: Labels of the chordesques usable inside (empty → all)
        chord_overrides: Position → allowed chordesque labels inside this section
        constraints: Extra chord-level constraints that apply inside this section
    """

    name: str
    chord_count: Optional[int] = None
    allowed_chords: Tuple[str, ...] = ()
    chord_overrides: Dict[int, Tuple[Any, ...]] = field(default_factory=dict, compare=False, hash=False)
    constraints: Tuple[Any, ...] = field(default=(), compare=False, hash=False)

    def __post_init__(self):
        if self.chord_count is not None and self.chord_count < 1:
            raise ValueError(f"Section '{self.name}' needs at least 1 chord. Got: {self.chord_count}")
        object.__setattr__(self, "allowed_chords", tuple(self.allowed_chords))
        object.__setattr__(self, "constraints", tuple(self.constraints))

    @property
    def labels(self) -> FrozenSet[str]:
        return frozenset({self.name})

    def __str__(self) -> str:
        return self.name
