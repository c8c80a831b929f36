"""
Harmony Module - Pitch-Class Helpers for Domain Restriction

The generator never names or parses chords on behalf of the user; it only
needs enough music theory to let a resolved value narrow the level below it:
    1. Normalize note names and map them to pitch classes (0-11)
    2. Build major and minor scales from any root
    3. Derive the pitch classes of a chord from its root and quality
    4. Name MIDI pitches for display ("C4", "F#5")

A chosen key restricts the notes of the melody, and a chosen chord adds its
own tones to that set (see hierarchy/nodes.py).
"""

from typing import FrozenSet, List, Tuple


# =============================================================================
# CONSTANTS
# =============================================================================

CHROMATIC_SCALE = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Enharmonic equivalents (flats → sharps)
FLAT_TO_SHARP = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
}

# Scale formulas as semitone intervals from the root
SCALE_FORMULAS = {
    "major": [0, 2, 4, 5, 7, 9, 11],      # W-W-H-W-W-W-H
    "minor": [0, 2, 3, 5, 7, 8, 10],      # W-H-W-W-H-W-W (natural minor)
}

# Chord qualities for each scale degree
CHORD_QUALITIES = {
    "major": ["", "m", "m", "", "", "m", "dim"],
    "minor": ["m", "dim", "", "m", "m", "", ""],
}

# Chord formulas as semitone intervals from the root, keyed by suffix
CHORD_INTERVALS = {
    "": (0, 4, 7),
    "m": (0, 3, 7),
    "dim": (0, 3, 6),
    "aug": (0, 4, 8),
    "7": (0, 4, 7, 10),
    "maj7": (0, 4, 7, 11),
    "m7": (0, 3, 7, 10),
    "sus2": (0, 2, 7),
    "sus4": (0, 5, 7),
    "add9": (0, 2, 4, 7),
}

VALID_MODES = list(SCALE_FORMULAS)


# =============================================================================
# NOTE NAMES
# =============================================================================

def normalize_note(note: str) -> str:
    """Convert a note name to its standard sharp form."""
    if len(note) == 1:
        note = note.upper()
    elif len(note) == 2:
        note = note[0].upper() + note[1].lower()
    else:
        raise ValueError(f"Invalid note format: '{note}'")

    if note in FLAT_TO_SHARP:
        note = FLAT_TO_SHARP[note]

    if note not in CHROMATIC_SCALE:
        raise ValueError(f"Unknown note: '{note}'. Valid notes are: {CHROMATIC_SCALE}")

    return note


def get_note_index(note: str) -> int:
    """Get the index of a note in the chromatic scale (0-11)."""
    return CHROMATIC_SCALE.index(normalize_note(note))


def pitch_name(pitch: int) -> str:
    """
    Name a MIDI pitch with its octave, using MIDI 60 = C4.

    Examples:
        pitch_name(60) → "C4"
        pitch_name(70) → "A#4"
    """
    return f"{CHROMATIC_SCALE[pitch % 12]}{pitch // 12 - 1}"


# =============================================================================
# SCALES AND CHORDS
# =============================================================================

def build_scale(root: str, mode: str = "major") -> List[str]:
    """Build a scale from a root note."""
    if mode not in SCALE_FORMULAS:
        raise ValueError(f"Mode must be 'major' or 'minor'. Got: '{mode}'")

    root_index = get_note_index(root)
    return [CHROMATIC_SCALE[(root_index + interval) % 12] for interval in SCALE_FORMULAS[mode]]


def scale_pitch_classes(root: str, mode: str = "major") -> FrozenSet[int]:
    """Pitch classes (0-11) of the scale built on `root`."""
    return frozenset(get_note_index(note) for note in build_scale(root, mode))


def chord_pitch_classes(root: str, quality: str = "") -> FrozenSet[int]:
    """Pitch classes (0-11) sounded by a chord."""
    if quality not in CHORD_INTERVALS:
        raise ValueError(
            f"Unknown chord quality: '{quality}'. Valid qualities are: {list(CHORD_INTERVALS)}"
        )
    root_index = get_note_index(root)
    return frozenset((root_index + interval) % 12 for interval in CHORD_INTERVALS[quality])


def get_diatonic_chords(key: str, mode: str = "major") -> List[Tuple[str, str]]:
    """
    Get all 7 diatonic chords for a given key as (root, quality) pairs.

    Example:
        get_diatonic_chords("G") → [("G", ""), ("A", "m"), ("B", "m"), ("C", ""),
                                    ("D", ""), ("E", "m"), ("F#", "dim")]
    """
    return list(zip(build_scale(key, mode), CHORD_QUALITIES[mode]))
