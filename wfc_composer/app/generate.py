"""
Generator - Configuration → Resolved Tree → Timeline
====================================================

This is the MAIN entry point for generating music with wfc-composer.

The pipeline:
    1. Validate a GenerationConfig (pydantic)
    2. Create a Session: one seeded RNG, one undo journal, one decision log
    3. Plant the root SectionLevelNode
    4. Let the BreadthFirstTraverser collapse sections, then chords, then notes
    5. Lay the resolved tree out in time with the ResultManager

Usage:
    from wfc_composer.app.generate import demo_config, generate

    result = generate(demo_config(seed=42))
    print([chord.name for chord in result.chords])

    # Single sequence, no hierarchy
    solve_sequence(["A", "B"], 3, [OnlyFollowedByConstraint("A", constant_grabber(["B"]))], seed=1)
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from wfc_composer.data.schema import (
    GenerationConfig,
    GenerationResult,
    HigherValues,
    RhythmPatternOptions,
)
from wfc_composer.data.values import Chord, ChordPrototype, Note, Section
from wfc_composer.hierarchy.backtracking import Session
from wfc_composer.hierarchy.nodes import CanvasProps, FlatLevelNode, LevelProps, SectionLevelNode
from wfc_composer.hierarchy.results import ResultManager
from wfc_composer.hierarchy.traverser import BreadthFirstTraverser
from wfc_composer.theory.harmony import get_diatonic_chords
from wfc_composer.wfc.constraints import (
    InKeyConstraint,
    MaxLeapConstraint,
    NoRepeatConstraint,
    OnlyFollowedByConstraint,
    OnlyPrecededByConstraint,
)
from wfc_composer.wfc.grabbers import constant_grabber


# =============================================================================
# PART 1: DEMO CONFIGURATION
# =============================================================================

# Scale degree (0-based) of each named chord prototype
PROTOTYPE_DEGREES = {
    "Tonic": 0,
    "Supertonic": 1,
    "Subdominant": 3,
    "Dominant": 4,
    "Relative": 5,
}

# Melody range of the demo (C4 to G5)
DEMO_LOWEST_PITCH = 60
DEMO_HIGHEST_PITCH = 79


def build_prototypes(key: str, mode: str = "major") -> List[ChordPrototype]:
    """
    Name the main diatonic chords of a key.

    Example:
        build_prototypes("G") → [Tonic(G), Supertonic(Am), Subdominant(C),
                                 Dominant(D), Relative(Em)]
    """
    diatonic = get_diatonic_chords(key, mode)
    return [
        ChordPrototype(name, Chord(*diatonic[degree]))
        for name, degree in PROTOTYPE_DEGREES.items()
    ]


def demo_sections() -> List[Section]:
    return [
        Section("Verse"),
        Section(
            "Chorus",
            allowed_chords=("Tonic", "Subdominant", "Dominant", "Relative"),
            chord_overrides={0: ("Tonic",)},
        ),
        Section(
            "Bridge",
            allowed_chords=("Supertonic", "Subdominant", "Dominant", "Relative"),
            constraints=(NoRepeatConstraint(),),
        ),
    ]


def demo_config(
    seed: Optional[int] = None,
    num_sections: int = 3,
    num_chords: int = 4,
    melody_length: int = 4,
    key: str = "C",
    mode: str = "major",
    bpm: int = 100,
    use_rhythm: bool = True,
    sustain_notes: bool = False,
    max_steps: Optional[int] = None,
) -> GenerationConfig:
    """
    A small song form: Verse / Chorus / Bridge over the main chords of a key.

    Rules:
        - the piece opens with a Verse
        - a Bridge only comes after a Chorus
        - a Dominant resolves to the Tonic or its Relative
        - a Chorus opens on the Tonic
        - melody leaps stay within a fifth
    """
    context = HigherValues(
        key=key,
        mode=mode,
        bpm=bpm,
        num_sections=num_sections,
        num_chords=num_chords,
        melody_length=melody_length,
        use_rhythm=use_rhythm,
        sustain_notes=sustain_notes,
        rhythm=RhythmPatternOptions(minimum_number_of_notes=2, maximum_rest_length=1),
    )

    return GenerationConfig(
        sections=demo_sections(),
        chordesques=build_prototypes(context.key, context.mode),
        notes=Note.all(DEMO_LOWEST_PITCH, DEMO_HIGHEST_PITCH),
        section_overrides={0: ["Verse"]},
        section_constraints=[
            OnlyPrecededByConstraint("Bridge", constant_grabber(["Chorus"])),
            NoRepeatConstraint(hard=False, penalty=0.5),
        ],
        chord_constraints=[
            OnlyFollowedByConstraint("Dominant", constant_grabber(["Tonic", "Relative"])),
            InKeyConstraint(),
        ],
        note_constraints=[
            MaxLeapConstraint(7),
            NoRepeatConstraint(hard=False, penalty=0.5),
        ],
        context=context,
        seed=seed,
        settings={"max_steps": max_steps},
    )


# =============================================================================
# PART 2: GENERATION
# =============================================================================

def level_props(config: GenerationConfig) -> LevelProps:
    return LevelProps(
        section=CanvasProps(tuple(config.sections), config.section_overrides, tuple(config.section_constraints)),
        chord=CanvasProps(tuple(config.chordesques), config.chord_overrides, tuple(config.chord_constraints)),
        note=CanvasProps(tuple(config.notes), config.note_overrides, tuple(config.note_constraints)),
    )


def _plant(config: GenerationConfig) -> Tuple[SectionLevelNode, Session, BreadthFirstTraverser]:
    session = Session.create(config.seed)
    root = SectionLevelNode(level_props(config), session, config.context)
    return root, session, BreadthFirstTraverser(session, config.settings.max_steps)


def build_tree(config: GenerationConfig) -> Tuple[SectionLevelNode, Session]:
    """
    Resolve every tile of the section → chord → note tree.

    Returns:
        (root node, session); the session carries the seed actually used.

    Raises:
        ExhaustionError: if the constraints cannot be satisfied
    """
    root, session, traverser = _plant(config)
    traverser.generate(root)
    return root, session


def generate(config: GenerationConfig, verbose: bool = False) -> GenerationResult:
    """
    Generate a piece from a configuration.

    THIS IS THE MAIN FUNCTION YOU'LL USE!

    Args:
        config: Domains, overrides, constraints, context and seed
        verbose: If True, print progress

    Returns:
        GenerationResult with time-ordered sections, chords and notes

    Raises:
        ExhaustionError: if the constraints cannot be satisfied (carries the seed)
        StateError: on an engine invariant violation

    Example:
        >>> result = generate(demo_config(seed=3))
        >>> result.seed
        3
    """
    root, session, traverser = _plant(config)

    if verbose:
        hv = config.context
        print("=" * 60)
        print("WFC COMPOSER")
        print("=" * 60)
        print(f"\n🎲 Seed: {session.seed}")
        print(f"  Key: {hv.key} {hv.mode} | Tempo: {hv.bpm} BPM")
        print(f"  Sections: {hv.num_sections} | Chords/section: {hv.num_chords} | Notes/chord: {hv.melody_length}")
        print("\n--- Collapsing sections → chords → notes ---")

    manager = ResultManager(root, session.rng, config.settings.rest_probability)
    result = traverser.generate(root, manager)

    if verbose:
        print(f"  Steps: {traverser.steps} | Backtracks: {traverser.backtracks}")
        print(f"  Laid out {len(result.notes)} notes over {result.end:g} beats")
        print("\n✅ Done")

    return result


def solve_sequence(
    domain: Sequence[Any],
    size: int,
    constraints: Iterable[Any] = (),
    overrides: Optional[Mapping[int, Iterable[Any]]] = None,
    context: Any = None,
    seed: Optional[int] = None,
    max_steps: Optional[int] = None,
) -> List[Any]:
    """
    Collapse one sequence of `size` tiles over `domain`.

    Same search as the full tree (weighted choice, local rollback and
    chronological backtracking), without levels below.

    Raises:
        ExhaustionError: if the constraints cannot be satisfied
    """
    session = Session.create(seed)
    props = CanvasProps(tuple(domain), dict(overrides or {}), tuple(constraints))
    node = FlatLevelNode(props, session, context, size)
    BreadthFirstTraverser(session, max_steps).generate(node)
    return node.canvas.values()


# =============================================================================
# PART 3: OUTPUT FORMATTING
# =============================================================================

SHEET_WIDTH = 60


def _chords_in(result: GenerationResult, start: float, end: float) -> List[str]:
    return [chord.name for chord in result.chords if start <= chord.start < end]


def _wrap_progression(chords: List[str], width: int) -> List[str]:
    """Join chords with arrows, breaking rows before they exceed `width`."""
    rows = [""]
    for chord in chords:
        piece = chord if not rows[-1] else f" → {chord}"
        if rows[-1] and len(rows[-1]) + len(piece) > width:
            rows.append(f"→ {chord}")
        else:
            rows[-1] += piece
    return rows


def format_as_chord_sheet(result: GenerationResult, context: Optional[HigherValues] = None) -> str:
    """Format a GenerationResult as a human-readable chord sheet."""
    width = SHEET_WIDTH
    lines = []
    lines.append("╔" + "═" * width + "╗")
    lines.append("║" + " CHORD SHEET ".center(width) + "║")
    lines.append("╠" + "═" * width + "╣")

    if context is not None:
        lines.append(f"║ Key: {context.key} {context.mode}".ljust(width + 1) + "║")
    lines.append(f"║ Tempo: {result.bpm} BPM | Seed: {result.seed}".ljust(width + 1) + "║")
    lines.append(f"║ Length: {result.end:g} beats ({result.duration_seconds:.1f} s)".ljust(width + 1) + "║")
    lines.append("╠" + "─" * width + "╣")

    for section in result.sections:
        chords = _chords_in(result, section.start, section.start + section.duration)
        lines.append(f"║ [{section.name}] @ {section.start:g}".ljust(width + 1) + "║")
        for row in _wrap_progression(chords, width - 4):
            lines.append(f"║   {row}".ljust(width + 1) + "║")

    lines.append("╠" + "─" * width + "╣")
    melody = " ".join(note.name for note in result.notes)
    if len(melody) > width - 10:
        melody = melody[:width - 13] + "..."
    lines.append(f"║ Melody: {melody}".ljust(width + 1) + "║")
    lines.append(f"║ Notes: {len(result.notes)}".ljust(width + 1) + "║")
    lines.append("╚" + "═" * width + "╝")

    return "\n".join(lines)


def format_as_json(result: GenerationResult, indent: int = 2) -> str:
    """Format a GenerationResult as JSON."""
    return result.model_dump_json(indent=indent)


def format_as_yaml(result: GenerationResult) -> str:
    """Format a GenerationResult as YAML."""
    return yaml.safe_dump(result.model_dump(), sort_keys=False)
