"""
Result Manager - Resolved Tree → Timeline
=========================================

Walks a fully resolved level tree in post-order and lays it out in time:

    section    spans all of its chords
    chord      lasts `beats_per_chord` beats
    note slot  beats_per_chord / melody_length beats

With `use_rhythm` set, a rhythm pattern decides which note slots sound;
silent slots are rests unless `sustain_notes` lets the previous note ring
through them.

Times are in beats; GenerationResult.seconds() converts using the bpm.
"""

import logging
from typing import List

from wfc_composer.data.schema import (
    GenerationResult,
    RhythmPatternOptions,
    TimedChord,
    TimedNote,
    TimedSection,
)
from wfc_composer.hierarchy.nodes import ChordLevelNode, NoteLevelNode
from wfc_composer.wfc.errors import StateError

logger = logging.getLogger(__name__)


def rhythm_pattern(
    slots: int,
    options: RhythmPatternOptions,
    rng,
    rest_probability: float = 0.3,
) -> List[bool]:
    """
    Decide which of `slots` note slots sound (True) or rest (False).

    A slot may rest only if the current run of rests is shorter than
    `maximum_rest_length`, it is not the first slot while
    `only_start_on_note` is set, and enough slots remain to reach
    `minimum_number_of_notes`.

    Example:
        >>> from wfc_composer.wfc.rng import Random
        >>> rhythm_pattern(4, RhythmPatternOptions(maximum_rest_length=0), Random(1))
        [True, True, True, True]
    """
    minimum = min(options.minimum_number_of_notes, slots)
    pattern = []
    sounding = 0
    rest_run = 0

    for slot in range(slots):
        slots_after = slots - slot - 1
        may_rest = (
            rest_run < options.maximum_rest_length
            and not (slot == 0 and options.only_start_on_note)
            and sounding + slots_after >= minimum
        )
        rest = may_rest and rng.random() < rest_probability
        pattern.append(not rest)
        if rest:
            rest_run += 1
        else:
            sounding += 1
            rest_run = 0

    return pattern


class ResultManager:
    """
    Turn a resolved tree into a GenerationResult.

    Args:
        root: Resolved SectionLevelNode
        rng: Random used for rhythm patterns (default: the root's session RNG)
        rest_probability: Chance that a slot which may rest does rest
    """

    def __init__(self, root, rng=None, rest_probability: float = 0.3):
        self.root = root
        self.rng = rng if rng is not None else root.session.rng
        self.rest_probability = rest_probability

    def generate(self) -> GenerationResult:
        notes: List[TimedNote] = []
        chords: List[TimedChord] = []
        sections: List[TimedSection] = []

        end = self._visit(self.root, 0.0, notes, chords, sections)
        hv = self.root.higher_values

        logger.info("Laid out %d sections, %d chords, %d notes over %.2f beats",
                    len(sections), len(chords), len(notes), end)
        return GenerationResult(
            seed=self.root.session.seed,
            bpm=hv.bpm,
            notes=sorted(notes, key=lambda n: n.start),
            chords=chords,
            sections=sections,
            end=end,
        )

    # -------------------------------------------------------------------------
    # Post-order walk
    # -------------------------------------------------------------------------

    def _visit(self, node, start: float, notes, chords, sections) -> float:
        """Lay out `node`'s subtree starting at `start`; returns its end."""
        if not node.canvas.is_complete:
            raise StateError(f"{node!r} is not fully resolved")

        if isinstance(node, NoteLevelNode):
            end = self._lay_out_notes(node, start, notes)
            chords.append(TimedChord(name=str(node.higher_values.chord), start=start, duration=end - start))
            return end

        if len(node.children) != node.canvas.size:
            raise StateError(f"{node!r} has {len(node.children)} children for {node.canvas.size} tiles")

        cursor = start
        for child in node.children:
            cursor = self._visit(child, cursor, notes, chords, sections)

        if isinstance(node, ChordLevelNode):
            sections.append(TimedSection(name=str(node.higher_values.section), start=start, duration=cursor - start))
        return cursor

    def _lay_out_notes(self, node, start: float, notes: List[TimedNote]) -> float:
        hv = node.higher_values
        values = node.canvas.values()
        slot_length = hv.beats_per_chord / len(values)

        if hv.use_rhythm:
            pattern = rhythm_pattern(len(values), hv.rhythm, self.rng, self.rest_probability)
        else:
            pattern = [True] * len(values)

        for slot, (value, sounds) in enumerate(zip(values, pattern)):
            if not sounds:
                continue
            length = 1
            if hv.sustain_notes:
                while slot + length < len(pattern) and not pattern[slot + length]:
                    length += 1
            notes.append(TimedNote(
                pitch=value.pitch,
                name=str(value),
                start=start + slot * slot_length,
                duration=length * slot_length,
            ))

        return start + hv.beats_per_chord

