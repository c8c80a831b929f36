"""
Constraints - Weight Functions over Hypothetical Tiles
======================================================

A constraint scores a candidate value for a tile:

    weight(tile, context) → 0       the candidate is forbidden
                          → (0, 1)  the candidate is discouraged
                          → 1       no opinion

`tile` is a HypotheticalTile: its `value` is the candidate, and
`get_prev()` / `get_next()` reach the real neighbours (across canvas edges
when `reach_over` is set). Only collapsed neighbours constrain a candidate.

Hard constraints return 0 on violation; soft ones return their `penalty`.

A ConstraintSet multiplies the weights of its members and stops at the
first zero.

Usage:
    rules = ConstraintSet([
        OnlyFollowedByConstraint("Dominant", constant_grabber(["Tonic"])),
        NoRepeatConstraint(hard=False, penalty=0.5),
    ])
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable

from wfc_composer.theory.harmony import scale_pitch_classes
from wfc_composer.wfc.errors import StateError
from wfc_composer.wfc.grabbers import Grabber, matches


DEFAULT_PENALTY = 0.25


class Constraint(ABC):
    """Stateless rule returning a non-negative weight for a candidate."""

    def __init__(self, hard: bool = True, penalty: float = DEFAULT_PENALTY):
        if not 0 < penalty <= 1:
            raise ValueError(f"Penalty must be in (0, 1]. Got: {penalty}")
        self.hard = hard
        self.penalty = penalty

    @abstractmethod
    def weight(self, tile, context: Any) -> float:
        ...

    def verdict(self, satisfied: bool) -> float:
        if satisfied:
            return 1.0
        return 0.0 if self.hard else self.penalty

    def __repr__(self) -> str:
        kind = "hard" if self.hard else f"soft({self.penalty})"
        return f"{type(self).__name__}[{kind}]"


class ConstraintSet:
    """Ordered constraints combined by multiplication."""

    def __init__(self, constraints: Iterable[Constraint] = ()):
        self._constraints = tuple(constraints)

    def weight(self, tile, context: Any) -> float:
        total = 1.0
        for constraint in self._constraints:
            weight = constraint.weight(tile, context)
            if weight < 0:
                raise StateError(f"{constraint!r} returned a negative weight: {weight}")
            if weight == 0:
                return 0.0
            total *= weight
        return total

    def extended(self, constraints: Iterable[Constraint]) -> "ConstraintSet":
        return ConstraintSet(self._constraints + tuple(constraints))

    def __iter__(self):
        return iter(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def __repr__(self) -> str:
        return f"ConstraintSet({list(self._constraints)!r})"


# =============================================================================
# ADJACENCY RULES
# =============================================================================

class AdjacencyConstraint(Constraint):
    """
    "`subject` may only be next to one of `allowed`" in one direction.

    Checked from both sides: a candidate equal to the subject is scored
    against its neighbour in `direction`, and any candidate sitting on the
    other side of a collapsed subject must itself be allowed. Whichever of
    the two tiles collapses second is therefore the one that gets pruned.
    """

    direction = 1

    def __init__(
        self,
        subject: str,
        allowed: Grabber,
        hard: bool = True,
        reach_over: bool = True,
        penalty: float = DEFAULT_PENALTY,
    ):
        super().__init__(hard=hard, penalty=penalty)
        self.subject = subject
        self.allowed = allowed
        self.reach_over = reach_over

    def _neighbor(self, tile, direction: int):
        if direction > 0:
            return tile.get_next(self.reach_over)
        return tile.get_prev(self.reach_over)

    def weight(self, tile, context: Any) -> float:
        allowed = self.allowed(context)
        subject = (self.subject,)

        if matches(tile.value, subject):
            other = self._neighbor(tile, self.direction)
            if other.is_collapsed and not matches(other.value, allowed):
                return self.verdict(False)

        other = self._neighbor(tile, -self.direction)
        if other.is_collapsed and matches(other.value, subject) and not matches(tile.value, allowed):
            return self.verdict(False)

        return 1.0

    def __repr__(self) -> str:
        return f"{super().__repr__()}({self.subject!r})"


class OnlyFollowedByConstraint(AdjacencyConstraint):
    """`subject` may only be followed by one of `allowed`."""

    direction = 1


class OnlyPrecededByConstraint(AdjacencyConstraint):
    """`subject` may only be preceded by one of `allowed`."""

    direction = -1


class NoRepeatConstraint(Constraint):
    """A value may not sit directly next to an equal value."""

    def __init__(self, hard: bool = True, reach_over: bool = True, penalty: float = DEFAULT_PENALTY):
        super().__init__(hard=hard, penalty=penalty)
        self.reach_over = reach_over

    def weight(self, tile, context: Any) -> float:
        for other in (tile.get_prev(self.reach_over), tile.get_next(self.reach_over)):
            if other.is_collapsed and other.value == tile.value:
                return self.verdict(False)
        return 1.0


# =============================================================================
# PITCH RULES
# =============================================================================
# These read `pitch_classes` / `pitch` from domain values and the key or
# chord from the context bag; values or contexts without them are ignored.

class InKeyConstraint(Constraint):
    """Every pitch class of the candidate must belong to the context key."""

    def __init__(self, hard: bool = True, use_melody_key: bool = False, penalty: float = DEFAULT_PENALTY):
        super().__init__(hard=hard, penalty=penalty)
        self.use_melody_key = use_melody_key

    def weight(self, tile, context: Any) -> float:
        pitch_classes = getattr(tile.value, "pitch_classes", None)
        key = getattr(context, "key", None)
        if pitch_classes is None or key is None:
            return 1.0
        mode = getattr(context, "mode", "major")
        if self.use_melody_key and getattr(context, "melody_key", None):
            key = context.melody_key
            mode = getattr(context, "melody_mode", None) or mode
        return self.verdict(set(pitch_classes) <= scale_pitch_classes(key, mode))


class ChordToneConstraint(Constraint):
    """The candidate note must be a tone of the chord in the context bag."""

    def __init__(self, hard: bool = False, penalty: float = 0.4):
        super().__init__(hard=hard, penalty=penalty)

    def weight(self, tile, context: Any) -> float:
        chord = getattr(context, "chord", None)
        pitch_class = getattr(tile.value, "pitch_class", None)
        chord_tones = getattr(chord, "pitch_classes", None)
        if pitch_class is None or chord_tones is None:
            return 1.0
        return self.verdict(pitch_class in chord_tones)


class MaxLeapConstraint(Constraint):
    """Adjacent notes may be at most `max_interval` semitones apart."""

    def __init__(
        self,
        max_interval: int = 7,
        hard: bool = True,
        reach_over: bool = True,
        penalty: float = DEFAULT_PENALTY,
    ):
        super().__init__(hard=hard, penalty=penalty)
        if max_interval < 0:
            raise ValueError(f"max_interval must be >= 0. Got: {max_interval}")
        self.max_interval = max_interval
        self.reach_over = reach_over

    def weight(self, tile, context: Any) -> float:
        pitch = getattr(tile.value, "pitch", None)
        if pitch is None:
            return 1.0
        for other in (tile.get_prev(self.reach_over), tile.get_next(self.reach_over)):
            other_pitch = getattr(other.value, "pitch", None) if other.is_collapsed else None
            if other_pitch is not None and abs(other_pitch - pitch) > self.max_interval:
                return self.verdict(False)
        return 1.0
