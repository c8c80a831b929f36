"""
Tile Module - One Position's Resolution State
==============================================

A tile is in exactly one of three states:

    Boundary(kind)    sentinel just before the first / just after the last
                      position of a canvas; never collapses
    Active(options)   still undecided; an ordered tuple of (value, weight)
                      pairs with every weight > 0 and at least one pair
    Collapsed(value)  committed to a single value

Tiles are plain records stored in their canvas's arena. Every operation that
needs neighbours or constraints lives on the Canvas and addresses a tile by
(canvas, position); see canvas.py.

Propagation reports its outcome as an `Update` instead of raising:

    Update.collapsed(value)   the tile is (now) Collapsed
    Update.active(options)    the tile is Active with these options
    Update.conflict()         no candidate survived
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple

from wfc_composer.wfc.errors import ConflictError, StateError


# =============================================================================
# STATUS VARIANTS
# =============================================================================

@dataclass(frozen=True)
class Boundary:
    kind: str  # "header" or "trailer"


@dataclass(frozen=True)
class Active:
    options: Tuple[Tuple[Any, float], ...]

    def __post_init__(self):
        if not self.options:
            raise ConflictError("An active tile needs at least one option")

    @property
    def values(self) -> List[Any]:
        return [value for value, _ in self.options]

    def without(self, value: Any) -> "Active":
        """Return a copy with `value` removed."""
        remaining = tuple(pair for pair in self.options if pair[0] != value)
        if len(remaining) == len(self.options):
            raise StateError(f"{value!r} is not an option of this tile")
        return Active(remaining)


@dataclass(frozen=True)
class Collapsed:
    value: Any


HEADER = Boundary("header")
TRAILER = Boundary("trailer")


# =============================================================================
# TILE
# =============================================================================

class Tile:
    """A position inside a canvas and its current status."""

    __slots__ = ("position", "status")

    def __init__(self, position: int, status):
        self.position = position
        self.status = status

    @classmethod
    def header(cls) -> "Tile":
        return cls(-1, HEADER)

    @classmethod
    def trailer(cls, size: int) -> "Tile":
        return cls(size, TRAILER)

    @property
    def is_boundary(self) -> bool:
        return isinstance(self.status, Boundary)

    @property
    def is_active(self) -> bool:
        return isinstance(self.status, Active)

    @property
    def is_collapsed(self) -> bool:
        return isinstance(self.status, Collapsed)

    @property
    def num_options(self) -> int:
        status = self.status
        if isinstance(status, Active):
            return len(status.options)
        if isinstance(status, Collapsed):
            return 1
        return 0

    @property
    def options(self) -> List[Any]:
        status = self.status
        if isinstance(status, Active):
            return status.values
        if isinstance(status, Collapsed):
            return [status.value]
        raise StateError(f"Boundary tile ({status.kind}) has no options")

    @property
    def weighted_options(self) -> List[Tuple[Any, float]]:
        status = self.status
        if isinstance(status, Active):
            return list(status.options)
        if isinstance(status, Collapsed):
            return [(status.value, 1.0)]
        return []

    @property
    def value(self) -> Any:
        status = self.status
        if isinstance(status, Collapsed):
            return status.value
        raise StateError(f"Tile at {self.position} not collapsed, has status {status!r}")

    def __repr__(self) -> str:
        return f"Tile(position={self.position}, status={self.status!r})"


class HypotheticalTile:
    """
    Read-only view of a tile as if it had collapsed to `value`.

    Constraints score candidates through this view; its neighbours are the
    real tiles of the canvas (or boundary sentinels).
    """

    __slots__ = ("canvas", "position", "value")

    is_collapsed = True
    is_boundary = False

    def __init__(self, canvas, position: int, value: Any):
        self.canvas = canvas
        self.position = position
        self.value = value

    def get_prev(self, reach_over: bool = True) -> Tile:
        return self.canvas.get_prev(self.position, reach_over)

    def get_next(self, reach_over: bool = True) -> Tile:
        return self.canvas.get_next(self.position, reach_over)


# =============================================================================
# PROPAGATION RESULT
# =============================================================================

class Outcome(Enum):
    COLLAPSED = "collapsed"
    ACTIVE = "active"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Update:
    outcome: Outcome
    value: Any = None
    options: Tuple[Tuple[Any, float], ...] = ()

    @classmethod
    def collapsed(cls, value: Any) -> "Update":
        return cls(Outcome.COLLAPSED, value=value)

    @classmethod
    def active(cls, options) -> "Update":
        return cls(Outcome.ACTIVE, options=tuple(options))

    @classmethod
    def conflict(cls) -> "Update":
        return cls(Outcome.CONFLICT)

    @property
    def is_collapsed(self) -> bool:
        return self.outcome is Outcome.COLLAPSED

    @property
    def is_active(self) -> bool:
        return self.outcome is Outcome.ACTIVE

    @property
    def is_conflict(self) -> bool:
        return self.outcome is Outcome.CONFLICT

    def unwrap(self) -> "Update":
        """Raise ConflictError for a conflict, otherwise return self."""
        if self.is_conflict:
            raise ConflictError()
        return self
