"""
Canvas Module - A Fixed-Length Sequence of Tiles
================================================

A canvas owns the tiles of one level instance (the sections of a song, the
chords of one section, the notes under one chord) and mediates everything
they need: the domain, per-position overrides, the constraint set, the
context bag from the level above, the shared RNG and the undo journal.

Tile operations are addressed as (canvas, position):

    update_options(p)   re-score the options of tile p, forcing a collapse
                        when exactly one survives
    collapse(p, v)      commit tile p to v and propagate outward, forcing
                        every tile left with a single option;
                        rolled back locally if any tile runs dry
    choose_value(p)     weighted-random pick among tile p's options
    remove_value(p, v)  drop one option from an active tile

Neighbouring canvases of the same level are stitched together, so a tile at
an edge can see (and propagate into) the adjacent canvas's outer tile.

Counter invariant (after initialize):
    active_count + collapsed_count == size
"""

import logging
from collections import deque
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from wfc_composer.wfc.constraints import ConstraintSet
from wfc_composer.wfc.errors import ConflictError, StateError
from wfc_composer.wfc.journal import Journal, LinkChange, StatusChange
from wfc_composer.wfc.options import OptionsPerCell
from wfc_composer.wfc.rng import Random
from wfc_composer.wfc.tile import Active, Boundary, Collapsed, HypotheticalTile, Tile, Update

logger = logging.getLogger(__name__)


class Canvas:
    """
    Ordered, fixed-length sequence of tiles over one domain.

    Args:
        size: Number of tiles
        domain: Candidate values (duplicates are dropped, order kept)
        constraints: ConstraintSet or iterable of constraints
        overrides: OptionsPerCell or mapping position → allowed values/labels
        context: Read-only bag handed to every constraint
        rng: Shared Random of the generation run
        journal: Shared undo Journal of the generation run
        name: Label used in log messages
    """

    def __init__(
        self,
        size: int,
        domain: Sequence[Any],
        constraints=None,
        overrides=None,
        context: Any = None,
        rng: Optional[Random] = None,
        journal: Optional[Journal] = None,
        name: str = "",
    ):
        if size < 0:
            raise ValueError(f"Canvas size must be >= 0. Got: {size}")
        self.size = size
        self.domain = list(dict.fromkeys(domain))
        if isinstance(constraints, ConstraintSet):
            self.constraints = constraints
        else:
            self.constraints = ConstraintSet(constraints or ())
        if isinstance(overrides, OptionsPerCell):
            self.overrides = overrides
        else:
            self.overrides = OptionsPerCell(overrides)
        self.context = context
        self.rng = rng if rng is not None else Random()
        self.journal = journal if journal is not None else Journal()
        self.name = name

        self.tiles: List[Tile] = []
        self.previous_canvas: Optional["Canvas"] = None
        self.next_canvas: Optional["Canvas"] = None
        self._active_count = 0
        self._collapsed_count = 0
        self._first_open = 0
        self._initialized = False

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    @property
    def active_count(self) -> int:
        return self._active_count

    @property
    def collapsed_count(self) -> int:
        return self._collapsed_count

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_complete(self) -> bool:
        return self.is_initialized and self._active_count == 0

    def collapse_one(self) -> None:
        if self._active_count <= 0:
            raise StateError(f"{self!r} has no active tile left to collapse")
        self._active_count -= 1
        self._collapsed_count += 1

    def retract_one(self) -> None:
        if self._collapsed_count <= 0:
            raise StateError(f"{self!r} has no collapsed tile to retract")
        self._collapsed_count -= 1
        self._active_count += 1

    # -------------------------------------------------------------------------
    # Status changes (journaled)
    # -------------------------------------------------------------------------

    def _set_status(self, position: int, status) -> None:
        self.journal.record(StatusChange(self, position, self.tiles[position].status))
        self._apply_status(position, status)

    def _apply_status(self, position: int, status) -> None:
        tile = self.tiles[position]
        was_collapsed = isinstance(tile.status, Collapsed)
        now_collapsed = isinstance(status, Collapsed)
        tile.status = status
        if now_collapsed and not was_collapsed:
            self.collapse_one()
        elif was_collapsed and not now_collapsed:
            self.retract_one()
            self._first_open = min(self._first_open, position)

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize(self) -> None:
        """
        Seed every tile with domain ∩ override and prune against the
        constraints before any random choice is made.

        Raises:
            ConflictError: if some position has no valid option
        """
        seeds = [self.overrides.options_at(position, self.size, self.domain) for position in range(self.size)]
        for position, options in enumerate(seeds):
            if not options:
                raise ConflictError(f"{self!r}: no option allowed at position {position}")

        self.tiles = [
            Tile(position, Active(tuple((value, 1.0) for value in options)))
            for position, options in enumerate(seeds)
        ]
        self._active_count = self.size
        self._collapsed_count = 0
        self._first_open = 0
        self._initialized = True

        for position in range(self.size):
            if self.update_options(position).is_conflict:
                raise ConflictError(f"{self!r}: constraints leave no option at position {position}")

        logger.debug("Initialized %r (%d active, %d collapsed)", self, self._active_count, self._collapsed_count)

    # -------------------------------------------------------------------------
    # Neighbours and stitching
    # -------------------------------------------------------------------------

    @staticmethod
    def stitch(previous: Optional["Canvas"], following: "Canvas") -> None:
        """Link two sibling canvases so edge tiles see each other."""
        if previous is None:
            return
        journal = following.journal
        journal.record(LinkChange(previous))
        journal.record(LinkChange(following))
        previous.next_canvas = following
        following.previous_canvas = previous

    def neighbor(self, position: int, step: int, reach_over: bool = True) -> Optional[Tuple["Canvas", int]]:
        """(canvas, position) of the tile `step` away, or None at a boundary."""
        target = position + step
        if 0 <= target < self.size:
            return self, target
        if not reach_over:
            return None
        other = self.previous_canvas if step < 0 else self.next_canvas
        if other is None or not other.tiles:
            return None
        return (other, other.size - 1) if step < 0 else (other, 0)

    def get_prev(self, position: int, reach_over: bool = False) -> Tile:
        found = self.neighbor(position, -1, reach_over)
        if found is None:
            return Tile.header()
        canvas, index = found
        return canvas.tiles[index]

    def get_next(self, position: int, reach_over: bool = False) -> Tile:
        found = self.neighbor(position, 1, reach_over)
        if found is None:
            return Tile.trailer(self.size)
        canvas, index = found
        return canvas.tiles[index]

    def first_tile_of_next(self) -> Tile:
        if self.next_canvas is None or not self.next_canvas.tiles:
            return Tile.trailer(self.size)
        return self.next_canvas.tiles[0]

    def last_tile_of_previous(self) -> Tile:
        if self.previous_canvas is None or not self.previous_canvas.tiles:
            return Tile.header()
        return self.previous_canvas.tiles[-1]

    # -------------------------------------------------------------------------
    # Tile operations
    # -------------------------------------------------------------------------

    def _score(self, position: int, candidates: Iterable[Any]) -> List[Tuple[Any, float]]:
        scored = []
        for value in candidates:
            weight = self.constraints.weight(HypotheticalTile(self, position, value), self.context)
            if weight > 0:
                scored.append((value, float(weight)))
        return scored

    def update_options(self, position: int, candidates: Optional[Iterable[Any]] = None) -> Update:
        """
        Re-score a tile's options (or `candidates`) against the constraints.

        Zero survivors is a conflict and leaves the tile untouched; a single
        survivor is collapsed, and a failure of that collapse is a conflict
        too.
        """
        status = self.tiles[position].status
        if isinstance(status, Collapsed):
            return Update.collapsed(status.value)
        if isinstance(status, Boundary):
            raise StateError(f"Cannot update options of a {status.kind} tile")

        scored = self._score(position, status.values if candidates is None else candidates)
        if not scored:
            logger.debug("%r: position %d has no valid option", self, position)
            return Update.conflict()

        refreshed = Active(tuple(scored))
        if refreshed != status:
            self._set_status(position, refreshed)

        if len(scored) == 1:
            result = self.collapse(position, scored[0][0])
            return result if result.is_collapsed else Update.conflict()

        return Update.active(refreshed.options)

    def collapse(self, position: int, value: Any) -> Update:
        """
        Commit a tile to `value` and propagate to its neighbours.

        Propagation runs over a worklist: every re-scored neighbour left with
        a single option is collapsed in turn and its own neighbours queued,
        across stitched canvases too. All of it sits under one journal mark.

        Returns:
            Update.collapsed(value) on success;
            Update.active(options) when propagation failed and `value` was
            removed from the restored options;
            Update.conflict() when `value` was the last option.

        Raises:
            StateError: collapsing a collapsed tile to another value, a
                boundary tile, or a value the tile does not offer
        """
        status = self.tiles[position].status
        if isinstance(status, Collapsed):
            if status.value == value:
                return Update.collapsed(value)
            raise StateError(
                f"Tile {position} of {self!r} already collapsed to {status.value!r}, "
                f"cannot collapse to {value!r}"
            )
        if isinstance(status, Boundary):
            raise StateError(f"Cannot collapse a {status.kind} tile")
        if value not in status.values:
            raise StateError(f"{value!r} is not an option of tile {position} of {self!r}")

        mark = self.journal.mark()
        self._set_status(position, Collapsed(value))

        if self._propagate(position):
            return Update.collapsed(value)

        self.journal.rewind(mark)
        logger.debug("%r: collapsing position %d to %r failed, rolled back", self, position, value)
        if len(status.options) <= 1:
            return Update.conflict()
        self.remove_value(position, value)
        return Update.active(self.tiles[position].status.options)

    def _propagate(self, position: int) -> bool:
        """Re-score around a fresh collapse; False as soon as a tile runs dry."""
        pending = deque([(self, position)])
        while pending:
            origin, index = pending.popleft()
            for step in (-1, 1):
                found = origin.neighbor(index, step, reach_over=True)
                if found is None:
                    continue
                canvas, target = found
                status = canvas.tiles[target].status
                if not isinstance(status, Active):
                    continue

                scored = canvas._score(target, status.values)
                if not scored:
                    logger.debug("%r: position %d has no valid option", canvas, target)
                    return False
                if len(scored) == 1:
                    canvas._set_status(target, Collapsed(scored[0][0]))
                    pending.append((canvas, target))
                    continue
                refreshed = Active(tuple(scored))
                if refreshed != status:
                    canvas._set_status(target, refreshed)
        return True

    def choose_value(self, position: int) -> Optional[Any]:
        """
        Pick a value for a tile by weighted random selection.

        Options are re-derived first. Returns None when no option survives,
        the current value when the tile is (or becomes) collapsed.
        """
        if self.update_options(position).is_conflict:
            return None
        tile = self.tiles[position]
        if tile.is_collapsed:
            return tile.value

        options = tile.weighted_options
        total = sum(weight for _, weight in options)
        remainder = self.rng.random() * total
        for value, weight in options:
            remainder -= weight
            if remainder < 0:
                return value
        return options[-1][0]

    def remove_value(self, position: int, value: Any) -> None:
        """
        Drop `value` from an active tile.

        Raises:
            StateError: if the tile is not active or does not offer `value`
            ConflictError: if `value` is the tile's last option
        """
        status = self.tiles[position].status
        if not isinstance(status, Active):
            raise StateError(f"Can't remove from non-active tile {position} ({status!r})")
        self._set_status(position, status.without(value))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def first_active_position(self) -> Optional[int]:
        # tiles before _first_open only reopen through _apply_status
        for position in range(self._first_open, len(self.tiles)):
            if self.tiles[position].is_active:
                self._first_open = position
                return position
        self._first_open = len(self.tiles)
        return None

    def values(self) -> List[Any]:
        """Collapsed values in order; StateError if any tile is still open."""
        return [tile.value for tile in self.tiles]

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<Canvas{label} size={self.size}>"


def make_canvas(
    size: int,
    domain: Sequence[Any],
    constraints=None,
    overrides: Optional[Mapping[int, Iterable[Any]]] = None,
    context: Any = None,
    seed: Optional[int] = None,
) -> Canvas:
    """Build and initialize a stand-alone canvas with its own RNG."""
    canvas = Canvas(size, domain, constraints, overrides, context, rng=Random(seed))
    canvas.initialize()
    return canvas
