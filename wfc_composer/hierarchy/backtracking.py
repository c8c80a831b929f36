"""
Global backtracking across the level tree.

Local rollback inside Canvas.collapse only retracts the tile being
collapsed. When a conflict survives that (no option left for a tile, or a
freshly spawned child level cannot initialize), the DecisionManager undoes
whole choices in reverse chronological order:

    1. pop the most recent decision
    2. rewind the shared journal to the mark taken before it
       (tile statuses, counters, canvas links and child nodes come back)
    3. remove the failed value from that tile, if it has another option

An empty log with an unresolved conflict means the configuration cannot be
satisfied with this seed.
"""

import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from wfc_composer.wfc.errors import ExhaustionError, StateError
from wfc_composer.wfc.journal import Journal
from wfc_composer.wfc.rng import Random

logger = logging.getLogger(__name__)


class Decision:
    """
    A committed choice: `node`'s tile `position` was collapsed to `value`.

    The node and canvas are held weakly, like LevelNode's parent; the tree
    and the journal own them.
    """

    def __init__(self, node, canvas, position: int, value: Any, alternatives: Tuple[Any, ...], mark: int):
        self._node = weakref.ref(node) if node is not None else None
        self._canvas = weakref.ref(canvas)
        self.position = position
        self.value = value
        self.alternatives = alternatives
        self.mark = mark

    @property
    def node(self):
        return self._node() if self._node is not None else None

    @property
    def canvas(self):
        return self._canvas()

    def __repr__(self) -> str:
        return f"Decision({self.canvas!r}, position={self.position}, value={self.value!r}, mark={self.mark})"


class DecisionManager:
    """Chronological log of committed choices, shared by the whole tree."""

    def __init__(self, journal: Journal, seed: Optional[int] = None):
        self.journal = journal
        self.seed = seed
        self._log: List[Decision] = []

    def record(self, node, canvas, position: int, value: Any, alternatives, mark: int) -> Decision:
        decision = Decision(node, canvas, position, value, tuple(alternatives), mark)
        self._log.append(decision)
        return decision

    def backtrack(self) -> Decision:
        """
        Retract the most recent decision that still leaves its tile an option.

        Returns:
            The retracted decision; its value is gone from the tile's options.

        Raises:
            ExhaustionError: if the log runs out first
        """
        while self._log:
            decision = self._log.pop()
            undone = self.journal.rewind(decision.mark)
            canvas = decision.canvas
            if canvas is None:
                raise StateError(f"Canvas of {decision!r} was released while still in the decision log")
            tile = canvas.tiles[decision.position]
            if tile.is_active and tile.num_options > 1 and decision.value in tile.options:
                canvas.remove_value(decision.position, decision.value)
                logger.info(
                    "Backtracked %r position %d: removed %r (%d changes undone, %d decisions left)",
                    canvas, decision.position, decision.value, undone, len(self._log),
                )
                return decision
            logger.debug("Decision on %r position %d had no alternative, popping further",
                         canvas, decision.position)

        logger.warning("Decision log exhausted (seed=%s)", self.seed)
        raise ExhaustionError(self.seed)

    def __len__(self) -> int:
        return len(self._log)


@dataclass
class Session:
    """The RNG, journal and decision log of one generation run."""

    rng: Random
    journal: Journal
    decisions: DecisionManager = field(init=False)

    def __post_init__(self):
        self.decisions = DecisionManager(self.journal, self.rng.seed)

    @classmethod
    def create(cls, seed: Optional[int] = None) -> "Session":
        return cls(Random(seed), Journal())

    @property
    def seed(self) -> int:
        return self.rng.seed
