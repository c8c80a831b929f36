"""
Breadth-first driver for the level tree.

Each step takes the first node, in breadth-first order, that still has an
active tile and collapses its lowest active position. A cursor over that
order only moves forward until a backtrack reopens earlier tiles.

When every existing canvas is complete, the next level is spawned for all
nodes at once, the new canvases are stitched in order and initialized.
Conflicts that local rollback could not absorb go to the DecisionManager.

The scan order, the RNG and the decision log are the only sources of
ordering, so a fixed seed replays a run exactly.
"""

import logging
from typing import Any, List, Optional

from wfc_composer.wfc.canvas import Canvas
from wfc_composer.wfc.errors import ConflictError, ExhaustionError

logger = logging.getLogger(__name__)


class BreadthFirstTraverser:
    """
    Resolve every tile of a level tree.

    Args:
        session: Session shared by every node of the tree
        max_steps: Choose/collapse/backtrack steps before giving up (None = unbounded)
    """

    def __init__(self, session, max_steps: Optional[int] = None):
        self.session = session
        self.max_steps = max_steps
        self.steps = 0
        self.backtracks = 0
        self._order: List = []
        self._cursor = 0

    def generate(self, root, result_manager=None, max_steps: Optional[int] = None) -> Any:
        """
        Run the search from `root` until every tile is collapsed.

        Returns:
            result_manager.generate() when a result manager is given,
            otherwise the resolved root node.

        Raises:
            ExhaustionError: if the constraints cannot be satisfied or the
                step budget runs out
        """
        budget = max_steps if max_steps is not None else self.max_steps
        self.steps = 0
        self.backtracks = 0
        self._reset(root)

        logger.info("Starting generation (seed=%s)", self.session.seed)
        try:
            root.canvas.initialize()
        except ConflictError as err:
            logger.info("Root canvas failed to initialize: %s", err)
            self._recover(root)

        while True:
            self._tick(budget)
            node = self._next_open_node()
            if node is not None:
                self._step(root, node)
                continue
            if not self._spawn_next_level(root):
                break

        logger.info(
            "Generation finished in %d steps with %d backtracks (seed=%s)",
            self.steps, self.backtracks, self.session.seed,
        )
        if result_manager is not None:
            return result_manager.generate()
        return root

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _tick(self, budget: Optional[int]) -> None:
        self.steps += 1
        if budget is not None and self.steps > budget:
            seed = self.session.seed
            logger.warning("Step budget of %d exhausted (seed=%s)", budget, seed)
            raise ExhaustionError(seed, f"Gave up after {budget} steps (seed={seed})")

    def _reset(self, root) -> None:
        self._order = list(root.walk())
        self._cursor = 0

    def _next_open_node(self):
        while self._cursor < len(self._order):
            node = self._order[self._cursor]
            if node.canvas.active_count > 0:
                return node
            self._cursor += 1
        return None

    def _step(self, root, node) -> None:
        canvas = node.canvas
        position = canvas.first_active_position()
        mark = self.session.journal.mark()

        value = canvas.choose_value(position)
        if value is None:
            self._recover(root)
            return

        alternatives = tuple(v for v in canvas.tiles[position].options if v != value)
        update = canvas.collapse(position, value)
        if update.is_collapsed:
            self.session.decisions.record(node, canvas, position, value, alternatives, mark)
            logger.debug("%r position %d → %r", canvas, position, value)
        elif update.is_conflict:
            self._recover(root)

    def _spawn_next_level(self, root) -> bool:
        parents = [node for node in root.walk() if node.needs_children()]
        if not parents:
            return False

        spawned: List = []
        for parent in parents:
            spawned.extend(parent.spawn_children())
        if not spawned:
            return False

        previous = None
        for child in spawned:
            Canvas.stitch(previous.canvas if previous is not None else None, child.canvas)
            previous = child

        self._order.extend(spawned)
        logger.info("Spawned %d %s canvases", len(spawned), spawned[0].level)
        for child in spawned:
            try:
                child.canvas.initialize()
            except ConflictError as err:
                logger.info("%r failed to initialize: %s", child, err)
                self._recover(root)
                break
        return True

    def _recover(self, root) -> None:
        self.backtracks += 1
        self.session.decisions.backtrack()
        # the rewind may have reopened earlier tiles and discarded children
        self._reset(root)
