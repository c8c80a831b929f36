"""
Undo journal for speculative mutation.

Every forward step on the tile graph appends an entry; a rewind replays the
entries in reverse down to a mark. Tile statuses, canvas links and child
nodes created by the hierarchy are all undone through the same journal, so
one mark captures the whole state of a generation run.
"""

from typing import List


class StatusChange:
    """A tile's status was replaced; `previous` is restored on revert."""

    __slots__ = ("canvas", "position", "previous")

    def __init__(self, canvas, position: int, previous):
        self.canvas = canvas
        self.position = position
        self.previous = previous

    def revert(self):
        self.canvas._apply_status(self.position, self.previous)


class LinkChange:
    """A canvas was stitched to a sibling; the old links come back on revert."""

    __slots__ = ("canvas", "previous_canvas", "next_canvas")

    def __init__(self, canvas):
        self.canvas = canvas
        self.previous_canvas = canvas.previous_canvas
        self.next_canvas = canvas.next_canvas

    def revert(self):
        self.canvas.previous_canvas = self.previous_canvas
        self.canvas.next_canvas = self.next_canvas


class ChildAdded:
    """A level node gained a child; the child is discarded on revert."""

    __slots__ = ("node", "child")

    def __init__(self, node, child):
        self.node = node
        self.child = child

    def revert(self):
        self.node.discard_child(self.child)


class Journal:
    """Append-only log of reversible changes, rewound to integer marks."""

    def __init__(self):
        self._entries: List = []

    def mark(self) -> int:
        return len(self._entries)

    def record(self, entry) -> None:
        self._entries.append(entry)

    def rewind(self, mark: int) -> int:
        """Revert every entry recorded after `mark`; returns how many were undone."""
        undone = 0
        while len(self._entries) > mark:
            self._entries.pop().revert()
            undone += 1
        return undone

    def __len__(self) -> int:
        return len(self._entries)
