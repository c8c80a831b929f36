"""
Level Nodes - The Section → Chord → Note Tree
=============================================

Every node owns one canvas. Once that canvas is complete the node spawns
one child per tile, handing each child its own context extended with the
value the tile resolved to:

    SectionLevelNode   canvas of `num_sections` sections
      └─ ChordLevelNode    canvas of `num_chords` chordesques (per section)
           └─ NoteLevelNode    canvas of `melody_length` notes (per chord)

FlatLevelNode is a stand-alone leaf for solving a single sequence.

Children are recorded in the shared journal, so backtracking past the
moment they were spawned drops them again.
"""

import weakref
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from wfc_composer.theory.harmony import scale_pitch_classes
from wfc_composer.wfc.canvas import Canvas
from wfc_composer.wfc.constraints import ChordToneConstraint
from wfc_composer.wfc.grabbers import matches
from wfc_composer.wfc.journal import ChildAdded
from wfc_composer.wfc.options import OptionsPerCell


@dataclass(frozen=True)
class CanvasProps:
    """Domain, overrides and constraints for every canvas of one level."""

    domain: Tuple[Any, ...] = ()
    overrides: Mapping[int, Sequence[Any]] = field(default_factory=dict)
    constraints: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class LevelProps:
    section: CanvasProps
    chord: CanvasProps
    note: CanvasProps


class LevelNode(ABC):
    """
    Base class of one node of the level tree.

    Args:
        props: Canvas properties of every level
        session: RNG, journal and decision log of the run
        higher_values: Context bag for this node's canvas
        position: Index of the parent tile this node elaborates
        parent: Parent node (held weakly)
    """

    level = "level"

    def __init__(self, props, session, higher_values, position: int = 0, parent: Optional["LevelNode"] = None):
        self.props = props
        self.session = session
        self.higher_values = higher_values
        self.position = position
        self._parent = weakref.ref(parent) if parent is not None else None
        self.children: List["LevelNode"] = []
        self.canvas = self.build_canvas()

    # -------------------------------------------------------------------------
    # Per-level hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def canvas_size(self) -> int:
        ...

    @abstractmethod
    def canvas_domain(self) -> List[Any]:
        ...

    @abstractmethod
    def canvas_overrides(self) -> OptionsPerCell:
        ...

    @abstractmethod
    def canvas_constraints(self) -> List[Any]:
        ...

    def make_child(self, position: int, value: Any) -> Optional["LevelNode"]:
        """The node elaborating tile `position`; None for leaf levels."""
        return None

    # -------------------------------------------------------------------------
    # Tree
    # -------------------------------------------------------------------------

    @property
    def parent(self) -> Optional["LevelNode"]:
        return self._parent() if self._parent is not None else None

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def name(self) -> str:
        parent = self.parent
        if parent is None:
            return self.level
        return f"{parent.name}/{self.level}[{self.position}]"

    def build_canvas(self) -> Canvas:
        return Canvas(
            self.canvas_size(),
            self.canvas_domain(),
            constraints=self.canvas_constraints(),
            overrides=self.canvas_overrides(),
            context=self.higher_values,
            rng=self.session.rng,
            journal=self.session.journal,
            name=self.name,
        )

    def needs_children(self) -> bool:
        return self.canvas.is_complete and not self.children and not self.is_leaf

    @property
    def is_leaf(self) -> bool:
        return False

    def spawn_children(self) -> List["LevelNode"]:
        """Create one child per collapsed tile (journaled)."""
        spawned = []
        for position, value in enumerate(self.canvas.values()):
            child = self.make_child(position, value)
            if child is None:
                continue
            self.children.append(child)
            self.session.journal.record(ChildAdded(self, child))
            spawned.append(child)
        return spawned

    def discard_child(self, child: "LevelNode") -> None:
        self.children.remove(child)

    def walk(self) -> Iterator["LevelNode"]:
        """Every node of the subtree, breadth-first."""
        queue = deque([self])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(node.children)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# =============================================================================
# LEVELS
# =============================================================================

class SectionLevelNode(LevelNode):
    level = "sections"

    def canvas_size(self) -> int:
        return self.higher_values.num_sections

    def canvas_domain(self) -> List[Any]:
        return list(self.props.section.domain)

    def canvas_overrides(self) -> OptionsPerCell:
        return OptionsPerCell(self.props.section.overrides)

    def canvas_constraints(self) -> List[Any]:
        return list(self.props.section.constraints)

    def make_child(self, position: int, value: Any) -> "ChordLevelNode":
        num_chords = getattr(value, "chord_count", None) or self.higher_values.num_chords
        context = self.higher_values.extend(section=value, num_chords=num_chords)
        return ChordLevelNode(self.props, self.session, context, position, parent=self)


class ChordLevelNode(LevelNode):
    level = "chords"

    @property
    def section(self):
        return self.higher_values.section

    def canvas_size(self) -> int:
        return self.higher_values.num_chords

    def canvas_domain(self) -> List[Any]:
        domain = list(self.props.chord.domain)
        allowed = getattr(self.section, "allowed_chords", ())
        if allowed:
            domain = [value for value in domain if matches(value, allowed)]
        return domain

    def canvas_overrides(self) -> OptionsPerCell:
        own = getattr(self.section, "chord_overrides", None)
        return OptionsPerCell(self.props.chord.overrides).updated(own)

    def canvas_constraints(self) -> List[Any]:
        return list(self.props.chord.constraints) + list(getattr(self.section, "constraints", ()))

    def make_child(self, position: int, value: Any) -> "NoteLevelNode":
        context = self.higher_values.extend(chord=value)
        return NoteLevelNode(self.props, self.session, context, position, parent=self)


class NoteLevelNode(LevelNode):
    level = "notes"

    @property
    def is_leaf(self) -> bool:
        return True

    def canvas_size(self) -> int:
        return self.higher_values.melody_length

    def canvas_domain(self) -> List[Any]:
        # Melody key scale plus the tones of the current chord
        key, mode = self.higher_values.melody_key_and_mode
        allowed = set(scale_pitch_classes(key, mode))
        allowed |= set(getattr(self.higher_values.chord, "pitch_classes", ()))
        return [
            note for note in self.props.note.domain
            if getattr(note, "pitch_class", None) is None or note.pitch_class in allowed
        ]

    def canvas_overrides(self) -> OptionsPerCell:
        return OptionsPerCell(self.props.note.overrides)

    def canvas_constraints(self) -> List[Any]:
        return list(self.props.note.constraints) + [ChordToneConstraint()]


class FlatLevelNode(LevelNode):
    """A single canvas of `size` tiles with no levels below it."""

    level = "sequence"

    def __init__(self, props: CanvasProps, session, context: Any, size: int):
        self._size = size
        super().__init__(props, session, context)

    @property
    def is_leaf(self) -> bool:
        return True

    def canvas_size(self) -> int:
        return self._size

    def canvas_domain(self) -> List[Any]:
        return list(self.props.domain)

    def canvas_overrides(self) -> OptionsPerCell:
        return OptionsPerCell(self.props.overrides)

    def canvas_constraints(self) -> List[Any]:
        return list(self.props.constraints)
