"""
Per-position option overrides for a canvas.

An override pins a position to a subset of the domain. Entries are either
domain values or label strings (see grabbers.labels_of). Negative positions
count from the end of the canvas, so {-1: ["Tonic"]} restricts the last tile.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from wfc_composer.wfc.grabbers import labels_of


def _allows(value: Any, allowed: Tuple[Any, ...]) -> bool:
    labels = labels_of(value)
    for entry in allowed:
        if isinstance(entry, str):
            if entry in labels:
                return True
        elif entry == value:
            return True
    return False


class OptionsPerCell:
    """Mapping of position → allowed subset of the domain."""

    def __init__(self, overrides: Optional[Mapping[int, Iterable[Any]]] = None):
        self._overrides: Dict[int, Tuple[Any, ...]] = {
            int(position): tuple(allowed) for position, allowed in (overrides or {}).items()
        }

    def updated(self, other: Optional[Mapping[int, Iterable[Any]]]) -> "OptionsPerCell":
        """A copy where `other` replaces overrides at the same positions."""
        merged = dict(self._overrides)
        for position, allowed in (other or {}).items():
            merged[int(position)] = tuple(allowed)
        return OptionsPerCell(merged)

    def options_at(self, position: int, size: int, domain: Sequence[Any]) -> List[Any]:
        """Domain values allowed at `position` of a canvas of `size` tiles."""
        options = list(domain)
        for key in (position, position - size):
            allowed = self._overrides.get(key)
            if allowed is not None:
                options = [value for value in options if _allows(value, allowed)]
        return options

    def items(self):
        return self._overrides.items()

    def __contains__(self, position: int) -> bool:
        return position in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)

    def __repr__(self) -> str:
        return f"OptionsPerCell({self._overrides!r})"
