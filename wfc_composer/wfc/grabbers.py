"""
Grabbers - Resolve Names to Sets of Labels
==========================================

Constraints refer to values by name: a literal chord ("Am"), a user-named
prototype ("Chorus opener") or a group of either. A grabber turns whatever a
rule was written against into a concrete frozenset of labels at evaluation
time, given the canvas context.

Every domain value answers to one or more labels (`value.labels`); values
without a `labels` attribute answer to `str(value)`.
"""

from typing import Any, Callable, FrozenSet, Iterable, Mapping

Grabber = Callable[[Any], FrozenSet[str]]


def labels_of(value: Any) -> FrozenSet[str]:
    """The names a domain value answers to."""
    labels = getattr(value, "labels", None)
    if labels is not None:
        return frozenset(labels)
    return frozenset({str(value)})


def matches(value: Any, names: Iterable[str]) -> bool:
    """True when any label of `value` is in `names`."""
    return not labels_of(value).isdisjoint(names)


def constant_grabber(names: Iterable[str]) -> Grabber:
    """
    Always resolve to the same names.

    Example:
        >>> grab = constant_grabber(["C", "G"])
        >>> sorted(grab(None))
        ['C', 'G']
    """
    frozen = frozenset(names)

    def grab(context: Any = None) -> FrozenSet[str]:
        return frozen

    return grab


def group_grabber(groups: Mapping[str, Iterable[str]], names: Iterable[str]) -> Grabber:
    """
    Expand group names into their members (recursively).

    The group name itself stays in the result, so a value labelled with the
    group name still matches.

    Example:
        >>> grab = group_grabber({"tonic": ["C", "Am"], "home": ["tonic", "Em"]}, ["home"])
        >>> sorted(grab(None))
        ['Am', 'C', 'Em', 'home', 'tonic']
    """
    resolved = set()
    pending = list(names)
    while pending:
        name = pending.pop()
        if name in resolved:
            continue
        resolved.add(name)
        pending.extend(groups.get(name, ()))
    frozen = frozenset(resolved)

    def grab(context: Any = None) -> FrozenSet[str]:
        return frozen

    return grab


def context_grabber(attribute: str) -> Grabber:
    """Resolve to the labels of a value carried in the context bag."""

    def grab(context: Any = None) -> FrozenSet[str]:
        value = getattr(context, attribute, None)
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset({value})
        if isinstance(value, (list, tuple, set, frozenset)):
            out = set()
            for item in value:
                out |= labels_of(item)
            return frozenset(out)
        return labels_of(value)

    return grab
