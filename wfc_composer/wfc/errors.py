"""
Error taxonomy for the collapse engine.

    ConflictError   - a tile ran out of valid options (recoverable by backtracking)
    StateError      - an invariant was broken by the caller (never recovered)
    ExhaustionError - backtracking ran out of decisions; unsatisfiable for this seed
"""

from typing import Optional


class WFCError(Exception):
    """Base class for every error raised by the engine."""


class ConflictError(WFCError):
    """A tile's candidate set dropped to zero during propagation."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No valid options left")


class StateError(WFCError):
    """An operation was called on a tile in the wrong state."""


class ExhaustionError(WFCError):
    """
    The decision log is empty but a conflict is still unresolved.

    The seed is kept so the failing run can be reproduced.
    """

    def __init__(self, seed: Optional[int], message: Optional[str] = None):
        self.seed = seed
        super().__init__(
            message or f"Constraints cannot be satisfied (seed={seed})"
        )
