"""
WFC Subpackage - Propagation and Rollback Engine

    - tile.py: tile status variants and the Update result
    - canvas.py: fixed-length tile sequence, propagation, local rollback
    - constraints.py: weight functions and ConstraintSet
    - grabbers.py: name → label-set resolution for constraints
    - options.py: per-position option overrides
    - journal.py: undo log for speculative mutation
    - rng.py: seeded random source
    - errors.py: ConflictError / StateError / ExhaustionError

Usage:
    from wfc_composer.wfc import Canvas, OnlyFollowedByConstraint, constant_grabber

    canvas = Canvas(3, ["A", "B"], [OnlyFollowedByConstraint("A", constant_grabber(["B"]))])
    canvas.initialize()
"""

from wfc_composer.wfc.canvas import Canvas, make_canvas
from wfc_composer.wfc.constraints import (
    ChordToneConstraint,
    Constraint,
    ConstraintSet,
    InKeyConstraint,
    MaxLeapConstraint,
    NoRepeatConstraint,
    OnlyFollowedByConstraint,
    OnlyPrecededByConstraint,
)
from wfc_composer.wfc.errors import ConflictError, ExhaustionError, StateError, WFCError
from wfc_composer.wfc.grabbers import constant_grabber, context_grabber, group_grabber, labels_of
from wfc_composer.wfc.journal import Journal
from wfc_composer.wfc.options import OptionsPerCell
from wfc_composer.wfc.rng import Random
from wfc_composer.wfc.tile import Active, Boundary, Collapsed, Outcome, Tile, Update
