"""
Hierarchy Subpackage - Multi-Level Search

    - nodes.py: SectionLevelNode → ChordLevelNode → NoteLevelNode
    - backtracking.py: Session and the global DecisionManager
    - traverser.py: breadth-first search driver
    - results.py: resolved tree → GenerationResult timeline

Usage:
    from wfc_composer.hierarchy import BreadthFirstTraverser, ResultManager, Session

    session = Session.create(seed=7)
    root = SectionLevelNode(props, session, context)
    result = BreadthFirstTraverser(session).generate(root, ResultManager(root))
"""

from wfc_composer.hierarchy.backtracking import Decision, DecisionManager, Session
from wfc_composer.hierarchy.nodes import (
    CanvasProps,
    ChordLevelNode,
    FlatLevelNode,
    LevelNode,
    LevelProps,
    NoteLevelNode,
    SectionLevelNode,
)
from wfc_composer.hierarchy.results import ResultManager, rhythm_pattern
from wfc_composer.hierarchy.traverser import BreadthFirstTraverser
