"""
wfc-composer: hierarchical wave-function-collapse music generation.

Sections, chords and notes are each a sequence of tiles that collapse to a
single value under adjacency and harmony constraints, with weighted random
choice and chronological backtracking across the whole section → chord →
note tree.
"""

__version__ = "0.1.0"
