"""
Data Subpackage - Domain Values and Schemas

    - values.py: Section, Chord, ChordPrototype, Note
    - schema.py: pydantic models for configuration, context and results
"""

from wfc_composer.data.schema import (
    GenerationConfig,
    GenerationResult,
    GenerationSettings,
    HigherValues,
    RhythmPatternOptions,
    TimedChord,
    TimedNote,
    TimedSection,
)
from wfc_composer.data.values import Chord, ChordPrototype, Note, Section
