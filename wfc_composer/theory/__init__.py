"""
Theory Subpackage

Just enough music theory to let a chosen key or chord restrict the level
below it:
    - harmony.py: scales, chord tones, note names
"""

from wfc_composer.theory.harmony import (
    build_scale,
    chord_pitch_classes,
    get_diatonic_chords,
    normalize_note,
    pitch_name,
    scale_pitch_classes,
)
