"""
Tests for the pydantic schemas and the domain values.

Run with: pytest tests/test_schema.py -v
"""

import pytest
from pydantic import ValidationError

from wfc_composer.data.schema import (
    MAX_LEVEL_SIZE,
    GenerationConfig,
    GenerationSettings,
    HigherValues,
    RhythmPatternOptions,
)
from wfc_composer.data.values import Chord, ChordPrototype, Note, Section
from wfc_composer.wfc.constraints import NoRepeatConstraint


class TestHigherValues:

    def test_defaults(self):
        hv = HigherValues()
        assert hv.key == "C"
        assert hv.mode == "major"
        assert hv.melody_key_and_mode == ("C", "major")
        assert hv.rhythm.only_start_on_note is True

    def test_key_is_normalized(self):
        assert HigherValues(key="Bb").key == "A#"

    def test_mode_is_case_insensitive(self):
        assert HigherValues(mode="Minor").mode == "minor"

    def test_melody_key(self):
        hv = HigherValues(key="C", melody_key="Eb", melody_mode="minor")
        assert hv.melody_key_and_mode == ("D#", "minor")

    @pytest.mark.parametrize("kwargs", [
        {"key": "H"},
        {"mode": "lydian"},
        {"bpm": 10},
        {"bpm": 500},
        {"num_sections": 0},
        {"beats_per_chord": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            HigherValues(**kwargs)

    def test_extend_leaves_parent_untouched(self):
        parent = HigherValues(num_chords=4)
        child = parent.extend(num_chords=2, chord=Chord("G"))
        assert child.num_chords == 2
        assert child.chord == Chord("G")
        assert parent.num_chords == 4
        assert parent.chord is None

    def test_extend_validates_updates(self):
        with pytest.raises(ValidationError):
            HigherValues().extend(num_chords=MAX_LEVEL_SIZE + 1)

    def test_extend_keeps_nested_values(self):
        parent = HigherValues(key="G", rhythm=RhythmPatternOptions(maximum_rest_length=1))
        child = parent.extend(section=Section("Verse"))
        assert child.key == "G"
        assert child.rhythm == parent.rhythm
        assert child.section == Section("Verse")


class TestGenerationSettings:

    def test_defaults(self):
        settings = GenerationSettings()
        assert settings.max_steps is None
        assert settings.rest_probability == 0.3

    def test_budget_must_be_positive(self):
        with pytest.raises(ValidationError):
            GenerationSettings(max_steps=0)


class TestGenerationConfig:

    def test_minimal(self):
        config = GenerationConfig(sections=[Section("A")], chordesques=[Chord("C")])
        assert config.seed is None
        assert len(config.notes) == len(Note.all())
        assert config.settings == GenerationSettings()

    def test_sections_must_be_sections(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=["Verse"], chordesques=[Chord("C")])

    def test_chordesques_must_be_chords(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=[Section("A")], chordesques=["C"])

    def test_constraints_must_be_constraints(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=[Section("A")], chordesques=[Chord("C")], chord_constraints=["no"])

    def test_accepts_constraints(self):
        config = GenerationConfig(
            sections=[Section("A")],
            chordesques=[Chord("C")],
            note_constraints=[NoRepeatConstraint()],
        )
        assert len(config.note_constraints) == 1

    def test_empty_domain(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=[], chordesques=[Chord("C")])

    def test_negative_seed(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=[Section("A")], chordesques=[Chord("C")], seed=-1)

    def test_section_chord_count_is_bounded(self):
        with pytest.raises(ValidationError):
            GenerationConfig(sections=[Section("Huge", chord_count=MAX_LEVEL_SIZE + 1)], chordesques=[Chord("C")])


class TestValues:

    def test_note(self):
        note = Note(61)
        assert note.name == "C#4"
        assert note.pitch_class == 1
        assert note.labels == frozenset({"C#4", "C#"})
        assert str(note) == "C#4"

    def test_note_range(self):
        notes = Note.all(60, 62)
        assert [note.pitch for note in notes] == [60, 61, 62]

    def test_chord(self):
        chord = Chord("bb", "m")
        assert chord.name == "A#m"
        assert chord.pitch_classes == frozenset({10, 1, 5})
        assert chord == Chord("A#", "m")

    def test_invalid_chord_quality(self):
        with pytest.raises(ValueError):
            Chord("C", "weird")

    def test_basic_chords(self):
        assert len(Chord.all_basic()) == 24

    def test_prototype(self):
        prototype = ChordPrototype("Home", Chord("C"))
        assert prototype.labels == frozenset({"Home", "C"})
        assert prototype.pitch_classes == frozenset({0, 4, 7})
        assert str(prototype) == "Home(C)"

    def test_section(self):
        section = Section("Verse", chord_count=2, allowed_chords=["C", "G"])
        assert section.allowed_chords == ("C", "G")
        assert section.labels == frozenset({"Verse"})
        assert hash(section) == hash(Section("Verse", chord_count=2, allowed_chords=("C", "G")))

    def test_section_needs_a_chord(self):
        with pytest.raises(ValueError):
            Section("Empty", chord_count=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
