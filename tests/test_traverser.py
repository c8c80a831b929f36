"""
End-to-end tests for the breadth-first traverser over single sequences and
the full section → chord → note tree.

Run with: pytest tests/test_traverser.py -v
"""

import pytest
from pydantic import ValidationError

from wfc_composer.app.generate import build_tree, demo_config, generate, solve_sequence
from wfc_composer.data.schema import MAX_LEVEL_SIZE, GenerationConfig, GenerationSettings, HigherValues
from wfc_composer.data.values import Chord, Note, Section
from wfc_composer.hierarchy.backtracking import Session
from wfc_composer.hierarchy.nodes import CanvasProps, FlatLevelNode, LevelNode, LevelProps, SectionLevelNode
from wfc_composer.hierarchy.traverser import BreadthFirstTraverser
from wfc_composer.theory.harmony import scale_pitch_classes
from wfc_composer.wfc.constraints import Constraint, NoRepeatConstraint, OnlyFollowedByConstraint
from wfc_composer.wfc.errors import ExhaustionError
from wfc_composer.wfc.grabbers import constant_grabber


class Veto(Constraint):
    def weight(self, tile, context):
        return 0.0


def flatten(nodes):
    values = []
    for node in nodes:
        values.extend(node.canvas.values())
    return values


class TestSingleSequence:

    @pytest.mark.parametrize("seed", range(25))
    def test_a_only_followed_by_b(self, seed):
        rule = OnlyFollowedByConstraint("A", constant_grabber(["B"]))
        values = solve_sequence(["A", "B"], 3, [rule], seed=seed)
        assert len(values) == 3
        assert all(value in ("A", "B") for value in values)
        assert ("A", "A") not in zip(values, values[1:])

    def test_sole_value_vetoed(self):
        with pytest.raises(ExhaustionError) as excinfo:
            solve_sequence(["A"], 3, [Veto()], seed=17)
        assert excinfo.value.seed == 17

    def test_sole_value_cannot_repeat(self):
        with pytest.raises(ExhaustionError):
            solve_sequence(["A"], 3, [NoRepeatConstraint()], seed=4)

    def test_overrides(self):
        values = solve_sequence(["A", "B", "C"], 4, overrides={0: ["C"], -1: ["A"]}, seed=2)
        assert values[0] == "C"
        assert values[-1] == "A"

    def test_step_budget(self):
        with pytest.raises(ExhaustionError):
            solve_sequence(["A", "B", "C"], 5, seed=1, max_steps=1)

    def test_long_forced_sequence(self):
        values = solve_sequence(["A", "B"], 1500, [NoRepeatConstraint()], seed=1)
        assert len(values) == 1500
        assert all(a != b for a, b in zip(values, values[1:]))

    def test_default_settings_have_no_step_limit(self):
        assert GenerationSettings().max_steps is None
        session = Session.create(2)
        node = FlatLevelNode(CanvasProps(("A", "B", "C")), session, None, 3000)
        traverser = BreadthFirstTraverser(session, GenerationSettings().max_steps)
        traverser.generate(node)
        assert node.canvas.is_complete
        assert traverser.steps > 3000

    def test_traverser_returns_root_and_counts(self):
        session = Session.create(3)
        node = FlatLevelNode(CanvasProps(("A", "B", "C")), session, None, 4)
        traverser = BreadthFirstTraverser(session)
        assert traverser.generate(node) is node
        assert node.canvas.is_complete
        assert traverser.steps >= 1
        assert len(session.decisions) <= 4


class TestHierarchy:

    @pytest.fixture(scope="class")
    def tree(self):
        config = demo_config(seed=5, num_sections=3, num_chords=3, melody_length=2)
        root, session = build_tree(config)
        return config, root, session

    def test_shape(self, tree):
        _, root, _ = tree
        assert root.canvas.size == 3
        assert len(root.children) == 3
        for chord_node in root.children:
            assert chord_node.canvas.size == 3
            assert len(chord_node.children) == 3
            for note_node in chord_node.children:
                assert note_node.canvas.size == 2
                assert note_node.children == []
        assert all(node.canvas.is_complete for node in root.walk())

    def test_depth_and_parents(self, tree):
        _, root, _ = tree
        note_node = root.children[1].children[2]
        assert note_node.depth == 2
        assert note_node.parent is root.children[1]
        assert note_node.parent.parent is root

    def test_section_rules(self, tree):
        _, root, _ = tree
        sections = root.canvas.values()
        assert sections[0].name == "Verse"
        for before, after in zip(sections, sections[1:]):
            if after.name == "Bridge":
                assert before.name == "Chorus"

    def test_children_inherit_parent_value(self, tree):
        _, root, _ = tree
        for section, chord_node in zip(root.canvas.values(), root.children):
            assert chord_node.higher_values.section == section
            for chord, note_node in zip(chord_node.canvas.values(), chord_node.children):
                assert note_node.higher_values.chord == chord

    def test_chord_rules_across_sections(self, tree):
        _, root, _ = tree
        chords = flatten(root.children)
        for before, after in zip(chords, chords[1:]):
            if before.name == "Dominant":
                assert after.name in ("Tonic", "Relative")
        for section, chord_node in zip(root.canvas.values(), root.children):
            values = chord_node.canvas.values()
            if section.allowed_chords:
                assert all(value.name in section.allowed_chords for value in values)
            if section.name == "Chorus":
                assert values[0].name == "Tonic"

    def test_note_rules(self, tree):
        config, root, _ = tree
        scale = scale_pitch_classes(config.context.key, config.context.mode)
        melody = []
        for chord_node in root.children:
            for note_node in chord_node.children:
                allowed = scale | note_node.higher_values.chord.pitch_classes
                for note in note_node.canvas.values():
                    assert note.pitch_class in allowed
                    melody.append(note.pitch)
        assert all(60 <= pitch <= 79 for pitch in melody)
        assert all(abs(a - b) <= 7 for a, b in zip(melody, melody[1:]))

    def test_determinism(self):
        first = generate(demo_config(seed=11))
        second = generate(demo_config(seed=11))
        assert first.model_dump() == second.model_dump()

    def test_unseeded_run_reports_its_seed(self):
        config = demo_config(num_sections=1, num_chords=2, melody_length=2)
        result = generate(config)
        replay = generate(demo_config(seed=result.seed, num_sections=1, num_chords=2, melody_length=2))
        assert replay.model_dump() == result.model_dump()

    def test_section_chord_count(self):
        config = GenerationConfig(
            sections=[Section("Short", chord_count=2)],
            chordesques=[Chord("C"), Chord("G")],
            notes=Note.all(60, 72),
            context=HigherValues(num_sections=1, num_chords=5, melody_length=1),
            seed=0,
        )
        root, _ = build_tree(config)
        assert root.children[0].canvas.size == 2

    @pytest.mark.parametrize("seed", range(10))
    def test_child_that_cannot_start_retracts_parent(self, seed):
        config = GenerationConfig(
            sections=[Section("Empty", allowed_chords=("Nothing",)), Section("Full")],
            chordesques=[Chord("C"), Chord("G")],
            notes=Note.all(60, 72),
            context=HigherValues(num_sections=1, num_chords=2, melody_length=1),
            seed=seed,
        )
        root, _ = build_tree(config)
        assert root.canvas.values()[0].name == "Full"
        assert len(root.children) == 1

    def test_forced_chords_across_many_sections(self):
        config = GenerationConfig(
            sections=[Section("S")],
            chordesques=[Chord("C"), Chord("G")],
            chord_constraints=[NoRepeatConstraint()],
            notes=Note.all(60, 64),
            context=HigherValues(num_sections=16, num_chords=64, melody_length=1),
            seed=0,
        )
        root, _ = build_tree(config)
        chords = flatten(root.children)
        assert len(chords) == 16 * 64
        assert all(a != b for a, b in zip(chords, chords[1:]))
        assert all(node.canvas.is_complete for node in root.walk())

    def test_oversized_section_is_rejected_on_spawn(self):
        section = Section("Huge", chord_count=MAX_LEVEL_SIZE + 1)
        props = LevelProps(
            section=CanvasProps((section,)),
            chord=CanvasProps((Chord("C"),)),
            note=CanvasProps(tuple(Note.all(60, 64))),
        )
        session = Session.create(0)
        root = SectionLevelNode(props, session, HigherValues(num_sections=1))
        with pytest.raises(ValidationError):
            BreadthFirstTraverser(session).generate(root)

    def test_unsatisfiable_tree(self):
        config = GenerationConfig(
            sections=[Section("Empty", allowed_chords=("Nothing",))],
            chordesques=[Chord("C")],
            context=HigherValues(num_sections=1),
            seed=8,
        )
        with pytest.raises(ExhaustionError) as excinfo:
            build_tree(config)
        assert excinfo.value.seed == 8


class TestLevelNode:

    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            LevelNode(CanvasProps(("A",)), Session.create(0), None)

    def test_subclass_must_provide_every_canvas_hook(self):
        class SizeOnly(LevelNode):
            def canvas_size(self):
                return 1

        with pytest.raises(TypeError):
            SizeOnly(CanvasProps(("A",)), Session.create(0), None)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
