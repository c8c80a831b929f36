"""
Tests for the Canvas: initialization, propagation, local rollback,
weighted choice and stitching.

Run with: pytest tests/test_canvas.py -v
"""

from collections import Counter

import pytest

from wfc_composer.wfc.canvas import Canvas, make_canvas
from wfc_composer.wfc.constraints import Constraint, NoRepeatConstraint, OnlyFollowedByConstraint
from wfc_composer.wfc.errors import ConflictError, StateError
from wfc_composer.wfc.grabbers import constant_grabber
from wfc_composer.wfc.journal import Journal
from wfc_composer.wfc.options import OptionsPerCell
from wfc_composer.wfc.rng import Random


class WeightByValue(Constraint):
    """Fixed weight per value."""

    def __init__(self, weights):
        super().__init__()
        self.weights = weights

    def weight(self, tile, context):
        return self.weights[tile.value]


def assert_counters(canvas):
    assert canvas.active_count + canvas.collapsed_count == canvas.size
    assert canvas.active_count == sum(1 for tile in canvas.tiles if tile.is_active)
    assert canvas.collapsed_count == sum(1 for tile in canvas.tiles if tile.is_collapsed)


class TestInitialize:

    def test_all_tiles_active(self):
        canvas = make_canvas(3, ["A", "B", "C"])
        assert canvas.is_initialized
        assert [tile.options for tile in canvas.tiles] == [["A", "B", "C"]] * 3
        assert canvas.active_count == 3
        assert canvas.collapsed_count == 0

    def test_domain_is_deduplicated(self):
        canvas = make_canvas(1, ["A", "B", "A"])
        assert canvas.tiles[0].options == ["A", "B"]

    def test_override_forces_collapse(self):
        canvas = make_canvas(3, ["A", "B", "C"], overrides={0: ["A"]})
        assert canvas.tiles[0].value == "A"
        assert canvas.collapsed_count == 1
        assert_counters(canvas)

    def test_negative_override_counts_from_end(self):
        canvas = make_canvas(3, ["A", "B", "C"], overrides={-1: ["B", "C"]})
        assert canvas.tiles[2].options == ["B", "C"]
        assert canvas.tiles[0].options == ["A", "B", "C"]

    def test_empty_override_is_a_conflict(self):
        with pytest.raises(ConflictError):
            make_canvas(2, ["A", "B"], overrides={1: ["Z"]})

    def test_unsatisfiable_canvas(self):
        rule = OnlyFollowedByConstraint("A", constant_grabber(["Z"]))
        with pytest.raises(ConflictError):
            make_canvas(2, ["A"], [rule])

    def test_not_complete_before_initialize(self):
        canvas = Canvas(2, ["A"])
        assert not canvas.is_initialized
        assert not canvas.is_complete


class TestCollapse:

    def test_collapse_counts(self):
        canvas = make_canvas(3, ["A", "B"])
        assert canvas.collapse(1, "B").is_collapsed
        assert canvas.tiles[1].value == "B"
        assert canvas.collapsed_count == 1
        assert_counters(canvas)

    def test_collapse_same_value_is_noop(self):
        canvas = make_canvas(2, ["A", "B"])
        canvas.collapse(0, "A")
        entries = len(canvas.journal)
        update = canvas.collapse(0, "A")
        assert update.is_collapsed and update.value == "A"
        assert len(canvas.journal) == entries
        assert canvas.collapsed_count == 1

    def test_collapse_different_value(self):
        canvas = make_canvas(2, ["A", "B"])
        canvas.collapse(0, "A")
        with pytest.raises(StateError):
            canvas.collapse(0, "B")

    def test_collapse_to_value_not_offered(self):
        canvas = make_canvas(2, ["A", "B"])
        with pytest.raises(StateError):
            canvas.collapse(0, "Z")

    def test_propagation_forces_neighbour(self):
        canvas = make_canvas(2, ["A", "B"], [NoRepeatConstraint()])
        canvas.collapse(0, "A")
        assert canvas.values() == ["A", "B"]
        assert canvas.is_complete
        assert_counters(canvas)

    def test_long_forced_chain(self):
        canvas = make_canvas(3000, ["A", "B"], [NoRepeatConstraint()])
        assert canvas.collapse(0, "A").is_collapsed
        assert canvas.is_complete
        assert canvas.values() == ["A", "B"] * 1500
        assert_counters(canvas)

    def test_override_forces_chain_on_initialize(self):
        canvas = make_canvas(1001, ["A", "B"], [NoRepeatConstraint()], overrides={-1: ["A"]})
        assert canvas.is_complete
        assert canvas.values()[0] == "A"
        assert canvas.values()[1] == "B"

    def test_long_chain_rolls_back_as_a_whole(self):
        rules = [
            OnlyFollowedByConstraint("A", constant_grabber(["B"])),
            OnlyFollowedByConstraint("B", constant_grabber(["A"])),
        ]
        canvas = make_canvas(1002, ["A", "B", "C"], rules, overrides={-1: ["A", "C"]})
        entries = len(canvas.journal)

        update = canvas.collapse(0, "A")

        assert update.is_active
        assert canvas.tiles[0].options == ["B", "C"]
        assert canvas.collapsed_count == 0
        assert all(tile.options == ["A", "B", "C"] for tile in canvas.tiles[1:-1])
        assert len(canvas.journal) == entries + 1
        assert_counters(canvas)

    def test_rollback_is_exact(self):
        rule = OnlyFollowedByConstraint("A", constant_grabber(["Z"]))
        canvas = make_canvas(3, ["A", "B", "C"], [rule])
        before = [tile.weighted_options for tile in canvas.tiles]

        update = canvas.collapse(0, "A")

        assert update.is_active
        assert [value for value, _ in update.options] == ["B", "C"]
        assert canvas.tiles[0].weighted_options == [("B", 1.0), ("C", 1.0)]
        assert [tile.weighted_options for tile in canvas.tiles[1:]] == before[1:]
        assert canvas.active_count == 3
        assert canvas.collapsed_count == 0

    def test_rewind_restores_counters(self):
        canvas = make_canvas(3, ["A", "B"])
        mark = canvas.journal.mark()
        canvas.collapse(0, "A")
        canvas.collapse(2, "B")
        assert canvas.journal.rewind(mark) > 0
        assert canvas.collapsed_count == 0
        assert all(tile.is_active for tile in canvas.tiles)
        assert_counters(canvas)

    def test_counter_invariant_through_a_full_run(self):
        canvas = make_canvas(6, ["A", "B", "C"], [NoRepeatConstraint()], seed=3)
        while canvas.first_active_position() is not None:
            position = canvas.first_active_position()
            canvas.collapse(position, canvas.choose_value(position))
            assert_counters(canvas)
        values = canvas.values()
        assert all(a != b for a, b in zip(values, values[1:]))

    def test_first_active_position_after_rewind(self):
        canvas = make_canvas(4, ["A", "B", "C"])
        mark = canvas.journal.mark()
        canvas.collapse(0, "A")
        canvas.collapse(1, "B")
        assert canvas.first_active_position() == 2
        canvas.journal.rewind(mark)
        assert canvas.first_active_position() == 0


class TestUpdateOptions:

    def test_idempotent(self):
        rule = WeightByValue({"A": 1.0, "B": 0.5, "C": 0.25})
        canvas = make_canvas(2, ["A", "B", "C"], [rule])
        first = canvas.update_options(0)
        entries = len(canvas.journal)
        second = canvas.update_options(0)
        assert first == second
        assert len(canvas.journal) == entries
        assert canvas.tiles[0].weighted_options == [("A", 1.0), ("B", 0.5), ("C", 0.25)]

    def test_collapsed_tile(self):
        canvas = make_canvas(2, ["A", "B"])
        canvas.collapse(0, "B")
        update = canvas.update_options(0)
        assert update.is_collapsed and update.value == "B"

    def test_zero_survivors_leaves_tile_untouched(self):
        canvas = make_canvas(2, ["A", "B"])
        veto = WeightByValue({"A": 0.0, "B": 0.0})
        canvas.constraints = canvas.constraints.extended([veto])
        assert canvas.update_options(0).is_conflict
        assert canvas.tiles[0].options == ["A", "B"]


class TestChooseValue:

    def test_distribution_follows_weights(self):
        weights = {"A": 1.0, "B": 2.0, "C": 3.0}
        canvas = make_canvas(1, ["A", "B", "C"], [WeightByValue(weights)], seed=0)
        trials = 6000
        counts = Counter(canvas.choose_value(0) for _ in range(trials))
        for value, weight in weights.items():
            assert counts[value] / trials == pytest.approx(weight / 6.0, abs=0.03)

    def test_same_seed_same_choices(self):
        first = make_canvas(1, ["A", "B", "C"], seed=9)
        second = make_canvas(1, ["A", "B", "C"], seed=9)
        assert [first.choose_value(0) for _ in range(20)] == [second.choose_value(0) for _ in range(20)]

    def test_collapsed_tile_returns_its_value(self):
        canvas = make_canvas(2, ["A", "B"])
        canvas.collapse(1, "A")
        assert canvas.choose_value(1) == "A"

    def test_conflict_returns_none(self):
        canvas = make_canvas(1, ["A", "B"])
        canvas.constraints = canvas.constraints.extended([WeightByValue({"A": 0.0, "B": 0.0})])
        assert canvas.choose_value(0) is None


class TestRemoveValue:

    def test_remove(self):
        canvas = make_canvas(1, ["A", "B", "C"])
        canvas.remove_value(0, "B")
        assert canvas.tiles[0].options == ["A", "C"]

    def test_remove_from_collapsed(self):
        canvas = make_canvas(1, ["A", "B"])
        canvas.collapse(0, "A")
        with pytest.raises(StateError):
            canvas.remove_value(0, "A")

    def test_remove_absent(self):
        canvas = make_canvas(1, ["A", "B"])
        with pytest.raises(StateError):
            canvas.remove_value(0, "Z")

    def test_remove_last_option(self):
        canvas = make_canvas(2, ["A", "B"])
        canvas.remove_value(0, "A")
        with pytest.raises(ConflictError):
            canvas.remove_value(0, "B")
        assert canvas.tiles[0].options == ["B"]


class TestStitching:

    def make_pair(self, constraints=()):
        journal = Journal()
        rng = Random(1)
        first = Canvas(2, ["A", "B"], list(constraints), rng=rng, journal=journal, name="first")
        second = Canvas(2, ["A", "B"], list(constraints), rng=rng, journal=journal, name="second")
        return first, second, journal

    def test_edges_reach_over(self):
        first, second, _ = self.make_pair()
        Canvas.stitch(first, second)
        first.initialize()
        second.initialize()
        assert first.get_next(1, reach_over=True) is second.tiles[0]
        assert second.get_prev(0, reach_over=True) is first.tiles[1]
        assert first.first_tile_of_next() is second.tiles[0]
        assert second.last_tile_of_previous() is first.tiles[1]

    def test_boundaries_without_reach_over(self):
        first, second, _ = self.make_pair()
        Canvas.stitch(first, second)
        first.initialize()
        second.initialize()
        assert first.get_next(1).is_boundary
        assert first.get_next(1).position == 2
        assert first.get_prev(0).position == -1
        assert first.last_tile_of_previous().is_boundary

    def test_uninitialized_sibling_is_a_boundary(self):
        first, second, _ = self.make_pair()
        Canvas.stitch(first, second)
        first.initialize()
        assert first.get_next(1, reach_over=True).is_boundary

    def test_propagates_across_edge(self):
        first, second, _ = self.make_pair([NoRepeatConstraint()])
        Canvas.stitch(first, second)
        first.initialize()
        second.initialize()
        first.collapse(1, "A")
        assert second.tiles[0].value == "B"
        assert_counters(first)
        assert_counters(second)

    def test_stitch_is_undone_by_rewind(self):
        first, second, journal = self.make_pair()
        mark = journal.mark()
        Canvas.stitch(first, second)
        journal.rewind(mark)
        assert first.next_canvas is None
        assert second.previous_canvas is None


class TestOverrides:

    def test_labels_and_values(self):
        overrides = OptionsPerCell({0: ["A"], 1: [2]})
        assert overrides.options_at(0, 3, ["A", "B"]) == ["A"]
        assert overrides.options_at(1, 3, [1, 2, 3]) == [2]
        assert overrides.options_at(2, 3, ["A", "B"]) == ["A", "B"]

    def test_updated_replaces_positions(self):
        merged = OptionsPerCell({0: ["A"], 1: ["B"]}).updated({0: ["C"]})
        assert merged.options_at(0, 2, ["A", "B", "C"]) == ["C"]
        assert merged.options_at(1, 2, ["A", "B", "C"]) == ["B"]
        assert len(merged) == 2 and 0 in merged

    def test_positive_and_negative_keys_combine(self):
        overrides = OptionsPerCell({1: ["A", "B"], -1: ["B", "C"]})
        assert overrides.options_at(1, 2, ["A", "B", "C"]) == ["B"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
