"""
Ranker Tests

Ordering by green-card time band, then risk, then number of steps.
"""
from pathways.models.path import ComposedPath, ComposedStage, Duration
from pathways.simulation.ranker import RISK_ORDINAL, risk_ordinal, sort_paths, step_count


def make_path(path_id, category, green_card_year, steps=1, wait=False):
    stages = [
        ComposedStage(stage_id="i140", duration=Duration(min=0.5, max=0.5), track="gc", start_year=float(i))
        for i in range(steps)
    ]
    if wait:
        stages.append(ComposedStage(
            stage_id="priority_wait", duration=Duration(min=1, max=1), track="gc",
            start_year=float(steps), is_priority_wait=True, cutoff="Jan 2020",
        ))
    stages.append(ComposedStage(stage_id="gc", duration=Duration(min=0, max=0), track="gc", start_year=green_card_year))
    return ComposedPath(
        id=path_id,
        name=path_id,
        description="",
        category=category,
        total_years=Duration(min=green_card_year, max=green_card_year),
        stages=stages,
        estimated_cost=1000,
        has_lottery=False,
        is_self_petition=False,
    )


class TestSortPaths:
    """Test cases for the ranking order."""

    def test_faster_band_first(self):
        slow = make_path("slow", "Marriage-based", 5.0)
        fast = make_path("fast", "EB-1A", 2.0)
        assert [p.id for p in sort_paths([slow, fast])] == ["fast", "slow"]

    def test_risk_breaks_ties_within_band(self):
        self_petition = make_path("eb1a", "EB-1A", 2.0)
        employer = make_path("eb2", "EB-2", 2.4)
        assert [p.id for p in sort_paths([self_petition, employer])] == ["eb2", "eb1a"]

    def test_band_is_anchored_at_its_first_path(self):
        """Test that 1.0, 1.4 and 1.6 years form two bands, not one chain."""
        first = make_path("first", "EB-5", 1.0)
        second = make_path("second", "EB-2", 1.4)
        third = make_path("third", "Marriage-based", 1.6)
        assert [p.id for p in sort_paths([third, first, second])] == ["second", "first", "third"]

    def test_fewer_steps_break_risk_ties(self):
        long = make_path("long", "EB-3", 3.0, steps=4)
        short = make_path("short", "EB-2", 3.2, steps=2)
        assert [p.id for p in sort_paths([long, short])] == ["short", "long"]

    def test_wait_and_terminal_stages_are_not_steps(self):
        path = make_path("p", "EB-2", 3.0, steps=2, wait=True)
        assert step_count(path) == 2

    def test_stable_for_equal_keys(self):
        a = make_path("a", "EB-2", 3.0)
        b = make_path("b", "EB-3", 3.1)
        c = make_path("c", "EB-2", 3.0)
        assert [p.id for p in sort_paths([a, b, c])] == ["a", "b", "c"]
        assert [p.id for p in sort_paths([c, b, a])] == ["c", "b", "a"]

    def test_empty(self):
        assert sort_paths([]) == []


class TestRiskOrdinal:
    """Test cases for category risk."""

    def test_order(self):
        ordered = ["Marriage-based", "EB-2", "EB-1B", "EB-2 NIW", "EB-1A", "EB-5"]
        assert [risk_ordinal(c) for c in ordered] == sorted(risk_ordinal(c) for c in ordered)
        assert risk_ordinal("EB-2") == risk_ordinal("EB-3")
        assert risk_ordinal("EB-1B") == risk_ordinal("EB-1C")

    def test_unknown_category_ranks_last(self):
        assert risk_ordinal("Diversity lottery") == max(RISK_ORDINAL.values())
