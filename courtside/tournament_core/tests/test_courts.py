"""
Tests for court assignment strategies and usage tracking.
"""

import random
import unittest

from courtside.tournament_core.courts import (
    assign_courts,
    get_court_usage_stats,
    get_least_used_courts,
    validate_court_assignments,
)
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.structure import CourtRotationStrategy, Match, Team
from courtside.tournament_core.tests.test_utils import make_courts


def _matches(count):
    return [
        Match(team1=Team.single(f"a{i}"), team2=Team.single(f"b{i}"))
        for i in range(count)
    ]


class TestAssignCourts(unittest.TestCase):
    def setUp(self):
        self.courts = make_courts(3)

    def test_sequential_uses_courts_in_order(self):
        assigned = assign_courts(_matches(2), self.courts, CourtRotationStrategy.SEQUENTIAL)
        self.assertEqual([m.court_id for m in assigned], ["c1", "c2"])

    def test_inactive_courts_are_skipped(self):
        courts = make_courts(3, inactive=["c1"])
        assigned = assign_courts(_matches(2), courts, "sequential")
        self.assertEqual([m.court_id for m in assigned], ["c2", "c3"])

    def test_balanced_prefers_least_used(self):
        usage = {"c1": 5, "c2": 0, "c3": 1}
        assigned = assign_courts(_matches(2), self.courts, "balanced", usage=usage)
        self.assertEqual([m.court_id for m in assigned], ["c2", "c3"])

    def test_balanced_without_history_keeps_court_order(self):
        assigned = assign_courts(_matches(3), self.courts)
        self.assertEqual([m.court_id for m in assigned], ["c1", "c2", "c3"])

    def test_random_assigns_distinct_active_courts(self):
        matches = _matches(3)
        assigned = assign_courts(matches, self.courts, "random", rng=random.Random(7))
        self.assertEqual(sorted(m.court_id for m in assigned), ["c1", "c2", "c3"])
        self.assertTrue(all(m.court_id is None for m in matches))

    def test_random_is_reproducible_with_seeded_rng(self):
        first = assign_courts(_matches(3), self.courts, "random", rng=random.Random(3))
        second = assign_courts(_matches(3), self.courts, "random", rng=random.Random(3))
        self.assertEqual([m.court_id for m in first], [m.court_id for m in second])

    def test_not_enough_courts(self):
        with self.assertRaises(ValidationError) as cm:
            assign_courts(_matches(4), self.courts)
        self.assertEqual(cm.exception.code, "insufficient_courts")

    def test_no_active_courts(self):
        with self.assertRaises(ValidationError) as cm:
            assign_courts(_matches(1), make_courts(2, inactive=["c1", "c2"]))
        self.assertEqual(cm.exception.code, "no_courts")

    def test_unknown_strategy(self):
        with self.assertRaises(ValidationError) as cm:
            assign_courts(_matches(1), self.courts, "zigzag")
        self.assertEqual(cm.exception.code, "unknown_strategy")


class TestCourtUsage(unittest.TestCase):
    def test_usage_stats_count_matches_per_court(self):
        matches = [m.with_court(c) for m, c in zip(_matches(3), ["c1", "c2", "c1"])]
        matches.append(_matches(1)[0])
        self.assertEqual(get_court_usage_stats(matches), {"c1": 2, "c2": 1})

    def test_least_used_courts_keep_order_on_ties(self):
        courts = make_courts(3)
        ordered = get_least_used_courts(courts, {"c1": 2})
        self.assertEqual([c.id for c in ordered], ["c2", "c3", "c1"])


class TestValidateCourtAssignments(unittest.TestCase):
    def setUp(self):
        self.courts = make_courts(2, inactive=["c2"])

    def test_valid_assignment(self):
        matches = [_matches(1)[0].with_court("c1")]
        self.assertTrue(validate_court_assignments(matches, self.courts).valid)

    def test_reports_every_problem(self):
        first, second, third, fourth = _matches(4)
        result = validate_court_assignments(
            [first.with_court("c1"), second.with_court("c1"), third, fourth.with_court("c9")],
            self.courts,
        )
        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 3)

    def test_inactive_court_is_an_error(self):
        result = validate_court_assignments([_matches(1)[0].with_court("c2")], self.courts)
        self.assertFalse(result.valid)


if __name__ == "__main__":
    unittest.main()
