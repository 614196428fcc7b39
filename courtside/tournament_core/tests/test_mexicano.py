"""
Tests for Mexicano standings-driven rounds.
"""

import random
import unittest

from courtside.tournament_core.mexicano import (
    calculate_optimal_rounds,
    generate_mexicano_round,
    order_by_standings,
    validate_mexicano_round,
)
from courtside.tournament_core.structure import Team
from courtside.tournament_core.tests.test_utils import (
    make_participants,
    make_standings,
    user_ids,
)
from courtside.tournament_core.validation import player_appearances


class TestGenerateMexicanoRound(unittest.TestCase):
    def setUp(self):
        self.participants = make_participants(8)

    def test_first_round_is_a_random_draw(self):
        matches = generate_mexicano_round(self.participants, 1, rng=random.Random(1))
        self.assertEqual(len(matches), 2)
        self.assertEqual(sorted(player_appearances(matches)), sorted(user_ids(8)))

    def test_first_round_is_reproducible(self):
        first = generate_mexicano_round(self.participants, 1, rng=random.Random(5))
        second = generate_mexicano_round(self.participants, 1, rng=random.Random(5))
        self.assertEqual(first, second)

    def test_later_rounds_group_neighbours_in_the_standings(self):
        """1st and 2nd play 3rd and 4th; 5th and 6th play 7th and 8th."""
        standings = make_standings([10, 9, 8, 7, 6, 5, 4, 3])
        matches = generate_mexicano_round(self.participants, 2, standings)
        self.assertEqual(matches[0].team1, Team("u1", "u2"))
        self.assertEqual(matches[0].team2, Team("u3", "u4"))
        self.assertEqual(matches[1].team1, Team("u5", "u6"))
        self.assertEqual(matches[1].team2, Team("u7", "u8"))

    def test_leftover_players_sit_out(self):
        participants = make_participants(6)
        matches = generate_mexicano_round(participants, 1, rng=random.Random(2))
        self.assertEqual(len(matches), 1)
        self.assertTrue(validate_mexicano_round(matches, participants).valid)


class TestOrderByStandings(unittest.TestCase):
    def test_games_difference_breaks_point_ties(self):
        standings = make_standings([3, 3], games_diff=[1, 5])
        self.assertEqual(order_by_standings(["u1", "u2"], standings), ["u2", "u1"])

    def test_unranked_players_go_last(self):
        standings = make_standings([0, 3])
        self.assertEqual(order_by_standings(["u9", "u1", "u2"], standings), ["u2", "u1", "u9"])


class TestOptimalRounds(unittest.TestCase):
    def test_recommended_rounds_grow_with_the_field(self):
        self.assertEqual(calculate_optimal_rounds(8), 5)
        self.assertEqual(calculate_optimal_rounds(16), 7)
        self.assertEqual(calculate_optimal_rounds(24), 9)
        self.assertEqual(calculate_optimal_rounds(40), 10)


if __name__ == "__main__":
    unittest.main()
