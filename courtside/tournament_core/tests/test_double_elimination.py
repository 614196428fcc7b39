"""
Tests for double elimination bracket layout and routing.
"""

import unittest

from courtside.tournament_core.double_elimination import (
    generate_double_elimination_bracket,
    get_losers_round_name,
    losers_round_count,
    losers_round_size,
    route_losers_winner,
    route_winners_loser,
    validate_double_elimination_bracket,
)
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.structure import BYE, BracketPosition, BracketType
from courtside.tournament_core.tests.test_utils import make_participants


def _main(round_number, position):
    return BracketPosition("t1", BracketType.MAIN, round_number, position)


def _losers(round_number, position):
    return BracketPosition("t1", BracketType.LOSERS, round_number, position)


class TestLosersBracketShape(unittest.TestCase):
    def test_round_count_and_sizes(self):
        self.assertEqual(losers_round_count(3), 4)
        self.assertEqual([losers_round_size(8, k) for k in range(1, 5)], [2, 2, 1, 1])
        self.assertEqual(
            [losers_round_size(16, k) for k in range(1, 7)], [4, 4, 2, 2, 1, 1]
        )

    def test_round_names(self):
        self.assertEqual(get_losers_round_name(4, 4), "Losers Final")
        self.assertEqual(get_losers_round_name(3, 4), "Losers Semifinal")
        self.assertEqual(get_losers_round_name(1, 4), "Losers Round 1")


class TestRouting(unittest.TestCase):
    def test_first_round_losers_pair_up(self):
        self.assertEqual(route_winners_loser(_main(1, 3)), (_losers(1, 1), 2))
        self.assertEqual(route_winners_loser(_main(1, 0)), (_losers(1, 0), 1))

    def test_later_winners_losers_drop_into_even_rounds(self):
        self.assertEqual(route_winners_loser(_main(2, 1)), (_losers(2, 1), 2))
        self.assertEqual(route_winners_loser(_main(3, 0)), (_losers(4, 0), 2))

    def test_losers_winners_advance(self):
        # Into a drop-in round: same position, team1
        self.assertEqual(route_losers_winner(_losers(1, 1), 4, 4), (_losers(2, 1), 1))
        # Into a halving round: position halves, slot by parity
        self.assertEqual(route_losers_winner(_losers(2, 1), 4, 4), (_losers(3, 0), 2))

    def test_losers_champion_enters_grand_final(self):
        self.assertEqual(route_losers_winner(_losers(4, 0), 4, 4), (_main(4, 0), 2))


class TestGenerateDoubleElimination(unittest.TestCase):
    def test_eight_players(self):
        bracket = generate_double_elimination_bracket(make_participants(8), is_doubles=False)
        self.assertEqual(bracket.winners.total_rounds, 3)
        self.assertEqual(len(bracket.losers), 4)
        self.assertEqual([len(r.pairings) for r in bracket.losers], [2, 2, 1, 1])
        self.assertEqual(bracket.grand_final_round, 4)
        self.assertEqual(bracket.losers_size, 4)
        self.assertEqual(bracket.losers[-1].round_name, "Losers Final")
        self.assertTrue(validate_double_elimination_bracket(bracket).valid)

    def test_winners_byes_leave_byes_in_losers_round_one(self):
        bracket = generate_double_elimination_bracket(make_participants(6), is_doubles=False)
        first = bracket.losers[0].pairings
        self.assertIs(first[0].team1, BYE)
        self.assertIsNone(first[0].team2)
        self.assertIsNone(first[1].team1)
        self.assertIs(first[1].team2, BYE)

    def test_double_bye_passes_bye_onward(self):
        """Five players leave one losers round 1 pairing with no players at all."""
        bracket = generate_double_elimination_bracket(make_participants(5), is_doubles=False)
        self.assertIs(bracket.losers[0].pairings[1].team1, BYE)
        self.assertIs(bracket.losers[0].pairings[1].team2, BYE)
        self.assertIs(bracket.losers[1].pairings[1].team1, BYE)

    def test_needs_at_least_three_entrants(self):
        with self.assertRaises(ValidationError) as cm:
            generate_double_elimination_bracket(make_participants(2), is_doubles=False)
        self.assertEqual(cm.exception.code, "insufficient_players")


if __name__ == "__main__":
    unittest.main()
