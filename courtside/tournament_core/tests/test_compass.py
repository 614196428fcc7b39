"""
Tests for compass draws and consolation routing.
"""

import unittest
from collections import Counter

from courtside.tournament_core.compass import (
    EAST,
    NORTH_EAST,
    NORTH_WEST,
    SOUTH_EAST,
    SOUTH_WEST,
    WEST,
    consolation_directions,
    consolation_entry,
    direction_label,
    generate_compass_draw,
    get_all_finals,
    get_minimum_matches_per_player,
    route_loser_to_consolation,
    validate_compass_draw,
)
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.progression import InMemoryBracketStore
from courtside.tournament_core.simulation import higher_seed_wins, simulate_bracket
from courtside.tournament_core.structure import BYE, BracketPosition, BracketType
from courtside.tournament_core.tests.test_utils import make_participants, user_ids


class TestCompassRouting(unittest.TestCase):
    def test_directions_by_bracket_size(self):
        self.assertEqual(consolation_directions(8), [EAST, WEST])
        self.assertEqual(consolation_directions(16), [EAST, WEST])
        self.assertEqual(
            consolation_directions(32), [EAST, WEST, NORTH_EAST, SOUTH_EAST]
        )
        self.assertEqual(len(consolation_directions(64)), 6)

    def test_first_round_losers_split_east_and_west(self):
        self.assertEqual(route_loser_to_consolation(1, 0, 8), (EAST, 0))
        self.assertEqual(route_loser_to_consolation(1, 3, 8), (WEST, 1))

    def test_second_round_losers(self):
        self.assertIsNone(route_loser_to_consolation(2, 0, 8))
        self.assertEqual(route_loser_to_consolation(2, 1, 32), (SOUTH_EAST, 0))
        self.assertEqual(route_loser_to_consolation(2, 2, 64), (NORTH_EAST, 1))
        self.assertEqual(route_loser_to_consolation(2, 9, 64), (SOUTH_WEST, 0))
        self.assertEqual(route_loser_to_consolation(2, 10, 64), (NORTH_WEST, 1))

    def test_later_losers_are_out(self):
        self.assertIsNone(route_loser_to_consolation(3, 0, 64))

    def test_consolation_entry(self):
        position, slot = consolation_entry("t1", WEST, 3)
        self.assertEqual(
            position, BracketPosition("t1", BracketType.CONSOLATION, 1, 1, bracket_name=WEST)
        )
        self.assertEqual(slot, 2)

    def test_direction_label(self):
        self.assertEqual(direction_label("north_east"), "North-East")
        self.assertEqual(direction_label(EAST), "East")


class TestGenerateCompassDraw(unittest.TestCase):
    def test_eight_players(self):
        draw = generate_compass_draw(make_participants(8), is_doubles=False)
        self.assertEqual(draw.directions, [EAST, WEST])
        east = draw.consolation[EAST]
        self.assertEqual(east.entrants, 2)
        self.assertEqual(east.bracket_size, 2)
        self.assertEqual(east.label, "East")
        self.assertEqual(east.rounds[-1].round_name, "East Final")
        self.assertTrue(validate_compass_draw(draw).valid)

    def test_main_byes_become_consolation_byes(self):
        draw = generate_compass_draw(make_participants(6), is_doubles=False)
        east = draw.consolation[EAST].rounds[0].pairings[0]
        west = draw.consolation[WEST].rounds[0].pairings[0]
        self.assertIs(east.team1, BYE)
        self.assertIsNone(east.team2)
        self.assertIsNone(west.team1)
        self.assertIs(west.team2, BYE)

    def test_thirty_two_players(self):
        draw = generate_compass_draw(make_participants(32), is_doubles=False)
        self.assertEqual(draw.directions, [EAST, WEST, NORTH_EAST, SOUTH_EAST])
        self.assertEqual(draw.consolation[EAST].bracket_size, 8)
        self.assertEqual(draw.consolation[NORTH_EAST].entrants, 4)
        self.assertEqual(draw.consolation[NORTH_EAST].source_round, 2)
        self.assertTrue(validate_compass_draw(draw).valid)

    def test_finals(self):
        draw = generate_compass_draw(make_participants(8), is_doubles=False)
        self.assertEqual(list(get_all_finals(draw)), ["main", EAST, WEST])

    def test_minimum_matches_hold_in_simulated_draws(self):
        for count, expected in ((5, 1), (8, 2), (9, 1)):
            with self.subTest(players=count):
                self.assertEqual(get_minimum_matches_per_player(count), expected)
                draw = generate_compass_draw(make_participants(count), is_doubles=False)
                store = InMemoryBracketStore.from_compass("t1", draw)
                seeds = {uid: seed for seed, uid in enumerate(user_ids(count), start=1)}
                result = simulate_bracket(store, "compass", higher_seed_wins(seeds))
                played = Counter(pid for match in result.played for pid in match.player_ids)
                self.assertEqual(min(played[uid] for uid in user_ids(count)), expected)

    def test_main_bracket_must_hold_eight(self):
        with self.assertRaises(ValidationError) as cm:
            generate_compass_draw(make_participants(4), is_doubles=False)
        self.assertEqual(cm.exception.code, "insufficient_players")


if __name__ == "__main__":
    unittest.main()
