"""
Tests for round robin schedules, group stages and group playoffs.
"""

import itertools
import unittest
from collections import Counter

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.round_robin import (
    calculate_round_robin_rounds,
    generate_group_playoffs,
    generate_round_robin,
    generate_round_robin_round,
    generate_round_robin_with_groups,
    get_bye_players_for_round,
    has_played_against,
    snake_draft,
    validate_round_robin_round,
)
from courtside.tournament_core.structure import Team
from courtside.tournament_core.tests.test_utils import (
    make_participants,
    make_standings,
    user_ids,
)
from courtside.tournament_core.validation import player_appearances


def _opponents(rounds):
    return Counter(
        frozenset((m.team1_player1_id, m.team2_player1_id))
        for generated in rounds
        for m in generated.matches
    )


class TestRoundRobinSchedule(unittest.TestCase):
    def test_everyone_meets_everyone_once(self):
        """Four players need three rounds of two matches."""
        rounds = generate_round_robin(make_participants(4), is_doubles=False)
        self.assertEqual(len(rounds), 3)
        self.assertTrue(all(len(r.matches) == 2 for r in rounds))
        opponents = _opponents(rounds)
        expected = {frozenset(p) for p in itertools.combinations(user_ids(4), 2)}
        self.assertEqual(set(opponents), expected)
        self.assertTrue(all(count == 1 for count in opponents.values()))

    def test_odd_roster_gives_each_player_one_bye(self):
        rounds = generate_round_robin(make_participants(5), is_doubles=False)
        self.assertEqual(len(rounds), 5)
        byes = Counter(player for r in rounds for player in r.byes)
        self.assertEqual(byes, Counter({pid: 1 for pid in user_ids(5)}))
        self.assertEqual(len(_opponents(rounds)), 10)

    def test_no_player_is_double_booked(self):
        for generated in generate_round_robin(make_participants(7), is_doubles=False):
            self.assertTrue(all(n == 1 for n in player_appearances(generated.matches).values()))

    def test_doubles_rounds_use_four_players_per_match(self):
        rounds = generate_round_robin(make_participants(8), is_doubles=True)
        self.assertEqual(len(rounds), 7)
        for generated in rounds:
            self.assertEqual(len(generated.matches), 2)
            for match in generated.matches:
                self.assertEqual(len(match.player_ids), 4)

    def test_single_round_lookup(self):
        participants = make_participants(4)
        matches = generate_round_robin_round(participants, 2, is_doubles=False)
        self.assertEqual(matches, generate_round_robin(participants, False)[1].matches)
        self.assertTrue(validate_round_robin_round(matches, participants).valid)

    def test_invalid_round_number(self):
        with self.assertRaises(ValidationError) as cm:
            generate_round_robin_round(make_participants(4), 4, is_doubles=False)
        self.assertEqual(cm.exception.code, "invalid_round")

    def test_too_few_players(self):
        with self.assertRaises(ValidationError):
            generate_round_robin(make_participants(1), is_doubles=False)
        with self.assertRaises(ValidationError):
            generate_round_robin(make_participants(3), is_doubles=True)

    def test_round_count(self):
        self.assertEqual(calculate_round_robin_rounds(4), 3)
        self.assertEqual(calculate_round_robin_rounds(5), 5)
        with self.assertRaises(ValidationError):
            calculate_round_robin_rounds(1)

    def test_bye_players_for_round(self):
        participants = make_participants(5)
        self.assertEqual(len(get_bye_players_for_round(participants, 1)), 1)
        self.assertEqual(get_bye_players_for_round(participants, 9), [])
        self.assertEqual(get_bye_players_for_round(make_participants(4), 1), [])

    def test_has_played_against(self):
        matches = generate_round_robin_round(make_participants(4), 1, is_doubles=False)
        first = matches[0]
        self.assertTrue(
            has_played_against(first.team1_player1_id, first.team2_player1_id, matches)
        )
        self.assertFalse(
            has_played_against(first.team1_player1_id, first.team1_player1_id, matches)
        )


class TestGroupStage(unittest.TestCase):
    def test_snake_draft_balances_seeds(self):
        self.assertEqual(
            snake_draft(user_ids(8), 2),
            [["u1", "u4", "u5", "u8"], ["u2", "u3", "u6", "u7"]],
        )

    def test_groups_are_scheduled_independently(self):
        stage = generate_round_robin_with_groups(make_participants(8), 2)
        self.assertEqual([g.name for g in stage.groups], ["A", "B"])
        self.assertEqual(stage.playoff_size, 4)
        self.assertEqual(stage.group_of("u4"), "A")
        for group in stage.groups:
            self.assertEqual(len(group.rounds), 3)
            for generated in group.rounds:
                for match in generated.matches:
                    self.assertTrue(set(match.player_ids) <= set(group.player_ids))

    def test_group_count_limits(self):
        with self.assertRaises(ValidationError) as cm:
            generate_round_robin_with_groups(make_participants(8), 1)
        self.assertEqual(cm.exception.code, "invalid_groups")
        with self.assertRaises(ValidationError) as cm:
            generate_round_robin_with_groups(make_participants(6), 4)
        self.assertEqual(cm.exception.code, "insufficient_players")

    def test_playoffs_keep_group_mates_apart(self):
        """Group winners meet the other group's runner-up in the first playoff round."""
        stage = generate_round_robin_with_groups(make_participants(8), 2)
        playoffs = generate_group_playoffs(stage, make_standings([8, 7, 6, 5, 4, 3, 2, 1]))
        first_round = playoffs.rounds[0].pairings
        self.assertEqual(first_round[0].team1, Team.single("u1"))
        self.assertEqual(first_round[0].team2, Team.single("u3"))
        self.assertEqual(first_round[1].team1, Team.single("u4"))
        self.assertEqual(first_round[1].team2, Team.single("u2"))


if __name__ == "__main__":
    unittest.main()
