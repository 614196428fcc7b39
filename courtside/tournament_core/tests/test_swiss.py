"""
Tests for Swiss score-group pairing.
"""

import unittest

from courtside.tournament_core.builder import MatchListBuilder
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.standings import initial_standings
from courtside.tournament_core.structure import Match, PairingMethod, Team
from courtside.tournament_core.swiss import (
    SwissRoundConfig,
    calculate_swiss_rounds,
    generate_swiss_round,
    get_bye_player_for_swiss_round,
    get_swiss_byes,
    group_by_score,
    validate_swiss_round,
)
from courtside.tournament_core.tests.test_utils import make_standings, user_ids


def _pairs(matches):
    return [(m.team1_player1_id, m.team2_player1_id) for m in matches]


class TestSwissPairing(unittest.TestCase):
    def setUp(self):
        self.standings = initial_standings("t1", user_ids(8))

    def test_slide_pairs_top_half_against_bottom_half(self):
        matches = generate_swiss_round(SwissRoundConfig(1, self.standings))
        self.assertEqual(
            _pairs(matches), [("u1", "u5"), ("u2", "u6"), ("u3", "u7"), ("u4", "u8")]
        )

    def test_fold_pairs_neighbours(self):
        config = SwissRoundConfig(1, self.standings, pairing_method=PairingMethod.FOLD)
        self.assertEqual(_pairs(generate_swiss_round(config))[0], ("u1", "u2"))

    def test_accelerated_pairs_like_slide(self):
        slide = generate_swiss_round(SwissRoundConfig(1, self.standings))
        accelerated = generate_swiss_round(
            SwissRoundConfig(1, self.standings, pairing_method="accelerated")
        )
        self.assertEqual(slide, accelerated)

    def test_players_are_paired_within_score_groups(self):
        standings = make_standings([3, 3, 0, 0])
        matches = generate_swiss_round(SwissRoundConfig(2, standings))
        self.assertEqual(_pairs(matches), [("u1", "u2"), ("u3", "u4")])
        self.assertEqual([points for points, _ in group_by_score(standings)], [3, 0])

    def test_odd_score_group_sends_lowest_player_to_bye(self):
        standings = make_standings([3, 3, 3, 0, 0, 0])
        config = SwissRoundConfig(2, standings)
        matches = generate_swiss_round(config)
        self.assertEqual(_pairs(matches), [("u1", "u2"), ("u4", "u5")])
        self.assertEqual(get_swiss_byes(config), ["u3", "u6"])
        self.assertEqual(get_bye_player_for_swiss_round(matches, standings), "u3")

    def test_odd_field_is_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            generate_swiss_round(SwissRoundConfig(1, initial_standings("t1", user_ids(5))))
        self.assertEqual(cm.exception.code, "odd_players")

    def test_rematch_is_avoided_when_possible(self):
        history = MatchListBuilder().match("u1", "u5", 6, 2).build()
        matches = generate_swiss_round(SwissRoundConfig(2, self.standings, history))
        self.assertIn(("u1", "u6"), _pairs(matches))
        self.assertIn(("u2", "u5"), _pairs(matches))

    def test_unavoidable_rematch_is_only_a_warning(self):
        standings = initial_standings("t1", ["u1", "u2"])
        history = MatchListBuilder().match("u1", "u2", 6, 2).build()
        matches = generate_swiss_round(SwissRoundConfig(2, standings, history))
        self.assertEqual(_pairs(matches), [("u1", "u2")])
        result = validate_swiss_round(matches, standings, history)
        self.assertTrue(result.valid)
        self.assertEqual(len(result.warnings), 1)

    def test_doubles_use_partner_map(self):
        standings = initial_standings("t1", ["u1", "u2"])
        config = SwissRoundConfig(1, standings, partners={"u1": "u1b", "u2": "u2b"})
        matches = generate_swiss_round(config, is_doubles=True)
        self.assertEqual(matches[0].team1, Team("u1", "u1b"))
        self.assertTrue(validate_swiss_round(matches, standings, []).valid)

    def test_doubles_without_partner_is_rejected(self):
        config = SwissRoundConfig(1, initial_standings("t1", ["u1", "u2"]))
        with self.assertRaises(ValidationError) as cm:
            generate_swiss_round(config, is_doubles=True)
        self.assertEqual(cm.exception.code, "missing_partner")

    def test_too_few_entrants(self):
        with self.assertRaises(ValidationError) as cm:
            generate_swiss_round(SwissRoundConfig(1, initial_standings("t1", ["u1"])))
        self.assertEqual(cm.exception.code, "insufficient_players")


class TestSwissValidation(unittest.TestCase):
    def test_double_booking_is_an_error(self):
        standings = initial_standings("t1", user_ids(3))
        matches = [
            Match(team1=Team.single("u1"), team2=Team.single("u2")),
            Match(team1=Team.single("u1"), team2=Team.single("u3")),
        ]
        self.assertFalse(validate_swiss_round(matches, standings, []).valid)

    def test_unknown_player_is_an_error(self):
        standings = initial_standings("t1", ["u1", "u2"])
        matches = [Match(team1=Team.single("u1"), team2=Team.single("u9"))]
        self.assertFalse(validate_swiss_round(matches, standings, []).valid)


class TestSwissRounds(unittest.TestCase):
    def test_recommended_round_count(self):
        self.assertEqual(calculate_swiss_rounds(2), 3)
        self.assertEqual(calculate_swiss_rounds(8), 5)
        self.assertEqual(calculate_swiss_rounds(64), 6)
        self.assertEqual(calculate_swiss_rounds(100), 7)
        self.assertEqual(calculate_swiss_rounds(1000), 7)


if __name__ == "__main__":
    unittest.main()
