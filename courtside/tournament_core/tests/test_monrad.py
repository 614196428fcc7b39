"""
Tests for Monrad: Swiss qualification followed by a knockout.
"""

import unittest

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.monrad import (
    MonradConfig,
    calculate_monrad_config,
    generate_monrad_knockout,
    generate_monrad_swiss_round,
    generate_monrad_tournament,
    get_qualification_cutoff,
    get_top_qualifiers,
    has_qualified_for_knockout,
    validate_monrad_config,
    validate_monrad_tournament,
)
from courtside.tournament_core.structure import Team
from courtside.tournament_core.tests.test_utils import make_standings


class TestMonradConfig(unittest.TestCase):
    def test_recommended_configs(self):
        self.assertEqual(calculate_monrad_config(6), MonradConfig(3, 4))
        self.assertEqual(calculate_monrad_config(12), MonradConfig(3, 8))
        self.assertEqual(calculate_monrad_config(20), MonradConfig(4, 16))
        self.assertEqual(calculate_monrad_config(40), MonradConfig(5, 32))
        self.assertEqual(calculate_monrad_config(100), MonradConfig(6, 32))

    def test_invalid_round_count(self):
        with self.assertRaises(ValidationError) as cm:
            validate_monrad_config(MonradConfig(2, 4), 8)
        self.assertEqual(cm.exception.code, "invalid_rounds")

    def test_bracket_size_must_be_power_of_two(self):
        with self.assertRaises(ValidationError) as cm:
            validate_monrad_config(MonradConfig(3, 6), 8)
        self.assertEqual(cm.exception.code, "invalid_bracket_size")

    def test_bracket_cannot_exceed_field(self):
        with self.assertRaises(ValidationError):
            validate_monrad_config(MonradConfig(3, 16), 8)

    def test_small_qualification_share_is_logged(self):
        with self.assertLogs("courtside.tournament_core.monrad", level="WARNING"):
            validate_monrad_config(MonradConfig(3, 4), 20)


class TestQualification(unittest.TestCase):
    def setUp(self):
        self.standings = make_standings([6, 6, 3, 3, 0, 0], games_diff=[2, 5, 0, 1, 0, 0])

    def test_qualifiers_by_points_then_games_difference(self):
        top = get_top_qualifiers(self.standings, 4)
        self.assertEqual([s.user_id for s in top], ["u2", "u1", "u4", "u3"])
        self.assertTrue(has_qualified_for_knockout("u3", self.standings, 4))
        self.assertFalse(has_qualified_for_knockout("u5", self.standings, 4))
        self.assertEqual(get_qualification_cutoff(self.standings, 4).user_id, "u3")
        self.assertIsNone(get_qualification_cutoff([], 4))

    def test_knockout_seeds_qualifiers_in_order(self):
        bracket = generate_monrad_knockout(MonradConfig(3, 4), self.standings)
        self.assertEqual(bracket.bracket_size, 4)
        self.assertEqual(bracket.draw[0], Team.single("u2"))
        self.assertEqual(bracket.draw[3], Team.single("u1"))


class TestMonradGeneration(unittest.TestCase):
    def setUp(self):
        self.standings = make_standings([6, 6, 3, 3, 0, 0, 0, 0])
        self.config = MonradConfig(3, 4)

    def test_swiss_round(self):
        matches = generate_monrad_swiss_round(self.config, 1, self.standings)
        self.assertEqual(len(matches), 4)

    def test_round_outside_swiss_phase(self):
        with self.assertRaises(ValidationError) as cm:
            generate_monrad_swiss_round(self.config, 4, self.standings)
        self.assertEqual(cm.exception.code, "invalid_round")

    def test_odd_field_is_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            generate_monrad_swiss_round(self.config, 1, make_standings([0] * 7))
        self.assertEqual(cm.exception.code, "odd_players")

    def test_whole_tournament_plan(self):
        tournament = generate_monrad_tournament(self.config, self.standings)
        self.assertEqual(len(tournament.swiss_rounds), 3)
        self.assertEqual([r.round_number for r in tournament.swiss_rounds], [1, 2, 3])
        self.assertEqual(len(tournament.qualifiers), 4)
        self.assertEqual(tournament.knockout.bracket_size, 4)
        self.assertTrue(validate_monrad_tournament(tournament).valid)

    def test_validation_reports_missing_knockout(self):
        tournament = generate_monrad_tournament(self.config, self.standings)
        broken = type(tournament)(config=tournament.config, swiss_rounds=[], qualifiers=[])
        result = validate_monrad_tournament(broken)
        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 3)


if __name__ == "__main__":
    unittest.main()
