"""
Tests for engine settings read from the host project's Django settings.
"""

import unittest
from types import SimpleNamespace
from unittest import mock

from django.core.exceptions import ImproperlyConfigured

from courtside.tournament_core import conf
from courtside.tournament_core.apps import TournamentCoreConfig
from courtside.tournament_core.scoring import TournamentConfig
from courtside.tournament_core.structure import CourtRotationStrategy, TournamentFormat


class TestGetSetting(unittest.TestCase):
    def test_defaults_without_django_settings(self):
        with mock.patch.object(conf, "settings", SimpleNamespace(configured=False)):
            self.assertEqual(conf.get_setting("COURT_STRATEGY"), "balanced")
            self.assertEqual(conf.get_setting("POINTS_PER_WIN"), 3)

    def test_host_project_overrides(self):
        overrides = SimpleNamespace(
            configured=True,
            COURTSIDE_ENGINE={"POINTS_PER_WIN": 2, "COURT_STRATEGY": "sequential"},
        )
        with mock.patch.object(conf, "settings", overrides):
            self.assertEqual(conf.get_setting("POINTS_PER_WIN"), 2)
            self.assertEqual(conf.get_setting("POINTS_PER_DRAW"), 1)

            config = TournamentConfig.from_settings(TournamentFormat.SWISS)
            self.assertEqual(config.points_per_win, 2)
            self.assertEqual(
                config.format_settings.court_strategy, CourtRotationStrategy.SEQUENTIAL
            )

    def test_configured_without_engine_dict(self):
        with mock.patch.object(conf, "settings", SimpleNamespace(configured=True)):
            self.assertEqual(conf.get_setting("SEEDING_METHOD"), "ranked")

    def test_unknown_setting(self):
        with self.assertRaises(ImproperlyConfigured):
            conf.get_setting("NOT_A_SETTING")


class TestAppConfig(unittest.TestCase):
    def test_app_name(self):
        self.assertEqual(TournamentCoreConfig.name, "courtside.tournament_core")


if __name__ == "__main__":
    unittest.main()
