"""
Fluent assertion interface for testing tournament standings.

This module provides a clean, fluent way to assert standings produced by the
standings calculator, for example::

    assert_standings(standings).player("ann").assert_().wins(2).points(6).rank(1)
    assert_standings(standings).order("ann", "cy", "dee", "bo")
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from courtside.tournament_core.structure import Standing


# Use the built-in AssertionError for proper test framework integration


@dataclass
class StandingsAssertion:
    """Fluent interface for asserting standings."""

    standings: Sequence[Standing]
    user_id: Optional[str] = None
    _by_user: Optional[Dict[str, Standing]] = None

    def __post_init__(self):
        if self._by_user is None:
            self._by_user = {s.user_id: s for s in self.standings}

    def _get_standing(self) -> Standing:
        if self.user_id is None:
            raise AssertionError("No player selected for assertion")
        if self.user_id not in self._by_user:
            raise AssertionError(f"Player '{self.user_id}' not found in standings")
        return self._by_user[self.user_id]

    def player(self, user_id: str) -> "PlayerAssertion":
        """Select a player for assertions."""
        if user_id not in self._by_user:
            raise AssertionError(f"Player '{user_id}' not found in standings")
        return PlayerAssertion(
            standings=self.standings, user_id=user_id, _by_user=self._by_user
        )

    def order(self, *user_ids: str) -> "StandingsAssertion":
        """Assert the leading players appear in exactly this order."""
        actual = [s.user_id for s in self.standings[: len(user_ids)]]
        if actual != list(user_ids):
            raise AssertionError(f"Expected standings order {list(user_ids)}, got {actual}")
        return self

    def size(self, expected: int) -> "StandingsAssertion":
        if len(self.standings) != expected:
            raise AssertionError(
                f"Expected {expected} standings, got {len(self.standings)}"
            )
        return self


class PlayerAssertion(StandingsAssertion):
    """Assertions for a specific player."""

    def assert_(self) -> "PlayerResultAssertion":
        """Start a chain of assertions for this player."""
        return PlayerResultAssertion(
            standings=self.standings, user_id=self.user_id, _by_user=self._by_user
        )


class PlayerResultAssertion(StandingsAssertion):
    """Fluent interface for asserting one player's standing."""

    def _check(self, label: str, expected, actual) -> "PlayerResultAssertion":
        if actual != expected:
            raise AssertionError(f"{self.user_id} expected {expected} {label}, got {actual}")
        return self

    def played(self, expected: int) -> "PlayerResultAssertion":
        return self._check("matches played", expected, self._get_standing().matches_played)

    def wins(self, expected: int) -> "PlayerResultAssertion":
        """Assert the number of wins."""
        return self._check("wins", expected, self._get_standing().matches_won)

    def losses(self, expected: int) -> "PlayerResultAssertion":
        """Assert the number of losses."""
        return self._check("losses", expected, self._get_standing().matches_lost)

    def draws(self, expected: int) -> "PlayerResultAssertion":
        """Assert the number of draws."""
        return self._check("draws", expected, self._get_standing().matches_drawn)

    def points(self, expected: int) -> "PlayerResultAssertion":
        """Assert the total standings points."""
        return self._check("points", expected, self._get_standing().points)

    def games_won(self, expected: int) -> "PlayerResultAssertion":
        return self._check("games won", expected, self._get_standing().games_won)

    def games_lost(self, expected: int) -> "PlayerResultAssertion":
        return self._check("games lost", expected, self._get_standing().games_lost)

    def games_diff(self, expected: int) -> "PlayerResultAssertion":
        return self._check("games difference", expected, self._get_standing().games_diff)

    def rank(self, expected: int) -> "PlayerResultAssertion":
        """Assert the final position in standings."""
        return self._check("rank", expected, self._get_standing().rank)


def assert_standings(standings: Sequence[Standing]) -> StandingsAssertion:
    """Create a fluent assertion object for a list of standings."""
    return StandingsAssertion(standings)
