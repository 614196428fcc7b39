"""
Tournament configuration and match scoring.

This module defines how a finished match turns into standings points and
carries the per-format settings a tournament was created with.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from courtside.tournament_core.conf import get_setting
from courtside.tournament_core.structure import (
    CourtRotationStrategy,
    PairingMethod,
    SeedingMethod,
    TournamentFormat,
)


@dataclass(frozen=True)
class FormatSettings:
    """Optional knobs for individual formats. Unused ones are ignored."""

    # Round robin groups
    groups: Optional[int] = None
    top_per_group: Optional[int] = None

    # Knockout family
    seeding: SeedingMethod = SeedingMethod.RANKED
    seed_order: Optional[List[str]] = None
    bronze_match: bool = False

    # Swiss and Monrad
    rounds: Optional[int] = None
    pairing_method: PairingMethod = PairingMethod.SLIDE
    initial_rounds: Optional[int] = None
    bracket_size: Optional[int] = None

    is_doubles: bool = True
    court_strategy: Optional[CourtRotationStrategy] = None


@dataclass(frozen=True)
class TournamentConfig:
    """Defines how matches are scored for a tournament of a given format."""

    format: TournamentFormat = TournamentFormat.AMERICANO

    # Match scoring
    points_per_win: int = 3
    points_per_draw: int = 1
    points_per_loss: int = 0

    match_duration_minutes: int = 20
    format_settings: FormatSettings = field(default_factory=FormatSettings)

    @classmethod
    def from_settings(
        cls, format: TournamentFormat, format_settings: Optional[FormatSettings] = None
    ) -> "TournamentConfig":
        """Build a config from the host project's ``COURTSIDE_ENGINE`` settings."""
        if format_settings is None:
            format_settings = FormatSettings(
                seeding=SeedingMethod(get_setting("SEEDING_METHOD")),
                pairing_method=PairingMethod(get_setting("SWISS_PAIRING_METHOD")),
                court_strategy=CourtRotationStrategy(get_setting("COURT_STRATEGY")),
            )
        return cls(
            format=format,
            points_per_win=get_setting("POINTS_PER_WIN"),
            points_per_draw=get_setting("POINTS_PER_DRAW"),
            points_per_loss=get_setting("POINTS_PER_LOSS"),
            match_duration_minutes=get_setting("MATCH_DURATION_MINUTES"),
            format_settings=format_settings,
        )

    def match_points(self, winner_team: Optional[int]) -> Tuple[int, int]:
        """
        Standings points earned by each side of a finished match.

        Args:
            winner_team: 1 or 2 for the winning side, None for a draw

        Returns:
            Tuple of (team1_points, team2_points)
        """
        if winner_team == 1:
            return (self.points_per_win, self.points_per_loss)
        if winner_team == 2:
            return (self.points_per_loss, self.points_per_win)
        return (self.points_per_draw, self.points_per_draw)


STANDARD_CONFIG = TournamentConfig()
