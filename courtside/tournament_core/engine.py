"""
TournamentEngine: the entry point a host application calls.

Generating the next round always runs the same pipeline: generate the
pairings for the format, validate them, assign courts and validate the court
assignment. A failed validation raises StructuralInconsistency carrying every
error found; bad inputs raise ValidationError before anything is generated.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple, Union

from courtside.tournament_core import (
    americano,
    compass,
    courts as court_rotation,
    double_elimination,
    knockout,
    mexicano,
    monrad,
    round_robin,
    standings as standings_calculator,
    swiss,
)
from courtside.tournament_core.conf import get_setting
from courtside.tournament_core.exceptions import StructuralInconsistency, ValidationError
from courtside.tournament_core.progression import BracketProgressionEngine, BracketStore
from courtside.tournament_core.scoring import TournamentConfig
from courtside.tournament_core.structure import (
    Court,
    CourtRotationStrategy,
    Match,
    Participant,
    Standing,
    TournamentFormat,
    checked_in,
)
from courtside.tournament_core.validation import (
    ValidationResult,
    validate_round,
    validate_tournament_start,
)

logger = logging.getLogger(__name__)

BRACKET_FORMATS = (
    TournamentFormat.KNOCKOUT_SINGLE,
    TournamentFormat.KNOCKOUT_DOUBLE,
    TournamentFormat.COMPASS,
)


def _raise_if_invalid(result: ValidationResult, what: str) -> None:
    for warning in result.warnings:
        logger.warning("%s: %s", what, warning)
    if not result.valid:
        logger.error("%s failed validation: %s", what, "; ".join(result.errors))
        raise StructuralInconsistency(f"{what} failed validation", result.errors)


class TournamentEngine:
    """Facade over the format generators, court rotation and standings."""

    def __init__(
        self, config: Optional[TournamentConfig] = None, rng: Optional[random.Random] = None
    ):
        self.config = config or TournamentConfig()
        self.rng = rng

    @property
    def settings(self):
        return self.config.format_settings

    def _partners(self, participants: Sequence[Participant]) -> Dict[str, str]:
        return {p.user_id: p.partner_id for p in participants if p.partner_id}

    def _standings_for(
        self, participants: Sequence[Participant], standings: Sequence[Standing]
    ) -> List[Standing]:
        """Standings of the checked-in roster, zeroed for players without one."""
        eligible = checked_in(participants)
        tournament_id = eligible[0].tournament_id if eligible else ""
        known = {s.user_id: s for s in standings}
        current = [known[p.user_id] for p in eligible if p.user_id in known]
        missing = [p.user_id for p in eligible if p.user_id not in known]
        if not current:
            return standings_calculator.initial_standings(tournament_id, missing)
        return current + [
            Standing(tournament_id=tournament_id, user_id=user_id) for user_id in missing
        ]

    def monrad_config(self, player_count: int) -> monrad.MonradConfig:
        recommended = monrad.calculate_monrad_config(player_count)
        return monrad.MonradConfig(
            swiss_rounds=self.settings.initial_rounds
            or self.settings.rounds
            or recommended.swiss_rounds,
            final_bracket_size=self.settings.bracket_size or recommended.final_bracket_size,
            pairing_method=self.settings.pairing_method,
        )

    def _generate(
        self,
        tournament_format: TournamentFormat,
        participants: Sequence[Participant],
        round_number: int,
        previous_matches: Sequence[Match],
        standings: Sequence[Standing],
    ) -> Tuple[List[Match], ValidationResult]:
        is_doubles = self.settings.is_doubles

        if tournament_format == TournamentFormat.AMERICANO:
            matches = americano.generate_americano_round(participants, round_number, previous_matches)
            return matches, americano.validate_americano_round(matches, participants)

        if tournament_format == TournamentFormat.MEXICANO:
            matches = mexicano.generate_mexicano_round(
                participants, round_number, standings, rng=self.rng
            )
            return matches, mexicano.validate_mexicano_round(matches, participants)

        if tournament_format == TournamentFormat.ROUND_ROBIN:
            matches = round_robin.generate_round_robin_round(participants, round_number, is_doubles)
            return matches, round_robin.validate_round_robin_round(matches, participants)

        if tournament_format == TournamentFormat.SWISS:
            current = self._standings_for(participants, standings)
            config = swiss.SwissRoundConfig(
                round_number=round_number,
                standings=current,
                previous_matches=previous_matches,
                pairing_method=self.settings.pairing_method,
                partners=self._partners(participants),
            )
            matches = swiss.generate_swiss_round(config, is_doubles=is_doubles)
            return matches, swiss.validate_swiss_round(matches, current, previous_matches)

        if tournament_format == TournamentFormat.MONRAD:
            return self._generate_monrad(participants, round_number, previous_matches, standings)

        if tournament_format in BRACKET_FORMATS:
            if round_number != 1:
                raise ValidationError(
                    "Later knockout rounds are filled by bracket progression, "
                    f"not generated (round {round_number} requested)",
                    code="invalid_round",
                )
            bracket_args = dict(
                seeding=self.settings.seeding,
                seed_order=self.settings.seed_order,
                is_doubles=is_doubles,
                rng=self.rng,
            )
            if tournament_format == TournamentFormat.COMPASS:
                draw = compass.generate_compass_draw(participants, **bracket_args)
                return draw.main.rounds[0].matches, compass.validate_compass_draw(draw)
            if tournament_format == TournamentFormat.KNOCKOUT_DOUBLE:
                bracket = double_elimination.generate_double_elimination_bracket(
                    participants, **bracket_args
                )
                return (
                    bracket.winners.rounds[0].matches,
                    double_elimination.validate_double_elimination_bracket(bracket),
                )
            bracket = knockout.generate_knockout_bracket(
                participants, third_place_match=self.settings.bronze_match, **bracket_args
            )
            return bracket.rounds[0].matches, knockout.validate_knockout_bracket(bracket)

        raise ValidationError(f"Unsupported format {tournament_format}", code="unknown_format")

    def _generate_monrad(
        self,
        participants: Sequence[Participant],
        round_number: int,
        previous_matches: Sequence[Match],
        standings: Sequence[Standing],
    ) -> Tuple[List[Match], ValidationResult]:
        is_doubles = self.settings.is_doubles
        current = self._standings_for(participants, standings)
        config = self.monrad_config(len(current))
        monrad.validate_monrad_config(config, len(current))
        partners = self._partners(participants)

        if round_number <= config.swiss_rounds:
            matches = monrad.generate_monrad_swiss_round(
                config, round_number, current, previous_matches, is_doubles, partners
            )
            return matches, swiss.validate_swiss_round(matches, current, previous_matches)
        if round_number == config.swiss_rounds + 1:
            bracket = monrad.generate_monrad_knockout(config, current, is_doubles, partners)
            return bracket.rounds[0].matches, knockout.validate_knockout_bracket(bracket)
        raise ValidationError(
            "Later knockout rounds are filled by bracket progression, "
            f"not generated (round {round_number} requested)",
            code="invalid_round",
        )

    def _court_strategy(
        self, court_strategy: Union[CourtRotationStrategy, str, None]
    ) -> CourtRotationStrategy:
        return CourtRotationStrategy(
            court_strategy or self.settings.court_strategy or get_setting("COURT_STRATEGY")
        )

    def generate_next_round(
        self,
        tournament_format: Union[TournamentFormat, str, None],
        participants: Sequence[Participant],
        round_number: int,
        previous_matches: Sequence[Match] = (),
        standings: Sequence[Standing] = (),
        courts: Sequence[Court] = (),
        court_strategy: Union[CourtRotationStrategy, str, None] = None,
    ) -> List[Match]:
        """
        Generate, validate and place the matches of the next round.

        Args:
            tournament_format: Format to schedule; defaults to the config's
            participants: Roster snapshot
            round_number: 1-indexed round to generate
            previous_matches: Every match played so far
            standings: Current standings, used by standings-driven formats
            courts: Court snapshot
            court_strategy: Rotation strategy; defaults to the config, then
                to the ``COURT_STRATEGY`` setting

        Returns:
            Pending matches with courts assigned

        Raises:
            ValidationError: inputs violate a precondition
            StructuralInconsistency: generated output failed validation
        """
        tournament_format = TournamentFormat(tournament_format or self.config.format)
        matches, result = self._generate(
            tournament_format, participants, round_number, previous_matches, standings
        )
        round_check = validate_round(matches)
        for error in round_check.errors:
            if error not in result.errors:
                result.error(error)
        _raise_if_invalid(result, f"{tournament_format.value} round {round_number}")

        strategy = self._court_strategy(court_strategy)
        usage = None
        if strategy == CourtRotationStrategy.BALANCED:
            usage = court_rotation.get_court_usage_stats(previous_matches)
        assigned = court_rotation.assign_courts(matches, courts, strategy, usage, self.rng)
        _raise_if_invalid(
            court_rotation.validate_court_assignments(assigned, courts),
            f"Court assignment for round {round_number}",
        )
        logger.info(
            "Round %d of %s ready: %d matches on %d courts",
            round_number,
            tournament_format.value,
            len(assigned),
            len({m.court_id for m in assigned}),
        )
        return assigned

    # Bracket formats

    def generate_knockout_bracket(self, participants: Sequence[Participant]):
        bracket = knockout.generate_knockout_bracket(
            participants,
            seeding=self.settings.seeding,
            seed_order=self.settings.seed_order,
            is_doubles=self.settings.is_doubles,
            third_place_match=self.settings.bronze_match,
            rng=self.rng,
        )
        _raise_if_invalid(knockout.validate_knockout_bracket(bracket), "Knockout bracket")
        return bracket

    def generate_double_elimination_bracket(self, participants: Sequence[Participant]):
        bracket = double_elimination.generate_double_elimination_bracket(
            participants,
            seeding=self.settings.seeding,
            seed_order=self.settings.seed_order,
            is_doubles=self.settings.is_doubles,
            rng=self.rng,
        )
        _raise_if_invalid(
            double_elimination.validate_double_elimination_bracket(bracket),
            "Double elimination bracket",
        )
        return bracket

    def generate_compass_draw(self, participants: Sequence[Participant]):
        draw = compass.generate_compass_draw(
            participants,
            seeding=self.settings.seeding,
            seed_order=self.settings.seed_order,
            is_doubles=self.settings.is_doubles,
            rng=self.rng,
        )
        _raise_if_invalid(compass.validate_compass_draw(draw), "Compass draw")
        return draw

    def generate_monrad_tournament(
        self,
        participants: Sequence[Participant],
        standings: Sequence[Standing] = (),
        previous_matches: Sequence[Match] = (),
    ):
        current = self._standings_for(participants, standings)
        tournament = monrad.generate_monrad_tournament(
            self.monrad_config(len(current)),
            current,
            previous_matches,
            is_doubles=self.settings.is_doubles,
            partners=self._partners(participants),
        )
        _raise_if_invalid(monrad.validate_monrad_tournament(tournament), "Monrad tournament")
        return tournament

    def generate_round_robin_with_groups(self, participants: Sequence[Participant]):
        if not self.settings.groups:
            raise ValidationError("Group count is not configured", code="invalid_groups")
        return round_robin.generate_round_robin_with_groups(
            participants,
            self.settings.groups,
            self.settings.top_per_group or 2,
            is_doubles=self.settings.is_doubles,
        )

    def progression(self, store: BracketStore) -> BracketProgressionEngine:
        return BracketProgressionEngine(store)

    # Standings and queries

    def update_standings(self, tournament_id: str, matches: Sequence[Match]) -> List[Standing]:
        return standings_calculator.calculate_standings(tournament_id, matches, self.config)

    def update_standings_for_match(
        self, match: Match, standings: Sequence[Standing]
    ) -> List[Standing]:
        return standings_calculator.update_standings_for_match(match, standings, self.config)

    def validate_tournament_start(
        self, participants: Sequence[Participant], courts: Sequence[Court]
    ) -> ValidationResult:
        return validate_tournament_start(participants, courts)

    def get_top_players(self, standings: Sequence[Standing], count: int) -> List[Standing]:
        return standings_calculator.get_top_players(standings, count)

    def get_player_rank(self, user_id: str, standings: Sequence[Standing]) -> Optional[int]:
        return standings_calculator.get_player_rank(user_id, standings)

    def is_tournament_complete(self, matches: Sequence[Match]) -> bool:
        return standings_calculator.is_tournament_complete(matches)

    def get_court_usage_stats(self, matches: Sequence[Match]) -> Dict[str, int]:
        return court_rotation.get_court_usage_stats(matches)

    def get_least_used_courts(
        self, courts: Sequence[Court], matches: Sequence[Match]
    ) -> List[Court]:
        return court_rotation.get_least_used_courts(
            courts, court_rotation.get_court_usage_stats(matches)
        )

    def calculate_optimal_rounds(self, player_count: int) -> int:
        """Suggested number of rounds for the configured format."""
        fmt = self.config.format
        if fmt == TournamentFormat.SWISS:
            return swiss.calculate_swiss_rounds(player_count)
        if fmt == TournamentFormat.ROUND_ROBIN:
            return round_robin.calculate_round_robin_rounds(player_count)
        if fmt == TournamentFormat.AMERICANO:
            return player_count - 1
        if fmt in BRACKET_FORMATS:
            return knockout.calculate_knockout_rounds(player_count)
        if fmt == TournamentFormat.MONRAD:
            config = monrad.calculate_monrad_config(player_count)
            return config.swiss_rounds + knockout.calculate_total_rounds(config.final_bracket_size)
        return mexicano.calculate_optimal_rounds(player_count)

    def has_paired_before(
        self, player1_id: str, player2_id: str, previous_matches: Sequence[Match]
    ) -> bool:
        return americano.has_paired_before(player1_id, player2_id, previous_matches)
