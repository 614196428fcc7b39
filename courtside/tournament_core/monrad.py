"""
Monrad tournaments: a Swiss qualifying phase followed by a knockout.

The Swiss phase runs a fixed number of rounds (3 to 7). The best
``final_bracket_size`` players by points, games difference and games won are
then seeded, in that order, into a knockout bracket.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Union

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.knockout import (
    KnockoutBracket,
    generate_knockout_bracket,
    is_power_of_two,
    validate_knockout_bracket,
)
from courtside.tournament_core.structure import (
    GeneratedRound,
    Match,
    PairingMethod,
    Participant,
    SeedingMethod,
    Standing,
)
from courtside.tournament_core.swiss import (
    SwissRoundConfig,
    generate_swiss_round,
    get_swiss_byes,
)
from courtside.tournament_core.validation import ValidationResult

logger = logging.getLogger(__name__)

MIN_SWISS_ROUNDS = 3
MAX_SWISS_ROUNDS = 7


@dataclass(frozen=True)
class MonradConfig:
    swiss_rounds: int
    final_bracket_size: int
    pairing_method: Union[PairingMethod, str] = PairingMethod.SLIDE


@dataclass(frozen=True)
class MonradTournament:
    config: MonradConfig
    swiss_rounds: List[GeneratedRound] = field(default_factory=list)
    qualifiers: List[Standing] = field(default_factory=list)
    knockout: Optional[KnockoutBracket] = None


def validate_monrad_config(config: MonradConfig, total_players: int) -> None:
    """Raise ValidationError for an unusable configuration."""
    if not MIN_SWISS_ROUNDS <= config.swiss_rounds <= MAX_SWISS_ROUNDS:
        raise ValidationError(
            f"Monrad Swiss rounds must be between {MIN_SWISS_ROUNDS} and {MAX_SWISS_ROUNDS}",
            code="invalid_rounds",
        )
    if not is_power_of_two(config.final_bracket_size) or config.final_bracket_size < 2:
        raise ValidationError(
            f"Final bracket size {config.final_bracket_size} must be a power of 2 (4, 8, 16, 32)",
            code="invalid_bracket_size",
        )
    if config.final_bracket_size > total_players:
        raise ValidationError(
            f"Final bracket size {config.final_bracket_size} cannot exceed "
            f"total players {total_players}",
            code="invalid_bracket_size",
        )
    if config.final_bracket_size < total_players / 4:
        logger.warning(
            "Only %d of %d players (%d%%) advance to the knockout; consider a larger bracket",
            config.final_bracket_size,
            total_players,
            round(config.final_bracket_size / total_players * 100),
        )


def calculate_monrad_config(total_players: int) -> MonradConfig:
    """Recommended Swiss rounds and knockout size for a field."""
    if total_players <= 16:
        rounds, size = 3, (8 if total_players >= 8 else 4)
    elif total_players <= 32:
        rounds, size = 4, (16 if total_players >= 16 else 8)
    elif total_players <= 64:
        rounds, size = 5, (32 if total_players >= 32 else 16)
    else:
        rounds = 6
        size = min(64, 2 ** int(math.floor(math.log2(total_players / 2))))
    return MonradConfig(swiss_rounds=rounds, final_bracket_size=size)


def qualification_order(standings: Sequence[Standing]) -> List[Standing]:
    return sorted(
        standings, key=lambda s: (-s.points, -s.games_diff, -s.games_won, s.user_id)
    )


def get_top_qualifiers(standings: Sequence[Standing], count: int) -> List[Standing]:
    return qualification_order(standings)[:count]


def has_qualified_for_knockout(
    user_id: str, standings: Sequence[Standing], final_bracket_size: int
) -> bool:
    return any(s.user_id == user_id for s in get_top_qualifiers(standings, final_bracket_size))


def get_qualification_cutoff(
    standings: Sequence[Standing], final_bracket_size: int
) -> Optional[Standing]:
    """The last standing that still qualifies, or None with no standings."""
    qualifiers = get_top_qualifiers(standings, final_bracket_size)
    return qualifiers[-1] if qualifiers else None


def generate_monrad_swiss_round(
    config: MonradConfig,
    round_number: int,
    standings: Sequence[Standing],
    previous_matches: Sequence[Match] = (),
    is_doubles: bool = False,
    partners: Optional[Mapping[str, str]] = None,
) -> List[Match]:
    """Generate one round of the Swiss qualifying phase."""
    if not 1 <= round_number <= config.swiss_rounds:
        raise ValidationError(
            f"Round {round_number} is not part of a {config.swiss_rounds} round Swiss phase",
            code="invalid_round",
        )
    return generate_swiss_round(
        SwissRoundConfig(
            round_number=round_number,
            standings=standings,
            previous_matches=previous_matches,
            pairing_method=config.pairing_method,
            partners=partners or {},
        ),
        is_doubles=is_doubles,
    )


def generate_monrad_knockout(
    config: MonradConfig,
    standings: Sequence[Standing],
    is_doubles: bool = False,
    partners: Optional[Mapping[str, str]] = None,
) -> KnockoutBracket:
    """Seed the Swiss phase qualifiers into the knockout bracket."""
    qualifiers = get_top_qualifiers(standings, config.final_bracket_size)
    partners = partners or {}
    entrants = [
        Participant(
            id=s.user_id,
            user_id=s.user_id,
            tournament_id=s.tournament_id,
            partner_id=partners.get(s.user_id),
        )
        for s in qualifiers
    ]
    return generate_knockout_bracket(
        entrants, seeding=SeedingMethod.RANKED, is_doubles=is_doubles
    )


def generate_monrad_tournament(
    config: MonradConfig,
    standings: Sequence[Standing],
    previous_matches: Sequence[Match] = (),
    is_doubles: bool = False,
    partners: Optional[Mapping[str, str]] = None,
) -> MonradTournament:
    """
    Lay out a whole Monrad tournament from a snapshot of standings.

    Later Swiss rounds cannot know results that have not been played, so the
    schedule is provisional: every round is paired from the given standings,
    and each one avoids rematches against the history plus the rounds laid
    out before it. The knockout phase seeds the current top players. Call
    ``generate_monrad_swiss_round`` round by round for live pairings.
    """
    validate_monrad_config(config, len(standings))
    history = list(previous_matches)
    rounds = []
    for round_number in range(1, config.swiss_rounds + 1):
        matches = generate_monrad_swiss_round(
            config, round_number, standings, history, is_doubles, partners
        )
        byes = get_swiss_byes(
            SwissRoundConfig(
                round_number=round_number,
                standings=standings,
                previous_matches=history,
                pairing_method=config.pairing_method,
            )
        )
        rounds.append(GeneratedRound(round_number=round_number, matches=matches, byes=byes))
        history.extend(matches)

    knockout = generate_monrad_knockout(config, standings, is_doubles, partners)
    logger.info(
        "Generated Monrad tournament: %d Swiss rounds, knockout of %d",
        config.swiss_rounds,
        config.final_bracket_size,
    )
    return MonradTournament(
        config=config,
        swiss_rounds=rounds,
        qualifiers=get_top_qualifiers(standings, config.final_bracket_size),
        knockout=knockout,
    )


def validate_monrad_tournament(tournament: MonradTournament) -> ValidationResult:
    result = ValidationResult()
    if len(tournament.swiss_rounds) != tournament.config.swiss_rounds:
        result.error(
            f"Expected {tournament.config.swiss_rounds} Swiss rounds, "
            f"found {len(tournament.swiss_rounds)}"
        )
    if len(tournament.qualifiers) != tournament.config.final_bracket_size:
        result.error(
            f"Expected {tournament.config.final_bracket_size} qualifiers, "
            f"found {len(tournament.qualifiers)}"
        )
    if tournament.knockout is None:
        result.error("Knockout phase is missing")
    else:
        knockout = validate_knockout_bracket(tournament.knockout)
        for error in knockout.errors:
            result.error(error)
    return result
