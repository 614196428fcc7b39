"""
Swiss system pairings.

Players are grouped by their current point total and paired inside their
score group, highest group first. A score group with an odd number of players
sends its lowest player to a bye. Pairing history is checked as pairs are
formed: a repeat opponent is swapped for the nearest later player in the
group who has not been met yet. When no such player exists the rematch is
kept and reported as a warning by ``validate_swiss_round``.
"""

import logging
import math
from dataclasses import dataclass, field
from itertools import groupby
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.round_robin import has_played_against
from courtside.tournament_core.structure import Match, PairingMethod, Standing, Team
from courtside.tournament_core.validation import (
    ValidationResult,
    check_no_double_booking,
    require_players,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwissRoundConfig:
    round_number: int
    standings: Sequence[Standing]
    previous_matches: Sequence[Match] = ()
    pairing_method: Union[PairingMethod, str] = PairingMethod.SLIDE
    partners: Mapping[str, str] = field(default_factory=dict)


def has_played_before(player1_id: str, player2_id: str, previous_matches: Sequence[Match]) -> bool:
    return has_played_against(player1_id, player2_id, previous_matches)


def group_by_score(standings: Sequence[Standing]) -> List[Tuple[int, List[Standing]]]:
    """Score groups ordered from the highest point total down."""
    ordered = sorted(standings, key=lambda s: -s.points)
    return [(points, list(group)) for points, group in groupby(ordered, key=lambda s: s.points)]


def _within_group_order(players: Sequence[Standing]) -> List[Standing]:
    return sorted(players, key=lambda s: (-s.games_diff, -s.games_won, s.user_id))


def _take_opponent(
    player: Standing, candidates: List[Standing], previous_matches: Sequence[Match]
) -> Standing:
    """Remove and return the first candidate ``player`` has not met, else the first."""
    for index, candidate in enumerate(candidates):
        if not has_played_before(player.user_id, candidate.user_id, previous_matches):
            if index:
                logger.debug(
                    "Swiss: %s avoids rematch, paired with %s instead of %s",
                    player.user_id,
                    candidate.user_id,
                    candidates[0].user_id,
                )
            return candidates.pop(index)
    return candidates.pop(0)


def _pair_fold(players: List[Standing], previous_matches) -> List[Tuple[Standing, Standing]]:
    pool = list(players)
    pairs = []
    while len(pool) >= 2:
        player = pool.pop(0)
        pairs.append((player, _take_opponent(player, pool, previous_matches)))
    return pairs


def _pair_slide(players: List[Standing], previous_matches) -> List[Tuple[Standing, Standing]]:
    half = len(players) // 2
    top, bottom = players[:half], list(players[half:])
    return [(player, _take_opponent(player, bottom, previous_matches)) for player in top]


def pair_score_group(
    players: Sequence[Standing],
    method: Union[PairingMethod, str],
    previous_matches: Sequence[Match],
) -> List[Tuple[Standing, Standing]]:
    """Pair an even-sized score group."""
    method = PairingMethod(method)
    ordered = _within_group_order(players)
    if method == PairingMethod.FOLD:
        return _pair_fold(ordered, previous_matches)
    if method == PairingMethod.ACCELERATED:
        logger.debug("Accelerated Swiss pairing is paired with the slide method")
    return _pair_slide(ordered, previous_matches)


def plan_swiss_round(config: SwissRoundConfig) -> Tuple[List[Tuple[Standing, Standing]], List[str]]:
    """Return the (pairs, bye player ids) for a Swiss round."""
    pairs = []
    byes = []
    for points, players in group_by_score(config.standings):
        ordered = _within_group_order(players)
        if len(ordered) % 2:
            bye = ordered.pop()
            byes.append(bye.user_id)
            logger.debug("Swiss: %s receives a bye from the %s point group", bye.user_id, points)
        pairs.extend(pair_score_group(ordered, config.pairing_method, config.previous_matches))
    return pairs, byes


def _team(player_id: str, partners: Mapping[str, str], is_doubles: bool) -> Team:
    if not is_doubles:
        return Team.single(player_id)
    partner = partners.get(player_id)
    if partner is None:
        raise ValidationError(
            f"Doubles Swiss needs a partner for {player_id}", code="missing_partner"
        )
    return Team(player_id, partner)


def generate_swiss_round(config: SwissRoundConfig, is_doubles: bool = False) -> List[Match]:
    """
    Generate one Swiss round from the current standings.

    Args:
        config: Round number, standings, history and pairing method
        is_doubles: Pair teams made of each entrant and its partner from
            ``config.partners``; otherwise entrants play singles

    Returns:
        Pending matches, highest score group first

    Raises:
        ValidationError: fewer than 2 entrants or an odd number of them. In
            doubles each entrant is a team, so the count is of teams.
    """
    require_players([s.user_id for s in config.standings], "Swiss", is_doubles=False)
    pairs, byes = plan_swiss_round(config)
    matches = [
        Match(
            team1=_team(a.user_id, config.partners, is_doubles),
            team2=_team(b.user_id, config.partners, is_doubles),
            round_number=config.round_number,
        )
        for a, b in pairs
    ]
    logger.info(
        "Generated Swiss round %d: %d matches, %d byes", config.round_number, len(matches), len(byes)
    )
    return matches


def get_swiss_byes(config: SwissRoundConfig) -> List[str]:
    """Entrants who sit out the round described by ``config``."""
    return plan_swiss_round(config)[1]


def get_bye_player_for_swiss_round(
    matches: Sequence[Match], standings: Sequence[Standing]
) -> Optional[str]:
    """The first entrant in standings order who is not in any match."""
    playing = {pid for match in matches for pid in match.player_ids}
    for standing in standings:
        if standing.user_id not in playing:
            return standing.user_id
    return None


def calculate_swiss_rounds(participant_count: int) -> int:
    """Recommended number of Swiss rounds, between 5 and 7 (3 for tiny fields)."""
    if participant_count < 4:
        return 3
    calculated = math.ceil(math.log2(participant_count))
    return min(max(calculated, 5), 7)


def validate_swiss_round(
    matches: Sequence[Match],
    standings: Sequence[Standing],
    previous_matches: Sequence[Match],
) -> ValidationResult:
    """Double booking is an error; repeat pairings are only warnings."""
    result = ValidationResult()
    check_no_double_booking(matches, result)

    known = {s.user_id for s in standings}
    for match in matches:
        entrants = [pid for pid in (match.team1_player1_id, match.team2_player1_id) if pid]
        for player_id in entrants:
            if known and player_id not in known:
                result.error(f"Player {player_id} has no standing")
        if len(entrants) == 2 and has_played_before(entrants[0], entrants[1], previous_matches):
            result.warn(
                f"Players {entrants[0]} and {entrants[1]} have played before (repeat pairing)"
            )
    return result
