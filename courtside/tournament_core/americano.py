"""
Americano pairings.

Partnerships rotate every round so that, over ``n - 1`` rounds, every player
partners every other player exactly once. Player 1 stays fixed while the rest
rotate; position ``i`` partners position ``n - 1 - i`` and consecutive
partnerships face each other on court.
"""

import logging
from typing import List, Sequence, Tuple

from courtside.tournament_core.structure import Match, Participant, Team, checked_in
from courtside.tournament_core.validation import (
    ValidationResult,
    check_no_double_booking,
    player_appearances,
    require_players,
    require_unique,
)

logger = logging.getLogger(__name__)


def rotate_players(player_ids: Sequence[str], round_number: int) -> List[str]:
    """Circle-method rotation: the first player is fixed, the rest shift left."""
    if len(player_ids) < 2:
        return list(player_ids)
    fixed, rotating = player_ids[0], list(player_ids[1:])
    offset = (round_number - 1) % len(rotating)
    return [fixed] + rotating[offset:] + rotating[:offset]


def americano_partnerships(player_ids: Sequence[str], round_number: int) -> List[Tuple[str, str]]:
    rotated = rotate_players(player_ids, round_number)
    n = len(rotated)
    return [(rotated[i], rotated[n - 1 - i]) for i in range(n // 2)]


def generate_americano_round(
    participants: Sequence[Participant],
    round_number: int,
    previous_matches: Sequence[Match] = (),
) -> List[Match]:
    """
    Generate one Americano round.

    Args:
        participants: Roster; only checked-in participants are scheduled
        round_number: 1-indexed round. Rounds past ``n - 1`` repeat the cycle.
        previous_matches: Accepted for interface symmetry; the rotation alone
            determines the pairings

    Returns:
        Pending doubles matches without court or round ids. When the number
        of partnerships is odd the last one sits the round out.
    """
    player_ids = [p.user_id for p in checked_in(participants)]
    require_players(player_ids, "Americano", is_doubles=True)
    require_unique(player_ids, "Americano roster")

    pairs = americano_partnerships(player_ids, round_number)
    matches = [
        Match(
            team1=Team(*pairs[i]),
            team2=Team(*pairs[i + 1]),
            round_number=round_number,
        )
        for i in range(0, len(pairs) - 1, 2)
    ]
    if len(pairs) % 2:
        logger.debug("Americano round %d: pair %s rests", round_number, pairs[-1])
    logger.info(
        "Generated Americano round %d: %d matches for %d players",
        round_number,
        len(matches),
        len(player_ids),
    )
    return matches


def has_paired_before(player1_id: str, player2_id: str, previous_matches: Sequence[Match]) -> bool:
    """True if the two players have already been partners."""
    for match in previous_matches:
        for team in (match.team1, match.team2):
            if isinstance(team, Team) and not team.is_singles:
                if player1_id in team and player2_id in team:
                    return True
    return False


def validate_americano_round(
    matches: Sequence[Match], participants: Sequence[Participant]
) -> ValidationResult:
    result = ValidationResult()
    check_no_double_booking(matches, result)
    for index, match in enumerate(matches):
        for team in (match.team1, match.team2):
            if not isinstance(team, Team) or team.is_singles:
                result.error(f"Match {index + 1} does not have two full doubles teams")
                break

    expected = len(checked_in(participants))
    scheduled = len(player_appearances(matches))
    resting = expected - scheduled
    if resting < 0 or resting > 2:
        result.error(f"Expected {expected} players but found {scheduled} in matches")
    return result
