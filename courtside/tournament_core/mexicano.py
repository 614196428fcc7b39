"""
Mexicano pairings.

The first round is drawn at random. Every later round sorts players by their
standing and groups neighbours into matches (1st and 2nd against 3rd and
4th), so players keep meeting others at their own level.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence

from courtside.tournament_core.courts import fisher_yates
from courtside.tournament_core.structure import Match, Participant, Standing, Team, checked_in
from courtside.tournament_core.validation import (
    ValidationResult,
    check_no_double_booking,
    player_appearances,
    require_players,
    require_unique,
)

logger = logging.getLogger(__name__)


def _group_into_matches(ordered: Sequence[str], round_number: int) -> List[Match]:
    return [
        Match(
            team1=Team(ordered[i], ordered[i + 1]),
            team2=Team(ordered[i + 2], ordered[i + 3]),
            round_number=round_number,
        )
        for i in range(0, len(ordered) - 3, 4)
    ]


def order_by_standings(player_ids: Sequence[str], standings: Sequence[Standing]) -> List[str]:
    """Sort players by points then games difference. Unranked players go last."""
    by_player: Dict[str, Standing] = {s.user_id: s for s in standings}

    def key(player_id):
        standing = by_player.get(player_id)
        if standing is None:
            return (1, 0, 0, player_id)
        return (0, -standing.points, -standing.games_diff, player_id)

    return sorted(player_ids, key=key)


def generate_mexicano_round(
    participants: Sequence[Participant],
    round_number: int,
    standings: Sequence[Standing] = (),
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Generate one Mexicano round.

    Args:
        participants: Roster; only checked-in participants are scheduled
        round_number: 1-indexed round number
        standings: Current standings, used from round 2 onwards
        rng: Random source for the round 1 draw

    Returns:
        Pending doubles matches. Players left over after the last full group
        of four sit the round out.
    """
    player_ids = [p.user_id for p in checked_in(participants)]
    require_players(player_ids, "Mexicano", is_doubles=True)
    require_unique(player_ids, "Mexicano roster")

    if round_number == 1:
        ordered = list(player_ids)
        fisher_yates(ordered, rng or random.Random())
    else:
        ordered = order_by_standings(player_ids, standings)

    matches = _group_into_matches(ordered, round_number)
    logger.info(
        "Generated Mexicano round %d: %d matches for %d players",
        round_number,
        len(matches),
        len(player_ids),
    )
    return matches


def validate_mexicano_round(
    matches: Sequence[Match], participants: Sequence[Participant]
) -> ValidationResult:
    result = ValidationResult()
    check_no_double_booking(matches, result)
    expected = len(checked_in(participants))
    scheduled = len(player_appearances(matches))
    if scheduled != expected - expected % 4:
        result.error(f"Expected {expected} players but found {scheduled} in matches")
    return result


def calculate_optimal_rounds(player_count: int) -> int:
    """Suggested number of Mexicano rounds for a roster size."""
    if player_count <= 8:
        return 5
    if player_count <= 16:
        return 7
    if player_count <= 24:
        return 9
    return 10
