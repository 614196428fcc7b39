"""
Standings calculation.

Standings are derived from finished matches and replaced on every update,
never edited in place. Ordering is points, games difference, games won and
matches won (all descending), with the player id as the final tiebreak so
ranks are never shared.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.scoring import STANDARD_CONFIG, TournamentConfig
from courtside.tournament_core.structure import Match, Standing

logger = logging.getLogger(__name__)


def standing_sort_key(standing: Standing) -> Tuple:
    return (
        -standing.points,
        -standing.games_diff,
        -standing.games_won,
        -standing.matches_won,
        standing.user_id,
    )


def rank_standings(standings: Iterable[Standing]) -> List[Standing]:
    """Sort standings and assign 1-indexed ranks without gaps."""
    ordered = sorted(standings, key=standing_sort_key)
    return [replace(s, rank=i + 1) for i, s in enumerate(ordered)]


def _apply_result(
    standing: Standing, games_for: int, games_against: int, points: int, outcome: str
) -> Standing:
    counter = f"matches_{outcome}"
    return replace(
        standing,
        matches_played=standing.matches_played + 1,
        games_won=standing.games_won + games_for,
        games_lost=standing.games_lost + games_against,
        points=standing.points + points,
        **{counter: getattr(standing, counter) + 1},
    )


def _winning_side(match: Match) -> Optional[int]:
    """1 or 2 for the winner of a scored match, None for a draw."""
    if match.is_draw:
        return None
    if match.winner_team is not None:
        return match.winner_team
    if match.team1_score == match.team2_score:
        return None
    return 1 if match.team1_score > match.team2_score else 2


def _record_match(
    table: Dict[str, Standing], match: Match, config: TournamentConfig
) -> None:
    winner = _winning_side(match)
    team1_points, team2_points = config.match_points(winner)
    if winner is None:
        team1_outcome = team2_outcome = "drawn"
    elif winner == 1:
        team1_outcome, team2_outcome = "won", "lost"
    else:
        team1_outcome, team2_outcome = "lost", "won"
    sides = (
        (match.team1_players, match.team1_score, match.team2_score, team1_points, team1_outcome),
        (match.team2_players, match.team2_score, match.team1_score, team2_points, team2_outcome),
    )
    for players, games_for, games_against, points, outcome in sides:
        for player_id in players:
            standing = table.get(player_id)
            if standing is None:
                continue
            table[player_id] = _apply_result(
                standing, games_for, games_against, points, outcome
            )


def counts_towards_standings(match: Match) -> bool:
    return match.is_finished and match.has_scores and not match.has_bye


def calculate_standings(
    tournament_id: str,
    matches: Sequence[Match],
    config: TournamentConfig = STANDARD_CONFIG,
) -> List[Standing]:
    """
    Recompute standings from scratch.

    Every player seen in any match gets a zeroed standing; only finished
    matches with both scores set change the counters.

    Args:
        tournament_id: Tournament the standings belong to
        matches: All matches of the tournament, in any state
        config: Scoring configuration

    Returns:
        Ranked list of standings, best first
    """
    table: Dict[str, Standing] = {}
    for match in matches:
        for player_id in match.player_ids:
            if player_id not in table:
                table[player_id] = Standing(tournament_id=tournament_id, user_id=player_id)

    for match in matches:
        if counts_towards_standings(match):
            _record_match(table, match, config)

    return rank_standings(table.values())


def update_standings_for_match(
    match: Match,
    standings: Sequence[Standing],
    config: TournamentConfig = STANDARD_CONFIG,
) -> List[Standing]:
    """
    Apply one newly finished match to existing standings and re-rank everyone.

    Players without a standing are ignored. The input list is not modified.
    """
    if not match.has_scores:
        raise ValidationError(
            "Match must have scores to update standings", code="missing_scores"
        )
    table = {s.user_id: s for s in standings}
    _record_match(table, match, config)
    logger.debug("Applied match %s to %d standings", match.id, len(table))
    return rank_standings(table.values())


def get_top_players(standings: Sequence[Standing], count: int) -> List[Standing]:
    return list(standings[: max(0, min(count, len(standings)))])


def get_player_rank(user_id: str, standings: Sequence[Standing]) -> Optional[int]:
    for standing in standings:
        if standing.user_id == user_id:
            return standing.rank
    return None


def is_tournament_complete(matches: Sequence[Match]) -> bool:
    """True once there is at least one match and every match is finished."""
    return bool(matches) and all(m.is_finished for m in matches)


def initial_standings(tournament_id: str, player_ids: Iterable[str]) -> List[Standing]:
    """Zeroed standings in the given order, used before any match is played."""
    return [
        Standing(tournament_id=tournament_id, user_id=pid, rank=i + 1)
        for i, pid in enumerate(player_ids)
    ]
