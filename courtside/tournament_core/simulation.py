"""
Play generated brackets to completion without a database.

A simulation loads a bracket into an ``InMemoryBracketStore``, then repeatedly
plays the first match whose two slots hold real teams and hands the result
to the progression engine. A result policy decides who wins each match.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

from courtside.tournament_core.progression import (
    BracketProgressionEngine,
    InMemoryBracketStore,
    ProgressionResult,
)
from courtside.tournament_core.structure import (
    BracketPosition,
    BracketType,
    Match,
    Team,
    TournamentFormat,
)

logger = logging.getLogger(__name__)

# Returns the winning team slot (1 or 2) for a playable match.
ResultPolicy = Callable[[Match], int]

WINNING_SCORE = 6
LOSING_SCORE = 3


def team1_wins(match: Match) -> int:
    return 1


def higher_seed_wins(seeds: Dict[str, int]) -> ResultPolicy:
    """Policy where the team whose first player holds the better seed wins."""

    def policy(match: Match) -> int:
        seed1 = seeds.get(match.team1_player1_id, len(seeds) + 1)
        seed2 = seeds.get(match.team2_player1_id, len(seeds) + 1)
        return 1 if seed1 <= seed2 else 2

    return policy


def random_winner(rng: Optional[random.Random] = None) -> ResultPolicy:
    rng = rng or random.Random()

    def policy(match: Match) -> int:
        return rng.choice((1, 2))

    return policy


@dataclass
class SimulationResult:
    champion: Optional[Team]
    played: List[Match] = field(default_factory=list)
    progressions: List[ProgressionResult] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return any(result.is_complete for result in self.progressions)


def _playable(store: InMemoryBracketStore) -> Optional[Match]:
    for match in store.matches():
        if match.is_finished:
            continue
        if isinstance(match.team1, Team) and isinstance(match.team2, Team):
            return match
    return None


def play_match(
    store: InMemoryBracketStore,
    engine: BracketProgressionEngine,
    match: Match,
    winner_team: int,
    tournament_format: Union[TournamentFormat, str],
) -> ProgressionResult:
    """Record a result for a stored match and advance it through the bracket."""
    if winner_team == 1:
        finished = match.complete(WINNING_SCORE, LOSING_SCORE)
    else:
        finished = match.complete(LOSING_SCORE, WINNING_SCORE)
    store.save_match(finished)
    return engine.advance_match(finished, tournament_format)


def simulate_bracket(
    store: InMemoryBracketStore,
    tournament_format: Union[TournamentFormat, str],
    policy: ResultPolicy = team1_wins,
) -> SimulationResult:
    """
    Play every reachable match of a stored bracket.

    Args:
        store: Store loaded from a generated bracket
        tournament_format: Decides where losers are routed
        policy: Picks the winner of each match

    Returns:
        SimulationResult with the main bracket champion, if one was decided
    """
    engine = BracketProgressionEngine(store)
    result = SimulationResult(champion=None)

    match = _playable(store)
    while match is not None:
        winner_team = policy(match)
        progression = play_match(store, engine, match, winner_team, tournament_format)
        if not progression.success:
            logger.warning("Simulation stopped at %s: %s", match.id, progression.message)
            result.progressions.append(progression)
            break
        result.played.append(store.get_match(match.id))
        result.progressions.append(progression)
        match = _playable(store)

    last = store.last_round(BracketType.MAIN)
    if last:
        final = store.find_match(BracketPosition(store.tournament_id, BracketType.MAIN, last, 0))
        if final is not None and isinstance(final.winner(), Team):
            result.champion = final.winner()
    logger.info(
        "Simulated %d matches, champion %s",
        len(result.played),
        result.champion.players if result.champion else None,
    )
    return result
