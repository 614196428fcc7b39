"""
Double elimination brackets.

The winners bracket is an ordinary knockout. Its losers drop into a losers
bracket of ``2 * (W - 1)`` rounds, where ``W`` is the number of winners
rounds. Losers rounds alternate between two kinds:

- odd rounds halve the field: losers-bracket survivors play each other
- even rounds take drop-ins: survivors meet the losers of a winners round

Winners round 1 losers fill losers round 1. A loser of winners round
``N >= 2`` drops into losers round ``2N - 2``. The losers champion meets the
winners champion in a single grand final, stored as one extra round of the
main bracket.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.knockout import (
    BracketPairing,
    BracketRound,
    KnockoutBracket,
    generate_knockout_bracket,
    validate_bracket_rounds,
)
from courtside.tournament_core.structure import (
    BYE,
    BracketPosition,
    BracketType,
    Participant,
    SeedingMethod,
    Slot,
)
from courtside.tournament_core.validation import ValidationResult

logger = logging.getLogger(__name__)


def losers_round_count(winners_rounds: int) -> int:
    return 2 * (winners_rounds - 1)


def losers_round_size(bracket_size: int, losers_round: int) -> int:
    """Number of pairings in a losers round."""
    stage = (losers_round + 1) // 2
    return bracket_size >> (stage + 1)


def get_losers_round_name(round_number: int, total_rounds: int) -> str:
    if round_number == total_rounds:
        return "Losers Final"
    if round_number == total_rounds - 1:
        return "Losers Semifinal"
    return f"Losers Round {round_number}"


def route_winners_loser(source: BracketPosition) -> Tuple[BracketPosition, int]:
    """Where a winners bracket loser drops in, as (position, team slot)."""
    if source.round_number == 1:
        target = BracketPosition(
            source.tournament_id, BracketType.LOSERS, 1, source.position // 2
        )
        return target, source.slot
    target = BracketPosition(
        source.tournament_id,
        BracketType.LOSERS,
        2 * source.round_number - 2,
        source.position,
    )
    return target, 2


def route_losers_winner(
    source: BracketPosition, losers_rounds: int, grand_final_round: int
) -> Tuple[BracketPosition, int]:
    """Where a losers bracket winner goes next, as (position, team slot)."""
    if source.round_number >= losers_rounds:
        return (
            BracketPosition(source.tournament_id, BracketType.MAIN, grand_final_round, 0),
            2,
        )
    next_round = source.round_number + 1
    if next_round % 2 == 0:
        target = BracketPosition(
            source.tournament_id, BracketType.LOSERS, next_round, source.position
        )
        return target, 1
    target = BracketPosition(
        source.tournament_id, BracketType.LOSERS, next_round, source.position // 2
    )
    return target, source.slot


@dataclass(frozen=True)
class DoubleEliminationBracket:
    winners: KnockoutBracket
    losers: List[BracketRound] = field(default_factory=list)
    grand_final: BracketPairing = field(default_factory=lambda: BracketPairing(0))

    @property
    def losers_size(self) -> int:
        """Entrants of the losers bracket: every winners round 1 loser."""
        return self.winners.bracket_size // 2

    @property
    def grand_final_round(self) -> int:
        return self.winners.total_rounds + 1


def _build_losers_rounds(winners: KnockoutBracket) -> List[BracketRound]:
    bracket_size = winners.bracket_size
    total = losers_round_count(winners.total_rounds)
    slots: List[List[Optional[Slot]]] = [
        [None] * (2 * losers_round_size(bracket_size, k)) for k in range(1, total + 1)
    ]

    # Winners round 1 byes leave empty slots in losers round 1.
    for pairing in winners.rounds[0].pairings:
        if pairing.is_bye:
            slot = 1 if pairing.position % 2 == 0 else 2
            slots[0][2 * (pairing.position // 2) + slot - 1] = BYE

    rounds = []
    for k in range(1, total + 1):
        current = slots[k - 1]
        pairings = [
            BracketPairing(position, current[2 * position], current[2 * position + 1])
            for position in range(len(current) // 2)
        ]
        rounds.append(BracketRound(k, get_losers_round_name(k, total), pairings))
        if k == total:
            break
        for pairing in pairings:
            advancing = pairing.advancing
            if advancing is None:
                continue
            if (k + 1) % 2 == 0:
                slots[k][2 * pairing.position] = advancing
            else:
                slot = 1 if pairing.position % 2 == 0 else 2
                slots[k][2 * (pairing.position // 2) + slot - 1] = advancing
    return rounds


def generate_double_elimination_bracket(
    participants: Sequence[Participant],
    seeding: Union[SeedingMethod, str] = SeedingMethod.RANKED,
    seed_order: Optional[Sequence[str]] = None,
    is_doubles: bool = True,
    rng: Optional[random.Random] = None,
) -> DoubleEliminationBracket:
    """
    Generate winners and losers brackets plus the grand final.

    Requires a winners bracket of at least four slots so the losers bracket
    has at least one match.
    """
    winners = generate_knockout_bracket(
        participants, seeding=seeding, seed_order=seed_order, is_doubles=is_doubles, rng=rng
    )
    if winners.bracket_size < 4:
        raise ValidationError(
            "Double elimination needs at least 3 entrants", code="insufficient_players"
        )
    losers = _build_losers_rounds(winners)
    bracket = DoubleEliminationBracket(winners=winners, losers=losers, grand_final=BracketPairing(0))
    logger.info(
        "Generated double elimination bracket: %d winners rounds, %d losers rounds",
        winners.total_rounds,
        len(losers),
    )
    return bracket


def validate_double_elimination_bracket(bracket: DoubleEliminationBracket) -> ValidationResult:
    result = ValidationResult()
    winners = bracket.winners
    validate_bracket_rounds(winners.rounds, winners.bracket_size, result, "Winners")

    expected_rounds = losers_round_count(winners.total_rounds)
    if len(bracket.losers) != expected_rounds:
        result.error(
            f"Losers bracket expected {expected_rounds} rounds, found {len(bracket.losers)}"
        )
    for losers_round in bracket.losers:
        expected = losers_round_size(winners.bracket_size, losers_round.round_number)
        if len(losers_round.pairings) != expected:
            result.error(
                f"Losers round {losers_round.round_number} expected {expected} pairings, "
                f"found {len(losers_round.pairings)}"
            )
    if bracket.grand_final is None:
        result.error("Grand final is missing")
    return result
