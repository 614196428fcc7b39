"""
Knockout bracket utilities for bracket generation and seeding.

This module provides functionality for:
- Sizing brackets to the next power of two and counting byes
- Placing seeds so the top seeds can only meet late in the draw
- Generating the full round lattice, with byes resolved up front
- Validating generated brackets
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from courtside.tournament_core.courts import fisher_yates
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.structure import (
    BYE,
    Bye,
    Match,
    Participant,
    SeedingMethod,
    Slot,
    Team,
    checked_in,
    is_bye,
)
from courtside.tournament_core.validation import (
    ValidationResult,
    minimum_players,
    require_unique,
)

logger = logging.getLogger(__name__)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def calculate_bracket_size(participant_count: int) -> int:
    """Smallest power of two that fits every participant."""
    if participant_count < 1:
        raise ValidationError("A bracket needs at least one participant", code="empty_bracket")
    return 1 << (participant_count - 1).bit_length()


def calculate_bye_count(participant_count: int) -> int:
    return calculate_bracket_size(participant_count) - participant_count


def calculate_total_rounds(bracket_size: int) -> int:
    if not is_power_of_two(bracket_size):
        raise ValueError(f"Bracket size {bracket_size} is not a power of 2")
    return int(math.log2(bracket_size))


def calculate_knockout_rounds(participant_count: int) -> int:
    """Number of rounds needed for a knockout of this many participants."""
    if participant_count < 2:
        raise ValidationError(
            "Need at least 2 participants for knockout", code="insufficient_players"
        )
    return calculate_total_rounds(calculate_bracket_size(participant_count))


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Name a round by how many entrants it starts with."""
    remaining = 2 ** (total_rounds - round_number + 1)
    names = {2: "Final", 4: "Semifinals", 8: "Quarterfinals"}
    return names.get(remaining, f"Round of {remaining}")


def seed_position(seed: int, bracket_size: int) -> int:
    """
    Map a 1-indexed seed to its 0-indexed slot in the first round.

    Seed 1 takes slot 0 and seed 2 the last slot. Each first round match
    pairs seed ``s`` with seed ``bracket_size + 1 - s``, and those matches are
    laid out in the order of the half-size draw, so seeds 1 and 2 can only
    meet in the final and the top four only from the semifinals on.

    For an 8-slot draw the slots hold seeds 1, 8, 5, 4, 3, 6, 7, 2.
    """
    if not is_power_of_two(bracket_size):
        raise ValueError(f"Bracket size {bracket_size} is not a power of 2")
    if not 1 <= seed <= bracket_size:
        raise ValueError(f"Seed {seed} does not fit a bracket of {bracket_size}")
    if bracket_size == 1:
        return 0

    half = bracket_size // 2
    if seed <= half:
        match_index = seed_position(seed, half)
        higher_seed_slot = match_index % 2
        return 2 * match_index + higher_seed_slot
    match_index = seed_position(bracket_size + 1 - seed, half)
    return 2 * match_index + 1 - match_index % 2


@dataclass(frozen=True)
class BracketPairing:
    """Two slots that meet at one lattice position of a round.

    A slot is a Team, BYE, or None while the occupant is undecided.
    """

    position: int
    team1: Optional[Slot] = None
    team2: Optional[Slot] = None

    @property
    def is_bye(self) -> bool:
        return is_bye(self.team1) or is_bye(self.team2)

    @property
    def advancing(self) -> Optional[Slot]:
        """Who moves on without playing: BYE, a team, or None if unknown yet."""
        if is_bye(self.team1):
            return self.team2
        if is_bye(self.team2):
            return self.team1
        return None

    def to_match(self, round_number: int) -> Match:
        return Match(team1=self.team1, team2=self.team2, round_number=round_number)


@dataclass(frozen=True)
class BracketRound:
    round_number: int
    round_name: str
    pairings: List[BracketPairing] = field(default_factory=list)

    @property
    def matches(self) -> List[Match]:
        """Matches that will actually be played; bye pairings are skipped."""
        return [p.to_match(self.round_number) for p in self.pairings if not p.is_bye]


@dataclass(frozen=True)
class KnockoutBracket:
    rounds: List[BracketRound]
    bracket_size: int
    total_byes: int
    draw: List[Slot] = field(default_factory=list)
    third_place: Optional[BracketPairing] = None

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)

    @property
    def final(self) -> BracketPairing:
        return self.rounds[-1].pairings[0]

    def round(self, round_number: int) -> BracketRound:
        return self.rounds[round_number - 1]


def build_bracket_rounds(
    draw: Sequence[Optional[Slot]],
    round_name: Callable[[int, int], str] = get_round_name,
) -> List[BracketRound]:
    """Lay out every round of a single-elimination lattice from its first round slots.

    Byes are resolved as far as they can be: a team facing BYE is placed in
    the next round, and two byes facing each other send BYE onward.
    """
    total_rounds = calculate_total_rounds(len(draw))
    rounds = []
    current = list(draw)
    round_number = 1
    while len(current) > 1:
        pairings = [
            BracketPairing(position, current[2 * position], current[2 * position + 1])
            for position in range(len(current) // 2)
        ]
        rounds.append(
            BracketRound(round_number, round_name(round_number, total_rounds), pairings)
        )
        current = [p.advancing for p in pairings]
        round_number += 1
    return rounds


def seed_entrants(
    entrants: Sequence[Participant],
    seeding: Union[SeedingMethod, str] = SeedingMethod.RANKED,
    seed_order: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
) -> List[Participant]:
    """Return the entrants in seed order (seed 1 first)."""
    seeding = SeedingMethod(seeding)
    if seeding == SeedingMethod.RANDOM:
        ordered = list(entrants)
        fisher_yates(ordered, rng or random.Random())
        return ordered
    if seeding == SeedingMethod.MANUAL:
        by_user = {p.user_id: p for p in entrants}
        if (
            not seed_order
            or len(seed_order) != len(entrants)
            or len(set(seed_order)) != len(seed_order)
            or set(seed_order) != set(by_user)
        ):
            raise ValidationError(
                "Manual seeding requires an exact seed order covering every participant once",
                code="invalid_seed_order",
            )
        return [by_user[user_id] for user_id in seed_order]
    return list(entrants)


def entrant_team(participant: Participant, is_doubles: bool) -> Team:
    if is_doubles:
        return participant.team
    return Team.single(participant.user_id)


def generate_knockout_bracket(
    participants: Sequence[Participant],
    seeding: Union[SeedingMethod, str] = SeedingMethod.RANKED,
    seed_order: Optional[Sequence[str]] = None,
    is_doubles: bool = True,
    third_place_match: bool = False,
    rng: Optional[random.Random] = None,
) -> KnockoutBracket:
    """
    Generate a single-elimination bracket.

    Args:
        participants: Roster; only checked-in participants enter the draw
        seeding: ``ranked`` (input order), ``random`` or ``manual``
        seed_order: User ids in seed order, required for manual seeding
        is_doubles: Enter each participant with its ``partner_id`` as a team
        third_place_match: Add a match between the semifinal losers
        rng: Random source for random seeding

    Returns:
        KnockoutBracket whose first round has BYE in every unfilled slot
    """
    entrants = checked_in(participants)
    needed = minimum_players(is_doubles)
    if len(entrants) < needed:
        kind = "doubles" if is_doubles else "singles"
        raise ValidationError(
            f"Knockout requires at least {needed} players for {kind}, got {len(entrants)}",
            code="insufficient_players",
        )

    seeded = seed_entrants(entrants, seeding, seed_order, rng)
    teams = [entrant_team(p, is_doubles) for p in seeded]
    require_unique([pid for team in teams for pid in team.players], "Knockout draw")

    bracket_size = calculate_bracket_size(len(teams))
    draw: List[Slot] = [BYE] * bracket_size
    for index, team in enumerate(teams):
        draw[seed_position(index + 1, bracket_size)] = team

    rounds = build_bracket_rounds(draw)
    third_place = None
    if third_place_match and len(rounds) >= 2:
        # A semifinal won on a bye has no loser to send to the bronze match
        if any(pairing.is_bye for pairing in rounds[-2].pairings):
            logger.info("Skipping third place match: a semifinal is decided by a bye")
        else:
            third_place = BracketPairing(0)
    bracket = KnockoutBracket(
        rounds=rounds,
        bracket_size=bracket_size,
        total_byes=bracket_size - len(teams),
        draw=draw,
        third_place=third_place,
    )
    logger.info(
        "Generated knockout bracket: %d entrants, size %d, %d byes, %d rounds",
        len(teams),
        bracket_size,
        bracket.total_byes,
        len(rounds),
    )
    return bracket


def get_bye_players_for_knockout(bracket: KnockoutBracket) -> List[str]:
    """Players who reach round 2 without playing."""
    if not bracket.rounds:
        return []
    players: List[str] = []
    for pairing in bracket.rounds[0].pairings:
        advancing = pairing.advancing
        if isinstance(advancing, Team):
            players.extend(advancing.players)
    return players


def validate_bracket_rounds(
    rounds: Sequence[BracketRound], bracket_size: int, result: ValidationResult, label: str = ""
) -> None:
    prefix = f"{label} " if label else ""
    if not is_power_of_two(bracket_size) or bracket_size < 2:
        result.error(f"{prefix}bracket size {bracket_size} is not a power of 2")
        return
    expected_rounds = calculate_total_rounds(bracket_size)
    if len(rounds) != expected_rounds:
        result.error(f"{prefix}bracket expected {expected_rounds} rounds, found {len(rounds)}")
    for index, bracket_round in enumerate(rounds):
        expected = bracket_size >> (index + 1)
        if len(bracket_round.pairings) != expected:
            result.error(
                f"{prefix}round {bracket_round.round_number} expected {expected} pairings, "
                f"found {len(bracket_round.pairings)}"
            )


def validate_knockout_bracket(bracket: KnockoutBracket) -> ValidationResult:
    result = ValidationResult()
    validate_bracket_rounds(bracket.rounds, bracket.bracket_size, result)
    if len(bracket.draw) != bracket.bracket_size:
        result.error(
            f"Draw has {len(bracket.draw)} slots for a bracket of {bracket.bracket_size}"
        )
    byes = sum(1 for slot in bracket.draw if isinstance(slot, Bye))
    if byes != bracket.total_byes:
        result.error(f"Expected {bracket.total_byes} byes but the draw has {byes}")
    if bracket.total_byes >= bracket.bracket_size // 2 and bracket.bracket_size > 2:
        result.error("Too many byes: some first round pairings have no player at all")

    seen = set()
    for slot in bracket.draw:
        if isinstance(slot, Team):
            for player_id in slot.players:
                if player_id in seen:
                    result.error(f"Player {player_id} appears more than once in the draw")
                seen.add(player_id)
    return result
