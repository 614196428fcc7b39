"""
Compass draw: a main knockout plus named consolation brackets.

Main round 1 losers play on in the east and west brackets. In larger draws
main round 2 losers get their own brackets too:

- main bracket of 16 or fewer: east and west
- up to 32: adds north-east and south-east
- larger: adds north-west and south-west as well

Every entrant therefore plays at least two matches.
"""

import logging
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.knockout import (
    BracketPairing,
    BracketRound,
    KnockoutBracket,
    build_bracket_rounds,
    calculate_bracket_size,
    calculate_bye_count,
    generate_knockout_bracket,
    validate_bracket_rounds,
    validate_knockout_bracket,
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

EAST = "east"
WEST = "west"
NORTH_EAST = "north_east"
SOUTH_EAST = "south_east"
NORTH_WEST = "north_west"
SOUTH_WEST = "south_west"

MIN_MAIN_BRACKET = 8


def direction_label(name: str) -> str:
    """``north_east`` -> ``North-East``."""
    return "-".join(part.capitalize() for part in name.split("_"))


def consolation_directions(bracket_size: int) -> List[str]:
    if bracket_size <= 16:
        return [EAST, WEST]
    if bracket_size <= 32:
        return [EAST, WEST, NORTH_EAST, SOUTH_EAST]
    return [EAST, WEST, NORTH_EAST, SOUTH_EAST, NORTH_WEST, SOUTH_WEST]


def route_loser_to_consolation(
    main_round: int, position: int, bracket_size: int
) -> Optional[Tuple[str, int]]:
    """
    Find the consolation bracket for a main bracket loser.

    Args:
        main_round: Main bracket round the match was lost in
        position: Lattice position of that match
        bracket_size: Size of the main bracket

    Returns:
        (bracket name, entrant index within that bracket), or None when the
        loser is out of the draw
    """
    directions = consolation_directions(bracket_size)
    if main_round == 1:
        return (EAST if position % 2 == 0 else WEST, position // 2)
    if main_round == 2 and len(directions) > 2:
        if len(directions) == 4:
            return (NORTH_EAST if position % 2 == 0 else SOUTH_EAST, position // 2)
        half = bracket_size // 8
        if position < half:
            return (NORTH_EAST if position % 2 == 0 else SOUTH_EAST, position // 2)
        offset = position - half
        return (NORTH_WEST if offset % 2 == 0 else SOUTH_WEST, offset // 2)
    return None


def consolation_entry(
    tournament_id: str, name: str, entrant_index: int
) -> Tuple[BracketPosition, int]:
    """First round position and team slot for a consolation entrant."""
    position = BracketPosition(
        tournament_id, BracketType.CONSOLATION, 1, entrant_index // 2, bracket_name=name
    )
    return position, 1 if entrant_index % 2 == 0 else 2


@dataclass(frozen=True)
class ConsolationBracket:
    name: str
    source_round: int
    entrants: int
    bracket_size: int
    rounds: List[BracketRound] = field(default_factory=list)

    @property
    def label(self) -> str:
        return direction_label(self.name)

    @property
    def final(self) -> BracketPairing:
        return self.rounds[-1].pairings[0]


@dataclass(frozen=True)
class CompassDraw:
    main: KnockoutBracket
    consolation: Dict[str, ConsolationBracket] = field(default_factory=OrderedDict)

    @property
    def directions(self) -> List[str]:
        return list(self.consolation)


def _consolation_round_name(label: str):
    def name(round_number: int, total_rounds: int) -> str:
        remaining = 2 ** (total_rounds - round_number + 1)
        if remaining == 2:
            return f"{label} Final"
        if remaining == 4:
            return f"{label} Semifinals"
        return f"{label} Round {round_number}"

    return name


def _build_consolation(main: KnockoutBracket, name: str, source_round: int) -> ConsolationBracket:
    source = main.round(source_round)
    # Entrant index -> BYE when the feeding main pairing had no real loser.
    routed: Dict[int, Optional[Slot]] = {}
    for pairing in source.pairings:
        routed_to = route_loser_to_consolation(source_round, pairing.position, main.bracket_size)
        if routed_to is None or routed_to[0] != name:
            continue
        routed[routed_to[1]] = BYE if pairing.is_bye else None

    entrants = len(routed)
    size = max(2, calculate_bracket_size(max(entrants, 1)))
    draw: List[Optional[Slot]] = [routed.get(i, BYE) for i in range(size)]
    rounds = build_bracket_rounds(draw, _consolation_round_name(direction_label(name)))
    return ConsolationBracket(
        name=name,
        source_round=source_round,
        entrants=entrants,
        bracket_size=size,
        rounds=rounds,
    )


def generate_compass_draw(
    participants: Sequence[Participant],
    seeding: Union[SeedingMethod, str] = SeedingMethod.RANKED,
    seed_order: Optional[Sequence[str]] = None,
    is_doubles: bool = True,
    rng: Optional[random.Random] = None,
) -> CompassDraw:
    """Generate the main bracket and every consolation bracket it feeds."""
    main = generate_knockout_bracket(
        participants, seeding=seeding, seed_order=seed_order, is_doubles=is_doubles, rng=rng
    )
    if main.bracket_size < MIN_MAIN_BRACKET:
        raise ValidationError(
            f"Compass draw needs a main bracket of at least {MIN_MAIN_BRACKET}, "
            f"got {main.bracket_size}",
            code="insufficient_players",
        )

    consolation: Dict[str, ConsolationBracket] = OrderedDict()
    for name in consolation_directions(main.bracket_size):
        source_round = 1 if name in (EAST, WEST) else 2
        consolation[name] = _build_consolation(main, name, source_round)

    logger.info(
        "Generated compass draw: main bracket of %d with %s consolation brackets",
        main.bracket_size,
        ", ".join(consolation),
    )
    return CompassDraw(main=main, consolation=consolation)


def validate_compass_draw(draw: CompassDraw) -> ValidationResult:
    result = validate_knockout_bracket(draw.main)
    expected = consolation_directions(draw.main.bracket_size)
    if draw.directions != expected:
        result.error(
            f"Expected consolation brackets {', '.join(expected)}, "
            f"found {', '.join(draw.directions) or 'none'}"
        )
    for bracket in draw.consolation.values():
        validate_bracket_rounds(bracket.rounds, bracket.bracket_size, result, bracket.label)
        if bracket.entrants > bracket.bracket_size:
            result.error(
                f"{bracket.label} bracket holds {bracket.bracket_size} but receives "
                f"{bracket.entrants} entrants"
            )
    return result


def get_minimum_matches_per_player(total_players: int) -> int:
    """
    Fewest matches any entrant is guaranteed to play.

    A full main bracket gives everyone a main match and a consolation match.
    With byes, a bye winner who loses in round 2 may leave after one match,
    and a round 1 loser can win a consolation bracket on walkovers.
    """
    if calculate_bye_count(total_players) > 0:
        return 1
    return 2


def get_all_finals(draw: CompassDraw) -> Dict[str, BracketPairing]:
    """The final of the main bracket and of each consolation bracket."""
    finals: Dict[str, BracketPairing] = OrderedDict(main=draw.main.final)
    for name, bracket in draw.consolation.items():
        finals[name] = bracket.final
    return finals
