"""
Round robin scheduling, with an optional group stage and playoff.

This module provides functionality for:
- Full round robin schedules using the circle method
- Single rounds of such a schedule
- Group stages where players are snake-drafted into balanced groups
- Seeding group qualifiers into a knockout playoff
"""

import logging
import string
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Union

from courtside.tournament_core.americano import rotate_players
from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.knockout import KnockoutBracket, generate_knockout_bracket
from courtside.tournament_core.structure import (
    BYE,
    Bye,
    GeneratedRound,
    Match,
    Participant,
    SeedingMethod,
    Standing,
    Team,
    checked_in,
)
from courtside.tournament_core.validation import (
    ValidationResult,
    check_no_double_booking,
    minimum_players,
    require_unique,
)

logger = logging.getLogger(__name__)

MIN_GROUPS = 2
MAX_GROUPS = 8


def _require_round_robin_players(player_ids: Sequence[str], is_doubles: bool) -> None:
    needed = minimum_players(is_doubles)
    if len(player_ids) < needed:
        kind = "doubles" if is_doubles else "singles"
        raise ValidationError(
            f"Round Robin requires at least {needed} players for {kind}, got {len(player_ids)}",
            code="insufficient_players",
        )
    require_unique(player_ids, "Round Robin roster")


def _schedule_round(
    entries: Sequence[Union[str, Bye]], round_number: int, is_doubles: bool
) -> GeneratedRound:
    rotation = rotate_players(entries, round_number)
    n = len(rotation)
    pairs = []
    byes = []
    for i in range(n // 2):
        first, second = rotation[i], rotation[n - 1 - i]
        if first is BYE or second is BYE:
            byes.append(second if first is BYE else first)
        else:
            pairs.append((first, second))

    if is_doubles:
        matches = [
            Match(team1=Team(*pairs[i]), team2=Team(*pairs[i + 1]), round_number=round_number)
            for i in range(0, len(pairs) - 1, 2)
        ]
        if len(pairs) % 2:
            byes.extend(pairs[-1])
    else:
        matches = [
            Match(team1=Team.single(a), team2=Team.single(b), round_number=round_number)
            for a, b in pairs
        ]
    return GeneratedRound(round_number=round_number, matches=matches, byes=byes)


def generate_round_robin(
    participants: Sequence[Participant], is_doubles: bool = True
) -> List[GeneratedRound]:
    """
    Build the complete round robin schedule.

    An odd roster gets a BYE entry appended; whoever is drawn against it sits
    the round out. In doubles, consecutive circle pairings become partners
    facing each other and a partnership left without opponents rests.

    Returns:
        ``n - 1`` rounds, where ``n`` counts the BYE entry if one was added
    """
    player_ids = [p.user_id for p in checked_in(participants)]
    _require_round_robin_players(player_ids, is_doubles)

    entries: List[Union[str, Bye]] = list(player_ids)
    if len(entries) % 2:
        entries.append(BYE)

    rounds = [
        _schedule_round(entries, round_number, is_doubles)
        for round_number in range(1, len(entries))
    ]
    logger.info(
        "Generated round robin schedule: %d rounds for %d players", len(rounds), len(player_ids)
    )
    return rounds


def generate_round_robin_round(
    participants: Sequence[Participant], round_number: int, is_doubles: bool = True
) -> List[Match]:
    """Return the matches of one round of the round robin schedule."""
    rounds = generate_round_robin(participants, is_doubles)
    if round_number < 1 or round_number > len(rounds):
        raise ValidationError(
            f"Invalid round number {round_number}. Must be between 1 and {len(rounds)}",
            code="invalid_round",
        )
    return rounds[round_number - 1].matches


def calculate_round_robin_rounds(participant_count: int) -> int:
    if participant_count < 2:
        raise ValidationError(
            "Need at least 2 participants for round robin", code="insufficient_players"
        )
    n = participant_count if participant_count % 2 == 0 else participant_count + 1
    return n - 1


def get_bye_players_for_round(
    participants: Sequence[Participant], round_number: int, is_doubles: bool = False
) -> List[str]:
    """Players who sit out the given round."""
    rounds = generate_round_robin(participants, is_doubles)
    if round_number < 1 or round_number > len(rounds):
        return []
    return list(rounds[round_number - 1].byes)


def has_played_against(player1_id: str, player2_id: str, previous_matches: Sequence[Match]) -> bool:
    """True if the two players have been on opposite sides of a match."""
    for match in previous_matches:
        team1, team2 = match.team1_players, match.team2_players
        if (player1_id in team1 and player2_id in team2) or (
            player1_id in team2 and player2_id in team1
        ):
            return True
    return False


def validate_round_robin_round(
    matches: Sequence[Match], participants: Sequence[Participant]
) -> ValidationResult:
    result = ValidationResult()
    check_no_double_booking(matches, result)
    roster = {p.user_id for p in checked_in(participants)}
    for match in matches:
        for player_id in match.player_ids:
            if player_id not in roster:
                result.error(f"Player {player_id} is not a checked-in participant")
    return result


@dataclass(frozen=True)
class RoundRobinGroup:
    name: str
    player_ids: List[str]
    rounds: List[GeneratedRound] = field(default_factory=list)


@dataclass(frozen=True)
class GroupStage:
    """Independent round robin groups feeding a knockout playoff."""

    tournament_id: str
    groups: List[RoundRobinGroup]
    top_per_group: int
    is_doubles: bool = False

    @property
    def playoff_size(self) -> int:
        return self.top_per_group * len(self.groups)

    def group_of(self, player_id: str) -> str:
        for group in self.groups:
            if player_id in group.player_ids:
                return group.name
        raise KeyError(player_id)


def snake_draft(player_ids: Sequence[str], num_groups: int) -> List[List[str]]:
    """Deal players into groups A, B, C, C, B, A, A, B... to balance seeds."""
    groups: List[List[str]] = [[] for _ in range(num_groups)]
    for index, player_id in enumerate(player_ids):
        cycle, offset = divmod(index, num_groups)
        target = offset if cycle % 2 == 0 else num_groups - 1 - offset
        groups[target].append(player_id)
    return groups


def generate_round_robin_with_groups(
    participants: Sequence[Participant],
    num_groups: int,
    top_per_group: int = 2,
    is_doubles: bool = False,
) -> GroupStage:
    """
    Split the roster into balanced groups and schedule each as a round robin.

    Args:
        participants: Roster in seeding order
        num_groups: Between 2 and 8 groups
        top_per_group: How many players per group reach the playoff
        is_doubles: Schedule each group as rotating-partner doubles

    Returns:
        GroupStage describing every group's schedule and the playoff size
    """
    if not MIN_GROUPS <= num_groups <= MAX_GROUPS:
        raise ValidationError(
            f"Group count must be between {MIN_GROUPS} and {MAX_GROUPS}, got {num_groups}",
            code="invalid_groups",
        )
    eligible = checked_in(participants)
    drafted = snake_draft([p.user_id for p in eligible], num_groups)
    smallest = min(len(group) for group in drafted)
    if smallest < minimum_players(is_doubles):
        raise ValidationError(
            f"{len(eligible)} players cannot fill {num_groups} groups", code="insufficient_players"
        )
    if top_per_group < 1 or top_per_group > smallest:
        raise ValidationError(
            f"Cannot take top {top_per_group} from groups of {smallest}", code="invalid_groups"
        )

    by_user = {p.user_id: p for p in eligible}
    groups = []
    for index, member_ids in enumerate(drafted):
        members = [by_user[uid] for uid in member_ids]
        groups.append(
            RoundRobinGroup(
                name=string.ascii_uppercase[index],
                player_ids=member_ids,
                rounds=generate_round_robin(members, is_doubles),
            )
        )

    tournament_id = eligible[0].tournament_id
    logger.info(
        "Generated %d round robin groups for %d players, playoff of %d",
        num_groups,
        len(eligible),
        top_per_group * num_groups,
    )
    return GroupStage(
        tournament_id=tournament_id,
        groups=groups,
        top_per_group=top_per_group,
        is_doubles=is_doubles,
    )


def group_rankings(stage: GroupStage, standings: Sequence[Standing]) -> Dict[str, List[str]]:
    """Order each group's players by the overall standings order."""
    order = {s.user_id: i for i, s in enumerate(standings)}
    return {
        group.name: sorted(
            group.player_ids,
            key=lambda pid: (order.get(pid, len(order)), group.player_ids.index(pid)),
        )
        for group in stage.groups
    }


def generate_group_playoffs(stage: GroupStage, standings: Sequence[Standing]) -> KnockoutBracket:
    """
    Seed group qualifiers into a knockout bracket.

    All group winners are seeded first (A1, B1, ...), then all runners-up, so
    players from the same group land in opposite halves of the draw.
    """
    rankings = group_rankings(stage, standings)
    seeds = [
        rankings[group.name][place]
        for place in range(stage.top_per_group)
        for group in stage.groups
    ]
    qualifiers = [
        Participant(id=pid, user_id=pid, tournament_id=stage.tournament_id) for pid in seeds
    ]
    return generate_knockout_bracket(
        qualifiers, seeding=SeedingMethod.RANKED, is_doubles=False
    )
