"""
Shared precondition checks and structural validators.

Generators call the ``require_*`` helpers before doing any work; they raise
ValidationError. Validators run on generated output and return a
ValidationResult so the facade can decide whether to raise.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.structure import Court, Match, Participant, ParticipantStatus

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def warn(self, message: str) -> None:
        self.warnings.append(message)


def minimum_players(is_doubles: bool) -> int:
    return 4 if is_doubles else 2


def require_players(
    player_ids: Sequence[str], format_name: str, is_doubles: bool = True
) -> None:
    """Raise ValidationError unless the player count is even and large enough."""
    count = len(player_ids)
    needed = minimum_players(is_doubles)
    if count < needed:
        kind = "doubles" if is_doubles else "singles"
        raise ValidationError(
            f"{format_name} requires at least {needed} players for {kind}, got {count}",
            code="insufficient_players",
        )
    if count % 2 != 0:
        raise ValidationError(
            f"{format_name} requires an even number of players, got {count}",
            code="odd_players",
        )


def require_unique(player_ids: Sequence[str], context: str) -> None:
    duplicates = sorted(pid for pid, n in Counter(player_ids).items() if n > 1)
    if duplicates:
        raise ValidationError(
            f"{context} lists players more than once: {', '.join(duplicates)}",
            code="duplicate_players",
        )


def player_appearances(matches: Iterable[Match]) -> Counter:
    """Count how many matches each player appears in."""
    counts: Counter = Counter()
    for match in matches:
        counts.update(match.player_ids)
    return counts


def check_no_double_booking(matches: Iterable[Match], result: ValidationResult) -> None:
    for player_id, count in sorted(player_appearances(matches).items()):
        if count > 1:
            result.error(f"Player {player_id} appears {count} times in the same round")


def validate_round(matches: Sequence[Match]) -> ValidationResult:
    """Generic round check: nobody is scheduled twice."""
    result = ValidationResult()
    check_no_double_booking(matches, result)
    return result


def validate_tournament_start(
    participants: Sequence[Participant], courts: Sequence[Court]
) -> ValidationResult:
    """Check a roster and court list before the first round is generated."""
    result = ValidationResult()
    checked_in_count = sum(1 for p in participants if p.is_checked_in)
    active_courts = sum(1 for c in courts if c.is_active)

    if checked_in_count < 4:
        result.error(f"Need at least 4 checked-in players, found {checked_in_count}")
    if checked_in_count % 2 != 0:
        result.error(f"Need an even number of checked-in players, found {checked_in_count}")
    if active_courts == 0:
        result.error("No active courts available")

    simultaneous = checked_in_count // 4
    if active_courts and active_courts < simultaneous:
        result.warn(
            f"Only {active_courts} active courts for {simultaneous} simultaneous matches; "
            "some matches will have to wait"
        )

    registered = sum(1 for p in participants if p.status == ParticipantStatus.REGISTERED)
    if registered:
        result.warn(f"{registered} participants registered but not checked in")

    if not result.valid:
        logger.info("Tournament start rejected: %s", "; ".join(result.errors))
    return result
