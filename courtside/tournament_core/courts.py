"""
Court assignment and usage tracking.

Generated matches are mapped onto active courts under one of three rotation
strategies. Assignment never modifies its inputs: each returned match is a
copy with ``court_id`` filled in.
"""

import logging
import random
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Union

from courtside.tournament_core.exceptions import ValidationError
from courtside.tournament_core.structure import Court, CourtRotationStrategy, Match
from courtside.tournament_core.validation import ValidationResult

logger = logging.getLogger(__name__)


def assign_courts(
    matches: Sequence[Match],
    courts: Sequence[Court],
    strategy: Union[CourtRotationStrategy, str] = CourtRotationStrategy.BALANCED,
    usage: Optional[Mapping[str, int]] = None,
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Assign a court to every match of a round.

    Args:
        matches: Matches of one round, without courts
        courts: All known courts; inactive ones are skipped
        strategy: ``balanced``, ``sequential`` or ``random``
        usage: Optional court id -> historical match count. With the balanced
            strategy the least used courts are handed out first.
        rng: Random source for the random strategy

    Returns:
        Copies of the matches with ``court_id`` set
    """
    try:
        strategy = CourtRotationStrategy(strategy)
    except ValueError:
        raise ValidationError(
            f"Unknown rotation strategy: {strategy}", code="unknown_strategy"
        )

    active = [c for c in courts if c.is_active]
    if not active:
        raise ValidationError("No active courts available for assignment", code="no_courts")
    if len(matches) > len(active):
        raise ValidationError(
            f"Not enough courts: {len(matches)} matches need courts but only "
            f"{len(active)} are active",
            code="insufficient_courts",
        )

    if strategy == CourtRotationStrategy.BALANCED:
        ordered = get_least_used_courts(active, usage) if usage else active
        assigned = [m.with_court(ordered[i % len(ordered)].id) for i, m in enumerate(matches)]
    elif strategy == CourtRotationStrategy.SEQUENTIAL:
        assigned = [m.with_court(active[i].id) for i, m in enumerate(matches)]
    else:
        shuffled = list(active)
        fisher_yates(shuffled, rng or random.Random())
        assigned = [m.with_court(shuffled[i].id) for i, m in enumerate(matches)]

    logger.debug(
        "Assigned %d matches to courts using %s rotation", len(assigned), strategy.value
    )
    return assigned


def fisher_yates(items: list, rng: random.Random) -> None:
    """Fisher-Yates shuffle in place."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def get_court_usage_stats(matches: Sequence[Match]) -> Dict[str, int]:
    """Count matches per court across the whole tournament history."""
    return dict(Counter(m.court_id for m in matches if m.court_id))


def get_least_used_courts(
    courts: Sequence[Court], usage: Optional[Mapping[str, int]] = None
) -> List[Court]:
    """Courts sorted by ascending usage; ties keep their original order."""
    usage = usage or {}
    return sorted(courts, key=lambda c: usage.get(c.id, 0))


def validate_court_assignments(
    matches: Sequence[Match], courts: Sequence[Court]
) -> ValidationResult:
    """Check that each match sits on a distinct, existing, active court."""
    result = ValidationResult()
    by_id = {c.id: c for c in courts}
    seen: Dict[str, int] = {}

    for index, match in enumerate(matches):
        if not match.court_id:
            result.error(f"Match {index + 1} has no court assigned")
            continue
        court = by_id.get(match.court_id)
        if court is None:
            result.error(f"Court {match.court_id} does not exist")
            continue
        if not court.is_active:
            result.error(f"Court {court.name} is not active")
        if match.court_id in seen:
            result.error(
                f"Court {court.name} is double-booked by matches "
                f"{seen[match.court_id] + 1} and {index + 1}"
            )
        else:
            seen[match.court_id] = index

    return result
