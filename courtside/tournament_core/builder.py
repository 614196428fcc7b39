"""
Builder for creating match histories with a fluent API.

This module provides a builder for writing tournament scenarios as readable
chains of rounds and results, without hand-constructing Match and Team
values. Players are referred to by id; a pair of ids is a doubles team.
"""

from typing import List, Optional, Sequence, Tuple, Union

from courtside.tournament_core.scoring import STANDARD_CONFIG, TournamentConfig
from courtside.tournament_core.standings import calculate_standings
from courtside.tournament_core.structure import (
    BYE,
    Court,
    Match,
    MatchStatus,
    Participant,
    ParticipantStatus,
    Standing,
    Team,
)

Side = Union[str, Tuple[str, str]]


def _team(side: Side) -> Team:
    if isinstance(side, tuple):
        return Team(*side)
    return Team.single(side)


class MatchListBuilder:
    """Builder for match lists, participants and courts."""

    def __init__(self, tournament_id: str = "t1"):
        self.tournament_id = tournament_id
        self._matches: List[Match] = []
        self._participants: List[Participant] = []
        self._courts: List[Court] = []
        self._round_number = 1

    def player(
        self,
        user_id: str,
        name: Optional[str] = None,
        partner: Optional[str] = None,
        status: ParticipantStatus = ParticipantStatus.CHECKED_IN,
    ) -> "MatchListBuilder":
        self._participants.append(
            Participant(
                id=f"p-{user_id}",
                user_id=user_id,
                tournament_id=self.tournament_id,
                status=status,
                name=name,
                partner_id=partner,
            )
        )
        return self

    def players(self, *user_ids: str) -> "MatchListBuilder":
        for user_id in user_ids:
            self.player(user_id)
        return self

    def court(self, court_id: str, name: Optional[str] = None, **kwargs) -> "MatchListBuilder":
        self._courts.append(Court(id=court_id, name=name or court_id, **kwargs))
        return self

    def round(self, number: int) -> "MatchListBuilder":
        """Start adding matches to the given round."""
        self._round_number = number
        return self

    def _add(self, match: Match) -> "MatchListBuilder":
        self._matches.append(match)
        return self

    def match(
        self, side1: Side, side2: Side, score1: int, score2: int, court: Optional[str] = None
    ) -> "MatchListBuilder":
        """Add a completed match."""
        match = Match(
            team1=_team(side1),
            team2=_team(side2),
            id=f"m{len(self._matches) + 1}",
            round_number=self._round_number,
            court_id=court,
        )
        return self._add(match.complete(score1, score2))

    def pending(self, side1: Side, side2: Side, court: Optional[str] = None) -> "MatchListBuilder":
        return self._add(
            Match(
                team1=_team(side1),
                team2=_team(side2),
                id=f"m{len(self._matches) + 1}",
                round_number=self._round_number,
                court_id=court,
            )
        )

    def forfeit(
        self,
        side1: Side,
        side2: Side,
        winner_team: int,
        scores: Optional[Tuple[int, int]] = None,
    ) -> "MatchListBuilder":
        """Add a forfeited match, optionally with the score it was awarded at."""
        match = Match(
            team1=_team(side1),
            team2=_team(side2),
            id=f"m{len(self._matches) + 1}",
            round_number=self._round_number,
        )
        if scores is not None:
            match = match.complete(*scores)
        return self._add(match.forfeit(winner_team))

    def bye(self, side: Side) -> "MatchListBuilder":
        """Add a walkover against BYE."""
        return self._add(
            Match(
                team1=_team(side),
                team2=BYE,
                id=f"m{len(self._matches) + 1}",
                round_number=self._round_number,
                status=MatchStatus.COMPLETED,
                winner_team=1,
            )
        )

    def build(self) -> List[Match]:
        return list(self._matches)

    def participants(self) -> List[Participant]:
        return list(self._participants)

    def courts(self) -> List[Court]:
        return list(self._courts)

    def standings(self, config: TournamentConfig = STANDARD_CONFIG) -> List[Standing]:
        return calculate_standings(self.tournament_id, self._matches, config)


def participants_for(user_ids: Sequence[str], tournament_id: str = "t1") -> List[Participant]:
    """Checked-in participants for the given user ids, in order."""
    return MatchListBuilder(tournament_id).players(*user_ids).participants()
