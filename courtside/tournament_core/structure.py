"""
Domain types shared by every part of the tournament engine.

This module provides the vocabulary the generators, standings calculator and
bracket progression engine speak:
- Participants and courts (read-only snapshots owned by the caller)
- Teams and the BYE sentinel that fill match slots
- Matches, rounds and standings
- Bracket positions, the lattice coordinates used for progression
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union


class TournamentFormat(Enum):
    """Competitive formats the engine can schedule."""

    AMERICANO = "americano"
    MEXICANO = "mexicano"
    ROUND_ROBIN = "round_robin"
    KNOCKOUT_SINGLE = "knockout_single"
    KNOCKOUT_DOUBLE = "knockout_double"
    SWISS = "swiss"
    MONRAD = "monrad"
    COMPASS = "compass"


class ParticipantStatus(Enum):
    REGISTERED = "registered"
    CHECKED_IN = "checked_in"
    NO_SHOW = "no_show"
    WITHDRAWN = "withdrawn"


class MatchStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FORFEITED = "forfeited"


class RoundStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CourtStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BracketType(Enum):
    MAIN = "main"
    LOSERS = "losers"
    CONSOLATION = "consolation"
    THIRD_PLACE = "third_place"


class SeedingMethod(Enum):
    RANKED = "ranked"
    RANDOM = "random"
    MANUAL = "manual"


class PairingMethod(Enum):
    """Swiss pairing methods. ACCELERATED currently pairs like SLIDE."""

    SLIDE = "slide"
    FOLD = "fold"
    ACCELERATED = "accelerated"


class CourtRotationStrategy(Enum):
    BALANCED = "balanced"
    SEQUENTIAL = "sequential"
    RANDOM = "random"


class Bye:
    """The empty bracket slot. Its opponent advances without playing.

    There is exactly one instance, exported as ``BYE``.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "BYE"

    def __reduce__(self):
        return (Bye, ())


BYE = Bye()


@dataclass(frozen=True)
class Team:
    """One side of a match.

    A singles team stores the same player id in both slots so every match
    keeps the same four-slot shape.
    """

    player1_id: str
    player2_id: str

    @classmethod
    def single(cls, player_id: str) -> "Team":
        return cls(player_id, player_id)

    @classmethod
    def pair(cls, player_id: str, partner_id: Optional[str] = None) -> "Team":
        """Build a doubles team, or a singles team when there is no partner."""
        return cls(player_id, partner_id or player_id)

    @property
    def is_singles(self) -> bool:
        return self.player1_id == self.player2_id

    @property
    def players(self) -> Tuple[str, ...]:
        """Distinct player ids on this team, in slot order."""
        if self.is_singles:
            return (self.player1_id,)
        return (self.player1_id, self.player2_id)

    def __contains__(self, player_id) -> bool:
        return player_id in (self.player1_id, self.player2_id)


Slot = Union[Team, Bye]


def is_bye(slot) -> bool:
    return isinstance(slot, Bye)


def slot_players(slot: Optional[Slot]) -> Tuple[str, ...]:
    """Player ids occupying a slot; empty for BYE or an undecided slot."""
    if isinstance(slot, Team):
        return slot.players
    return ()


@dataclass(frozen=True)
class Participant:
    """A registered entrant. ``partner_id`` forms a pre-arranged doubles team."""

    id: str
    user_id: str
    tournament_id: str
    status: ParticipantStatus = ParticipantStatus.CHECKED_IN
    name: Optional[str] = None
    partner_id: Optional[str] = None

    @property
    def is_checked_in(self) -> bool:
        return self.status == ParticipantStatus.CHECKED_IN

    @property
    def team(self) -> Team:
        return Team.pair(self.user_id, self.partner_id)


def checked_in(participants: Iterable[Participant]) -> List[Participant]:
    """Return the participants eligible for scheduling, preserving order."""
    return [p for p in participants if p.is_checked_in]


@dataclass(frozen=True)
class Court:
    id: str
    name: str
    status: CourtStatus = CourtStatus.ACTIVE
    org_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == CourtStatus.ACTIVE


@dataclass(frozen=True)
class Round:
    id: str
    tournament_id: str
    round_number: int
    status: RoundStatus = RoundStatus.PENDING


@dataclass(frozen=True)
class Match:
    """A match between two slots.

    ``None`` in a team slot means the occupant is not decided yet (a later
    bracket round). Generators leave ``round_id`` and ``court_id`` unset for
    the caller or the facade to fill in.
    """

    team1: Optional[Slot]
    team2: Optional[Slot]
    id: Optional[str] = None
    round_id: Optional[str] = None
    court_id: Optional[str] = None
    round_number: Optional[int] = None
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None
    status: MatchStatus = MatchStatus.PENDING
    winner_team: Optional[int] = None
    is_draw: bool = False

    def _slot_player(self, slot: Optional[Slot], index: int) -> Optional[str]:
        if not isinstance(slot, Team):
            return None
        return slot.player1_id if index == 1 else slot.player2_id

    @property
    def team1_player1_id(self) -> Optional[str]:
        return self._slot_player(self.team1, 1)

    @property
    def team1_player2_id(self) -> Optional[str]:
        return self._slot_player(self.team1, 2)

    @property
    def team2_player1_id(self) -> Optional[str]:
        return self._slot_player(self.team2, 1)

    @property
    def team2_player2_id(self) -> Optional[str]:
        return self._slot_player(self.team2, 2)

    @property
    def team1_players(self) -> Tuple[str, ...]:
        return slot_players(self.team1)

    @property
    def team2_players(self) -> Tuple[str, ...]:
        return slot_players(self.team2)

    @property
    def player_ids(self) -> Tuple[str, ...]:
        """Every distinct player in the match."""
        return self.team1_players + self.team2_players

    @property
    def has_bye(self) -> bool:
        return is_bye(self.team1) or is_bye(self.team2)

    @property
    def has_scores(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    @property
    def is_finished(self) -> bool:
        """Forfeits count as finished matches with a winner."""
        return self.status in (MatchStatus.COMPLETED, MatchStatus.FORFEITED)

    def complete(self, team1_score: int, team2_score: int) -> "Match":
        """Return a completed copy of this match with the given scores."""
        if team1_score == team2_score:
            winner, draw = None, True
        else:
            winner, draw = (1 if team1_score > team2_score else 2), False
        return replace(
            self,
            team1_score=team1_score,
            team2_score=team2_score,
            status=MatchStatus.COMPLETED,
            winner_team=winner,
            is_draw=draw,
        )

    def forfeit(self, winner_team: int) -> "Match":
        """Return a forfeited copy awarding the match to ``winner_team``."""
        if winner_team not in (1, 2):
            raise ValueError(f"winner_team must be 1 or 2, got {winner_team}")
        return replace(
            self, status=MatchStatus.FORFEITED, winner_team=winner_team, is_draw=False
        )

    def winner(self) -> Optional[Slot]:
        if self.winner_team == 1:
            return self.team1
        if self.winner_team == 2:
            return self.team2
        return None

    def loser(self) -> Optional[Slot]:
        if self.winner_team == 1:
            return self.team2
        if self.winner_team == 2:
            return self.team1
        return None

    def with_court(self, court_id: str) -> "Match":
        return replace(self, court_id=court_id)


@dataclass(frozen=True)
class Standing:
    """Per-player accumulator. ``points`` and ``rank`` are derived values."""

    tournament_id: str
    user_id: str
    matches_played: int = 0
    matches_won: int = 0
    matches_drawn: int = 0
    matches_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    points: int = 0
    rank: Optional[int] = None

    @property
    def games_diff(self) -> int:
        return self.games_won - self.games_lost


@dataclass(frozen=True)
class BracketPosition:
    """A lattice coordinate inside one bracket of a tournament.

    ``bracket_name`` distinguishes the named consolation brackets of a compass
    draw ("east", "north_west", ...); other brackets leave it unset.
    """

    tournament_id: str
    bracket_type: BracketType
    round_number: int
    position: int
    bracket_name: Optional[str] = None

    @property
    def slot(self) -> int:
        """The team slot (1 or 2) a winner from here takes in the next round."""
        return 1 if self.position % 2 == 0 else 2

    def advance(self) -> "BracketPosition":
        """The standard knockout successor: (round + 1, position // 2)."""
        return replace(
            self, round_number=self.round_number + 1, position=self.position // 2
        )


@dataclass(frozen=True)
class GeneratedRound:
    """One round of a precomputed schedule and the players sitting it out."""

    round_number: int
    matches: List[Match] = field(default_factory=list)
    byes: List[str] = field(default_factory=list)
