"""
Bracket progression: moving winners (and losers) through bracket lattices.

The progression engine never touches storage directly. It talks to a
``BracketStore``, a port the caller implements over its own persistence.
``InMemoryBracketStore`` implements the port for generated brackets and is
what the simulation helpers and tests use.

Routing rules:
- A winner moves to ``(round + 1, position // 2)`` of its bracket, taking
  team1 from an even position and team2 from an odd one.
- In double elimination, winners bracket losers drop into the losers bracket
  and the losers champion takes team2 of the grand final.
- In a compass draw, main bracket losers of the early rounds enter their
  consolation bracket.
- With a third place match, semifinal losers meet there.
- A team placed opposite BYE wins automatically and keeps advancing.

Failures come back as unsuccessful ``ProgressionResult`` values so the
caller can log and continue without aborting its own transaction.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple, Union

from courtside.tournament_core import compass, double_elimination
from courtside.tournament_core.compass import CompassDraw
from courtside.tournament_core.double_elimination import DoubleEliminationBracket
from courtside.tournament_core.exceptions import ProgressionError
from courtside.tournament_core.knockout import BracketRound, KnockoutBracket
from courtside.tournament_core.structure import (
    BracketPosition,
    BracketType,
    Match,
    MatchStatus,
    Slot,
    Team,
    TournamentFormat,
    is_bye,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressionResult:
    success: bool
    is_complete: bool = False
    message: str = ""
    next_match_id: Optional[str] = None
    next_bracket_position: Optional[BracketPosition] = None


class BracketStore(ABC):
    """Storage port mapping matches to bracket positions."""

    @abstractmethod
    def find_bracket_position(self, match_id: str) -> Optional[BracketPosition]:
        """The lattice position of a match, or None if it is not in a bracket."""

    @abstractmethod
    def last_round(self, bracket_type: BracketType, bracket_name: Optional[str] = None) -> int:
        """Highest round number of a bracket, 0 if the bracket does not exist."""

    @abstractmethod
    def get_match(self, match_id: str) -> Match:
        """Return a stored match; raise ProgressionError if unknown."""

    @abstractmethod
    def find_match(self, position: BracketPosition) -> Optional[Match]:
        """The match at a position, or None; never creates one."""

    @abstractmethod
    def get_or_create_match(self, position: BracketPosition) -> Match:
        """Return the match at a position, creating an empty one if needed."""

    @abstractmethod
    def assign_team(self, match_id: str, team: Slot, slot: int) -> Match:
        """Place a team (or BYE) into team slot 1 or 2 of a match."""

    @abstractmethod
    def save_match(self, match: Match) -> Match:
        """Persist a changed match, for example after scores were entered."""

    def mark_auto_won(self, match_id: str, winner_team: int) -> Match:
        """Record a win that was awarded without playing."""
        match = self.get_match(match_id)
        return self.save_match(
            replace(match, status=MatchStatus.COMPLETED, winner_team=winner_team, is_draw=False)
        )


def _position_key(position: BracketPosition) -> Tuple:
    return (position.bracket_type, position.bracket_name, position.round_number, position.position)


def match_id_for(position: BracketPosition) -> str:
    parts = [position.bracket_type.value]
    if position.bracket_name:
        parts.append(position.bracket_name)
    parts.append(f"r{position.round_number}")
    parts.append(f"p{position.position}")
    return "-".join(parts)


class InMemoryBracketStore(BracketStore):
    """A BracketStore kept in dictionaries, loaded from generated brackets."""

    def __init__(self, tournament_id: str):
        self.tournament_id = tournament_id
        self._matches: Dict[str, Match] = {}
        self._positions: Dict[str, BracketPosition] = {}
        self._by_position: Dict[Tuple, str] = {}
        self._last_rounds: Dict[Tuple, int] = {}

    @classmethod
    def from_knockout(cls, tournament_id: str, bracket: KnockoutBracket) -> "InMemoryBracketStore":
        store = cls(tournament_id)
        store.load_rounds(BracketType.MAIN, bracket.rounds)
        if bracket.third_place is not None:
            store.load_pairing(BracketType.THIRD_PLACE, 1, bracket.third_place)
        return store

    @classmethod
    def from_double_elimination(
        cls, tournament_id: str, bracket: DoubleEliminationBracket
    ) -> "InMemoryBracketStore":
        store = cls(tournament_id)
        store.load_rounds(BracketType.MAIN, bracket.winners.rounds)
        store.load_pairing(BracketType.MAIN, bracket.grand_final_round, bracket.grand_final)
        store.load_rounds(BracketType.LOSERS, bracket.losers)
        return store

    @classmethod
    def from_compass(cls, tournament_id: str, draw: CompassDraw) -> "InMemoryBracketStore":
        store = cls(tournament_id)
        store.load_rounds(BracketType.MAIN, draw.main.rounds)
        for name, bracket in draw.consolation.items():
            store.load_rounds(BracketType.CONSOLATION, bracket.rounds, bracket_name=name)
        return store

    def load_rounds(
        self,
        bracket_type: BracketType,
        rounds: Iterable[BracketRound],
        bracket_name: Optional[str] = None,
    ) -> None:
        for bracket_round in rounds:
            for pairing in bracket_round.pairings:
                self.load_pairing(bracket_type, bracket_round.round_number, pairing, bracket_name)

    def load_pairing(self, bracket_type, round_number, pairing, bracket_name=None) -> Match:
        position = BracketPosition(
            self.tournament_id, bracket_type, round_number, pairing.position, bracket_name
        )
        match = pairing.to_match(round_number)
        advancing = pairing.advancing
        if isinstance(advancing, Team):
            # The next round already holds this team; record the walkover.
            match = replace(
                match,
                status=MatchStatus.COMPLETED,
                winner_team=1 if advancing == pairing.team1 else 2,
            )
        elif is_bye(advancing):
            match = replace(match, status=MatchStatus.COMPLETED, winner_team=1)
        return self._put(position, match)

    def _put(self, position: BracketPosition, match: Match) -> Match:
        match_id = match_id_for(position)
        match = replace(match, id=match_id, round_number=position.round_number)
        self._matches[match_id] = match
        self._positions[match_id] = position
        self._by_position[_position_key(position)] = match_id
        bracket_key = (position.bracket_type, position.bracket_name)
        self._last_rounds[bracket_key] = max(
            self._last_rounds.get(bracket_key, 0), position.round_number
        )
        return match

    def find_bracket_position(self, match_id: str) -> Optional[BracketPosition]:
        return self._positions.get(match_id)

    def last_round(self, bracket_type: BracketType, bracket_name: Optional[str] = None) -> int:
        return self._last_rounds.get((bracket_type, bracket_name), 0)

    def get_match(self, match_id: str) -> Match:
        try:
            return self._matches[match_id]
        except KeyError:
            raise ProgressionError(f"Match {match_id} does not exist")

    def find_match(self, position: BracketPosition) -> Optional[Match]:
        match_id = self._by_position.get(_position_key(position))
        return self._matches.get(match_id) if match_id else None

    def get_or_create_match(self, position: BracketPosition) -> Match:
        match_id = self._by_position.get(_position_key(position))
        if match_id is not None:
            return self._matches[match_id]
        return self._put(position, Match(team1=None, team2=None))

    def assign_team(self, match_id: str, team: Slot, slot: int) -> Match:
        match = self.get_match(match_id)
        field_name = "team1" if slot == 1 else "team2"
        current = getattr(match, field_name)
        if current is not None and current != team:
            raise ProgressionError(
                f"{field_name} of match {match_id} is already taken by {current!r}"
            )
        return self.save_match(replace(match, **{field_name: team}))

    def save_match(self, match: Match) -> Match:
        if match.id not in self._matches:
            raise ProgressionError(f"Match {match.id} does not exist")
        self._matches[match.id] = match
        return match

    def matches(
        self, bracket_type: Optional[BracketType] = None, bracket_name: Optional[str] = None
    ) -> List[Match]:
        """Stored matches ordered by bracket, round and position."""
        selected = [
            (self._positions[mid], match)
            for mid, match in self._matches.items()
            if bracket_type is None
            or (
                self._positions[mid].bracket_type == bracket_type
                and self._positions[mid].bracket_name == bracket_name
            )
        ]
        selected.sort(
            key=lambda item: (
                item[0].bracket_type.value,
                item[0].bracket_name or "",
                item[0].round_number,
                item[0].position,
            )
        )
        return [match for _, match in selected]


class BracketProgressionEngine:
    """Advances results through brackets kept in a ``BracketStore``."""

    def __init__(self, store: BracketStore):
        self.store = store

    def advance_winner(
        self,
        match_id: str,
        winner_id: str,
        winner_partner_id: Optional[str],
        loser_id: Optional[str],
        loser_partner_id: Optional[str],
        tournament_type: Union[TournamentFormat, str],
    ) -> ProgressionResult:
        """
        Move the winner of a finished match on, routing the loser if needed.

        Args:
            match_id: The finished match
            winner_id: Winning player; ``winner_partner_id`` completes a doubles team
            loser_id: Losing player, or None when the winner had a walkover
            tournament_type: Format, which decides where losers go

        Returns:
            ProgressionResult; never raises for bracket lookup failures
        """
        winner = Team.pair(winner_id, winner_partner_id)
        loser = Team.pair(loser_id, loser_partner_id) if loser_id else None
        try:
            tournament_format = TournamentFormat(tournament_type)
        except ValueError:
            logger.warning("Cannot advance match %s: unknown format %r", match_id, tournament_type)
            return ProgressionResult(
                success=False, message=f"Unknown tournament format: {tournament_type}"
            )
        try:
            return self._advance(match_id, winner, loser, tournament_format)
        except ProgressionError as exc:
            logger.warning("Progression of match %s failed: %s", match_id, exc)
            return ProgressionResult(success=False, message=f"Progression error: {exc}")

    def advance_match(
        self, match: Match, tournament_type: Union[TournamentFormat, str]
    ) -> ProgressionResult:
        """Advance a finished match using its own winner and loser."""
        winner, loser = match.winner(), match.loser()
        if not isinstance(winner, Team):
            return ProgressionResult(
                success=False, message=f"Match {match.id} has no winner to advance"
            )
        loser_team = loser if isinstance(loser, Team) else None
        return self.advance_winner(
            match.id,
            winner.player1_id,
            winner.player2_id,
            loser_team.player1_id if loser_team else None,
            loser_team.player2_id if loser_team else None,
            tournament_type,
        )

    def _advance(
        self,
        match_id: str,
        winner: Slot,
        loser: Optional[Slot],
        tournament_type: TournamentFormat,
    ) -> ProgressionResult:
        position = self.store.find_bracket_position(match_id)
        if position is None:
            return ProgressionResult(success=False, message="Match not found in bracket structure")

        if self._is_terminal(position):
            if position.bracket_type == BracketType.MAIN:
                return ProgressionResult(
                    success=True, is_complete=True, message="Tournament complete - winner determined"
                )
            return ProgressionResult(
                success=True, message=f"{self._bracket_label(position)} complete"
            )

        if isinstance(loser, Team):
            self._route_loser(position, loser, tournament_type)

        target = self._winner_target(position)
        if target is None:
            return ProgressionResult(
                success=False, message="Unable to determine next bracket position"
            )
        next_position, slot = target
        next_match = self.store.get_or_create_match(next_position)
        self.store.assign_team(next_match.id, winner, slot)

        cascaded = self._resolve_byes(next_match.id, tournament_type)
        if cascaded is not None:
            return cascaded
        return ProgressionResult(
            success=True,
            message="Winner advanced successfully",
            next_match_id=next_match.id,
            next_bracket_position=next_position,
        )

    def _bracket_label(self, position: BracketPosition) -> str:
        if position.bracket_name:
            return f"{compass.direction_label(position.bracket_name)} bracket"
        return f"{position.bracket_type.value.replace('_', ' ').capitalize()} bracket"

    def _is_terminal(self, position: BracketPosition) -> bool:
        if position.bracket_type == BracketType.LOSERS:
            return False
        last = self.store.last_round(position.bracket_type, position.bracket_name)
        return position.round_number >= last

    def _winner_target(self, position: BracketPosition) -> Optional[Tuple[BracketPosition, int]]:
        if position.bracket_type == BracketType.LOSERS:
            return double_elimination.route_losers_winner(
                position,
                self.store.last_round(BracketType.LOSERS),
                self.store.last_round(BracketType.MAIN),
            )
        if self._is_terminal(position):
            return None
        return position.advance(), position.slot

    def _route_loser(
        self, position: BracketPosition, loser: Team, tournament_type: TournamentFormat
    ) -> None:
        if position.bracket_type != BracketType.MAIN:
            return

        target = None
        if tournament_type == TournamentFormat.KNOCKOUT_DOUBLE:
            target = double_elimination.route_winners_loser(position)
        elif tournament_type == TournamentFormat.COMPASS:
            bracket_size = 2 ** self.store.last_round(BracketType.MAIN)
            routed = compass.route_loser_to_consolation(
                position.round_number, position.position, bracket_size
            )
            if routed is not None:
                target = compass.consolation_entry(position.tournament_id, *routed)
        elif self.store.last_round(BracketType.THIRD_PLACE):
            if position.round_number == self.store.last_round(BracketType.MAIN) - 1:
                target = (
                    BracketPosition(position.tournament_id, BracketType.THIRD_PLACE, 1, 0),
                    position.slot,
                )

        if target is None:
            logger.debug("Loser %s of %s is eliminated", loser.players, position)
            return
        loser_position, slot = target
        loser_match = self.store.get_or_create_match(loser_position)
        self.store.assign_team(loser_match.id, loser, slot)
        self._resolve_byes(loser_match.id, tournament_type)

    def _resolve_byes(
        self, match_id: str, tournament_type: TournamentFormat
    ) -> Optional[ProgressionResult]:
        """Settle a match whose opponent slot is BYE. Returns None if it must be played."""
        match = self.store.get_match(match_id)
        if match.is_finished:
            return None
        team1, team2 = match.team1, match.team2

        if is_bye(team1) and is_bye(team2):
            self.store.mark_auto_won(match_id, 1)
            position = self.store.find_bracket_position(match_id)
            target = self._winner_target(position)
            if target is None:
                return None
            next_position, slot = target
            next_match = self.store.get_or_create_match(next_position)
            self.store.assign_team(next_match.id, team1, slot)
            logger.debug("Empty match %s passes a bye to %s", match_id, next_match.id)
            return self._resolve_byes(next_match.id, tournament_type)

        for winner_team, team, opponent in ((1, team1, team2), (2, team2, team1)):
            if isinstance(team, Team) and is_bye(opponent):
                self.store.mark_auto_won(match_id, winner_team)
                logger.debug("%s advances from match %s on a bye", team.players, match_id)
                return self._advance(match_id, team, None, tournament_type)
        return None

    def is_progression_complete(self, tournament_id: str) -> bool:
        """True once the final of the main bracket has a winner."""
        last = self.store.last_round(BracketType.MAIN)
        if not last:
            return False
        final = self.store.find_match(
            BracketPosition(tournament_id, BracketType.MAIN, last, 0)
        )
        return final is not None and final.is_finished and final.winner_team is not None

    def validate_progression(self, matches: Iterable[Match]) -> List[str]:
        """Report finished matches whose winner never reached the next match."""
        errors = []
        for match in matches:
            if not match.is_finished or not isinstance(match.winner(), Team):
                continue
            position = self.store.find_bracket_position(match.id)
            if position is None or position.bracket_type == BracketType.LOSERS:
                continue
            if self._is_terminal(position):
                continue
            next_position = position.advance()
            next_match = self.store.find_match(next_position)
            if next_match is None:
                errors.append(
                    f"Winner of {match.id} has no match at {match_id_for(next_position)}"
                )
                continue
            slot_team = next_match.team1 if position.slot == 1 else next_match.team2
            if slot_team != match.winner():
                errors.append(
                    f"Winner of {match.id} has not advanced to {next_match.id}"
                )
        return errors
