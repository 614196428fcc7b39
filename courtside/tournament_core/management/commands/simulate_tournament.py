"""
Management command to simulate a tournament end to end without a database:
- Faker-named roster and courts
- Round-based formats play a configurable number of rounds with random scores
- Bracket formats are played through the progression engine
- Pairings, courts and standings are printed as the tournament runs
"""

import random
from dataclasses import replace

from django.core.management.base import BaseCommand, CommandError
from faker import Faker

from courtside.tournament_core import monrad
from courtside.tournament_core.engine import TournamentEngine
from courtside.tournament_core.exceptions import StructuralInconsistency, ValidationError
from courtside.tournament_core.progression import InMemoryBracketStore
from courtside.tournament_core.scoring import FormatSettings, TournamentConfig
from courtside.tournament_core.simulation import (
    higher_seed_wins,
    random_winner,
    simulate_bracket,
)
from courtside.tournament_core.structure import Court, Participant, Team, TournamentFormat

DOUBLES_FORMATS = (TournamentFormat.AMERICANO, TournamentFormat.MEXICANO)
BRACKET_FORMATS = (
    TournamentFormat.KNOCKOUT_SINGLE,
    TournamentFormat.KNOCKOUT_DOUBLE,
    TournamentFormat.COMPASS,
)


class Command(BaseCommand):
    help = "Simulate a tournament with random results and print pairings and standings"

    def add_arguments(self, parser):
        parser.add_argument(
            "--format",
            choices=[f.value for f in TournamentFormat],
            default=TournamentFormat.AMERICANO.value,
            help="Tournament format (default: americano)",
        )
        parser.add_argument(
            "--players",
            type=int,
            default=8,
            help="Number of players (default: 8)",
        )
        parser.add_argument(
            "--courts",
            type=int,
            default=None,
            help="Number of courts (default: enough for every match of a round)",
        )
        parser.add_argument(
            "--rounds",
            type=int,
            default=None,
            help="Rounds to play for round-based formats (default: recommended for the field)",
        )
        parser.add_argument(
            "--seed",
            type=int,
            default=None,
            help="Random seed for reproducible runs",
        )
        parser.add_argument(
            "--upsets",
            action="store_true",
            help="Pick bracket winners at random instead of always favouring the higher seed",
        )

    def handle(self, *args, **options):
        fake = Faker()
        if options["seed"] is not None:
            Faker.seed(options["seed"])
        self.rng = random.Random(options["seed"])

        tournament_format = TournamentFormat(options["format"])
        players_count = options["players"]
        if players_count < 2:
            raise CommandError("At least 2 players are needed")

        settings = FormatSettings(is_doubles=tournament_format in DOUBLES_FORMATS)
        self.engine = TournamentEngine(
            TournamentConfig(format=tournament_format, format_settings=settings), rng=self.rng
        )
        self.tournament_id = f"sim-{tournament_format.value}"
        self.names = {}
        participants = []
        for index in range(1, players_count + 1):
            user_id = f"u{index}"
            self.names[user_id] = fake.unique.name()
            participants.append(
                Participant(
                    id=f"p{index}",
                    user_id=user_id,
                    tournament_id=self.tournament_id,
                    name=self.names[user_id],
                )
            )
        courts_count = options["courts"] or max(1, players_count // 2)
        courts = [
            Court(id=f"c{index}", name=f"{fake.unique.last_name()} Court")
            for index in range(1, courts_count + 1)
        ]
        self.court_names = {court.id: court.name for court in courts}

        self.stdout.write(
            self.style.WARNING(f"Simulating {tournament_format.value.replace('_', ' ')}...")
        )
        self.stdout.write(f"  - {players_count} players")
        self.stdout.write(f"  - {courts_count} courts")

        try:
            if tournament_format in BRACKET_FORMATS:
                self._simulate_bracket(tournament_format, participants, options["upsets"])
            elif tournament_format == TournamentFormat.MONRAD:
                self._simulate_monrad(participants, courts, options["upsets"])
            else:
                rounds = options["rounds"] or self.engine.calculate_optimal_rounds(players_count)
                matches = self._play_rounds(tournament_format, participants, courts, rounds)
                self._print_standings(self.engine.update_standings(self.tournament_id, matches))
        except ValidationError as exc:
            raise CommandError(exc.message)
        except StructuralInconsistency as exc:
            raise CommandError(str(exc))

        self.stdout.write(self.style.SUCCESS("✓ Simulation complete"))

    def _team_name(self, team) -> str:
        if not isinstance(team, Team):
            return "BYE"
        return " / ".join(self.names.get(pid, pid) for pid in team.players)

    def _random_score(self, match):
        winner_score, loser_score = 6, self.rng.randint(0, 4)
        if self.rng.random() < 0.5:
            return match.complete(winner_score, loser_score)
        return match.complete(loser_score, winner_score)

    def _play_rounds(self, tournament_format, participants, courts, rounds, matches=None):
        matches = list(matches or [])
        for round_number in range(1, rounds + 1):
            standings = self.engine.update_standings(self.tournament_id, matches)
            generated = self.engine.generate_next_round(
                tournament_format,
                participants,
                round_number,
                previous_matches=matches,
                standings=standings,
                courts=courts,
            )
            self.stdout.write(f"Round {round_number}")
            for index, match in enumerate(generated, start=1):
                played = self._random_score(replace(match, id=f"r{round_number}-m{index}"))
                matches.append(played)
                self.stdout.write(
                    f"  {self.court_names.get(played.court_id, '-')}: "
                    f"{self._team_name(played.team1)} {played.team1_score}-"
                    f"{played.team2_score} {self._team_name(played.team2)}"
                )
        return matches

    def _print_standings(self, standings):
        self.stdout.write("Standings")
        for standing in standings:
            self.stdout.write(
                f"  {standing.rank:>2}. {self.names.get(standing.user_id, standing.user_id):<30} "
                f"{standing.points:>3} pts  {standing.matches_won}-{standing.matches_drawn}-"
                f"{standing.matches_lost}  {standing.games_diff:+d}"
            )

    def _simulate_bracket(self, tournament_format, participants, upsets):
        if tournament_format == TournamentFormat.KNOCKOUT_DOUBLE:
            bracket = self.engine.generate_double_elimination_bracket(participants)
            store = InMemoryBracketStore.from_double_elimination(self.tournament_id, bracket)
        elif tournament_format == TournamentFormat.COMPASS:
            draw = self.engine.generate_compass_draw(participants)
            store = InMemoryBracketStore.from_compass(self.tournament_id, draw)
        else:
            bracket = self.engine.generate_knockout_bracket(participants)
            store = InMemoryBracketStore.from_knockout(self.tournament_id, bracket)
        self._run_store(store, tournament_format, participants, upsets)

    def _run_store(self, store, tournament_format, participants, upsets):
        seeds = {p.user_id: index for index, p in enumerate(participants, start=1)}
        policy = random_winner(self.rng) if upsets else higher_seed_wins(seeds)
        result = simulate_bracket(store, tournament_format, policy)
        for match in result.played:
            self.stdout.write(
                f"  {match.id}: {self._team_name(match.winner())} def. "
                f"{self._team_name(match.loser())}"
            )
        if result.champion is None:
            raise CommandError("The bracket finished without a champion")
        self.stdout.write(self.style.SUCCESS(f"Champion: {self._team_name(result.champion)}"))

    def _simulate_monrad(self, participants, courts, upsets):
        config = self.engine.monrad_config(len(participants))
        matches = self._play_rounds(
            TournamentFormat.MONRAD, participants, courts, config.swiss_rounds
        )
        standings = self.engine.update_standings(self.tournament_id, matches)
        self._print_standings(standings)
        bracket = monrad.generate_monrad_knockout(config, standings)
        qualified = [
            p
            for standing in monrad.get_top_qualifiers(standings, config.final_bracket_size)
            for p in participants
            if p.user_id == standing.user_id
        ]
        self.stdout.write(f"Knockout of {config.final_bracket_size}")
        store = InMemoryBracketStore.from_knockout(self.tournament_id, bracket)
        self._run_store(store, TournamentFormat.KNOCKOUT_SINGLE, qualified, upsets)
