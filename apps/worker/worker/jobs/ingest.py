"""
Demo Data Ingestion Job
=======================

Loads/refreshes demo seed data (idempotent).
Run with: python -m worker.cli ingest:demo

Three seasons are created ending with the one containing today. The two
past seasons are fully played; the current season's fixtures straddle
today so some are finished and some still accept predictions. Ledger rows
go through the affiliation services, so the demo exercises the same
close-and-append path as the admin API, including one mid-season transfer
and a team that changed grounds twice.
"""

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models import (
    Competition,
    CompetitionSeason,
    CompetitionSeasonStatus,
    CompetitionType,
    Follow,
    Match,
    MatchEvent,
    MatchEventType,
    MatchLineup,
    MatchStatus,
    MembershipType,
    Player,
    PlayerSeasonStat,
    PlayerTeamHistory,
    Prediction,
    Season,
    Standing,
    Team,
    TeamSeason,
    TeamVenueHistory,
    TransferType,
    Venue,
)
from app.services.affiliations import record_transfer, record_venue_move
from app.services.seasons import create_season
from app.services.standings import rebuild_player_stats, rebuild_standings
from worker.config import settings
from worker.database import run_job

logger = logging.getLogger(__name__)
console = Console()


# =============================================================================
# DEMO DATA DEFINITIONS
# =============================================================================

COMPETITION_DATA = {
    "name": "Premier League",
    "country": "England",
    "competition_type": CompetitionType.LEAGUE,
    "founded_year": 1992,
}

TEAMS_DATA = [
    {"name": "Manchester City", "short_name": "MCI", "city": "Manchester", "founded_year": 1880, "primary_color": "#6CABDD"},
    {"name": "Arsenal", "short_name": "ARS", "city": "London", "founded_year": 1886, "primary_color": "#EF0107"},
    {"name": "Liverpool", "short_name": "LIV", "city": "Liverpool", "founded_year": 1892, "primary_color": "#C8102E"},
    {"name": "Chelsea", "short_name": "CHE", "city": "London", "founded_year": 1905, "primary_color": "#034694"},
    {"name": "Tottenham Hotspur", "short_name": "TOT", "city": "London", "founded_year": 1882, "primary_color": "#132257"},
    {"name": "Newcastle United", "short_name": "NEW", "city": "Newcastle", "founded_year": 1892, "primary_color": "#241F20"},
]

NATIONAL_TEAMS_DATA = [
    {"name": "England", "short_name": "ENG", "country": "England"},
    {"name": "Norway", "short_name": "NOR", "country": "Norway"},
    {"name": "Egypt", "short_name": "EGY", "country": "Egypt"},
]

# (team index, venue name, city, capacity, opened, moved in)
VENUES_DATA = [
    (0, "Etihad Stadium", "Manchester", 53400, 2003, "2003-08-10"),
    (1, "Emirates Stadium", "London", 60704, 2006, "2006-07-22"),
    (2, "Anfield", "Liverpool", 61276, 1884, "1892-09-01"),
    (3, "Stamford Bridge", "London", 40343, 1877, "1905-09-02"),
    (4, "White Hart Lane", "London", 36284, 1899, "1899-09-04"),
    (4, "Wembley Stadium", "London", 90000, 2007, "2017-08-01"),
    (4, "Tottenham Hotspur Stadium", "London", 62850, 2019, "2019-04-03"),
    (5, "St James' Park", "Newcastle", 52305, 1880, "1892-09-03"),
]

PLAYERS_DATA = [
    {"name": "Erling Haaland", "dob": "2000-07-21", "nationality": "Norway", "position": "ST", "team_idx": 0, "shirt": 9, "national": "Norway"},
    {"name": "Phil Foden", "dob": "2000-05-28", "nationality": "England", "position": "LW", "team_idx": 0, "shirt": 47, "national": "England"},
    {"name": "Rodri", "full_name": "Rodrigo Hernandez", "dob": "1996-06-22", "nationality": "Spain", "position": "CM", "team_idx": 0, "shirt": 16},
    {"name": "Ederson", "full_name": "Ederson Moraes", "dob": "1993-08-17", "nationality": "Brazil", "position": "GK", "team_idx": 0, "shirt": 31},
    {"name": "Bukayo Saka", "dob": "2001-09-05", "nationality": "England", "position": "RW", "team_idx": 1, "shirt": 7, "national": "England"},
    {"name": "Martin Odegaard", "dob": "1998-12-17", "nationality": "Norway", "position": "CAM", "team_idx": 1, "shirt": 8, "national": "Norway"},
    {"name": "Declan Rice", "dob": "1999-01-14", "nationality": "England", "position": "CM", "team_idx": 1, "shirt": 41},
    {"name": "David Raya", "dob": "1995-09-15", "nationality": "Spain", "position": "GK", "team_idx": 1, "shirt": 22},
    {"name": "Mohamed Salah", "dob": "1992-06-15", "nationality": "Egypt", "position": "RW", "team_idx": 2, "shirt": 11, "national": "Egypt"},
    {"name": "Virgil van Dijk", "dob": "1991-07-08", "nationality": "Netherlands", "position": "CB", "team_idx": 2, "shirt": 4},
    {"name": "Alisson", "full_name": "Alisson Becker", "dob": "1992-10-02", "nationality": "Brazil", "position": "GK", "team_idx": 2, "shirt": 1},
    {"name": "Cole Palmer", "dob": "2002-05-06", "nationality": "England", "position": "CAM", "team_idx": 3, "shirt": 20},
    {"name": "Nicolas Jackson", "dob": "2001-06-20", "nationality": "Senegal", "position": "ST", "team_idx": 3, "shirt": 15},
    {"name": "Conor Gallagher", "dob": "2000-02-06", "nationality": "England", "position": "CM", "team_idx": 3, "shirt": 23},
    {"name": "Robert Sanchez", "dob": "1997-11-18", "nationality": "Spain", "position": "GK", "team_idx": 3, "shirt": 1},
    {"name": "Son Heung-min", "dob": "1992-07-08", "nationality": "South Korea", "position": "LW", "team_idx": 4, "shirt": 7},
    {"name": "James Maddison", "dob": "1996-11-23", "nationality": "England", "position": "CAM", "team_idx": 4, "shirt": 10},
    {"name": "Guglielmo Vicario", "dob": "1996-10-07", "nationality": "Italy", "position": "GK", "team_idx": 4, "shirt": 1},
    {"name": "Alexander Isak", "dob": "1999-09-21", "nationality": "Sweden", "position": "ST", "team_idx": 5, "shirt": 14},
    {"name": "Bruno Guimaraes", "dob": "1997-11-16", "nationality": "Brazil", "position": "CM", "team_idx": 5, "shirt": 39},
    {"name": "Nick Pope", "dob": "1992-04-19", "nationality": "England", "position": "GK", "team_idx": 5, "shirt": 22},
]

# Mid-season move in the season before the current one: (player, to team idx, shirt)
MIDSEASON_TRANSFER = ("Conor Gallagher", 4, 29)

KICKOFF = time(15, 0)


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def season_start_year(today: date) -> int:
    """Seasons run August to May; July belongs to the upcoming season."""
    return today.year if today.month >= 7 else today.year - 1


def season_label(start_year: int) -> str:
    return f"{start_year}/{str(start_year + 1)[-2:]}"


def round_robin(team_count: int) -> List[List[Tuple[int, int]]]:
    """
    Double round-robin by the circle method.

    Returns one list of (home, away) index pairs per matchday; the second
    half mirrors the first with home and away swapped.
    """
    teams = list(range(team_count))
    if team_count % 2:
        teams.append(-1)
    n = len(teams)
    rounds = []
    for r in range(n - 1):
        pairs = []
        for i in range(n // 2):
            home, away = teams[i], teams[n - 1 - i]
            if home >= 0 and away >= 0:
                pairs.append((home, away) if r % 2 == 0 else (away, home))
        rounds.append(pairs)
        teams = [teams[0]] + [teams[-1]] + teams[1:-1]
    return rounds + [[(away, home) for home, away in pairs] for pairs in rounds]


@dataclass
class DemoState:
    """Ids created during ingestion plus the in-memory squad timeline."""
    seasons: List[Season] = field(default_factory=list)
    teams: List[Team] = field(default_factory=list)
    national_teams: Dict[str, Team] = field(default_factory=dict)
    players: Dict[str, Player] = field(default_factory=dict)
    # team id -> [(player, valid_from, valid_to)]
    squads: Dict[UUID, List[Tuple[Player, date, Optional[date]]]] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)

    def squad_on(self, team_id: UUID, on: date) -> List[Player]:
        return [
            player for player, start, end in self.squads.get(team_id, [])
            if start <= on and (end is None or end >= on)
        ]


# =============================================================================
# STEPS
# =============================================================================

async def clear_demo_data(db: AsyncSession) -> None:
    """Remove reference and competition data, in reverse dependency order."""
    for model in (
        Prediction, Follow, MatchEvent, MatchLineup, Standing, PlayerSeasonStat, Match,
        TeamSeason, CompetitionSeason, PlayerTeamHistory, TeamVenueHistory,
        Player, Venue, Team, Competition, Season,
    ):
        await db.execute(delete(model))
    await db.commit()


async def create_seasons(db: AsyncSession, state: DemoState, today: date) -> None:
    current_start = season_start_year(today)
    for start_year in range(current_start - 2, current_start + 1):
        season = await create_season(
            db,
            season_label(start_year),
            date(start_year, 8, 1),
            date(start_year + 1, 5, 31),
            is_current=start_year == current_start,
        )
        state.seasons.append(season)
    state.counts["seasons"] = len(state.seasons)


async def create_teams_and_venues(db: AsyncSession, state: DemoState) -> None:
    for data in TEAMS_DATA:
        team = Team(slug=slugify(data["name"]), country="England", **data)
        db.add(team)
        state.teams.append(team)
    for data in NATIONAL_TEAMS_DATA:
        team = Team(slug=slugify(f"{data['name']} national team"), **data)
        db.add(team)
        state.national_teams[data["name"]] = team
    await db.commit()

    venues = 0
    for team_idx, name, city, capacity, opened, moved_in in VENUES_DATA:
        venue = Venue(slug=slugify(name), name=name, city=city, country="England",
                      capacity=capacity, opened_year=opened)
        db.add(venue)
        await db.commit()
        await record_venue_move(db, state.teams[team_idx].id, venue.id, date.fromisoformat(moved_in))
        venues += 1

    state.counts["teams"] = len(state.teams) + len(state.national_teams)
    state.counts["venues"] = venues


async def create_players(db: AsyncSession, state: DemoState) -> None:
    joined = state.seasons[0].start_date - timedelta(days=30)
    for data in PLAYERS_DATA:
        player = Player(
            slug=slugify(data["name"]),
            name=data.get("full_name", data["name"]),
            known_as=data["name"] if "full_name" in data else None,
            date_of_birth=date.fromisoformat(data["dob"]),
            nationality=data["nationality"],
            position=data["position"],
        )
        db.add(player)
        state.players[data["name"]] = player
    await db.commit()

    for data in PLAYERS_DATA:
        player = state.players[data["name"]]
        team = state.teams[data["team_idx"]]
        await record_transfer(db, player.id, team.id, joined, shirt_number=data["shirt"])
        state.squads.setdefault(team.id, []).append((player, joined, None))
        if data.get("national"):
            await record_transfer(
                db, player.id, state.national_teams[data["national"]].id, joined,
                transfer_type=None, membership_type=MembershipType.INTERNATIONAL,
            )

    # January window of the previous season
    name, to_idx, shirt = MIDSEASON_TRANSFER
    player = state.players[name]
    moved = date(state.seasons[-2].start_date.year + 1, 1, 15)
    to_team = state.teams[to_idx]
    await record_transfer(db, player.id, to_team.id, moved, shirt_number=shirt, transfer_type=TransferType.LOAN)
    for squad in state.squads.values():
        for i, (p, start, end) in enumerate(squad):
            if p.id == player.id and end is None:
                squad[i] = (p, start, moved - timedelta(days=1))
    state.squads.setdefault(to_team.id, []).append((player, moved, None))

    state.counts["players"] = len(state.players)


def _goal_events(
    rng: random.Random, match: Match, team_id: UUID, squad: List[Player], goals: int
) -> List[MatchEvent]:
    outfield = [p for p in squad if p.position != "GK"] or squad
    events = []
    for _ in range(goals):
        scorer = rng.choice(outfield)
        helpers = [p for p in outfield if p.id != scorer.id]
        assist = rng.choice(helpers) if helpers and rng.random() < 0.6 else None
        events.append(MatchEvent(
            match_id=match.id,
            event_type=MatchEventType.GOAL,
            minute=rng.randint(1, 90),
            team_id=team_id,
            player_id=scorer.id,
            secondary_player_id=assist.id if assist else None,
        ))
    return events


async def create_fixtures(db: AsyncSession, state: DemoState, now: datetime, rng: random.Random) -> None:
    competition = Competition(slug=slugify(COMPETITION_DATA["name"]), **COMPETITION_DATA)
    db.add(competition)
    await db.commit()

    schedule = round_robin(len(state.teams))
    matches = events = 0

    for season in state.seasons:
        cs = CompetitionSeason(
            competition_id=competition.id,
            season_id=season.id,
            status=CompetitionSeasonStatus.IN_PROGRESS if season.is_current else CompetitionSeasonStatus.COMPLETED,
        )
        db.add(cs)
        await db.flush()
        for team in state.teams:
            db.add(TeamSeason(team_id=team.id, competition_season_id=cs.id))

        if season.is_current:
            # Half the fixtures behind us, half ahead
            first_day = now.date() - timedelta(weeks=len(schedule) // 2)
        else:
            first_day = season.start_date + timedelta(days=7)

        for matchday, pairs in enumerate(schedule, start=1):
            day = first_day + timedelta(weeks=matchday - 1)
            kickoff = datetime.combine(day, KICKOFF, tzinfo=timezone.utc)
            for home_idx, away_idx in pairs:
                home, away = state.teams[home_idx], state.teams[away_idx]
                match = Match(
                    competition_season_id=cs.id,
                    home_team_id=home.id,
                    away_team_id=away.id,
                    matchday=matchday,
                    scheduled_at=kickoff,
                    status=MatchStatus.SCHEDULED,
                )
                db.add(match)
                matches += 1
                if kickoff >= now:
                    continue

                await db.flush()
                match.status = MatchStatus.FINISHED
                match.home_score = rng.choices([0, 1, 2, 3, 4], weights=[2, 4, 4, 2, 1])[0]
                match.away_score = rng.choices([0, 1, 2, 3], weights=[3, 4, 3, 1])[0]
                match.attendance = rng.randint(30000, 60000)
                for team, goals in ((home, match.home_score), (away, match.away_score)):
                    squad = state.squad_on(team.id, day)
                    for player in squad:
                        db.add(MatchLineup(
                            match_id=match.id,
                            team_id=team.id,
                            player_id=player.id,
                            position=player.position,
                            is_starter=True,
                            minutes_played=90,
                        ))
                    for event in _goal_events(rng, match, team.id, squad, goals):
                        db.add(event)
                        events += 1
                    if squad and rng.random() < 0.4:
                        db.add(MatchEvent(
                            match_id=match.id,
                            event_type=MatchEventType.YELLOW_CARD,
                            minute=rng.randint(10, 90),
                            team_id=team.id,
                            player_id=rng.choice(squad).id,
                        ))
                        events += 1
        await db.commit()

        table = await rebuild_standings(db, cs.id)
        await rebuild_player_stats(db, cs.id)
        if not season.is_current and table:
            cs.champion_team_id = table[0].team_id
            await db.commit()

    state.counts["competitions"] = 1
    state.counts["matches"] = matches
    state.counts["match_events"] = events


async def load_demo_data(
    db: AsyncSession,
    force: bool = False,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Create the demo dataset.

    Does nothing when competitions already exist unless `force` is set, in
    which case existing reference data is cleared first. Returns counts of
    created records (empty when skipped).
    """
    existing = (await db.execute(select(func.count()).select_from(Competition))).scalar_one()
    if existing and not force:
        logger.info("Found %d competitions; skipping demo ingest", existing)
        return {}
    if existing:
        await clear_demo_data(db)

    now = now or utcnow()
    rng = random.Random(settings.demo_seed if seed is None else seed)
    state = DemoState()

    await create_seasons(db, state, now.date())
    await create_teams_and_venues(db, state)
    await create_players(db, state)
    await create_fixtures(db, state, now, rng)

    logger.info("Demo ingest complete: %s", state.counts)
    return state.counts


def run_demo_ingest(force: bool = False) -> Dict[str, int]:
    """
    Load demo data into the database.

    This is idempotent - without --force an existing dataset is left alone;
    with it, reference data is cleared and reloaded.
    """
    console.print("[bold blue]Starting demo data ingestion...[/bold blue]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Loading seasons, teams, players and fixtures...", total=None)
        counts = asyncio.run(run_job(lambda db: load_demo_data(db, force=force)))

    if not counts:
        console.print("[yellow]Demo data already present. Use --force to clear and reload.[/yellow]")
        return counts

    console.print("[bold green]Demo data loaded[/bold green]")
    for name, count in counts.items():
        console.print(f"  • {name}: {count}")
    return counts
