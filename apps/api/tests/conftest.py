"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for API tests.

Every test gets its own SQLite database file (via aiosqlite) with the
schema created from the models, and the app's `get_db` dependency is
pointed at it.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./pitchside-test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base, utcnow
from app.dependencies import get_db
from app.models import (
    Competition,
    CompetitionSeason,
    CompetitionSeasonStatus,
    Match,
    MatchEvent,
    MatchEventType,
    MatchLineup,
    MatchStatus,
    MembershipType,
    Player,
    PlayerTeamHistory,
    Season,
    Team,
    TeamSeason,
    TeamVenueHistory,
    TransferType,
    Venue,
)
from main import app

ADMIN_HEADERS = {"X-API-Key": "test-admin-key"}
PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh database file per test, schema created from the models."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'pitchside.db'}"
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# SEED DATA
# =============================================================================

def _kickoff(day: date, hour: int = 15) -> datetime:
    return datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """
    Seed the database with test data.

    Creates:
    - 3 seasons (2021/22, 2022/23, 2023/24 current)
    - 1 competition with a 2023/24 edition and 4 teams, plus Norway
    - 4 players, one of whom moved mid-way through 2022/23
    - Tottenham's three grounds
    - 4 finished matches with lineups and goals, 1 upcoming match
    """
    db = db_session

    seasons = {
        "2021/22": Season(label="2021/22", start_date=date(2021, 8, 1), end_date=date(2022, 5, 31)),
        "2022/23": Season(label="2022/23", start_date=date(2022, 8, 1), end_date=date(2023, 5, 31)),
        "2023/24": Season(label="2023/24", start_date=date(2023, 8, 1), end_date=date(2024, 5, 31),
                          is_current=True),
    }
    db.add_all(seasons.values())

    pl = Competition(slug="premier-league", name="Premier League", country="England")
    db.add(pl)

    teams = {
        "city": Team(slug="manchester-city", name="Manchester City", short_name="MCI", country="England"),
        "arsenal": Team(slug="arsenal", name="Arsenal", short_name="ARS", country="England"),
        "chelsea": Team(slug="chelsea", name="Chelsea", short_name="CHE", country="England"),
        "spurs": Team(slug="tottenham-hotspur", name="Tottenham Hotspur", short_name="TOT", country="England"),
        "norway": Team(slug="norway", name="Norway", country="Norway"),
    }
    db.add_all(teams.values())

    venues = {
        "whl": Venue(slug="white-hart-lane", name="White Hart Lane", city="London", capacity=36284),
        "wembley": Venue(slug="wembley-stadium", name="Wembley Stadium", city="London", capacity=90000),
        "ths": Venue(slug="tottenham-hotspur-stadium", name="Tottenham Hotspur Stadium",
                     city="London", capacity=62850),
    }
    db.add_all(venues.values())

    players = {
        "haaland": Player(slug="erling-haaland", name="Erling Haaland", date_of_birth=date(2000, 7, 21),
                          nationality="Norway", position="ST"),
        "jorginho": Player(slug="jorginho", name="Jorge Luiz Frello Filho", known_as="Jorginho",
                           date_of_birth=date(1991, 12, 20), nationality="Italy", position="DM"),
        "saka": Player(slug="bukayo-saka", name="Bukayo Saka", date_of_birth=date(2001, 9, 5),
                       nationality="England", position="RW"),
        "ederson": Player(slug="ederson", name="Ederson Moraes", known_as="Ederson",
                          date_of_birth=date(1993, 8, 17), nationality="Brazil", position="GK"),
    }
    db.add_all(players.values())
    await db.flush()

    affiliations = [
        PlayerTeamHistory(player_id=players["haaland"].id, team_id=teams["city"].id, shirt_number=9,
                          valid_from=date(2022, 7, 1)),
        PlayerTeamHistory(player_id=players["haaland"].id, team_id=teams["norway"].id,
                          membership_type=MembershipType.INTERNATIONAL, valid_from=date(2019, 9, 5)),
        PlayerTeamHistory(player_id=players["jorginho"].id, team_id=teams["chelsea"].id, shirt_number=5,
                          valid_from=date(2018, 7, 14), valid_to=date(2023, 1, 30)),
        PlayerTeamHistory(player_id=players["jorginho"].id, team_id=teams["arsenal"].id, shirt_number=20,
                          valid_from=date(2023, 1, 31), transfer_type=TransferType.PERMANENT),
        PlayerTeamHistory(player_id=players["saka"].id, team_id=teams["arsenal"].id, shirt_number=7,
                          valid_from=date(2018, 7, 1)),
        PlayerTeamHistory(player_id=players["ederson"].id, team_id=teams["city"].id, shirt_number=31,
                          valid_from=date(2017, 7, 1)),
    ]
    db.add_all(affiliations)

    db.add_all([
        TeamVenueHistory(team_id=teams["spurs"].id, venue_id=venues["whl"].id,
                         valid_from=date(1899, 9, 4), valid_to=date(2017, 7, 31)),
        TeamVenueHistory(team_id=teams["spurs"].id, venue_id=venues["wembley"].id,
                         valid_from=date(2017, 8, 1), valid_to=date(2019, 4, 2)),
        TeamVenueHistory(team_id=teams["spurs"].id, venue_id=venues["ths"].id,
                         valid_from=date(2019, 4, 3)),
    ])

    cs = CompetitionSeason(competition_id=pl.id, season_id=seasons["2023/24"].id,
                           status=CompetitionSeasonStatus.IN_PROGRESS)
    db.add(cs)
    await db.flush()
    for key in ("city", "arsenal", "chelsea", "spurs"):
        db.add(TeamSeason(team_id=teams[key].id, competition_season_id=cs.id))

    def finished(home, away, home_score, away_score, day):
        return Match(
            competition_season_id=cs.id,
            home_team_id=teams[home].id,
            away_team_id=teams[away].id,
            scheduled_at=_kickoff(day),
            status=MatchStatus.FINISHED,
            home_score=home_score,
            away_score=away_score,
        )

    matches = {
        "city_arsenal": finished("city", "arsenal", 3, 1, date(2023, 8, 12)),
        "arsenal_chelsea": finished("arsenal", "chelsea", 2, 0, date(2023, 8, 19)),
        "chelsea_city": finished("chelsea", "city", 1, 1, date(2023, 8, 26)),
        "spurs_arsenal": finished("spurs", "arsenal", 0, 2, date(2023, 9, 2)),
        "upcoming": Match(
            competition_season_id=cs.id,
            home_team_id=teams["city"].id,
            away_team_id=teams["spurs"].id,
            scheduled_at=utcnow() + timedelta(days=3),
            status=MatchStatus.SCHEDULED,
        ),
    }
    db.add_all(matches.values())
    await db.flush()

    city_id, arsenal_id = teams["city"].id, teams["arsenal"].id
    for key in ("city_arsenal", "chelsea_city"):
        db.add(MatchLineup(match_id=matches[key].id, team_id=city_id, player_id=players["haaland"].id,
                           position="ST", minutes_played=90))
        db.add(MatchLineup(match_id=matches[key].id, team_id=city_id, player_id=players["ederson"].id,
                           position="GK", minutes_played=90))
    for key in ("city_arsenal", "arsenal_chelsea", "spurs_arsenal"):
        db.add(MatchLineup(match_id=matches[key].id, team_id=arsenal_id, player_id=players["saka"].id,
                           position="RW", minutes_played=90))

    def goal(match_key, team_id, minute, scorer, assist=None):
        return MatchEvent(match_id=matches[match_key].id, event_type=MatchEventType.GOAL, minute=minute,
                          team_id=team_id, player_id=players[scorer].id,
                          secondary_player_id=players[assist].id if assist else None)

    db.add_all([
        goal("city_arsenal", city_id, 10, "haaland"),
        goal("city_arsenal", city_id, 55, "haaland"),
        goal("city_arsenal", arsenal_id, 70, "saka"),
        goal("chelsea_city", city_id, 30, "haaland"),
        goal("arsenal_chelsea", arsenal_id, 12, "saka"),
        goal("spurs_arsenal", arsenal_id, 64, "saka", assist="jorginho"),
        MatchEvent(match_id=matches["city_arsenal"].id, event_type=MatchEventType.YELLOW_CARD, minute=80,
                   team_id=arsenal_id, player_id=players["saka"].id),
    ])

    await db.commit()

    db.test_data = SimpleNamespace(
        seasons={k: s.id for k, s in seasons.items()},
        competition=pl.id,
        competition_season=cs.id,
        teams={k: t.id for k, t in teams.items()},
        venues={k: v.id for k, v in venues.items()},
        players={k: p.id for k, p in players.items()},
        matches={k: m.id for k, m in matches.items()},
    )
    return db


# =============================================================================
# ACCOUNTS
# =============================================================================

@pytest.fixture
def admin_headers() -> dict:
    return dict(ADMIN_HEADERS)


@pytest.fixture
def signup_user(client: AsyncClient):
    """Factory: sign a user up over HTTP and return the auth response body."""

    async def _signup(email: str = "fan@example.com", password: str = PASSWORD, name: str = "Test Fan") -> dict:
        response = await client.post(
            "/api/v1/auth/signup", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest_asyncio.fixture(scope="function")
async def auth_headers(signup_user) -> dict:
    """Bearer headers for a freshly signed-up free user."""
    body = await signup_user()
    return {"Authorization": f"Bearer {body['token']}"}
