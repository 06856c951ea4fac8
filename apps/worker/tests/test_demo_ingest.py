"""
Tests for Demo Ingestion and Aggregate Rebuilds
===============================================
"""

from collections import Counter
from datetime import date

import pytest
from sqlalchemy import func, select

from app.models import CompetitionSeason, Match, MatchStatus, Player, Season, Standing
from app.services.affiliations import get_player_career
from app.services.seasons import get_current_season
from worker.jobs.aggregates import rebuild_aggregates
from worker.jobs.ingest import load_demo_data, round_robin, season_label, season_start_year, slugify


@pytest.mark.parametrize("team_count", [4, 5, 6])
def test_round_robin_pairs_every_team_home_and_away(team_count):
    schedule = round_robin(team_count)
    assert len(schedule) == 2 * (team_count - 1 + team_count % 2)

    fixtures = Counter(pair for matchday in schedule for pair in matchday)
    expected = {(h, a) for h in range(team_count) for a in range(team_count) if h != a}
    assert set(fixtures) == expected
    assert all(count == 1 for count in fixtures.values())

    for matchday in schedule:
        teams = [t for pair in matchday for t in pair]
        assert len(teams) == len(set(teams))


@pytest.mark.parametrize("today,expected", [
    (date(2025, 3, 1), 2024),
    (date(2024, 7, 1), 2024),
    (date(2024, 6, 30), 2023),
])
def test_season_start_year(today, expected):
    assert season_start_year(today) == expected


def test_season_label():
    assert season_label(2024) == "2024/25"
    assert season_label(1999) == "1999/00"


def test_slugify():
    assert slugify("St James' Park") == "st-james-park"
    assert slugify("Son Heung-min") == "son-heung-min"


@pytest.mark.asyncio
async def test_load_demo_data(db_session, demo_now):
    counts = await load_demo_data(db_session, seed=7, now=demo_now)
    assert counts["seasons"] == 3
    assert counts["teams"] == 9
    assert counts["venues"] == 8
    assert counts["players"] == 21
    assert counts["matches"] == 90

    current = await get_current_season(db_session)
    assert current.label == "2024/25"

    labels = (await db_session.execute(select(Season.label).order_by(Season.start_date))).scalars().all()
    assert labels == ["2022/23", "2023/24", "2024/25"]

    # The current season straddles the clock: some results in, some still to play
    statuses = Counter((await db_session.execute(
        select(Match.status)
        .join(CompetitionSeason, Match.competition_season_id == CompetitionSeason.id)
        .join(Season, CompetitionSeason.season_id == Season.id)
        .where(Season.is_current.is_(True))
    )).scalars().all())
    assert statuses[MatchStatus.FINISHED] > 0
    assert statuses[MatchStatus.SCHEDULED] > 0

    champions = (await db_session.execute(
        select(CompetitionSeason.champion_team_id).where(CompetitionSeason.champion_team_id.is_not(None))
    )).scalars().all()
    assert len(champions) == 2

    standings = (await db_session.execute(select(func.count()).select_from(Standing))).scalar_one()
    assert standings == 18


@pytest.mark.asyncio
async def test_demo_mid_season_transfer(db_session, demo_now):
    await load_demo_data(db_session, seed=7, now=demo_now)

    player = (await db_session.execute(select(Player).where(Player.slug == "conor-gallagher"))).scalar_one()
    career = await get_player_career(db_session, player.id)
    assert [r.team.slug for r in career] == ["chelsea", "tottenham-hotspur"]
    assert career[0].valid_to == date(2024, 1, 14)
    assert career[1].valid_from == date(2024, 1, 15)
    assert career[1].valid_to is None


@pytest.mark.asyncio
async def test_demo_ingest_is_idempotent(db_session, demo_now):
    await load_demo_data(db_session, seed=7, now=demo_now)
    assert await load_demo_data(db_session, seed=7, now=demo_now) == {}

    counts = await load_demo_data(db_session, force=True, seed=7, now=demo_now)
    assert counts["matches"] == 90
    seasons = (await db_session.execute(select(func.count()).select_from(Season))).scalar_one()
    assert seasons == 3


@pytest.mark.asyncio
async def test_rebuild_aggregates(db_session, demo_now):
    await load_demo_data(db_session, seed=7, now=demo_now)

    summaries = await rebuild_aggregates(db_session)
    assert [s.season for s in summaries] == ["2022/23", "2023/24", "2024/25"]
    assert all(s.standings_rows == 6 for s in summaries)
    assert all(s.stat_lines and s.stat_lines > 0 for s in summaries)

    only = await rebuild_aggregates(db_session, "premier-league", "2023-24", stats=False)
    assert len(only) == 1
    assert only[0].season == "2023/24"
    assert only[0].stat_lines is None
