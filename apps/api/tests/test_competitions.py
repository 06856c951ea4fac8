"""
Tests for Competition, Season and Match Endpoints
=================================================
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.standings import rebuild_player_stats, rebuild_standings


@pytest.mark.asyncio
async def test_list_competitions(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/competitions")
    assert response.status_code == 200
    assert [c["slug"] for c in response.json()] == ["premier-league"]


@pytest.mark.asyncio
async def test_competition_detail_lists_editions(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/competitions/premier-league")
    assert response.status_code == 200
    data = response.json()
    assert [s["season"]["label"] for s in data["seasons"]] == ["2023/24"]
    assert data["seasons"][0]["status"] == "in_progress"


@pytest.mark.asyncio
async def test_standings_defaults_to_current_season(client: AsyncClient, seeded_db):
    await rebuild_standings(seeded_db, seeded_db.test_data.competition_season)

    response = await client.get("/api/v1/competitions/premier-league/standings")
    assert response.status_code == 200
    data = response.json()
    assert data["season"]["label"] == "2023/24"

    table = data["standings"]
    assert [row["team"]["slug"] for row in table] == [
        "arsenal", "manchester-city", "chelsea", "tottenham-hotspur",
    ]
    assert [row["position"] for row in table] == [1, 2, 3, 4]
    assert table[0]["points"] == 6
    assert table[0]["form"] == "LWW"


@pytest.mark.asyncio
async def test_standings_accepts_url_friendly_label(client: AsyncClient, seeded_db):
    await rebuild_standings(seeded_db, seeded_db.test_data.competition_season)
    response = await client.get("/api/v1/competitions/premier-league/standings?season=2023-24")
    assert response.status_code == 200
    assert len(response.json()["standings"]) == 4


@pytest.mark.asyncio
async def test_standings_unknown_season(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/competitions/premier-league/standings?season=1999/00")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_top_scorers(client: AsyncClient, seeded_db):
    await rebuild_player_stats(seeded_db, seeded_db.test_data.competition_season)
    response = await client.get("/api/v1/competitions/premier-league/top-scorers")
    assert response.status_code == 200
    scorers = response.json()
    assert [s["player"]["slug"] for s in scorers] == ["bukayo-saka", "erling-haaland"]
    assert [s["rank"] for s in scorers] == [1, 2]
    assert all(s["goals"] == 3 for s in scorers)


@pytest.mark.asyncio
async def test_competition_matches_filter_by_status(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/competitions/premier-league/matches")
    assert len(response.json()) == 5

    response = await client.get("/api/v1/competitions/premier-league/matches?status=scheduled")
    matches = response.json()
    assert len(matches) == 1
    assert matches[0]["home_score"] is None


@pytest.mark.asyncio
async def test_match_detail_with_events(client: AsyncClient, seeded_db):
    match_id = seeded_db.test_data.matches["city_arsenal"]
    response = await client.get(f"/api/v1/matches/{match_id}")
    assert response.status_code == 200
    data = response.json()
    assert (data["home_score"], data["away_score"]) == (3, 1)
    assert [e["minute"] for e in data["events"]] == [10, 55, 70, 80]


@pytest.mark.asyncio
async def test_match_not_found(client: AsyncClient):
    response = await client.get(f"/api/v1/matches/{uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_seasons(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/seasons")
    assert [s["label"] for s in response.json()] == ["2023/24", "2022/23", "2021/22"]

    response = await client.get("/api/v1/seasons/current")
    assert response.json()["label"] == "2023/24"


@pytest.mark.asyncio
async def test_no_current_season(client: AsyncClient):
    response = await client.get("/api/v1/seasons/current")
    assert response.status_code == 404
