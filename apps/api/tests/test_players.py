"""
Tests for Player Endpoints
==========================

Tests for:
- GET /api/v1/players/{player_id}
- GET /api/v1/players/{player_id}/affiliations
- GET /api/v1/players/{player_id}/career
- GET /api/v1/players/{player_id}/stats
- GET /api/v1/players/{player_id}/stats/export
- GET /api/v1/compare/players
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.standings import rebuild_player_stats


@pytest.mark.asyncio
async def test_get_player_not_found(client: AsyncClient):
    """Test that non-existent player returns 404."""
    response = await client.get(f"/api/v1/players/{uuid4()}")
    assert response.status_code == 404
    assert response.json() == {"error": "Player not found"}


@pytest.mark.asyncio
async def test_get_player_detail(client: AsyncClient, seeded_db):
    """Test getting player detail page."""
    player_id = seeded_db.test_data.players["haaland"]
    response = await client.get(f"/api/v1/players/{player_id}")
    assert response.status_code == 200

    data = response.json()
    assert data["id"] == str(player_id)
    assert data["name"] == "Erling Haaland"
    assert data["nationality"] == "Norway"
    assert data["position"] == "ST"

    # Club and national team come from the open affiliations
    assert data["current_team"]["name"] == "Manchester City"
    assert data["shirt_number"] == 9
    assert data["national_team"]["name"] == "Norway"

    assert data["age"] is not None
    assert data["age"] > 20
    assert data["follower_count"] == 0


@pytest.mark.asyncio
async def test_get_player_by_slug(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/players/jorginho")
    assert response.status_code == 200
    assert response.json()["known_as"] == "Jorginho"
    assert response.json()["current_team"]["slug"] == "arsenal"


@pytest.mark.asyncio
async def test_current_affiliations(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/players/jorginho/affiliations")
    assert response.status_code == 200
    data = response.json()
    assert data["context"] == {"mode": "now", "season": None}
    assert [a["team"]["name"] for a in data["affiliations"]] == ["Arsenal"]
    assert data["affiliations"][0]["is_current"] is True


@pytest.mark.asyncio
async def test_season_affiliations_include_mid_season_move(client: AsyncClient, seeded_db):
    season_id = seeded_db.test_data.seasons["2022/23"]
    response = await client.get(f"/api/v1/players/jorginho/affiliations?season_id={season_id}")
    assert response.status_code == 200

    data = response.json()
    assert data["context"]["mode"] == "season"
    assert data["context"]["season"]["label"] == "2022/23"
    teams = [a["team"]["name"] for a in data["affiliations"]]
    assert teams == ["Chelsea", "Arsenal"]
    chelsea = data["affiliations"][0]
    assert chelsea["valid_to"] == "2023-01-30"
    assert chelsea["is_current"] is False


@pytest.mark.asyncio
async def test_affiliations_unknown_season_is_404(client: AsyncClient, seeded_db):
    response = await client.get(f"/api/v1/players/jorginho/affiliations?season_id={uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_affiliations_membership_filter(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/players/erling-haaland/affiliations?membership_type=international")
    assert [a["team"]["name"] for a in response.json()["affiliations"]] == ["Norway"]


@pytest.mark.asyncio
async def test_career_is_oldest_first(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/players/jorginho/career")
    assert response.status_code == 200
    assert [a["team"]["name"] for a in response.json()] == ["Chelsea", "Arsenal"]


@pytest.mark.asyncio
async def test_stats_hide_advanced_fields_for_anonymous(client: AsyncClient, seeded_db):
    await rebuild_player_stats(seeded_db, seeded_db.test_data.competition_season)

    response = await client.get("/api/v1/players/erling-haaland/stats")
    assert response.status_code == 200
    data = response.json()
    assert data["advanced"] is False
    assert data["totals"]["goals"] == 3
    assert data["totals"]["minutes_played"] is None
    assert data["totals"]["goals_per_90"] is None
    assert data["seasons"][0]["season"]["label"] == "2023/24"


@pytest.mark.asyncio
async def test_stats_show_advanced_fields_for_pro(client: AsyncClient, seeded_db, auth_headers):
    await rebuild_player_stats(seeded_db, seeded_db.test_data.competition_season)
    await client.post("/api/v1/subscriptions/upgrade", json={"tier": "pro"}, headers=auth_headers)

    response = await client.get("/api/v1/players/erling-haaland/stats", headers=auth_headers)
    data = response.json()
    assert data["advanced"] is True
    assert data["totals"]["minutes_played"] == 180
    assert data["totals"]["goals_per_90"] == 1.5


@pytest.mark.asyncio
async def test_export_requires_plan(client: AsyncClient, seeded_db, auth_headers):
    response = await client.get("/api/v1/players/erling-haaland/stats/export", headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["feature"] == "export_data"


@pytest.mark.asyncio
async def test_export_counts_api_calls(client: AsyncClient, seeded_db, auth_headers):
    await client.post("/api/v1/subscriptions/upgrade", json={"tier": "pro"}, headers=auth_headers)
    response = await client.get("/api/v1/players/erling-haaland/stats/export", headers=auth_headers)
    assert response.status_code == 200

    usage = await client.get("/api/v1/subscriptions/usage/api_call", headers=auth_headers)
    assert usage.json()["used"] == 1
    assert usage.json()["limit"] == 100


# =============================================================================
# COMPARE
# =============================================================================

@pytest.mark.asyncio
async def test_compare_requires_auth(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/compare/players?a=jorginho&b=bukayo-saka")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_compare_same_player_rejected(client: AsyncClient, seeded_db, auth_headers):
    response = await client.get("/api/v1/compare/players?a=jorginho&b=jorginho", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_free_comparisons_are_capped(client: AsyncClient, seeded_db, auth_headers):
    url = "/api/v1/compare/players?a=jorginho&b=bukayo-saka"
    for used in (1, 2, 3):
        response = await client.get(url, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["comparisons_used"] == used
        assert data["comparisons_limit"] == 3
        assert [p["slug"] for p in data["players"]] == ["jorginho", "bukayo-saka"]

    response = await client.get(url, headers=auth_headers)
    assert response.status_code == 403
    body = response.json()
    assert body["feature"] == "comparison"
    assert body["limit"] == 3
    assert body["used"] == 3
