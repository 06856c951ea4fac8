"""
Tests for Match Predictions
===========================
"""

import pytest
from httpx import AsyncClient

from app.services.predictions import score_prediction


@pytest.mark.parametrize("predicted,actual,points,exact,correct", [
    ((2, 1), (2, 1), 3, True, True),
    ((1, 0), (3, 1), 1, False, True),
    ((1, 1), (0, 0), 1, False, True),
    ((0, 2), (2, 0), 0, False, False),
    ((1, 1), (2, 1), 0, False, False),
])
def test_score_prediction(predicted, actual, points, exact, correct):
    score = score_prediction(*predicted, *actual)
    assert score.points == points
    assert score.is_exact_score is exact
    assert score.is_correct_result is correct


@pytest.mark.asyncio
async def test_available_matches(client: AsyncClient, seeded_db):
    response = await client.get("/api/v1/predictions/matches")
    assert response.status_code == 200
    matches = response.json()
    assert [m["id"] for m in matches] == [str(seeded_db.test_data.matches["upcoming"])]


@pytest.mark.asyncio
async def test_submit_and_resubmit_prediction(client: AsyncClient, seeded_db, auth_headers):
    match_id = str(seeded_db.test_data.matches["upcoming"])

    response = await client.post(
        "/api/v1/predictions", json={"match_id": match_id, "home_score": 1, "away_score": 1}, headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["points"] is None

    response = await client.post(
        "/api/v1/predictions", json={"match_id": match_id, "home_score": 2, "away_score": 0}, headers=auth_headers
    )
    assert response.status_code == 201
    assert (response.json()["home_score"], response.json()["away_score"]) == (2, 0)

    mine = (await client.get("/api/v1/predictions/me", headers=auth_headers)).json()
    assert len(mine) == 1
    assert mine[0]["match"]["id"] == match_id


@pytest.mark.asyncio
async def test_finished_match_is_closed(client: AsyncClient, seeded_db, auth_headers):
    match_id = str(seeded_db.test_data.matches["city_arsenal"])
    response = await client.post(
        "/api/v1/predictions", json={"match_id": match_id, "home_score": 3, "away_score": 1}, headers=auth_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_prediction_requires_auth(client: AsyncClient, seeded_db):
    match_id = str(seeded_db.test_data.matches["upcoming"])
    response = await client.post("/api/v1/predictions", json={"match_id": match_id, "home_score": 1, "away_score": 0})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_early_prediction_earns_badges(client: AsyncClient, seeded_db, auth_headers):
    match_id = str(seeded_db.test_data.matches["upcoming"])
    await client.post(
        "/api/v1/predictions", json={"match_id": match_id, "home_score": 1, "away_score": 0}, headers=auth_headers
    )

    profile = (await client.get("/api/v1/predictions/stats", headers=auth_headers)).json()
    assert sorted(b["badge_type"] for b in profile["badges"]) == ["early_bird", "first_blood"]
    assert profile["stats"]["total_predictions"] == 1
    assert profile["stats"]["total_points"] == 0


@pytest.mark.asyncio
async def test_finalize_scores_predictions_and_ranks_leaderboard(
    client: AsyncClient, seeded_db, signup_user, admin_headers
):
    match_id = str(seeded_db.test_data.matches["upcoming"])

    exact = await signup_user(email="exact@example.com", name="Exact")
    result = await signup_user(email="result@example.com", name="Result")
    wrong = await signup_user(email="wrong@example.com", name="Wrong")
    for user, (home, away) in ((exact, (2, 0)), (result, (1, 0)), (wrong, (0, 1))):
        response = await client.post(
            "/api/v1/predictions",
            json={"match_id": match_id, "home_score": home, "away_score": away},
            headers={"Authorization": f"Bearer {user['token']}"},
        )
        assert response.status_code == 201

    response = await client.post(
        f"/api/v1/admin/matches/{match_id}/finalize",
        json={"home_score": 2, "away_score": 0},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["predictions_scored"] == 3

    board = (await client.get("/api/v1/predictions/leaderboard")).json()
    assert [(e["user_name"], e["total_points"]) for e in board] == [("Exact", 3), ("Result", 1), ("Wrong", 0)]
    assert [e["rank"] for e in board] == [1, 2, 3]

    stats = (await client.get(
        "/api/v1/predictions/stats", headers={"Authorization": f"Bearer {exact['token']}"}
    )).json()["stats"]
    assert stats["exact_scores"] == 1
    assert stats["accuracy"] == 100.0
