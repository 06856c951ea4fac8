"""
Tests for the Affiliation Ledger
================================

Current and season views of player/team and team/venue history, plus
recording transfers and venue moves.
"""

from datetime import date

import pytest
from sqlalchemy import select

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import MembershipType, PlayerTeamHistory, Season, TransferType
from app.services.affiliations import (
    close_affiliation,
    find_open_conflicts,
    get_affiliations,
    get_current_team,
    get_squad,
    get_team_venues,
    record_transfer,
    record_venue_move,
)
from app.services.seasons import resolve_temporal_context
from app.temporal import TemporalContext


async def _season_context(db, label):
    season = (await db.execute(select(Season).where(Season.label == label))).scalar_one()
    return TemporalContext.for_season(season)


@pytest.mark.asyncio
async def test_current_view_returns_only_open_records(seeded_db):
    data = seeded_db.test_data
    records = await get_affiliations(seeded_db, data.players["jorginho"], TemporalContext.now())
    assert [r.team_id for r in records] == [data.teams["arsenal"]]


@pytest.mark.asyncio
async def test_mid_season_transfer_lists_both_teams(seeded_db):
    data = seeded_db.test_data
    context = await _season_context(seeded_db, "2022/23")
    records = await get_affiliations(seeded_db, data.players["jorginho"], context)
    assert [r.team_id for r in records] == [data.teams["chelsea"], data.teams["arsenal"]]


@pytest.mark.asyncio
async def test_earlier_season_lists_only_old_team(seeded_db):
    data = seeded_db.test_data
    context = await _season_context(seeded_db, "2021/22")
    records = await get_affiliations(seeded_db, data.players["jorginho"], context)
    assert [r.team_id for r in records] == [data.teams["chelsea"]]


@pytest.mark.asyncio
async def test_membership_filter(seeded_db):
    data = seeded_db.test_data
    records = await get_affiliations(
        seeded_db, data.players["haaland"], TemporalContext.now(), MembershipType.INTERNATIONAL
    )
    assert [r.team_id for r in records] == [data.teams["norway"]]


@pytest.mark.asyncio
async def test_unknown_season_is_not_found(seeded_db):
    from uuid import uuid4
    with pytest.raises(NotFoundError):
        await resolve_temporal_context(seeded_db, uuid4())


@pytest.mark.asyncio
async def test_squad_for_past_season_includes_departed_player(seeded_db):
    data = seeded_db.test_data
    context = await _season_context(seeded_db, "2022/23")
    squad = await get_squad(seeded_db, data.teams["chelsea"], context)
    assert data.players["jorginho"] in [r.player_id for r in squad]

    current = await get_squad(seeded_db, data.teams["chelsea"], TemporalContext.now())
    assert current == []


@pytest.mark.asyncio
async def test_record_transfer_closes_previous_day_before(seeded_db):
    data = seeded_db.test_data
    record = await record_transfer(
        seeded_db, data.players["saka"], data.teams["chelsea"], date(2024, 7, 1),
        shirt_number=11, transfer_type=TransferType.LOAN,
    )
    assert record.valid_to is None
    assert record.team.name == "Chelsea"

    history = (await seeded_db.execute(
        select(PlayerTeamHistory)
        .where(PlayerTeamHistory.player_id == data.players["saka"])
        .order_by(PlayerTeamHistory.valid_from)
    )).scalars().all()
    assert [h.valid_to for h in history] == [date(2024, 6, 30), None]
    assert find_open_conflicts(history, key=lambda r: (r.player_id, r.membership_type)) == []

    current = await get_current_team(seeded_db, data.players["saka"])
    assert current.team_id == data.teams["chelsea"]


@pytest.mark.asyncio
async def test_record_transfer_to_same_team_conflicts(seeded_db):
    data = seeded_db.test_data
    with pytest.raises(ConflictError):
        await record_transfer(seeded_db, data.players["saka"], data.teams["arsenal"], date(2024, 7, 1))


@pytest.mark.asyncio
async def test_record_transfer_before_current_start_is_rejected(seeded_db):
    data = seeded_db.test_data
    with pytest.raises(ValidationError):
        await record_transfer(seeded_db, data.players["saka"], data.teams["chelsea"], date(2018, 7, 1))


@pytest.mark.asyncio
async def test_club_transfer_keeps_international_membership(seeded_db):
    data = seeded_db.test_data
    await record_transfer(seeded_db, data.players["haaland"], data.teams["arsenal"], date(2025, 7, 1))
    national = await get_current_team(seeded_db, data.players["haaland"], MembershipType.INTERNATIONAL)
    assert national.team_id == data.teams["norway"]


@pytest.mark.asyncio
async def test_close_affiliation(seeded_db):
    data = seeded_db.test_data
    current = await get_current_team(seeded_db, data.players["ederson"])

    with pytest.raises(ValidationError):
        await close_affiliation(seeded_db, current.id, date(2016, 1, 1))

    closed = await close_affiliation(seeded_db, current.id, date(2025, 6, 30))
    assert closed.valid_to == date(2025, 6, 30)
    assert await get_current_team(seeded_db, data.players["ederson"]) is None

    with pytest.raises(ConflictError):
        await close_affiliation(seeded_db, current.id, date(2025, 7, 1))


def test_find_open_conflicts_flags_duplicates():
    from types import SimpleNamespace
    records = [
        SimpleNamespace(key="a", valid_to=None),
        SimpleNamespace(key="a", valid_to=None),
        SimpleNamespace(key="b", valid_to=None),
        SimpleNamespace(key="b", valid_to=date(2020, 1, 1)),
    ]
    assert find_open_conflicts(records, key=lambda r: r.key) == ["a"]


@pytest.mark.asyncio
async def test_venue_history_by_season(seeded_db):
    data = seeded_db.test_data
    spurs = data.teams["spurs"]

    now = await get_team_venues(seeded_db, spurs, TemporalContext.now())
    assert [v.venue_id for v in now] == [data.venues["ths"]]

    # Wembley until April 2019, then the new stadium
    season = Season(label="2018/19", start_date=date(2018, 8, 1), end_date=date(2019, 5, 31))
    seeded_db.add(season)
    await seeded_db.commit()
    history = await get_team_venues(seeded_db, spurs, TemporalContext.for_season(season))
    assert [v.venue_id for v in history] == [data.venues["wembley"], data.venues["ths"]]


@pytest.mark.asyncio
async def test_record_venue_move(seeded_db):
    data = seeded_db.test_data
    with pytest.raises(ConflictError):
        await record_venue_move(seeded_db, data.teams["spurs"], data.venues["ths"], date(2030, 1, 1))

    move = await record_venue_move(seeded_db, data.teams["spurs"], data.venues["wembley"], date(2030, 1, 1))
    assert move.venue.name == "Wembley Stadium"
    venues = await get_team_venues(seeded_db, data.teams["spurs"], TemporalContext.now())
    assert [v.venue_id for v in venues] == [data.venues["wembley"]]
