"""
Entity Resolution & Search
==========================

Entities are addressed either by UUID or by slug. Resolution tries the
UUID form first and falls back to the slug.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Type, Union
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError
from app.models import Competition, EntityType, Player, Team, Venue
from app.schemas import SearchResult, SearchResultType

EntityModel = Union[Type[Player], Type[Team], Type[Competition], Type[Venue]]

ENTITY_MODELS: Dict[EntityType, EntityModel] = {
    EntityType.PLAYER: Player,
    EntityType.TEAM: Team,
    EntityType.COMPETITION: Competition,
}

_LABELS = {
    Player: "Player",
    Team: "Team",
    Competition: "Competition",
    Venue: "Venue",
}


def parse_uuid(value: Union[str, UUID]) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


async def resolve_entity(db: AsyncSession, model: EntityModel, slug_or_id: Union[str, UUID]):
    """Fetch an entity by UUID or slug, raising NotFoundError when neither matches."""
    entity = None
    entity_id = parse_uuid(slug_or_id)
    if entity_id is not None:
        entity = await db.get(model, entity_id)
    if entity is None:
        result = await db.execute(select(model).where(model.slug == str(slug_or_id)))
        entity = result.scalar_one_or_none()
    if entity is None:
        raise NotFoundError(f"{_LABELS[model]} not found")
    return entity


async def get_entity(db: AsyncSession, entity_type: EntityType, entity_id: UUID):
    """Fetch a followable entity by type and id."""
    model = ENTITY_MODELS[EntityType(entity_type)]
    entity = await db.get(model, entity_id)
    if entity is None:
        raise NotFoundError(f"{_LABELS[model]} not found")
    return entity


async def list_competitions(db: AsyncSession) -> Sequence[Competition]:
    result = await db.execute(select(Competition).order_by(Competition.name))
    return result.scalars().all()


def calculate_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Calculate age from date of birth."""
    if not date_of_birth:
        return None
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


# =============================================================================
# SEARCH
# =============================================================================

def _rank(name: str, query: str) -> float:
    """Exact match beats prefix match beats substring match."""
    name_lower = name.lower()
    if name_lower == query:
        return 1.0
    if name_lower.startswith(query):
        return 0.8
    if any(word.startswith(query) for word in name_lower.split()):
        return 0.6
    return 0.4


async def search_entities(
    db: AsyncSession,
    query: str,
    limit: int = 20,
    types: Optional[List[SearchResultType]] = None,
) -> List[SearchResult]:
    """
    Search players, teams and competitions by name.

    Matching is a case-insensitive substring test; results are ranked in
    Python so the ordering is identical across database backends.
    """
    query_lower = query.strip().lower()
    if len(query_lower) < 2:
        return []

    wanted = set(types or list(SearchResultType))
    pattern = f"%{query_lower}%"
    results: List[SearchResult] = []

    if SearchResultType.PLAYER in wanted:
        stmt = (
            select(Player)
            .where(or_(func.lower(Player.name).like(pattern), func.lower(Player.known_as).like(pattern)))
            .limit(limit)
        )
        for player in (await db.execute(stmt)).scalars():
            subtitle_parts = [p for p in (player.position, player.nationality) if p]
            results.append(SearchResult(
                type=SearchResultType.PLAYER,
                id=player.id,
                slug=player.slug,
                name=player.name,
                subtitle=" • ".join(subtitle_parts) if subtitle_parts else None,
                image_url=player.image_url,
                score=max(_rank(player.name, query_lower), _rank(player.known_as or "", query_lower) if player.known_as else 0.0),
            ))

    if SearchResultType.TEAM in wanted:
        stmt = select(Team).where(func.lower(Team.name).like(pattern)).limit(limit)
        for team in (await db.execute(stmt)).scalars():
            results.append(SearchResult(
                type=SearchResultType.TEAM,
                id=team.id,
                slug=team.slug,
                name=team.name,
                subtitle=team.country,
                image_url=team.logo_url,
                score=_rank(team.name, query_lower),
            ))

    if SearchResultType.COMPETITION in wanted:
        stmt = select(Competition).where(func.lower(Competition.name).like(pattern)).limit(limit)
        for competition in (await db.execute(stmt)).scalars():
            results.append(SearchResult(
                type=SearchResultType.COMPETITION,
                id=competition.id,
                slug=competition.slug,
                name=competition.name,
                subtitle=competition.country,
                image_url=competition.logo_url,
                score=_rank(competition.name, query_lower),
            ))

    results.sort(key=lambda r: (-r.score, r.name))
    return results[:limit]
