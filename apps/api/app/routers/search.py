"""
Search Router
=============

Provides unified search across players, teams and competitions.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db
from app.schemas import SearchResponse, SearchResultType
from app.services.entities import search_entities

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=1, max_length=100, description="Search query"),
    limit: int = Query(20, ge=1, le=50, description="Maximum results to return"),
    type: Optional[List[SearchResultType]] = Query(None, description="Restrict to entity types"),
    db: AsyncSession = Depends(get_db)
) -> SearchResponse:
    """
    Search for players, teams and competitions by name.

    Exact matches rank above prefix matches, which rank above substring
    matches.

    **Examples:**
    - `/search?q=Haaland` - Find players named Haaland
    - `/search?q=Manchester&type=team` - Teams with Manchester in the name
    """
    results = await search_entities(db, q, limit, types=type)

    return SearchResponse(
        query=q,
        results=results,
        total=len(results)
    )
