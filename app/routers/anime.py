from fastapi import APIRouter, Depends, Query

from app.core.exceptions import InvalidQueryError
from app.deps import get_aggregator
from app.services import anime as anime_service
from app.upstream.aggregator import PaginatedAggregator
from app.upstream.queries import parse_genre_ids

router = APIRouter()


def _genre_ids(genres: str | None) -> tuple[int, ...]:
    try:
        return parse_genre_ids(genres)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid genre ids: {genres!r}") from e


@router.get("")
async def anime_index(
    q: str | None = None,
    search: str | None = None,
    genres: str | None = None,
    aggregator: PaginatedAggregator = Depends(get_aggregator),
):
    """Default catalogue listing; behaves like /search when a term or genres are given."""
    term = q or search
    genre_ids = _genre_ids(genres)
    if term or genre_ids:
        result = await anime_service.search(aggregator, term, genre_ids)
    else:
        result = await anime_service.browse(aggregator)
    return anime_service.to_response(result)


@router.get("/search")
async def anime_search(
    q: str | None = None,
    genres: str | None = Query(None, description="Comma-separated genre ids"),
    aggregator: PaginatedAggregator = Depends(get_aggregator),
):
    """Search by term and/or genres, up to the configured item cap."""
    result = await anime_service.search(aggregator, q, _genre_ids(genres))
    return anime_service.to_response(result)


@router.get("/top")
async def anime_top(aggregator: PaginatedAggregator = Depends(get_aggregator)):
    result = await anime_service.top_ranked(aggregator)
    return anime_service.to_response(result)


@router.get("/genres")
async def anime_genres(aggregator: PaginatedAggregator = Depends(get_aggregator)):
    result = await anime_service.genres(aggregator)
    return anime_service.to_response(result)


@router.get("/{anime_id}/recommendations")
async def anime_recommendations(anime_id: str, aggregator: PaginatedAggregator = Depends(get_aggregator)):
    try:
        subject_id = int(anime_id)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid anime id: {anime_id!r}") from e
    result = await anime_service.recommendations(aggregator, subject_id)
    return anime_service.to_response(result)
