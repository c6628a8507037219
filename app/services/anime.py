"""Anime lookups: search, top rankings, recommendations, genres."""

from app.core.exceptions import InvalidQueryError
from app.core.pagination import AggregatedResult, AggregationConfig
from app.upstream.aggregator import PaginatedAggregator
from app.upstream.queries import AnimeListing, GenreFilter, GenreList, Recommendations, TextSearch, TopRanked


async def search(
    aggregator: PaginatedAggregator,
    term: str | None = None,
    genre_ids: tuple[int, ...] = (),
    config: AggregationConfig | None = None,
) -> AggregatedResult:
    """
    Text search, optionally narrowed by genres; genre-only filtering when no term is given.
    Raises InvalidQueryError when neither is supplied.
    """
    term = (term or "").strip()
    if term:
        query = TextSearch(term=term, genre_ids=tuple(genre_ids))
    elif genre_ids:
        query = GenreFilter(genre_ids=tuple(genre_ids))
    else:
        raise InvalidQueryError("Provide a search term or at least one genre id")
    return await aggregator.run(query, config)


async def top_ranked(aggregator: PaginatedAggregator, config: AggregationConfig | None = None) -> AggregatedResult:
    return await aggregator.run(TopRanked(), config)


async def recommendations(aggregator: PaginatedAggregator, subject_id: int) -> AggregatedResult:
    if subject_id <= 0:
        raise InvalidQueryError("Anime id must be a positive integer")
    return await aggregator.run(Recommendations(subject_id=subject_id))


async def genres(aggregator: PaginatedAggregator) -> AggregatedResult:
    return await aggregator.run(GenreList())


async def browse(aggregator: PaginatedAggregator) -> AggregatedResult:
    """Unfiltered first page of the catalogue."""
    return await aggregator.run(AnimeListing())


def to_response(result: AggregatedResult) -> dict:
    return {
        "items": result.items,
        "pages_fetched": result.pages_fetched,
        "termination_reason": result.termination_reason.value,
    }
