"""Drive UpstreamClient across pages and return one aggregated result."""

import asyncio
from dataclasses import dataclass, field
from typing import Callable

from app.core.config import Settings, get_settings
from app.core.exceptions import AggregationCancelled, AppError
from app.core.logging import get_logger
from app.core.pagination import AggregatedResult, AggregationConfig, Item, PageResult, TerminationReason
from app.upstream.client import UpstreamClient
from app.upstream.queries import GenreFilter, PageRequest, Query, TextSearch, TopRanked

log = get_logger(__name__)


@dataclass
class AggregationState:
    items: list[Item] = field(default_factory=list)
    page: int = 1
    pages_fetched: int = 0
    terminated: bool = False
    termination_reason: TerminationReason | None = None


TerminationCheck = Callable[[AggregationState, PageResult, AggregationConfig], bool]

# Evaluated in order once per page, after the page's items are appended.
TERMINATION_CHECKS: tuple[tuple[TerminationReason, TerminationCheck], ...] = (
    (TerminationReason.EXHAUSTED, lambda state, page, config: page.is_empty),
    (TerminationReason.ITEM_CAP_REACHED, lambda state, page, config: len(state.items) >= config.max_items),
    (
        TerminationReason.PAGE_CAP_REACHED,
        lambda state, page, config: config.max_pages is not None and state.page >= config.max_pages,
    ),
)


def termination_reason(
    state: AggregationState, page: PageResult, config: AggregationConfig
) -> TerminationReason | None:
    for reason, check in TERMINATION_CHECKS:
        if check(state, page, config):
            return reason
    return None


def default_config_for(query: Query, settings: Settings | None = None) -> AggregationConfig:
    """Per-query caps. Search is bounded by item count, top rankings by page count."""
    s = settings or get_settings()
    if isinstance(query, (TextSearch, GenreFilter)):
        return AggregationConfig(page_size=s.search_page_size, max_pages=None, max_items=s.search_max_items)
    if isinstance(query, TopRanked):
        return AggregationConfig(page_size=s.top_page_size, max_pages=s.top_max_pages, max_items=s.top_max_items)
    return AggregationConfig(page_size=s.search_page_size, max_pages=1, max_items=s.search_max_items)


class PaginatedAggregator:
    def __init__(
        self,
        client: UpstreamClient,
        settings: Settings | None = None,
        deadline_seconds: float | None = None,
    ) -> None:
        self.client = client
        self.settings = settings or get_settings()
        self.deadline_seconds = (
            deadline_seconds if deadline_seconds is not None else self.settings.upstream_deadline_seconds
        )

    async def run(self, query: Query, config: AggregationConfig | None = None) -> AggregatedResult:
        """
        Run one aggregation. Any page failure fails the whole run; no partial items are returned.
        Raises UpstreamError, RateLimitExhausted, TransportFault or AggregationCancelled.
        """
        config = config or default_config_for(query, self.settings)
        try:
            if self.deadline_seconds is None:
                result = await self._run(query, config)
            else:
                result = await asyncio.wait_for(self._run(query, config), timeout=self.deadline_seconds)
        except asyncio.TimeoutError as e:
            log.warning("aggregation_cancelled", query=query.kind, deadline_seconds=self.deadline_seconds)
            raise AggregationCancelled(
                f"Aggregation exceeded its {self.deadline_seconds}s deadline"
            ) from e
        except asyncio.CancelledError:
            log.info("aggregation_cancelled", query=query.kind)
            raise
        except AppError as e:
            log.warning("aggregation_failed", query=query.kind, code=e.code, message=e.message)
            raise

        log.info(
            "aggregation_complete",
            query=query.kind,
            pages_fetched=result.pages_fetched,
            items=len(result.items),
            reason=result.termination_reason.value,
        )
        return result

    async def _run(self, query: Query, config: AggregationConfig) -> AggregatedResult:
        if not query.paginated:
            page = await self.client.fetch_page(PageRequest(query=query, page=1, page_size=config.page_size))
            return AggregatedResult(
                items=page.items,
                pages_fetched=1,
                termination_reason=TerminationReason.SINGLE_SHOT,
            )

        state = AggregationState()
        while not state.terminated:
            request = PageRequest(query=query, page=state.page, page_size=config.page_size)
            page = await self.client.fetch_page(request)
            state.pages_fetched += 1
            state.items.extend(page.items)

            reason = termination_reason(state, page, config)
            if reason is not None:
                state.terminated = True
                state.termination_reason = reason
            else:
                state.page += 1

        return AggregatedResult(
            items=state.items,
            pages_fetched=state.pages_fetched,
            termination_reason=state.termination_reason,
        )
