"""Single-page fetches against the Jikan API with bounded retry on 429 and transport faults."""

import asyncio
from typing import Awaitable, Callable

import httpx

from app.core.config import Settings, get_settings
from app.core.exceptions import RateLimitExhausted, TransportFault, UpstreamError
from app.core.logging import get_logger
from app.core.pagination import PageResult
from app.upstream.queries import PageRequest
from app.upstream.retry import FetchOutcome, OutcomeKind, RetryPolicy, RetryReason, RetryState

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def build_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Shared AsyncClient with the configured timeout and User-Agent."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.upstream_timeout_seconds),
        follow_redirects=True,
        headers={
            "User-Agent": settings.upstream_user_agent,
            "Accept": "application/json",
        },
    )


class UpstreamClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str | None = None,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        logger=None,
    ) -> None:
        self.http = http
        self.base_url = (base_url or get_settings().jikan_base_url).rstrip("/")
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep
        self.log = logger or log

    def url_for(self, request: PageRequest) -> httpx.URL:
        return httpx.URL(self.base_url + request.query.path(), params=request.params())

    async def _attempt(self, url: httpx.URL) -> FetchOutcome:
        try:
            response = await self.http.get(url)
        except httpx.TransportError as e:
            return FetchOutcome.transport(e)
        except (httpx.DecodingError, httpx.TooManyRedirects) as e:
            return FetchOutcome.fatal(None, f"Malformed response from {url.path}: {e}")

        if response.status_code == 429:
            return FetchOutcome.rate_limited()
        if not response.is_success:
            return FetchOutcome.fatal(
                response.status_code,
                f"Failed to fetch {url.path}: {response.status_code} {response.reason_phrase}",
            )
        try:
            body = response.json()
        except ValueError:
            return FetchOutcome.fatal(response.status_code, f"Malformed response body from {url.path}")
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            return FetchOutcome.fatal(response.status_code, f"Response from {url.path} has no data list")
        return FetchOutcome.ok(data, response.status_code)

    async def fetch_page(self, request: PageRequest, retry_budget: int | None = None) -> PageResult:
        """
        Fetch one page. 429s and transport faults are retried up to ``retry_budget`` times
        (policy default when None) with exponential backoff; anything else fails at once.
        Raises UpstreamError, RateLimitExhausted or TransportFault.
        """
        budget = self.policy.retry_budget if retry_budget is None else retry_budget
        url = self.url_for(request)
        state = RetryState()
        while True:
            state.attempt += 1
            outcome = await self._attempt(url)
            state.last_outcome = outcome

            if outcome.kind is OutcomeKind.OK:
                return PageResult(items=outcome.items)

            if outcome.kind is OutcomeKind.FATAL:
                self.log.warning(
                    "upstream_error",
                    path=url.path,
                    page=request.page,
                    status=outcome.status,
                    message=outcome.message,
                )
                raise UpstreamError(outcome.status, outcome.message)

            if state.attempt > budget:
                self.log.warning(
                    "upstream_retries_exhausted",
                    path=url.path,
                    page=request.page,
                    attempts=state.attempt,
                    reason=outcome.reason.value,
                )
                if outcome.reason is RetryReason.RATE_LIMITED:
                    raise RateLimitExhausted(state.attempt)
                raise TransportFault(state.attempt, outcome.error) from outcome.error

            delay = self.policy.delay_for(state.attempt)
            self.log.warning(
                "upstream_retry",
                path=url.path,
                page=request.page,
                attempt=state.attempt,
                wait_seconds=delay,
                reason=outcome.reason.value,
            )
            await self._sleep(delay)
