"""Shared FastAPI dependencies."""

from fastapi import Depends, Request

from app.core.config import get_settings
from app.core.exceptions import UnauthorizedError
from app.core.security import load_session_cookie
from app.models.account import AccountRecord
from app.storage.base import AccountStore, get_account_store
from app.upstream.aggregator import PaginatedAggregator
from app.upstream.client import UpstreamClient

SESSION_COOKIE_NAME = "jikan_gateway_session"


def get_aggregator(request: Request) -> PaginatedAggregator:
    """Dependency: aggregator over the process-wide httpx client created at startup."""
    settings = get_settings()
    client = UpstreamClient(request.app.state.upstream_http, base_url=settings.jikan_base_url)
    return PaginatedAggregator(client, settings=settings)


async def get_current_account(
    request: Request,
    store: AccountStore = Depends(get_account_store),
) -> AccountRecord:
    """Dependency: load session from cookie and return the account."""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not cookie:
        raise UnauthorizedError("Not authenticated")
    payload = load_session_cookie(cookie)
    if not payload:
        raise UnauthorizedError("Invalid or expired session")
    username = payload.get("username")
    if not username:
        raise UnauthorizedError("Invalid session")
    account = await store.find_by_username(username)
    if not account or account.id != payload.get("account_id"):
        raise UnauthorizedError("Account not found")
    return account
