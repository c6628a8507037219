"""Username/password registration and login against the configured AccountStore."""

from app.core.exceptions import BadRequestError, ConflictError, UnauthorizedError
from app.core.logging import get_logger
from app.core.security import hash_password, verify_password
from app.models.account import AccountRecord
from app.storage.base import AccountStore

log = get_logger(__name__)


def _require_credentials(username: str | None, password: str | None) -> tuple[str, str]:
    username = (username or "").strip()
    if not username or not password:
        raise BadRequestError("Missing values")
    return username, password


async def register(store: AccountStore, username: str | None, password: str | None) -> AccountRecord:
    username, password = _require_credentials(username, password)
    if await store.find_by_username(username):
        raise ConflictError("Username already exists")
    account = await store.insert(username, hash_password(password))
    log.info("account_created", account_id=account.id, username=account.username)
    return account


async def login(store: AccountStore, username: str | None, password: str | None) -> AccountRecord:
    """Unknown user and wrong password are indistinguishable to the caller."""
    username, password = _require_credentials(username, password)
    account = await store.find_by_username(username)
    if account is None or not verify_password(password, account.password_digest):
        log.info("account_login_failed", username=username)
        raise UnauthorizedError("Invalid username or password")
    log.info("account_login", account_id=account.id, username=account.username)
    return account


def session_payload_for_account(account: AccountRecord) -> dict:
    return {
        "account_id": account.id,
        "username": account.username,
    }
