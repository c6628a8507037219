import uuid
from datetime import datetime

from app.core.exceptions import ConflictError
from app.models.account import AccountRecord
from app.storage.base import AccountStore


class InMemoryAccountStore(AccountStore):
    """Process-local accounts for development and tests. Not shared across workers."""

    def __init__(self) -> None:
        self._accounts: dict[str, AccountRecord] = {}

    async def find_by_username(self, username: str) -> AccountRecord | None:
        return self._accounts.get(username)

    async def insert(self, username: str, password_digest: str) -> AccountRecord:
        if username in self._accounts:
            raise ConflictError("Username already exists")
        record = AccountRecord(
            id=uuid.uuid4().hex,
            username=username,
            password_digest=password_digest,
            created_at=datetime.utcnow(),
        )
        self._accounts[username] = record
        return record
