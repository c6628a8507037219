from abc import ABC, abstractmethod

from app.core.config import get_settings
from app.models.account import AccountRecord


class AccountStore(ABC):
    @abstractmethod
    async def find_by_username(self, username: str) -> AccountRecord | None:
        """Return the account or None."""
        ...

    @abstractmethod
    async def insert(self, username: str, password_digest: str) -> AccountRecord:
        """Create account; raise ConflictError if the username is taken."""
        ...


_memory_store: AccountStore | None = None


def get_account_store() -> AccountStore:
    settings = get_settings()
    if settings.account_store_backend == "memory":
        global _memory_store
        if _memory_store is None:
            from app.storage.memory import InMemoryAccountStore
            _memory_store = InMemoryAccountStore()
        return _memory_store
    from app.storage.mongo import MongoAccountStore
    return MongoAccountStore()
