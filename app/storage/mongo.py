from pymongo.errors import DuplicateKeyError

from app.core.exceptions import ConflictError
from app.models.account import Account, AccountRecord
from app.storage.base import AccountStore


class MongoAccountStore(AccountStore):
    """Accounts collection via beanie; requires init_db() at startup."""

    async def find_by_username(self, username: str) -> AccountRecord | None:
        account = await Account.find_one(Account.username == username)
        return account.to_record() if account else None

    async def insert(self, username: str, password_digest: str) -> AccountRecord:
        account = Account(username=username, password_digest=password_digest)
        try:
            await account.insert()
        except DuplicateKeyError as e:
            raise ConflictError("Username already exists") from e
        return account.to_record()
