from datetime import datetime

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class AccountRecord(BaseModel):
    """Backend-neutral view of an account, returned by every AccountStore."""

    id: str
    username: str
    password_digest: str
    created_at: datetime


class Account(Document):
    username: Indexed(str, unique=True)
    password_digest: str  # sha512 hex
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "accounts"

    def to_record(self) -> AccountRecord:
        return AccountRecord(
            id=str(self.id),
            username=self.username,
            password_digest=self.password_digest,
            created_at=self.created_at,
        )
