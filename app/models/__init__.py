from app.models.account import Account, AccountRecord

__all__ = [
    "Account",
    "AccountRecord",
]
