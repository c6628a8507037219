"""Retry policy and per-attempt outcomes for upstream calls."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.core.config import Settings, get_settings


class OutcomeKind(str, Enum):
    OK = "ok"
    RETRYABLE = "retryable"
    FATAL = "fatal"


class RetryReason(str, Enum):
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class FetchOutcome:
    """Result of a single HTTP attempt, classified."""

    kind: OutcomeKind
    items: list[dict[str, Any]] | None = None
    reason: RetryReason | None = None
    status: int | None = None
    error: Exception | None = None
    message: str = ""

    @classmethod
    def ok(cls, items: list[dict[str, Any]], status: int) -> "FetchOutcome":
        return cls(OutcomeKind.OK, items=items, status=status)

    @classmethod
    def rate_limited(cls) -> "FetchOutcome":
        return cls(OutcomeKind.RETRYABLE, reason=RetryReason.RATE_LIMITED, status=429)

    @classmethod
    def transport(cls, error: Exception) -> "FetchOutcome":
        return cls(OutcomeKind.RETRYABLE, reason=RetryReason.TRANSPORT, error=error, message=str(error))

    @classmethod
    def fatal(cls, status: int | None, message: str) -> "FetchOutcome":
        return cls(OutcomeKind.FATAL, status=status, message=message)


@dataclass(frozen=True)
class RetryPolicy:
    retry_budget: int = 3
    backoff_base: float = 1.0
    backoff_exponent_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (1-based): 2s, 4s, 8s with defaults."""
        return self.backoff_base * self.backoff_exponent_base ** attempt

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RetryPolicy":
        settings = settings or get_settings()
        return cls(
            retry_budget=settings.upstream_retry_budget,
            backoff_base=settings.upstream_backoff_base_seconds,
            backoff_exponent_base=settings.upstream_backoff_exponent_base,
        )


@dataclass
class RetryState:
    attempt: int = 0
    last_outcome: FetchOutcome | None = field(default=None)
