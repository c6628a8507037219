"""Pagination types shared by the upstream client and the aggregator."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Item = dict[str, Any]


class TerminationReason(str, Enum):
    EXHAUSTED = "exhausted"
    ITEM_CAP_REACHED = "item-cap-reached"
    PAGE_CAP_REACHED = "page-cap-reached"
    SINGLE_SHOT = "single-shot"


class AggregationConfig(BaseModel):
    """Caps for one aggregation run. max_pages=None means bounded by max_items only."""

    model_config = ConfigDict(frozen=True)

    page_size: int = Field(default=25, ge=1)
    max_pages: int | None = Field(default=None, ge=1)
    max_items: int = Field(default=50, ge=1)


class PageResult(BaseModel):
    items: list[Item]

    @property
    def is_empty(self) -> bool:
        return not self.items


class AggregatedResult(BaseModel):
    items: list[Item]
    pages_fetched: int
    termination_reason: TerminationReason


def clamp_page_size(page_size: int, max_page_size: int = 25) -> int:
    """Clamp to what the upstream accepts (Jikan rejects limit > 25)."""
    return max(1, min(page_size, max_page_size))
