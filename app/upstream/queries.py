"""Logical queries against the Jikan v4 API.

Each variant owns its resource path and the query parameters it sends.
Paginated variants get ``page``/``limit`` on every request; single-shot
variants are fetched once.
"""

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.pagination import clamp_page_size


class BaseQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    paginated: ClassVar[bool] = False

    def path(self) -> str:
        raise NotImplementedError

    def params(self, page: int, page_size: int) -> dict[str, Any]:
        return {}


def _join_ids(ids: tuple[int, ...]) -> str:
    return ",".join(str(i) for i in ids)


class TextSearch(BaseQuery):
    kind: Literal["text_search"] = "text_search"
    term: str = Field(min_length=1)
    genre_ids: tuple[int, ...] = ()

    paginated: ClassVar[bool] = True

    def path(self) -> str:
        return "/anime"

    def params(self, page: int, page_size: int) -> dict[str, Any]:
        params: dict[str, Any] = {"q": self.term, "page": page, "limit": page_size}
        if self.genre_ids:
            params["genres"] = _join_ids(self.genre_ids)
        return params


class GenreFilter(BaseQuery):
    kind: Literal["genre_filter"] = "genre_filter"
    genre_ids: tuple[int, ...] = Field(min_length=1)

    paginated: ClassVar[bool] = True

    def path(self) -> str:
        return "/anime"

    def params(self, page: int, page_size: int) -> dict[str, Any]:
        return {"genres": _join_ids(self.genre_ids), "page": page, "limit": page_size}


class TopRanked(BaseQuery):
    kind: Literal["top_ranked"] = "top_ranked"

    paginated: ClassVar[bool] = True

    def path(self) -> str:
        return "/top/anime"

    def params(self, page: int, page_size: int) -> dict[str, Any]:
        return {"page": page, "limit": page_size}


class Recommendations(BaseQuery):
    kind: Literal["recommendations"] = "recommendations"
    subject_id: int = Field(gt=0)

    def path(self) -> str:
        return f"/anime/{self.subject_id}/recommendations"


class GenreList(BaseQuery):
    kind: Literal["genre_list"] = "genre_list"

    def path(self) -> str:
        return "/genres/anime"


class AnimeListing(BaseQuery):
    """Unfiltered /anime, first page only."""

    kind: Literal["anime_listing"] = "anime_listing"

    def path(self) -> str:
        return "/anime"

    def params(self, page: int, page_size: int) -> dict[str, Any]:
        return {"limit": page_size}


Query = Annotated[
    Union[TextSearch, GenreFilter, TopRanked, Recommendations, GenreList, AnimeListing],
    Field(discriminator="kind"),
]


class PageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: Query
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)

    @field_validator("page_size")
    @classmethod
    def _upstream_limit(cls, v: int) -> int:
        return clamp_page_size(v)

    def params(self) -> dict[str, Any]:
        return self.query.params(self.page, self.page_size)


def parse_genre_ids(raw: str | None) -> tuple[int, ...]:
    """Parse "1,2, 10" into (1, 2, 10). Raises ValueError on non-numeric ids."""
    if not raw:
        return ()
    return tuple(int(part) for part in raw.split(",") if part.strip())
