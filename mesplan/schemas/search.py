"""검색 및 저장된 화면 상태 Pydantic 스키마 정의.

Search, recent search and persisted view state schemas.
"""

from typing import Any

from pydantic import BaseModel, Field


class ViewStateUpdate(BaseModel):
    """세션 화면 상태 저장 요청 — Any JSON value."""

    value: Any = None


class LastRouteUpdate(BaseModel):
    """마지막 경로 저장 요청."""

    route: str = Field(min_length=1, max_length=500)


class RecentSearchesResponse(BaseModel):
    """최근 검색어 응답 (최신순)."""

    scope: str
    terms: list[str]


class SearchResponse(BaseModel):
    """통합 검색 응답."""

    query: str
    work_orders: list[dict[str, Any]]
    items: list[dict[str, Any]]
    recent: list[str]
