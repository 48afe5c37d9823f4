"""앱 검색/상태 라우터 — 통합 검색, 계보, 최근 검색어, 화면 상태.

App Search Router — Global search, serial genealogy, recent searches,
session-scoped view state and the last visited route.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_session, get_current_user
from mesplan.database import get_db
from mesplan.models.session import UserSession
from mesplan.models.user import User
from mesplan.schemas.common import MessageResponse
from mesplan.schemas.search import LastRouteUpdate, RecentSearchesResponse, SearchResponse, ViewStateUpdate
from mesplan.services.search_service import search_service

router: APIRouter = APIRouter()


# --- 검색 (Search) ---

@router.get("/search", response_model=SearchResponse)
async def global_search(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    q: Annotated[str, Query(description="작업 지시 번호 또는 시리얼")],
) -> dict[str, Any]:
    """통합 검색 — Work orders by number and items by serial."""
    result: dict[str, Any] = await search_service.global_search(db, current_user, q)
    await db.commit()
    return result


@router.get("/search/genealogy/{serial_number}")
async def genealogy(
    serial_number: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """시리얼 계보 — Item, work order, executions, components, batches and certificate."""
    result: dict[str, Any] = await search_service.genealogy(db, current_user, serial_number)
    await db.commit()
    return result


@router.get("/search/recent", response_model=RecentSearchesResponse)
async def recent_searches(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    scope: Annotated[str, Query(description="system | genealogy")] = "system",
) -> dict[str, Any]:
    """최근 검색어 (최신순)."""
    return {"scope": scope, "terms": await search_service.recent_terms(db, current_user.id, scope)}


@router.delete("/search/recent", response_model=MessageResponse)
async def clear_recent_searches(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    scope: Annotated[str, Query(description="system | genealogy")] = "system",
) -> dict[str, str]:
    """최근 검색어 삭제."""
    await search_service.clear_recent(db, current_user.id, scope)
    await db.commit()
    return {"message": "Recent searches cleared"}


# --- 세션 화면 상태 (Session view state) ---

@router.get("/state/view")
async def get_view_states(
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> dict[str, Any]:
    """현재 세션의 모든 화면 상태."""
    return await search_service.get_view_states(db, session)


@router.get("/state/view/{key}")
async def get_view_state(
    key: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> dict[str, Any]:
    """화면 상태 조회 — 404 when nothing was stored under the key."""
    return {"key": key, "value": await search_service.get_view_state(db, session, key)}


@router.put("/state/view/{key}")
async def set_view_state(
    key: str,
    data: ViewStateUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> dict[str, Any]:
    """화면 상태 저장 (현재 세션에 한정)."""
    value: Any = await search_service.set_view_state(db, session, key, data.value)
    await db.commit()
    return {"key": key, "value": value}


@router.delete("/state/view/{key}", response_model=MessageResponse)
async def delete_view_state(
    key: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> dict[str, str]:
    """화면 상태 삭제."""
    await search_service.delete_view_state(db, session, key)
    await db.commit()
    return {"message": "View state deleted"}


# --- 마지막 경로 (Last route) ---

@router.get("/state/last-route")
async def get_last_route(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str | None]:
    """마지막 방문 경로 — Restored after the next login."""
    return {"route": await search_service.get_last_route(db, current_user.id)}


@router.put("/state/last-route")
async def set_last_route(
    data: LastRouteUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str | None]:
    """마지막 경로 저장 — "/" and /auth routes are ignored."""
    route: str | None = await search_service.set_last_route(db, current_user.id, data.route)
    await db.commit()
    return {"route": route}
