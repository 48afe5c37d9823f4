"""세션 레포지토리 — 로그인 세션, 화면 상태, 최근 검색어, 사용자 설정.

Session Repository — Login sessions, session view state, recent searches
and user preferences.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.session import RecentSearch, SessionViewState, UserPreference, UserSession
from mesplan.repositories.base import BaseRepository


class SessionRepository(BaseRepository[UserSession]):
    """로그인 세션 및 세션 범위 상태 레포지토리.

    Repository for login sessions and the state bound to them.
    """

    def __init__(self) -> None:
        super().__init__(UserSession)

    async def get_by_refresh_token(
        self,
        db: AsyncSession,
        refresh_token: str,
    ) -> UserSession | None:
        """현재 리프레시 토큰으로 세션을 조회합니다.

        Retrieve the session whose current refresh token matches.
        Rotated (older) refresh tokens no longer match any session.
        """
        result = await db.execute(
            select(UserSession).where(UserSession.refresh_token == refresh_token)
        )
        return result.scalar_one_or_none()

    async def end_session(
        self,
        db: AsyncSession,
        session: UserSession,
    ) -> None:
        """세션을 종료하고 세션 범위 상태를 삭제합니다.

        End a session: stamp ended_at, drop its refresh token and delete
        its view state rows.
        """
        session.ended_at = datetime.now(timezone.utc)
        session.refresh_token = None
        await db.execute(delete(SessionViewState).where(SessionViewState.session_id == session.id))
        await db.flush()

    # --- 세션 화면 상태 (Session view state) ---

    async def get_view_states(
        self,
        db: AsyncSession,
        session_id: UUID,
    ) -> list[SessionViewState]:
        """세션의 모든 화면 상태 — All view state rows of a session."""
        result = await db.execute(
            select(SessionViewState)
            .where(SessionViewState.session_id == session_id)
            .order_by(SessionViewState.key)
        )
        return list(result.scalars().all())

    async def get_view_state(
        self,
        db: AsyncSession,
        session_id: UUID,
        key: str,
    ) -> SessionViewState | None:
        """세션의 특정 키 화면 상태 — One view state row by key."""
        result = await db.execute(
            select(SessionViewState).where(
                SessionViewState.session_id == session_id,
                SessionViewState.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_view_state(
        self,
        db: AsyncSession,
        session_id: UUID,
        key: str,
        value: Any,
    ) -> SessionViewState:
        """화면 상태 저장 (있으면 갱신) — Insert or update one view state key."""
        state: SessionViewState | None = await self.get_view_state(db, session_id, key)
        if state is None:
            state = SessionViewState(session_id=session_id, key=key, value=value)
            db.add(state)
        else:
            state.value = value
        await db.flush()
        await db.refresh(state)
        return state

    async def delete_view_state(
        self,
        db: AsyncSession,
        session_id: UUID,
        key: str,
    ) -> bool:
        """화면 상태 삭제 — Delete one key; False when absent."""
        state: SessionViewState | None = await self.get_view_state(db, session_id, key)
        if state is None:
            return False
        await db.delete(state)
        await db.flush()
        return True

    # --- 최근 검색어 (Recent searches) ---

    async def get_recent_searches(
        self,
        db: AsyncSession,
        user_id: UUID,
        scope: str,
    ) -> list[RecentSearch]:
        """최근 검색어 목록 (최신순) — Recent searches, newest first."""
        result = await db.execute(
            select(RecentSearch)
            .where(RecentSearch.user_id == user_id, RecentSearch.scope == scope)
            .order_by(RecentSearch.searched_at.desc())
        )
        return list(result.scalars().all())

    async def record_search(
        self,
        db: AsyncSession,
        user_id: UUID,
        scope: str,
        term: str,
        limit: int,
    ) -> list[RecentSearch]:
        """검색어를 맨 앞에 기록하고 limit개만 남깁니다.

        Record a term at the front of the user's recent list. An existing
        identical term is moved to the front instead of duplicated, and
        entries beyond `limit` are pruned.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)
            scope: "system" | "genealogy"
            term: 정규화된 검색어 (Normalised search term)
            limit: 보관 개수 (Entries kept)

        Returns:
            list[RecentSearch]: 갱신된 최근 검색어 목록 (Updated list, newest first)
        """
        existing: list[RecentSearch] = await self.get_recent_searches(db, user_id, scope)
        now: datetime = datetime.now(timezone.utc)
        match: RecentSearch | None = next((r for r in existing if r.term == term), None)
        if match is not None:
            match.searched_at = now
        else:
            match = RecentSearch(user_id=user_id, scope=scope, term=term, searched_at=now)
            db.add(match)

        others: list[RecentSearch] = [r for r in existing if r is not match]
        for stale in others[max(limit - 1, 0):]:
            await db.delete(stale)
        await db.flush()
        return [match] + others[: max(limit - 1, 0)]

    async def clear_recent_searches(
        self,
        db: AsyncSession,
        user_id: UUID,
        scope: str,
    ) -> None:
        """최근 검색어 전체 삭제 — Clear a user's recent searches in one scope."""
        await db.execute(
            delete(RecentSearch).where(RecentSearch.user_id == user_id, RecentSearch.scope == scope)
        )
        await db.flush()

    # --- 사용자 설정 (Preferences) ---

    async def get_preference(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> UserPreference | None:
        """사용자 설정 조회 — Preference row or None."""
        result = await db.execute(select(UserPreference).where(UserPreference.user_id == user_id))
        return result.scalar_one_or_none()

    async def set_last_route(
        self,
        db: AsyncSession,
        user_id: UUID,
        route: str,
    ) -> UserPreference:
        """마지막 경로 저장 — Store the user's last visited route."""
        pref: UserPreference | None = await self.get_preference(db, user_id)
        if pref is None:
            pref = UserPreference(user_id=user_id, last_route=route)
            db.add(pref)
        else:
            pref.last_route = route
        await db.flush()
        await db.refresh(pref)
        return pref


# 싱글턴 인스턴스 — Singleton instance
session_repository: SessionRepository = SessionRepository()
