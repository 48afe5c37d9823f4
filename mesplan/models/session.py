"""로그인 세션 및 사용자 상태 저장 모델.

Login session and persisted user state models.
A UserSession has an absolute expiry fixed at login; refreshing tokens
never extends it. Session view state lives and dies with its session,
while recent searches and the last route persist indefinitely per user.

Tables:
    - user_sessions: 로그인 세션 + 현재 리프레시 토큰 (Login sessions with current refresh token)
    - session_view_states: 세션 범위 화면 상태 (Session-scoped filter/view state)
    - recent_searches: 최근 검색어 (Recent search terms)
    - user_preferences: 마지막 경로 등 사용자 설정 (Per-user preferences such as last route)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, String, DateTime, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mesplan.database import Base


class UserSession(Base):
    """로그인 세션 모델.

    Login session created on every successful login.

    Attributes:
        id: 세션 ID — 토큰의 "sid" 클레임 (Session id, the token "sid" claim)
        user_id: 사용자 FK (Owning user)
        refresh_token: 현재 유효한 리프레시 토큰 (Currently valid refresh token, rotated on refresh)
        started_at: 로그인 시각 (Login time)
        expires_at: 절대 만료 시각 (Absolute expiry, started_at + SESSION_TIMEOUT_HOURS)
        ended_at: 로그아웃 시각 (Logout time, None while active)
    """

    __tablename__ = "user_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(String(1024), unique=True, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_user_sessions_user", "user_id"),
    )

    user = relationship("User", back_populates="sessions")
    view_states = relationship("SessionViewState", back_populates="session", cascade="all, delete-orphan")


class SessionViewState(Base):
    """세션 범위 화면 상태 — 필터/보기 모드 등.

    Session-scoped view state (filters, view mode, route restoration).
    Rows are deleted when the session ends.
    """

    __tablename__ = "session_view_states"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("user_sessions.id", ondelete="CASCADE"), nullable=False)
    # 상태 키 — e.g. "work_orders.filters", "planner.view_mode"
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    # 상태 값 — Arbitrary JSON value
    value: Mapped[Any] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("session_id", "key", name="uq_session_view_state_key"),
    )

    session = relationship("UserSession", back_populates="view_states")


class RecentSearch(Base):
    """최근 검색어 모델 — 사용자별, 범위별로 무기한 보관.

    Recent search term, kept indefinitely per user and scope
    ("system" for global search, "genealogy" for serial lookup).
    """

    __tablename__ = "recent_searches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    scope: Mapped[str] = mapped_column(String(20), nullable=False)
    term: Mapped[str] = mapped_column(String(200), nullable=False)
    searched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "scope", "term", name="uq_recent_search_term"),
    )


class UserPreference(Base):
    """사용자 설정 모델 — 마지막 방문 경로.

    Per-user preferences persisted across sessions (last visited route).
    """

    __tablename__ = "user_preferences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    last_route: Mapped[str | None] = mapped_column(String(500), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
