"""사용자, 역할, 팀 관련 SQLAlchemy ORM 모델 정의.

User, Role and Team SQLAlchemy ORM model definitions.
Operators are plain users carrying a capacity profile; the operator pool
for planning is the membership of the configured production team.

Tables:
    - roles: 역할 (Roles, level-based hierarchy)
    - users: 사용자/작업자 계정 (User and operator accounts)
    - teams: 팀 (Teams, e.g. "Production")
    - team_members: 팀 소속 (Team membership)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, Numeric, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mesplan.database import Base

# 역할 이름 → 레벨 — Role name to level (lower = more authority)
ROLE_LEVELS: dict[str, int] = {
    "admin": 1,
    "supervisor": 2,
    "operator": 3,
    "logistics": 4,
}


class Role(Base):
    """역할 모델 — 권한 수준을 정의.

    Role model — Defines permission levels.
    Lower level numbers indicate higher authority:
        1 = admin, 2 = supervisor, 3 = operator, 4 = logistics

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 역할 이름 (Role name)
        level: 권한 레벨 (Permission level, 1=highest)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "roles"

    # 역할 고유 식별자 — Role unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 이름 — "admin", "supervisor", "operator", "logistics"
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # 권한 레벨 — Permission level (1=admin 최고 권한, 4=logistics)
    level: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    users = relationship("User", back_populates="role")


class User(Base):
    """사용자 모델 — 시스템 사용자 및 작업자 프로필.

    User model — Account plus operator capacity profile.
    Users are never hard-deleted; deactivation (is_active=False) removes
    them from the operator pool while keeping execution history intact.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        role_id: 역할 FK (Assigned role)
        username: 로그인 아이디 (Login username, unique)
        email: 이메일 (Email address, optional)
        full_name: 표시 이름 (Display name)
        avatar_url: 아바타 이미지 URL (Avatar image URL)
        password_hash: bcrypt 해시 (bcrypt-hashed password)
        daily_capacity_hours: 일일 기본 가용 시간 (Default hours per working day)
        is_available: 수동 가용 플래그 (Manual availability flag)
        language: UI 언어 "en" | "nl" (Preferred UI language)
        is_active: 활성 상태 (Soft-delete flag)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 FK — Assigned role (역할 삭제 시 제한됨, role deletion is restricted)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id"), nullable=False)
    # 로그인 아이디 — Login username (전역 고유, globally unique)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # 이메일 — Email address (optional, for notifications)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 표시 이름 — Display name used in summaries ("Unassigned" / name / "N operators")
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 아바타 URL — Avatar image (uploaded through storage presigned URL)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # 비밀번호 해시 — bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 일일 용량 — Default daily capacity in hours (availability rows override per day)
    daily_capacity_hours: Mapped[float] = mapped_column(Numeric(4, 2, asdecimal=False), default=8.0)
    # 가용 플래그 — Manual "available for planning" flag
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    # 언어 — Preferred UI language ("en" | "nl")
    language: Mapped[str] = mapped_column(String(5), default="en")
    # 활성 상태 — Whether the account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    role = relationship("Role", back_populates="users")
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    team_memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")

    @property
    def initials(self) -> str:
        """이니셜 — Up to two upper-case initials of the display name."""
        parts: list[str] = [p for p in self.full_name.split(" ") if p]
        return "".join(p[0] for p in parts).upper()[:2]


class Team(Base):
    """팀 모델 — 작업자 그룹.

    Team model. The team named settings.PRODUCTION_TEAM_NAME defines
    the operator pool shown by the capacity views and assignment editor.
    """

    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 팀 이름 — Unique team name
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 팀 색상 — Badge colour for UI
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")


class TeamMember(Base):
    """팀 소속 모델 — Team membership (user ↔ team)."""

    __tablename__ = "team_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 팀 리더 여부 — Whether the member leads the team
    is_lead: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_member"),
    )

    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="team_memberships")
