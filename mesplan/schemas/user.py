"""사용자, 역할, 팀 및 프로필 관련 Pydantic 요청/응답 스키마 정의.

User, Role, Team and Profile Pydantic request/response schema definitions.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


# === 역할 (Role) 스키마 ===

class RoleResponse(BaseModel):
    """역할 응답 스키마."""

    id: str
    name: str
    level: int


# === 사용자 (User) 스키마 ===

class UserCreate(BaseModel):
    """사용자 생성 요청 스키마 (관리자용).

    User creation request schema (admin-only operation).

    Attributes:
        username: 로그인 아이디 (Login username, unique)
        password: 비밀번호 (Plain text, will be bcrypt-hashed)
        full_name: 실명 (Full display name)
        email: 이메일 (Email address, optional)
        role: 역할 이름 (Role name: admin/supervisor/operator/logistics)
        daily_capacity_hours: 일일 용량 (Default hours per working day)
    """

    username: str = Field(min_length=1, max_length=100)
    password: str
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    role: str = "operator"
    daily_capacity_hours: float = Field(default=8.0, ge=0, le=24)
    language: str = "en"


class UserRoleUpdate(BaseModel):
    """사용자 역할 변경 요청 — Change a user's role by name."""

    role: str


class UserActiveUpdate(BaseModel):
    """사용자 활성/비활성 요청 — Activate or deactivate (soft delete)."""

    is_active: bool


class UserCapacityUpdate(BaseModel):
    """작업자 용량 프로필 수정 요청 — Capacity profile update."""

    daily_capacity_hours: float | None = Field(default=None, ge=0, le=24)
    is_available: bool | None = None


class UserResponse(BaseModel):
    """사용자 응답 스키마."""

    id: str
    username: str
    full_name: str
    email: str | None
    avatar_url: str | None
    role_name: str | None
    role_level: int | None
    daily_capacity_hours: float
    is_available: bool
    is_active: bool
    language: str
    initials: str
    created_at: datetime


class ProfileUpdate(BaseModel):
    """본인 프로필 수정 요청 (부분 업데이트).

    Self-service profile update. Only provided fields are changed.
    """

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    language: str | None = None
    avatar_url: str | None = None


class PasswordChange(BaseModel):
    """비밀번호 변경 요청 — Change own password."""

    current_password: str
    new_password: str


# === 팀 (Team) 스키마 ===

class TeamCreate(BaseModel):
    """팀 생성 요청 스키마."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    color: str | None = None


class TeamMemberAdd(BaseModel):
    """팀 멤버 추가 요청 — Add a user to a team."""

    user_id: UUID
    is_lead: bool = False


class TeamMemberResponse(BaseModel):
    """팀 멤버 응답 스키마."""

    user_id: str
    full_name: str
    is_lead: bool


class TeamResponse(BaseModel):
    """팀 응답 스키마 (멤버 포함)."""

    id: str
    name: str
    description: str | None
    color: str | None
    members: list[TeamMemberResponse] = []
