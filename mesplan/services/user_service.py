"""사용자 서비스 — 역할 관리, 사용자 계정, 팀, 프로필 비즈니스 로직.

User Service — Role management, user accounts, teams and self-service profile.
Users are never hard-deleted; deactivation removes them from the operator
pool and blocks login while keeping their execution history.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.user import Role, Team, TeamMember, User
from mesplan.repositories.user_repository import user_repository
from mesplan.schemas.user import (
    ProfileUpdate,
    TeamCreate,
    UserCapacityUpdate,
    UserCreate,
)
from mesplan.services.storage_service import storage_service
from mesplan.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from mesplan.utils.password import hash_password, password_problems

_LANGUAGES: tuple[str, ...] = ("en", "nl")


class UserService:
    """사용자/역할/팀 관리 서비스."""

    def build_response(self, user: User) -> dict[str, Any]:
        """사용자 응답 딕셔너리 생성 — Build a UserResponse-shaped dict (role must be loaded)."""
        role: Role | None = user.role
        return {
            "id": str(user.id),
            "username": user.username,
            "full_name": user.full_name,
            "email": user.email,
            "avatar_url": user.avatar_url,
            "role_name": role.name if role else None,
            "role_level": role.level if role else None,
            "daily_capacity_hours": float(user.daily_capacity_hours or 0),
            "is_available": user.is_available,
            "is_active": user.is_active,
            "language": user.language,
            "initials": user.initials,
            "created_at": user.created_at,
        }

    async def _get_role(self, db: AsyncSession, name: str) -> Role:
        role: Role | None = await user_repository.get_role_by_name(db, name)
        if role is None:
            raise BadRequestError(f"Unknown role: {name}")
        return role

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        """사용자 조회 (역할 포함) — User with role, 404 when missing."""
        user: User | None = await user_repository.get_with_role(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_roles(self, db: AsyncSession) -> list[Role]:
        """역할 목록 — Roles by level."""
        return await user_repository.list_roles(db)

    async def list_users(
        self,
        db: AsyncSession,
        role_name: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[User]:
        """사용자 목록 — Users filtered by role, active flag and search."""
        return await user_repository.list_users(db, role_name, is_active, search)

    async def create_user(
        self,
        db: AsyncSession,
        data: UserCreate,
    ) -> User:
        """사용자를 생성합니다 (관리자용).

        Create a user with a role and capacity profile.

        Raises:
            DuplicateError: 사용자명 중복 (Username already exists)
            BadRequestError: 알 수 없는 역할 또는 약한 비밀번호 (Unknown role or weak password)
        """
        if await user_repository.get_by_username(db, data.username) is not None:
            raise DuplicateError("Username already exists")
        problems: list[str] = password_problems(data.password)
        if problems:
            raise BadRequestError("; ".join(problems))
        if data.language not in _LANGUAGES:
            raise BadRequestError("Language must be 'en' or 'nl'")
        role: Role = await self._get_role(db, data.role)

        user: User = await user_repository.create(
            db,
            {
                "role_id": role.id,
                "username": data.username,
                "full_name": data.full_name,
                "email": data.email,
                "password_hash": hash_password(data.password),
                "daily_capacity_hours": data.daily_capacity_hours,
                "language": data.language,
            },
        )
        return await self.get_user(db, user.id)

    async def change_role(
        self,
        db: AsyncSession,
        user_id: UUID,
        role_name: str,
    ) -> User:
        """역할 변경 — Change a user's role."""
        user: User = await self.get_user(db, user_id)
        role: Role = await self._get_role(db, role_name)
        user.role_id = role.id
        user.role = role
        await db.flush()
        return user

    async def set_active(
        self,
        db: AsyncSession,
        user_id: UUID,
        is_active: bool,
        acting_user: User,
    ) -> User:
        """활성/비활성 — Activate or deactivate; admins cannot deactivate themselves."""
        if user_id == acting_user.id and not is_active:
            raise BadRequestError("Cannot deactivate yourself")
        user: User = await self.get_user(db, user_id)
        user.is_active = is_active
        await db.flush()
        return user

    async def update_capacity(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: UserCapacityUpdate,
    ) -> User:
        """용량 프로필 수정 — Update daily capacity hours and availability flag."""
        user: User = await self.get_user(db, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(user, field, value)
        await db.flush()
        return user

    async def update_profile(
        self,
        db: AsyncSession,
        user: User,
        data: ProfileUpdate,
    ) -> User:
        """본인 프로필 수정 — Self-service profile update."""
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        if "language" in update_data and update_data["language"] not in _LANGUAGES:
            raise BadRequestError("Language must be 'en' or 'nl'")
        if update_data.get("avatar_url"):
            # temp 업로드를 최종 위치로 이동 — Move the temp upload into place
            update_data["avatar_url"] = storage_service.finalize_upload(update_data["avatar_url"])
        for field, value in update_data.items():
            setattr(user, field, value)
        await db.flush()
        return user

    # --- 팀 (Teams) ---

    def build_team_response(self, team: Team) -> dict[str, Any]:
        """팀 응답 딕셔너리 — Team with members (members.user must be loaded)."""
        return {
            "id": str(team.id),
            "name": team.name,
            "description": team.description,
            "color": team.color,
            "members": [
                {"user_id": str(m.user_id), "full_name": m.user.full_name, "is_lead": m.is_lead}
                for m in sorted(team.members, key=lambda m: m.user.full_name)
            ],
        }

    async def list_teams(self, db: AsyncSession) -> list[Team]:
        """팀 목록 — Teams with members."""
        return await user_repository.list_teams(db)

    async def _load_team(self, db: AsyncSession, team_id: UUID) -> Team:
        team: Team | None = await user_repository.get_team(db, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def create_team(self, db: AsyncSession, data: TeamCreate) -> Team:
        """팀 생성 — Create a team; names are unique."""
        if await user_repository.get_team_by_name(db, data.name) is not None:
            raise DuplicateError("Team name already exists")
        team: Team = Team(name=data.name, description=data.description, color=data.color)
        db.add(team)
        await db.flush()
        return await self._load_team(db, team.id)

    async def add_member(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: UUID,
        is_lead: bool = False,
    ) -> Team:
        """팀 멤버 추가 — Add a user to a team."""
        await self._load_team(db, team_id)
        await self.get_user(db, user_id)
        if await user_repository.get_membership(db, team_id, user_id) is not None:
            raise DuplicateError("User is already a member of this team")
        db.add(TeamMember(team_id=team_id, user_id=user_id, is_lead=is_lead))
        await db.flush()
        return await self._load_team(db, team_id)

    async def remove_member(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: UUID,
    ) -> None:
        """팀 멤버 제거 — Remove a user from a team."""
        membership: TeamMember | None = await user_repository.get_membership(db, team_id, user_id)
        if membership is None:
            raise NotFoundError("Team membership not found")
        await db.delete(membership)
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
user_service: UserService = UserService()
