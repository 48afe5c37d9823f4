"""사용자 레포지토리 — 사용자, 역할, 팀, 작업자 풀 쿼리.

User Repository — Users, roles, teams and the operator pool.
Extends BaseRepository with User-specific database operations
including filtering, eager loading of roles, and team membership.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mesplan.models.user import Role, Team, TeamMember, User
from mesplan.repositories.base import BaseRepository

# 팀이 없을 때 작업자 풀에 포함되는 역할 — Roles forming the pool when no production team exists
_POOL_FALLBACK_ROLES: tuple[str, ...] = ("operator", "supervisor")


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for users, roles and teams.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_with_role(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> User | None:
        """역할을 함께 로드하여 사용자를 조회합니다.

        Retrieve a user with the role eagerly loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 ID (User UUID)

        Returns:
            User | None: 역할이 로드된 사용자 또는 None (User with role loaded, or None)
        """
        result = await db.execute(
            select(User).options(selectinload(User.role)).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_username(
        self,
        db: AsyncSession,
        username: str,
    ) -> User | None:
        """사용자명으로 사용자를 조회합니다 (역할 포함).

        Retrieve a user by username with the role loaded.
        """
        result = await db.execute(
            select(User).options(selectinload(User.role)).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def list_users(
        self,
        db: AsyncSession,
        role_name: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[User]:
        """필터 조건으로 사용자 목록을 조회합니다.

        List users filtered by role name, active flag and a name/username search.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role_name: 역할 이름 필터 (Role name filter)
            is_active: 활성 상태 필터 (Active flag filter)
            search: 이름/아이디 부분 검색 (Partial name or username match)

        Returns:
            list[User]: 이름순 사용자 목록 (Users ordered by full name)
        """
        query: Select = select(User).options(selectinload(User.role))
        if role_name is not None:
            query = query.join(Role, Role.id == User.role_id).where(Role.name == role_name)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        if search:
            pattern: str = f"%{search}%"
            query = query.where(User.full_name.ilike(pattern) | User.username.ilike(pattern))
        result = await db.execute(query.order_by(User.full_name))
        return list(result.scalars().all())

    async def get_users_by_ids(
        self,
        db: AsyncSession,
        user_ids: Sequence[UUID],
    ) -> dict[UUID, User]:
        """ID 목록으로 사용자 맵을 조회합니다 — Map of users by id."""
        if not user_ids:
            return {}
        result = await db.execute(select(User).where(User.id.in_(list(user_ids))))
        return {u.id: u for u in result.scalars().all()}

    # --- 역할 (Roles) ---

    async def list_roles(self, db: AsyncSession) -> list[Role]:
        """레벨 순 역할 목록 — Roles ordered by level."""
        result = await db.execute(select(Role).order_by(Role.level))
        return list(result.scalars().all())

    async def get_role_by_name(self, db: AsyncSession, name: str) -> Role | None:
        """이름으로 역할 조회 — Role by name."""
        result = await db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    # --- 팀 (Teams) ---

    async def get_team_by_name(self, db: AsyncSession, name: str) -> Team | None:
        """이름으로 팀 조회 — Team by name."""
        result = await db.execute(select(Team).where(Team.name == name))
        return result.scalar_one_or_none()

    async def get_team(self, db: AsyncSession, team_id: UUID) -> Team | None:
        """멤버를 포함한 팀 조회 — Team with members freshly loaded."""
        result = await db.execute(
            select(Team)
            .options(selectinload(Team.members).selectinload(TeamMember.user))
            .where(Team.id == team_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_teams(self, db: AsyncSession) -> list[Team]:
        """멤버를 포함한 팀 목록 — Teams with members loaded."""
        result = await db.execute(
            select(Team)
            .options(selectinload(Team.members).selectinload(TeamMember.user))
            .order_by(Team.name)
        )
        return list(result.scalars().all())

    async def get_membership(
        self,
        db: AsyncSession,
        team_id: UUID,
        user_id: UUID,
    ) -> TeamMember | None:
        """팀 소속 조회 — Membership row or None."""
        result = await db.execute(
            select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_operator_pool(
        self,
        db: AsyncSession,
        team_name: str,
    ) -> list[User]:
        """작업자 풀을 조회합니다.

        Return the operator pool: active members of the named team ordered
        by full name. When the team does not exist, fall back to all active
        users holding an operator or supervisor role.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            team_name: 생산 팀 이름 (Production team name)

        Returns:
            list[User]: 작업자 목록 (Operators ordered by full name)
        """
        team: Team | None = await self.get_team_by_name(db, team_name)
        query: Select
        if team is not None:
            query = (
                select(User)
                .join(TeamMember, TeamMember.user_id == User.id)
                .where(TeamMember.team_id == team.id, User.is_active.is_(True))
            )
        else:
            query = (
                select(User)
                .join(Role, Role.id == User.role_id)
                .where(Role.name.in_(_POOL_FALLBACK_ROLES), User.is_active.is_(True))
            )
        result = await db.execute(query.order_by(User.full_name))
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
