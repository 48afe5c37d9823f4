"""관리자 사용자 라우터 — 역할 관리, 사용자 계정, 용량 프로필.

Admin User Router — Role management endpoints: user listing and creation,
role changes, activation (soft delete) and the operator capacity profile.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_admin, require_supervisor
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.schemas.user import (
    UserActiveUpdate,
    UserCapacityUpdate,
    UserCreate,
    UserResponse,
    UserRoleUpdate,
)
from mesplan.services.user_service import user_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    role: Annotated[str | None, Query(description="역할 이름 필터")] = None,
    is_active: Annotated[bool | None, Query(description="활성 상태 필터")] = None,
    search: Annotated[str | None, Query(description="이름/사용자명 검색")] = None,
) -> list[dict]:
    """사용자 목록을 조회합니다.

    List users, optionally filtered by role name, active flag and a
    name/username search.
    """
    users: list[User] = await user_service.list_users(db, role, is_active, search)
    return [user_service.build_response(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict:
    """사용자 상세 조회."""
    return user_service.build_response(await user_service.get_user(db, user_id))


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """새 사용자를 생성합니다 (관리자 전용).

    Create a user with a role and daily capacity.
    """
    user: User = await user_service.create_user(db, data)
    await db.commit()
    return user_service.build_response(user)


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: UUID,
    data: UserRoleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """사용자 역할 변경."""
    user: User = await user_service.change_role(db, user_id, data.role)
    await db.commit()
    return user_service.build_response(user)


@router.put("/{user_id}/active", response_model=UserResponse)
async def set_active(
    user_id: UUID,
    data: UserActiveUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """사용자 활성/비활성 (소프트 삭제).

    Activate or deactivate a user. Deactivated users cannot log in and
    drop out of the operator pool.
    """
    user: User = await user_service.set_active(db, user_id, data.is_active, current_user)
    await db.commit()
    return user_service.build_response(user)


@router.put("/{user_id}/capacity", response_model=UserResponse)
async def update_capacity(
    user_id: UUID,
    data: UserCapacityUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """용량 프로필 수정 — daily_capacity_hours, is_available."""
    user: User = await user_service.update_capacity(db, user_id, data)
    await db.commit()
    return user_service.build_response(user)
