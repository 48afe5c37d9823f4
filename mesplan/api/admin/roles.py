"""관리자 역할 라우터 — 역할 목록 조회.

Admin Role Router — Lists the fixed role hierarchy
(admin 1, supervisor 2, operator 3, logistics 4).
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_admin
from mesplan.database import get_db
from mesplan.models.user import Role, User
from mesplan.schemas.user import RoleResponse
from mesplan.services.user_service import user_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> list[dict]:
    """역할 목록을 레벨 순으로 조회합니다."""
    roles: list[Role] = await user_service.list_roles(db)
    return [{"id": str(r.id), "name": r.name, "level": r.level} for r in roles]
