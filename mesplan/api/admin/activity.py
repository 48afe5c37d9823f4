"""관리자 활동 로그 라우터 — 감사 기록 조회.

Admin Activity Router — Read the audit trail of production and planning actions.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_supervisor
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.schemas.common import PaginatedResponse
from mesplan.utils.pagination import build_page

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_activity(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    entity_type: Annotated[str | None, Query(description="엔티티 유형")] = None,
    entity_id: Annotated[UUID | None, Query(description="엔티티 ID")] = None,
    action: Annotated[str | None, Query(description="작업 이름")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=200)] = 50,
) -> dict[str, Any]:
    """활동 로그 목록 (최신순)."""
    entries, total = await activity_repository.list_recent(
        db, entity_type=entity_type, entity_id=entity_id, action=action, page=page, per_page=per_page
    )
    items: list[dict[str, Any]] = [
        {
            "id": str(e.id),
            "user_id": str(e.user_id) if e.user_id else None,
            "action": e.action,
            "entity_type": e.entity_type,
            "entity_id": str(e.entity_id) if e.entity_id else None,
            "details": e.details,
            "created_at": e.created_at,
        }
        for e in entries
    ]
    return build_page(items, total, page, per_page)
