"""알림 라우터 — 알림 관리 API.

Notification Router — List, unread count, mark read and mark all read.
Mounted under both the admin and the shop-floor API.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_user
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.schemas.common import MessageResponse, PaginatedResponse, UnreadCountResponse
from mesplan.services.notification_service import notification_service
from mesplan.utils.pagination import build_page

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    unread_only: Annotated[bool, Query()] = False,
    notification_type: Annotated[str | None, Query(alias="type")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, Any]:
    """내 알림 목록을 조회합니다.

    List notifications for the current user, newest first, optionally
    only unread ones or one notification type.
    """
    notifications, total = await notification_service.list_notifications(
        db,
        user_id=current_user.id,
        unread_only=unread_only,
        notification_type=notification_type,
        page=page,
        per_page=per_page,
    )
    items: list[dict[str, Any]] = [notification_service.build_response(n) for n in notifications]
    return build_page(items, total, page, per_page)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    """읽지 않은 알림 수를 조회합니다."""
    count: int = await notification_service.get_unread_count(db, user_id=current_user.id)
    return {"unread_count": count}


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """단일 알림을 읽음 처리합니다."""
    await notification_service.mark_read(db, notification_id=notification_id, user_id=current_user.id)
    await db.commit()
    return {"message": "Notification marked as read"}


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """모든 읽지 않은 알림을 읽음 처리합니다."""
    count: int = await notification_service.mark_all_read(db, user_id=current_user.id)
    await db.commit()
    return {"message": f"{count} notifications marked as read"}
