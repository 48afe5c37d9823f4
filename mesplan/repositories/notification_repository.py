"""알림 레포지토리 — 사용자 수신함 쿼리.

Notification Repository — Inbox queries for work-order notifications
(work_assigned, work_order_completed, work_order_cancelled). Every
query is scoped to the recipient, so one user never reads or flips
another user's notifications.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.notification import Notification
from mesplan.repositories.base import BaseRepository


def _inbox_filter(
    user_id: UUID,
    unread_only: bool = False,
    notification_type: str | None = None,
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.is_read.is_(False))
    if notification_type:
        conditions.append(Notification.type == notification_type)
    return conditions


class NotificationRepository(BaseRepository[Notification]):
    """알림 수신함 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def get_inbox(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        notification_type: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """수신함 한 페이지 — One page of a user's inbox, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 수신자 UUID (Recipient)
            unread_only: 읽지 않은 알림만 (Only unread notifications)
            notification_type: 알림 유형 필터 (e.g. "work_assigned")
            page: 페이지 번호 (1-based page)
            per_page: 페이지당 항목 수 (Items per page)
        """
        query: Select = (
            select(Notification)
            .where(*_inbox_filter(user_id, unread_only, notification_type))
            .order_by(Notification.created_at.desc(), Notification.id)
        )
        return await self.get_paginated(db, query, page, per_page)

    async def count_unread(self, db: AsyncSession, user_id: UUID) -> int:
        query: Select = (
            select(func.count(Notification.id))
            .where(*_inbox_filter(user_id, unread_only=True))
        )
        return (await db.execute(query)).scalar() or 0

    async def set_read(
        self,
        db: AsyncSession,
        user_id: UUID,
        notification_id: UUID | None = None,
    ) -> int:
        """읽음 처리 — Flag one (or, without an id, every) unread notification as read.

        Returns:
            int: 변경된 행 수 (Rows flipped; 0 when the id is not the user's)
        """
        conditions: list[ColumnElement[bool]] = _inbox_filter(user_id, unread_only=True)
        if notification_id is not None:
            # 이미 읽은 알림도 성공으로 취급 — an already-read notification still counts
            conditions = [Notification.user_id == user_id, Notification.id == notification_id]
        result = await db.execute(update(Notification).where(*conditions).values(is_read=True))
        await db.flush()
        return result.rowcount


# 싱글턴 인스턴스 — Singleton instance
notification_repository: NotificationRepository = NotificationRepository()
