"""알림 서비스 — 알림 비즈니스 로직.

Notification Service — Notification listing, read/unread operations and
auto-creation for work-order events. Recipients with an e-mail address
also get a mail when SMTP is configured; mail failures are logged and
never fail the request.
"""

import logging
from typing import Any, Sequence
from uuid import UUID

import aiosmtplib
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.notification import Notification
from mesplan.models.production import WorkOrder
from mesplan.models.user import User
from mesplan.repositories.notification_repository import notification_repository
from mesplan.repositories.user_repository import user_repository
from mesplan.utils.email import email_enabled, send_email
from mesplan.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES: frozenset[str] = frozenset(
    {"work_assigned", "work_order_completed", "work_order_cancelled"}
)


class NotificationService:
    """알림 서비스.

    Notification service providing shared read/unread operations
    and auto-creation for work-order events.
    """

    def build_response(self, notification: Notification) -> dict[str, Any]:
        """알림 응답 딕셔너리 — NotificationResponse-shaped dict."""
        return {
            "id": str(notification.id),
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "entity_type": notification.entity_type,
            "entity_id": str(notification.entity_id) if notification.entity_id else None,
            "is_read": notification.is_read,
            "created_at": notification.created_at,
        }

    # --- 공통 조회/읽음 처리 (Shared read/unread operations) ---

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        notification_type: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """사용자의 알림 목록 — Paginated inbox of a user.

        Raises:
            BadRequestError: 알 수 없는 알림 유형 (Unknown notification type)
        """
        if notification_type is not None and notification_type not in NOTIFICATION_TYPES:
            raise BadRequestError(f"Unknown notification type: {notification_type}")
        return await notification_repository.get_inbox(
            db, user_id, unread_only, notification_type, page, per_page
        )

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        """읽지 않은 알림 수 — Unread notification count."""
        return await notification_repository.count_unread(db, user_id)

    async def mark_read(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> None:
        """단일 알림 읽음 처리 — Mark one of the user's notifications as read.

        Raises:
            NotFoundError: 내 알림이 아님 (Missing or another user's notification)
        """
        if not await notification_repository.set_read(db, user_id, notification_id):
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        """모든 알림 읽음 처리 — Mark all notifications as read."""
        return await notification_repository.set_read(db, user_id)

    # --- 자동 생성 (Auto-creation) ---

    async def notify(
        self,
        db: AsyncSession,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
    ) -> Notification:
        """알림을 생성하고 가능하면 이메일도 보냅니다.

        Create a notification and, when SMTP is configured and the
        recipient has an address, send it by e-mail as well.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 수신자 UUID (Recipient)
            notification_type: 알림 유형 (Notification type)
            title: 제목 (Title)
            message: 메시지 (Message)
            entity_type: 참조 엔티티 유형 (Referenced entity type)
            entity_id: 참조 엔티티 ID (Referenced entity id)

        Returns:
            Notification: 생성된 알림 (Created notification)
        """
        notification: Notification = await notification_repository.create(
            db,
            {
                "user_id": user_id,
                "type": notification_type,
                "title": title,
                "message": message,
                "entity_type": entity_type,
                "entity_id": entity_id,
            },
        )

        if email_enabled():
            recipient: User | None = await user_repository.get_by_id(db, user_id)
            if recipient is not None and recipient.email:
                try:
                    await send_email(recipient.email, title, f"<p>{message}</p>", text=message)
                except (aiosmtplib.SMTPException, OSError):
                    logger.exception("Notification e-mail to %s failed", recipient.email)
        return notification

    async def notify_work_order_completed(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
    ) -> Notification | None:
        """작업 지시 완료 알림 — Tell the creator that every item is completed."""
        if work_order.created_by is None:
            return None
        return await self.notify(
            db,
            user_id=work_order.created_by,
            notification_type="work_order_completed",
            title=f"Work order {work_order.wo_number} completed",
            message=f"All {work_order.batch_size} items of {work_order.wo_number} are completed.",
            entity_type="work_order",
            entity_id=work_order.id,
        )

    async def notify_work_assigned(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
        operator_id: UUID,
    ) -> Notification:
        """작업 배정 알림 — Tell an operator they were assigned to a work order."""
        return await self.notify(
            db,
            user_id=operator_id,
            notification_type="work_assigned",
            title=f"Assigned to {work_order.wo_number}",
            message=f"You have been assigned to work order {work_order.wo_number}.",
            entity_type="work_order",
            entity_id=work_order.id,
        )


# 싱글턴 인스턴스 — Singleton instance
notification_service: NotificationService = NotificationService()
