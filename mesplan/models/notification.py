"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions.
Each notification can reference the entity that triggered it via
entity_type and entity_id.

Tables:
    - notifications: 사용자 알림 (User notifications with polymorphic references)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mesplan.database import Base


class Notification(Base):
    """알림 모델 — 사용자에게 전달되는 시스템 알림.

    Notification Types (type 필드 값):
        - "work_order_completed": 작업 지시 완료 (All items of a work order completed)
        - "work_order_cancelled": 작업 지시 취소 (Work order cancelled)
        - "work_assigned": 작업 배정 (Operator assigned to a work order)

    Attributes:
        user_id: 수신자 FK (Recipient)
        type: 알림 유형 (Notification type, see above)
        title: 제목 (Short title)
        message: 알림 메시지 (Human-readable message)
        entity_type: 참조 엔티티 유형 (Referenced entity type, e.g. "work_order")
        entity_id: 참조 엔티티 ID (Referenced entity UUID)
        is_read: 읽음 여부 (Whether the user has read it)
    """

    __tablename__ = "notifications"

    # 알림 고유 식별자 — Notification unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 수신자 FK — Target user who receives this notification
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 알림 유형 — work_order_completed | work_order_cancelled | work_assigned
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    # 참조 엔티티 — Polymorphic reference to the source entity
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # 읽음 여부 — False=미읽음, True=읽음 (Unread by default)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )
