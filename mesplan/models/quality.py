"""품질 인증서 및 활동 로그 ORM 모델.

Quality certificate and activity log ORM models.

Tables:
    - quality_certificates: 품목별 품질 인증서 (Quality certificate per completed item)
    - activity_logs: 사용자 활동 기록 (User activity audit log)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, String, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mesplan.database import Base

_JSON = JSON().with_variant(JSONB, "postgresql")


class QualityCertificate(Base):
    """품질 인증서 모델 — 품목당 하나.

    Quality certificate, one per completed item.

    Attributes:
        work_order_item_id: 품목 FK (Certified item, unique)
        certificate_data: 인증서 데이터 스냅샷 (Snapshot of item, order and measurements)
        document_url: 저장된 인증서 문서 URL (Stored certificate document URL)
        generated_by: 생성자 FK (User who generated it)
        generated_at: 생성 일시 (Generation timestamp)
    """

    __tablename__ = "quality_certificates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), unique=True, nullable=False)
    # 인증서 데이터 — {"serial_number", "wo_number", "product_type", "measurements": [...]}
    certificate_data: Mapped[dict[str, Any]] = mapped_column(_JSON, nullable=False)
    document_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    generated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    item = relationship("WorkOrderItem")


class ActivityLog(Base):
    """활동 로그 모델 — 주요 생산/계획 작업의 감사 기록.

    Activity log entry for production and planning actions
    (complete_step, print_label, generate_certificate, schedule_work_order, ...).
    """

    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # 작업 이름 — Action name
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    # 대상 엔티티 — Polymorphic reference to the affected row
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_activity_logs_entity", "entity_type", "entity_id"),
    )
