"""작업자 배정 SQLAlchemy ORM 모델 정의.

Operator assignment ORM model definitions.
Step assignments hold the per-item, per-step operator map edited by the
assignment editor; operator assignments are the per-day rows counted by
the capacity aggregator and are re-synced from the step map after edits.

Tables:
    - step_assignments: 품목 단계별 담당 작업자 (Operator per item step)
    - operator_assignments: 작업자 일자별 작업 지시 배정 (Operator ↔ work order per day)
"""

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import Date, DateTime, Numeric, Text, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mesplan.database import Base


class StepAssignment(Base):
    """단계 배정 모델 — 품목의 한 공정 단계에 대한 담당 작업자.

    Step assignment — Which operator is responsible for one step of one item.

    Constraints:
        uq_step_assignment_item_step: 품목+단계당 한 명 (One operator per item step)
    """

    __tablename__ = "step_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 작업 지시 FK — 일괄 삭제/동기화용 (Denormalised for per-order sync)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False)
    work_order_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), nullable=False)
    production_step_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("production_steps.id", ondelete="CASCADE"), nullable=False)
    operator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("work_order_item_id", "production_step_id", name="uq_step_assignment_item_step"),
        Index("ix_step_assignments_work_order", "work_order_id"),
    )


class OperatorAssignment(Base):
    """작업자 일자 배정 모델 — "작업자 X가 D일에 작업 지시 W를 담당".

    Operator assignment — operator X works on work order W on date D.
    Multiple assignments per operator per day are allowed; no capacity
    ceiling is enforced.

    Attributes:
        assigned_date: 배정 일자 (Assignment date, the order's start date)
        planned_hours: 계획 시간 (Planned hours, default 8.0)
        actual_hours: 실제 시간 (Actual hours, optional)
    """

    __tablename__ = "operator_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False)
    operator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_date: Mapped[date] = mapped_column(Date, nullable=False)
    planned_hours: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=8.0)
    actual_hours: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("work_order_id", "operator_id", "assigned_date", name="uq_operator_assignment_wo_op_date"),
        Index("ix_operator_assignments_date", "assigned_date"),
        Index("ix_operator_assignments_operator_date", "operator_id", "assigned_date"),
    )
