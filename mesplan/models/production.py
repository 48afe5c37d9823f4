"""생산 관련 SQLAlchemy ORM 모델 정의.

Production SQLAlchemy ORM model definitions.

Tables:
    - work_orders: 작업 지시 — 한 제품 유형의 생산 배치 (Production batches)
    - work_order_items: 작업 지시 품목 — 시리얼 번호별 단위 (Serialised units)
    - production_steps: 제품 유형별 공정 단계 (Ordered steps per product type)
    - step_executions: 공정 단계 실행 기록 (Step execution records)
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import JSON, String, Boolean, Date, DateTime, Integer, Numeric, Text, ForeignKey, UniqueConstraint, Index, CheckConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mesplan.database import Base

# 제품 유형 및 시리얼 접두사 — Product types and their serial prefixes
PRODUCT_PREFIXES: dict[str, str] = {
    "SENSOR": "Q",
    "MLA": "W",
    "HMI": "X",
    "TRANSMITTER": "T",
    "SDM_ECO": "S",
}
PRODUCT_TYPES: tuple[str, ...] = tuple(PRODUCT_PREFIXES)

# 작업 지시 상태 — Work order statuses
WORK_ORDER_STATUSES: tuple[str, ...] = ("planned", "in_progress", "on_hold", "completed", "cancelled")

# 단계 실행 상태 — Step execution statuses
STEP_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "skipped")

_JSON = JSON().with_variant(JSONB, "postgresql")


class WorkOrder(Base):
    """작업 지시 모델 — 한 배치의 생산 계획 단위.

    Work order model — A production batch and the unit scheduled on the planner.

    Status Flow:
        planned → in_progress → completed
        planned/in_progress ⇄ on_hold
        planned/in_progress/on_hold → cancelled (사유 필수, reason required)

    Attributes:
        wo_number: 작업 지시 번호 (Work order number, unique)
        product_type: 주 제품 유형 (Primary product type)
        batch_size: 품목 수 (Number of items, > 0)
        status: 상태 (planned/in_progress/on_hold/completed/cancelled)
        priority: 우선순위, 낮을수록 급함 (Priority, 1 = most urgent)
        estimated_hours: 예상 작업 시간 (Estimated labour hours)
        start_date: 생산 시작일 — NULL이면 미배정 백로그 (Start date, NULL = backlog)
        shipping_date: 출하(납기)일 (Delivery date)
        assigned_to: 대표 담당 작업자 (Lead operator, first assigned)
    """

    __tablename__ = "work_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 작업 지시 번호 — e.g. "WO-2026-0001"
    wo_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # 주 제품 유형 — SDM_ECO | SENSOR | MLA | HMI | TRANSMITTER
    product_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # 배치 크기 — Number of serialised items
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False)
    # 상태 — planned | in_progress | on_hold | completed | cancelled
    status: Mapped[str] = mapped_column(String(20), default="planned")
    # 우선순위 — 1(긴급) ~ 5(낮음)
    priority: Mapped[int] = mapped_column(Integer, default=3)
    # 예상 작업 시간 — Estimated total labour hours
    estimated_hours: Mapped[float | None] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=True)
    # 고객 정보 — Customer / order reference
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_order_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    order_value: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    # 일정 — Planned start and delivery dates
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    shipping_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 취소 사유 — Required when status becomes cancelled
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 상위 작업 지시 — Parent work order for split batches
    parent_wo_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="SET NULL"), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # 대표 담당 작업자 — First operator of the assignment set
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("batch_size > 0", name="ck_work_orders_batch_size_positive"),
        Index("ix_work_orders_start_date", "start_date"),
        Index("ix_work_orders_shipping_date", "shipping_date"),
        Index("ix_work_orders_status", "status"),
    )

    items = relationship(
        "WorkOrderItem",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderItem.position_in_batch",
    )


class WorkOrderItem(Base):
    """작업 지시 품목 모델 — 시리얼 번호가 부여된 물리적 단위.

    Work order item — One serialised unit progressing through the
    production steps of its product type.

    Attributes:
        serial_number: 시리얼 번호 (Serial number, e.g. "Q-0042", unique)
        position_in_batch: 배치 내 순번 (1-based position in batch)
        product_type: 품목 제품 유형 (Product type of this unit)
        current_step: 현재 공정 단계 번호 (Current step number, 1-based)
        status: planned | in_progress | completed
        assigned_to: 담당 작업자 (Assigned operator)
    """

    __tablename__ = "work_order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    position_in_batch: Mapped[int] = mapped_column(Integer, nullable=False)
    product_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # 현재 단계 — 마지막 단계 초과 시 완료 (Past the last step means completed)
    current_step: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[str] = mapped_column(String(20), default="planned")
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    label_printed: Mapped[bool] = mapped_column(Boolean, default=False)
    quality_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    certificate_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_work_order_items_work_order", "work_order_id"),
    )

    work_order = relationship("WorkOrder", back_populates="items")


class ProductionStep(Base):
    """공정 단계 모델 — 제품 유형별 순서가 있는 생산 단계 정의.

    Production step definition, ordered by step_number within a product type.

    Attributes:
        product_type: 제품 유형 (Product type)
        step_number: 단계 번호, 1부터 (1-based step number)
        title_en / title_nl: 영어/네덜란드어 제목 (English/Dutch titles)
        requires_value_input: 측정값 입력 필요 여부 (Whether a measurement is required)
        measurement_fields: 측정 필드 정의 목록 (Measurement field definitions, JSON list)
    """

    __tablename__ = "production_steps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_type: Mapped[str] = mapped_column(String(20), nullable=False)
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title_en: Mapped[str] = mapped_column(String(255), nullable=False)
    title_nl: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    requires_value_input: Mapped[bool] = mapped_column(Boolean, default=False)
    # 측정 필드 — [{"name": "voltage", "unit": "V", "required": true}, ...]
    measurement_fields: Mapped[list[dict[str, Any]] | None] = mapped_column(_JSON, nullable=True)
    estimated_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("product_type", "step_number", name="uq_production_step_product_number"),
    )


class StepExecution(Base):
    """공정 단계 실행 모델.

    Step execution record for one (item, step) pair.
    State machine: pending → in_progress → {completed | skipped}.
    The (item, step) uniqueness makes completion retries idempotent.

    Attributes:
        work_order_item_id: 품목 FK (Item)
        production_step_id: 공정 단계 FK (Step)
        status: pending | in_progress | completed | skipped
        executed_by: 수행 작업자 (Operator who executed the step)
        measurement_values: 측정값 (Recorded measurement values)
        validation_status: passed | failed | None
    """

    __tablename__ = "step_executions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), nullable=False)
    production_step_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("production_steps.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    executed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    measurement_values: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    validation_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("work_order_item_id", "production_step_id", name="uq_step_execution_item_step"),
    )

    production_step = relationship("ProductionStep")
    executor = relationship("User")
