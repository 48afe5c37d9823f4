"""추적성(계보) ORM 모델 — 하위 조립품 연결과 배치 자재 스캔.

Traceability ORM models for the serial genealogy.

Tables:
    - sub_assemblies: 상위 품목 ↔ 하위 조립품 품목 연결 (Parent item → component item links)
    - batch_materials: 품목에 사용된 자재 배치 (Material batches scanned for an item)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Date, DateTime, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mesplan.database import Base

# 하위 조립품이 될 수 있는 제품 유형 — Product types usable as a component
COMPONENT_TYPES: tuple[str, ...] = ("SENSOR", "MLA", "HMI", "TRANSMITTER")

# 자재 유형 — Material types; the value says whether an opening date is required
MATERIAL_TYPES: dict[str, bool] = {
    "epoxy": True,
    "piezo": False,
    "pcb": False,
    "display": False,
    "carrier_board": False,
    "som": False,
    "io_board": False,
    "switch_board": False,
    "poe_board": False,
    "sd_card": False,
}


class SubAssembly(Base):
    """하위 조립품 연결 모델.

    Links a finished component unit (e.g. a SENSOR "Q-0007") into a
    parent unit (e.g. an SDM_ECO "S-0002").

    Attributes:
        parent_item_id: 상위 품목 FK (Assembly that receives the component)
        child_item_id: 하위 품목 FK (Component unit, linked at most once per parent)
        component_type: 하위 품목 제품 유형 (Product type of the component)
        linked_by: 연결한 작업자 (Operator who scanned the link)
    """

    __tablename__ = "sub_assemblies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    parent_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), nullable=False)
    child_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), nullable=False)
    # 구성품 유형 — SENSOR | MLA | HMI | TRANSMITTER
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    linked_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    linked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("parent_item_id", "child_item_id", name="uq_sub_assembly_parent_child"),
        Index("ix_sub_assemblies_parent", "parent_item_id"),
    )

    child_item = relationship("WorkOrderItem", foreign_keys=[child_item_id])


class BatchMaterial(Base):
    """배치 자재 모델 — 품목 생산에 투입된 자재 로트.

    Material batch scanned while producing an item, optionally at a
    specific production step.

    Attributes:
        work_order_item_id: 품목 FK (Item the material went into)
        production_step_id: 스캔한 공정 단계 (Step during which it was scanned)
        material_type: 자재 유형 (See MATERIAL_TYPES)
        batch_number: 배치/로트 번호 (Supplier batch number)
        opening_date: 개봉일 — epoxy 필수 (Opening date, required for epoxy)
        scanned_by: 스캔한 작업자 (Operator who scanned it)
    """

    __tablename__ = "batch_materials"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_order_items.id", ondelete="CASCADE"), nullable=False)
    production_step_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("production_steps.id", ondelete="SET NULL"), nullable=True)
    material_type: Mapped[str] = mapped_column(String(50), nullable=False)
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    opening_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    scanned_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    scanned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_batch_materials_item", "work_order_item_id"),
        Index("ix_batch_materials_material_type", "material_type"),
    )
