"""작업자 가용성 SQLAlchemy ORM 모델.

Operator availability ORM model.

Tables:
    - operator_availability: 작업자별 일자별 가용 시간 (Per-operator, per-date available hours)
"""

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, Date, DateTime, Numeric, Text, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from mesplan.database import Base

# 부재 사유 유형 — Absence reason categories
REASON_TYPES: tuple[str, ...] = ("holiday", "sick", "training", "other")


class OperatorAvailability(Base):
    """작업자 가용성 모델.

    One row per (operator, date). available_hours == 0 marks a full-day
    absence; any positive value is a partial day that still counts as
    available for assignment but lowers the day's capacity.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 작업자 FK (Operator)
        date: 대상 일자 (Calendar date)
        available_hours: 가용 시간, 0이면 전일 부재 (Hours available, 0 = absent)
        reason_type: 사유 유형 holiday/sick/training/other (Reason category)
        reason: 자유 입력 사유 (Free-text reason)
        created_by: 입력자 FK (User who recorded the entry)
        created_at: 생성 일시 UTC (Creation timestamp)

    Constraints:
        uq_operator_availability_user_date: 작업자+일자 고유 (One entry per operator per day)
    """

    __tablename__ = "operator_availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 작업자 FK — Operator (CASCADE: 사용자 삭제 시 함께 삭제)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 대상 일자 — Calendar date
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # 가용 시간 — 0 = full-day absence
    available_hours: Mapped[float] = mapped_column(Numeric(4, 2, asdecimal=False), default=0)
    # 사유 유형 — holiday | sick | training | other
    reason_type: Mapped[str] = mapped_column(String(20), default="holiday")
    # 자유 입력 사유 — Free-text reason shown instead of the category when present
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 입력자 — Who recorded the entry (self or planner)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_operator_availability_user_date"),
        Index("ix_operator_availability_date", "date"),
    )

    @property
    def is_absent(self) -> bool:
        """전일 부재 여부 — True when the whole day is off."""
        return float(self.available_hours or 0) == 0

    @property
    def display_reason(self) -> str:
        """표시 사유 — Free text, else category, else "Away"."""
        return self.reason or self.reason_type or "Away"
