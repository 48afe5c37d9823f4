"""작업자 가용성 Pydantic 스키마 정의.

Operator availability request/response schema definitions.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class AvailabilityRangeCreate(BaseModel):
    """가용성 기간 설정 요청 스키마.

    Replace an operator's availability for every day in [start_date, end_date].

    Attributes:
        user_id: 대상 작업자 UUID (Target operator; ignored on the self-service route)
        start_date: 시작일 (First day, inclusive)
        end_date: 종료일 (Last day, inclusive)
        available_hours: 가용 시간, 0이면 전일 부재 (Hours available, 0 = absent)
        reason_type: 사유 유형 (holiday/sick/training/other)
        reason: 자유 입력 사유 (Free-text reason)
    """

    user_id: UUID | None = None
    start_date: date
    end_date: date
    available_hours: float = Field(default=0, ge=0, le=24)
    reason_type: str = "holiday"
    reason: str | None = None


class AvailabilityResponse(BaseModel):
    """가용성 응답 스키마."""

    id: str
    user_id: str
    date: date
    available_hours: float
    reason_type: str
    reason: str | None
    display_reason: str
    is_absent: bool
    created_at: datetime | None = None


class TimeOffResponse(BaseModel):
    """예정된 휴가 응답 — Grouped upcoming time off."""

    user_id: str
    full_name: str
    reason_type: str
    reason: str
    start_date: date
    end_date: date
    days: int
