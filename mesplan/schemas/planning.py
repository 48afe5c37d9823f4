"""배정, 용량, 계획 화면 Pydantic 스키마 정의.

Assignment editor, capacity and planner request/response schemas.
"""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


# === 배정 편집기 (Assignment editor) 요청 ===

class AssignOperatorRequest(BaseModel):
    """작업자 배정 요청.

    Assign an operator. operator_id null clears the assignment on the
    item and step routes; it is required on the assign-all route.
    """

    operator_id: UUID | None = None


class AssignProductGroupRequest(BaseModel):
    """제품 그룹 배정 요청 — Assign every item of one product type."""

    product_type: str
    operator_id: UUID


class OperatorAssignmentCreate(BaseModel):
    """일자별 작업자 배정 수동 생성 요청."""

    work_order_id: UUID
    operator_id: UUID
    assigned_date: date
    planned_hours: float = Field(default=8.0, ge=0, le=24)
    notes: str | None = None


class OperatorAssignmentResponse(BaseModel):
    """일자별 작업자 배정 응답."""

    id: str
    work_order_id: str
    wo_number: str | None = None
    operator_id: str
    assigned_date: date
    planned_hours: float
    actual_hours: float | None
    notes: str | None


# === 배정 현황 (Assignment overview) 응답 ===

class CompletionStats(BaseModel):
    """품목 완료 통계 — completed counts skipped steps too."""

    completed: int
    in_progress: int
    total: int
    percentage: int


class ItemAssignmentResponse(BaseModel):
    """품목별 배정 현황."""

    item_id: str
    serial_number: str
    product_type: str
    status: str
    assigned_to: str | None
    assigned_name: str | None
    steps: dict[str, str | None]  # step_number → operator_id
    summary: str
    stats: CompletionStats


class AssignmentOverviewResponse(BaseModel):
    """작업 지시 배정 현황 응답."""

    work_order_id: str
    wo_number: str
    assigned_to: str | None
    items: list[ItemAssignmentResponse]


# === 용량 (Capacity) 응답 ===

class OperatorDayCapacity(BaseModel):
    """작업자 하루 용량."""

    operator_id: str
    full_name: str
    initials: str
    is_unavailable: bool
    reason: str | None
    assignment_count: int
    assignments: list[str]
    capacity_hours: float
    planned_hours: float


class DayCapacityResponse(BaseModel):
    """일자별 용량 응답."""

    date: date
    operators: list[OperatorDayCapacity]


class WorkloadDay(BaseModel):
    """작업자 일자별 부하."""

    date: date
    capacity_hours: float
    planned_hours: float
    assignment_count: int
    utilization_pct: float


class WorkloadResponse(BaseModel):
    """작업자 기간 부하 응답."""

    operator_id: str
    full_name: str
    days: list[WorkloadDay]


# === 계획 화면 (Planner) ===

class ScheduleRequest(BaseModel):
    """작업 지시 일정 지정 요청 — drag-drop and quick schedule."""

    start_date: date
    shipping_date: date | None = None


class CalendarResponse(BaseModel):
    """달력 응답 — Calendar payload for month/week/day views."""

    view: str
    anchor: date
    start: date
    end: date
    days: list[dict[str, Any]]
    orders: list[dict[str, Any]]
