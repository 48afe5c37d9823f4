"""작업 지시, 품목, 공정 단계 Pydantic 스키마 정의.

Work order, item and production step request/response schema definitions.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


# === 작업 지시 (Work order) 스키마 ===

class WorkOrderLine(BaseModel):
    """혼합 작업 지시의 제품 라인 — One product line of a mixed work order."""

    product_type: str
    quantity: int = Field(gt=0)


class WorkOrderCreate(BaseModel):
    """작업 지시 생성 요청 스키마.

    Work order creation request. batch_size items are created with serial
    numbers. When lines are given, the items follow the lines in order and
    batch_size is their total quantity.

    Attributes:
        wo_number: 작업 지시 번호, 생략 시 자동 생성 (Optional, WO-YYYY-NNNN when omitted)
        product_type: 제품 유형 (Primary product type)
        batch_size: 배치 크기 (Number of items, > 0)
        lines: 제품 라인 목록, 선택 (Optional product lines for mixed orders)
    """

    wo_number: str | None = None
    product_type: str
    batch_size: int = Field(default=1, gt=0, le=1000)
    lines: list[WorkOrderLine] | None = None
    priority: int = Field(default=3, ge=1, le=5)
    estimated_hours: float | None = Field(default=None, ge=0)
    customer_name: str | None = None
    external_order_number: str | None = None
    order_value: float | None = None
    start_date: date | None = None
    shipping_date: date | None = None
    notes: str | None = None


class WorkOrderUpdate(BaseModel):
    """작업 지시 수정 요청 스키마 (부분 업데이트)."""

    priority: int | None = Field(default=None, ge=1, le=5)
    estimated_hours: float | None = Field(default=None, ge=0)
    customer_name: str | None = None
    external_order_number: str | None = None
    order_value: float | None = None
    shipping_date: date | None = None
    notes: str | None = None


class WorkOrderStatusUpdate(BaseModel):
    """작업 지시 상태 변경 요청 — Status transition request."""

    status: str


class WorkOrderCancel(BaseModel):
    """작업 지시 취소 요청 — Cancellation requires a reason."""

    reason: str = Field(min_length=1)


class WorkOrderItemResponse(BaseModel):
    """작업 지시 품목 응답 스키마."""

    id: str
    work_order_id: str
    serial_number: str
    position_in_batch: int
    product_type: str
    current_step: int
    status: str
    assigned_to: str | None
    label_printed: bool
    quality_approved: bool
    certificate_generated: bool
    completed_at: datetime | None


class WorkOrderResponse(BaseModel):
    """작업 지시 응답 스키마.

    Work order with item completion stats.
    """

    id: str
    wo_number: str
    product_type: str
    batch_size: int
    status: str
    priority: int
    estimated_hours: float | None
    customer_name: str | None
    external_order_number: str | None
    order_value: float | None
    start_date: date | None
    shipping_date: date | None
    notes: str | None
    cancellation_reason: str | None
    assigned_to: str | None
    created_by: str | None
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    completed_items: int = 0
    total_items: int = 0
    items: list[WorkOrderItemResponse] | None = None


class WorkOrderGroup(BaseModel):
    """작업 지시 그룹 — One group of the grouped list."""

    key: str
    count: int
    items: list[WorkOrderResponse]


class WorkOrderGroupsResponse(BaseModel):
    """그룹별 작업 지시 응답 — Grouped work orders."""

    group_by: str
    total: int
    groups: list[WorkOrderGroup]


# === 공정 단계 (Production steps) 스키마 ===

class ProductionStepCreate(BaseModel):
    """공정 단계 생성 요청 스키마."""

    product_type: str
    step_number: int = Field(gt=0)
    title_en: str = Field(min_length=1)
    title_nl: str | None = None
    description: str | None = None
    requires_value_input: bool = False
    measurement_fields: list[dict[str, Any]] | None = None
    estimated_minutes: int | None = Field(default=None, ge=0)


class ProductionStepUpdate(BaseModel):
    """공정 단계 수정 요청 스키마 (부분 업데이트)."""

    title_en: str | None = None
    title_nl: str | None = None
    description: str | None = None
    requires_value_input: bool | None = None
    measurement_fields: list[dict[str, Any]] | None = None
    estimated_minutes: int | None = Field(default=None, ge=0)


class ProductionStepResponse(BaseModel):
    """공정 단계 응답 스키마."""

    id: str
    product_type: str
    step_number: int
    title_en: str
    title_nl: str | None
    description: str | None
    requires_value_input: bool
    measurement_fields: list[dict[str, Any]] | None
    estimated_minutes: int | None
