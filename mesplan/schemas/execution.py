"""공정 단계 실행, 인증서 Pydantic 스키마 정의.

Step execution, quality certificate and traceability schema definitions.
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class StepCompleteRequest(BaseModel):
    """단계 완료 요청.

    Attributes:
        measurement_values: 측정값 {"field": value} (Measurements keyed by field name)
        notes: 비고 (Operator notes)
    """

    measurement_values: dict[str, Any] | None = None
    notes: str | None = None


class StepSkipRequest(BaseModel):
    """단계 건너뛰기 요청 — Skip reason."""

    notes: str | None = None


class ExecutionResponse(BaseModel):
    """단계 실행 응답."""

    id: str
    work_order_item_id: str
    production_step_id: str
    step_number: int | None = None
    status: str
    executed_by: str | None
    measurement_values: dict[str, Any] | None
    validation_status: str | None
    notes: str | None
    started_at: datetime | None
    completed_at: datetime | None


class CertificateResponse(BaseModel):
    """품질 인증서 응답."""

    id: str
    work_order_item_id: str
    serial_number: str | None = None
    certificate_data: dict[str, Any]
    document_url: str | None
    generated_by: str | None
    generated_at: datetime


# === 추적성 (Traceability) ===

class SubAssemblyLinkRequest(BaseModel):
    """하위 조립품 연결 요청 — Scanned component serial and its expected type."""

    component_type: str
    serial_number: str = Field(min_length=1)


class SubAssemblyResponse(BaseModel):
    """하위 조립품 연결 응답."""

    id: str
    parent_item_id: str
    child_item_id: str
    child_serial_number: str | None
    component_type: str
    linked_at: datetime


class BatchScanRequest(BaseModel):
    """배치 자재 스캔 요청.

    Attributes:
        material_type: 자재 유형 (epoxy, piezo, pcb, ...)
        batch_number: 배치 번호 (Supplier batch number)
        opening_date: 개봉일 — epoxy 필수 (Required for epoxy)
        production_step_id: 스캔한 단계 (Step during which it was scanned)
    """

    material_type: str
    batch_number: str = Field(min_length=1)
    opening_date: date | None = None
    production_step_id: UUID | None = None


class BatchMaterialResponse(BaseModel):
    """배치 자재 응답."""

    id: str
    work_order_item_id: str
    production_step_id: str | None
    material_type: str
    batch_number: str
    opening_date: date | None
    scanned_at: datetime
