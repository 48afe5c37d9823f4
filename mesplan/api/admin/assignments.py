"""관리자 배정 라우터 — 작업 지시 배정 편집기와 일자별 작업자 배정.

Admin Assignment Router — The assignment editor (assign all, by product
group, per item, per step, clear all) and manual operator-day rows.
Every editor call returns the re-read assignment overview.
"""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_supervisor
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.schemas.common import MessageResponse
from mesplan.schemas.planning import (
    AssignmentOverviewResponse,
    AssignOperatorRequest,
    AssignProductGroupRequest,
    OperatorAssignmentCreate,
    OperatorAssignmentResponse,
)
from mesplan.services.assignment_service import assignment_service
from mesplan.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


# ---------------------------------------------------------------------------
# 배정 편집기 — Assignment editor
# ---------------------------------------------------------------------------

@router.get("/work-orders/{work_order_id}/assignments", response_model=AssignmentOverviewResponse)
async def assignment_overview(
    work_order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """작업 지시 배정 현황 — Per-item step map, summary and completion stats."""
    return await assignment_service.assignment_overview(db, work_order_id)


@router.post("/work-orders/{work_order_id}/assignments/all", response_model=AssignmentOverviewResponse)
async def assign_all(
    work_order_id: UUID,
    data: AssignOperatorRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """모든 품목/단계를 한 작업자에게 배정합니다.

    Assign every item and step to one operator. An operator who is
    absent on the order's start date is rejected with 400 and nothing
    is written.
    """
    if data.operator_id is None:
        raise BadRequestError("operator_id is required")
    result: dict[str, Any] = await assignment_service.assign_all(
        db, work_order_id, data.operator_id, current_user.id
    )
    await db.commit()
    return result


@router.post("/work-orders/{work_order_id}/assignments/product-group", response_model=AssignmentOverviewResponse)
async def assign_product_group(
    work_order_id: UUID,
    data: AssignProductGroupRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """제품 유형별 일괄 배정 — Multi-product orders."""
    result: dict[str, Any] = await assignment_service.assign_product_group(
        db, work_order_id, data.product_type, data.operator_id, current_user.id
    )
    await db.commit()
    return result


@router.delete("/work-orders/{work_order_id}/assignments", response_model=AssignmentOverviewResponse)
async def clear_all(
    work_order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """모든 배정 해제."""
    result: dict[str, Any] = await assignment_service.clear_all(db, work_order_id, current_user.id)
    await db.commit()
    return result


@router.put("/items/{item_id}/assignment", response_model=AssignmentOverviewResponse)
async def assign_item(
    item_id: UUID,
    data: AssignOperatorRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """품목 배정/해제 — operator_id null clears the item."""
    result: dict[str, Any] = await assignment_service.assign_item(
        db, item_id, data.operator_id, current_user.id
    )
    await db.commit()
    return result


@router.put("/items/{item_id}/steps/{step_id}/assignment", response_model=AssignmentOverviewResponse)
async def assign_step(
    item_id: UUID,
    step_id: UUID,
    data: AssignOperatorRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """단계 배정/해제 — operator_id null clears the step."""
    result: dict[str, Any] = await assignment_service.assign_step(
        db, item_id, step_id, data.operator_id, current_user.id
    )
    await db.commit()
    return result


# ---------------------------------------------------------------------------
# 일자별 작업자 배정 — Operator-day assignments
# ---------------------------------------------------------------------------

@router.get("/operator-assignments", response_model=list[OperatorAssignmentResponse])
async def list_operator_assignments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    date_from: Annotated[date, Query(description="시작일")],
    date_to: Annotated[date, Query(description="종료일")],
    operator_id: Annotated[UUID | None, Query(description="작업자 필터")] = None,
) -> list[dict[str, Any]]:
    """기간 내 일자별 작업자 배정 목록."""
    rows = await assignment_service.list_operator_assignments(db, date_from, date_to, operator_id)
    return [assignment_service.build_operator_assignment(a, wo_number) for a, wo_number in rows]


@router.post("/operator-assignments", response_model=OperatorAssignmentResponse, status_code=201)
async def create_operator_assignment(
    data: OperatorAssignmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """일자별 작업자 배정 생성 — Rejected when the operator is absent that day."""
    assignment, wo_number = await assignment_service.create_operator_assignment(db, data, current_user.id)
    await db.commit()
    return assignment_service.build_operator_assignment(assignment, wo_number)


@router.delete("/operator-assignments/{assignment_id}", response_model=MessageResponse)
async def delete_operator_assignment(
    assignment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict:
    """일자별 작업자 배정 삭제."""
    await assignment_service.delete_operator_assignment(db, assignment_id)
    await db.commit()
    return {"message": "Operator assignment deleted"}
