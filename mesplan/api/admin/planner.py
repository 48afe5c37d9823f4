"""관리자 생산 계획 라우터 — 달력, 백로그, 일정 지정.

Admin Planner Router — Calendar data for month/week/day views, the
unscheduled backlog and drag-drop / quick scheduling of work orders.
"""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_reader, require_supervisor
from mesplan.database import get_db
from mesplan.models.production import WorkOrder
from mesplan.models.user import User
from mesplan.schemas.planning import CalendarResponse, ScheduleRequest
from mesplan.schemas.work_order import WorkOrderResponse
from mesplan.services.planner_service import planner_service
from mesplan.services.work_order_service import work_order_service

router: APIRouter = APIRouter()


@router.get("/calendar", response_model=CalendarResponse)
async def calendar(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    view: Annotated[str, Query(description="month | week | day")] = "month",
    anchor: Annotated[date | None, Query(description="기준일, 기본 오늘")] = None,
) -> dict[str, Any]:
    """달력 데이터 — Window, per-day orders and capacity, and the list-mode orders."""
    return await planner_service.calendar(db, view, anchor or date.today())


@router.get("/window", response_model=list[WorkOrderResponse])
async def orders_in_window(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    start: Annotated[date, Query(description="시작일")],
    end: Annotated[date, Query(description="종료일")],
) -> list[dict[str, Any]]:
    """기간과 겹치는 작업 지시 (목록 보기)."""
    return await planner_service.orders_in_window(db, start, end)


@router.get("/backlog", response_model=list[WorkOrderResponse])
async def backlog(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[dict[str, Any]]:
    """미배정 백로그 — Open orders without a start date, newest first."""
    return await planner_service.unscheduled_backlog(db, limit)


@router.put("/work-orders/{work_order_id}/schedule", response_model=WorkOrderResponse)
async def schedule_work_order(
    work_order_id: UUID,
    data: ScheduleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """작업 지시 일정 지정 (드래그 앤 드롭/빠른 일정).

    Set the start date (and optionally the shipping date). Operator
    assignments move to the new date.
    """
    work_order: WorkOrder = await planner_service.schedule_work_order(
        db, work_order_id, data.start_date, data.shipping_date, current_user
    )
    await db.commit()
    return (await work_order_service.build_responses(db, [work_order]))[0]


@router.delete("/work-orders/{work_order_id}/schedule", response_model=WorkOrderResponse)
async def unschedule_work_order(
    work_order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """일정 해제 — The order returns to the backlog."""
    work_order: WorkOrder = await planner_service.unschedule_work_order(db, work_order_id, current_user)
    await db.commit()
    return (await work_order_service.build_responses(db, [work_order]))[0]
