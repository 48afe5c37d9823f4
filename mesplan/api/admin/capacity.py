"""관리자 용량 라우터 — 일자/기간별 작업자 용량과 부하.

Admin Capacity Router — Per-day operator capacity for the planner and
assignment editor, and one operator's workload over a range.
"""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_supervisor
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.schemas.planning import DayCapacityResponse, WorkloadResponse
from mesplan.services.capacity_service import capacity_service

router: APIRouter = APIRouter()


@router.get("/pool")
async def operator_pool(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[dict]:
    """작업자 풀 — Operators shown by the capacity views."""
    operators: list[User] = await capacity_service.operator_pool(db)
    return [
        {"id": str(u.id), "full_name": u.full_name, "initials": u.initials}
        for u in operators
    ]


@router.get("/day", response_model=DayCapacityResponse)
async def day_capacity(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    on_date: Annotated[date, Query(alias="date", description="조회 일자")],
) -> dict[str, Any]:
    """하루 작업자 용량.

    One entry per pool operator: absence and reason, assigned work
    orders and their planned hours against the day's capacity.
    """
    return await capacity_service.day_capacity(db, on_date)


@router.get("/range", response_model=list[DayCapacityResponse])
async def range_capacity(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    start: Annotated[date, Query(description="시작일")],
    end: Annotated[date, Query(description="종료일")],
) -> list[dict[str, Any]]:
    """기간 작업자 용량 — Per-day capacity for every day in [start, end]."""
    return await capacity_service.range_capacity(db, start, end)


@router.get("/operators/{operator_id}/workload", response_model=WorkloadResponse)
async def operator_workload(
    operator_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    start: Annotated[date, Query(description="시작일")],
    end: Annotated[date, Query(description="종료일")],
) -> dict[str, Any]:
    """작업자 기간 부하 — Capacity, planned hours and utilization per day."""
    return await capacity_service.operator_workload(db, operator_id, start, end)
