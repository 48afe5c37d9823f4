"""관리자 가용성 라우터 — 작업자 부재/부분 가용 시간 관리.

Admin Availability Router — Record holidays, sick days and partial-hours
days for any operator, list entries in a range and show upcoming time off.
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_supervisor
from mesplan.database import get_db
from mesplan.models.availability import OperatorAvailability
from mesplan.models.user import User
from mesplan.schemas.availability import AvailabilityRangeCreate, AvailabilityResponse, TimeOffResponse
from mesplan.schemas.common import MessageResponse
from mesplan.services.availability_service import availability_service
from mesplan.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


@router.get("", response_model=list[AvailabilityResponse])
async def list_availability(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    date_from: Annotated[date, Query(description="시작일")],
    date_to: Annotated[date, Query(description="종료일")],
    user_id: Annotated[UUID | None, Query(description="작업자 필터")] = None,
) -> list[dict]:
    """기간 내 가용성 항목을 조회합니다."""
    entries: list[OperatorAvailability] = await availability_service.list_availability(
        db, date_from, date_to, user_id
    )
    return [availability_service.build_response(e) for e in entries]


@router.post("", response_model=list[AvailabilityResponse], status_code=201)
async def set_availability(
    data: AvailabilityRangeCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[dict]:
    """작업자의 기간 가용성을 설정합니다.

    Replace the operator's availability on every day of the range.
    available_hours 0 marks the operator absent for the whole day.
    """
    if not data.user_id:
        raise BadRequestError("user_id is required")
    entries: list[OperatorAvailability] = await availability_service.set_availability_range(
        db, data.user_id, data, current_user.id
    )
    await db.commit()
    return [availability_service.build_response(e) for e in entries]


@router.get("/time-off", response_model=list[TimeOffResponse])
async def upcoming_time_off(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
    days_ahead: Annotated[int, Query(ge=1, le=90)] = 14,
) -> list[dict]:
    """다가오는 휴가 — Upcoming absences grouped per operator and reason."""
    return await availability_service.upcoming_time_off(db, days_ahead)


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_availability(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict:
    """가용성 항목 삭제."""
    await availability_service.delete_availability(db, entry_id)
    await db.commit()
    return {"message": "Availability entry deleted"}
