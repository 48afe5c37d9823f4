"""앱 공정 실행 라우터 — 작업자 작업 목록과 단계 시작/완료/건너뛰기.

App Execution Router — The operator's work queue, item progress and the
step state machine (start, complete with measurements, skip), plus the
printable item label.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_user, require_operator
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.schemas.execution import ExecutionResponse, StepCompleteRequest, StepSkipRequest
from mesplan.services.execution_service import execution_service
from mesplan.services.label_service import label_service

router: APIRouter = APIRouter()


@router.get("/my/queue")
async def my_queue(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """내 작업 목록 — Open items assigned to me, most urgent first."""
    return await execution_service.my_queue(db, current_user)


@router.get("/items/{item_id}/progress")
async def item_progress(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """품목 진행 현황 — Ordered steps with each step's execution."""
    return await execution_service.item_progress(db, item_id)


@router.post("/items/{item_id}/steps/{step_id}/start", response_model=ExecutionResponse)
async def start_step(
    item_id: UUID,
    step_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, Any]:
    """단계 시작.

    Start the item's current step. Starting a step already in progress
    returns it unchanged.
    """
    execution, step = await execution_service.start_step(db, item_id, step_id, current_user)
    await db.commit()
    return execution_service.build_response(execution, step.step_number)


@router.post("/items/{item_id}/steps/{step_id}/complete", response_model=ExecutionResponse)
async def complete_step(
    item_id: UUID,
    step_id: UUID,
    data: StepCompleteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, Any]:
    """단계 완료 (멱등).

    Complete an in-progress step with its measurements. Repeating the
    call returns the recorded execution without advancing the item again.
    """
    execution, step = await execution_service.complete_step(db, item_id, step_id, data, current_user)
    await db.commit()
    return execution_service.build_response(execution, step.step_number)


@router.post("/items/{item_id}/steps/{step_id}/skip", response_model=ExecutionResponse)
async def skip_step(
    item_id: UUID,
    step_id: UUID,
    data: StepSkipRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, Any]:
    """단계 건너뛰기."""
    execution, step = await execution_service.skip_step(db, item_id, step_id, data.notes, current_user)
    await db.commit()
    return execution_service.build_response(execution, step.step_number)


@router.get("/items/{item_id}/label", response_class=HTMLResponse)
async def print_label(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> HTMLResponse:
    """품목 라벨 (QR 코드 포함) — Opens the browser print dialog."""
    page: str = await label_service.render_label(db, item_id, current_user)
    await db.commit()
    return HTMLResponse(page)
