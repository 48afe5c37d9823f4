"""관리자 공정 단계 라우터 — 제품 유형별 공정 단계 카탈로그.

Admin Production Step Router — The ordered step catalog per product type.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_admin, require_reader
from mesplan.database import get_db
from mesplan.models.production import ProductionStep
from mesplan.models.user import User
from mesplan.schemas.work_order import ProductionStepCreate, ProductionStepResponse, ProductionStepUpdate
from mesplan.services.work_order_service import work_order_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[ProductionStepResponse])
async def list_steps(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    product_type: Annotated[str, Query(description="제품 유형")],
) -> list[dict[str, Any]]:
    """제품 유형의 공정 단계 (순서대로)."""
    steps: list[ProductionStep] = await work_order_service.list_steps(db, product_type)
    return [work_order_service.build_step_response(s) for s in steps]


@router.post("", response_model=ProductionStepResponse, status_code=201)
async def create_step(
    data: ProductionStepCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """공정 단계 생성."""
    step: ProductionStep = await work_order_service.create_step(db, data)
    await db.commit()
    return work_order_service.build_step_response(step)


@router.patch("/{step_id}", response_model=ProductionStepResponse)
async def update_step(
    step_id: UUID,
    data: ProductionStepUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """공정 단계 수정."""
    step: ProductionStep = await work_order_service.update_step(db, step_id, data)
    await db.commit()
    return work_order_service.build_step_response(step)
