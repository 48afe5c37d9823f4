"""앱 추적성 라우터 — 하위 조립품 연결과 배치 자재 스캔.

App Traceability Router — Operators scan component serials into a
parent unit and record the material batches they used. The results
show up in the serial genealogy and the quality certificate.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_user, require_operator
from mesplan.database import get_db
from mesplan.models.traceability import BatchMaterial, SubAssembly
from mesplan.models.user import User
from mesplan.schemas.common import MessageResponse
from mesplan.schemas.execution import (
    BatchMaterialResponse,
    BatchScanRequest,
    SubAssemblyLinkRequest,
    SubAssemblyResponse,
)
from mesplan.services.traceability_service import traceability_service

router: APIRouter = APIRouter()


# --- 하위 조립품 (Sub-assemblies) ---

@router.get("/items/{item_id}/sub-assemblies", response_model=list[SubAssemblyResponse])
async def list_sub_assemblies(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """품목에 연결된 구성품 목록."""
    links: list[SubAssembly] = await traceability_service.list_sub_assemblies(db, item_id)
    return [traceability_service.build_link(link) for link in links]


@router.post("/items/{item_id}/sub-assemblies", response_model=SubAssemblyResponse, status_code=201)
async def link_sub_assembly(
    item_id: UUID,
    data: SubAssemblyLinkRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, Any]:
    """구성품 시리얼 연결 — 404 unknown serial, 400 type mismatch, 409 already linked."""
    result: dict[str, Any] = await traceability_service.link_sub_assembly(db, item_id, data, current_user)
    await db.commit()
    return result


@router.delete("/sub-assemblies/{link_id}", response_model=MessageResponse)
async def unlink_sub_assembly(
    link_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, str]:
    await traceability_service.unlink_sub_assembly(db, link_id, current_user)
    await db.commit()
    return {"message": "Component unlinked"}


# --- 배치 자재 (Material batches) ---

@router.get("/items/{item_id}/batches", response_model=list[BatchMaterialResponse])
async def list_batches(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    step_id: Annotated[UUID | None, Query(description="단계 필터")] = None,
) -> list[dict[str, Any]]:
    """품목의 자재 배치 (스캔 순)."""
    batches: list[BatchMaterial] = await traceability_service.list_batches(db, item_id, step_id)
    return [traceability_service.build_batch(b) for b in batches]


@router.post("/items/{item_id}/batches", response_model=BatchMaterialResponse, status_code=201)
async def scan_batch(
    item_id: UUID,
    data: BatchScanRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, Any]:
    """자재 배치 스캔 — Epoxy requires an opening date."""
    batch: BatchMaterial = await traceability_service.scan_batch(db, item_id, data, current_user)
    await db.commit()
    return traceability_service.build_batch(batch)


@router.delete("/batches/{batch_id}", response_model=MessageResponse)
async def remove_batch(
    batch_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_operator)],
) -> dict[str, str]:
    await traceability_service.remove_batch(db, batch_id)
    await db.commit()
    return {"message": "Batch removed"}
