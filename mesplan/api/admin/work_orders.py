"""관리자 작업 지시 라우터 — 작업 지시 생성/조회/그룹화/상태 관리.

Admin Work Order Router — Work order creation with serialised items,
filtered and grouped listing, partial updates, status transitions and
cancellation. Logistics users have read access.
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
from mesplan.schemas.common import PaginatedResponse
from mesplan.schemas.work_order import (
    WorkOrderCancel,
    WorkOrderCreate,
    WorkOrderGroupsResponse,
    WorkOrderResponse,
    WorkOrderStatusUpdate,
    WorkOrderUpdate,
)
from mesplan.services.execution_service import execution_service
from mesplan.services.work_order_service import work_order_service
from mesplan.utils.pagination import build_page

router: APIRouter = APIRouter()


def _filters(
    status: str | None,
    product_type: str | None,
    customer: str | None,
    search: str | None,
    date_from: date | None,
    date_to: date | None,
) -> dict[str, Any]:
    return {
        "status": status,
        "product_type": product_type,
        "customer": customer,
        "search": search,
        "date_from": date_from,
        "date_to": date_to,
    }


@router.get("", response_model=PaginatedResponse)
async def list_work_orders(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    status: Annotated[str | None, Query(description="상태 필터")] = None,
    product_type: Annotated[str | None, Query(description="제품 유형 필터")] = None,
    customer: Annotated[str | None, Query(description="고객 필터")] = None,
    search: Annotated[str | None, Query(description="번호/고객 검색")] = None,
    date_from: Annotated[date | None, Query(description="시작일 이후")] = None,
    date_to: Annotated[date | None, Query(description="시작일 이전")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=200)] = 20,
) -> dict[str, Any]:
    """작업 지시 목록 (필터, 페이지네이션, 최신순)."""
    work_orders, total = await work_order_service.list_work_orders(
        db, page, per_page, **_filters(status, product_type, customer, search, date_from, date_to)
    )
    items: list[dict[str, Any]] = await work_order_service.build_responses(db, list(work_orders))
    return build_page(items, total, page, per_page)


@router.get("/grouped", response_model=WorkOrderGroupsResponse)
async def group_work_orders(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    group_by: Annotated[str, Query(description="none | status | product | customer | delivery_month")] = "none",
    status: Annotated[str | None, Query()] = None,
    product_type: Annotated[str | None, Query()] = None,
    customer: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    date_from: Annotated[date | None, Query()] = None,
    date_to: Annotated[date | None, Query()] = None,
) -> dict[str, Any]:
    """그룹별 작업 지시 — Disjoint groups covering the filtered list."""
    return await work_order_service.group_work_orders(
        db, group_by, **_filters(status, product_type, customer, search, date_from, date_to)
    )


@router.get("/summary")
async def production_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> dict[str, Any]:
    """생산 요약 — Counts by status and product, item completion."""
    return await work_order_service.production_summary(db)


@router.post("", response_model=WorkOrderResponse, status_code=201)
async def create_work_order(
    data: WorkOrderCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """작업 지시를 생성합니다.

    Create a work order and its batch of serialised items. Without
    start_date the order lands in the planner backlog.
    """
    work_order: WorkOrder = await work_order_service.create_work_order(db, data, current_user)
    await db.commit()
    return await work_order_service.get_detail(db, work_order.id)


@router.get("/{work_order_id}", response_model=WorkOrderResponse)
async def get_work_order(
    work_order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> dict[str, Any]:
    """작업 지시 상세 (품목과 완료 통계 포함)."""
    return await work_order_service.get_detail(db, work_order_id)


@router.patch("/{work_order_id}", response_model=WorkOrderResponse)
async def update_work_order(
    work_order_id: UUID,
    data: WorkOrderUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """작업 지시 부분 수정 — Start date changes go through the planner."""
    await work_order_service.update_work_order(db, work_order_id, data)
    await db.commit()
    return await work_order_service.get_detail(db, work_order_id)


@router.put("/{work_order_id}/status", response_model=WorkOrderResponse)
async def change_status(
    work_order_id: UUID,
    data: WorkOrderStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """상태 전이 — planned/in_progress/on_hold/completed."""
    await work_order_service.change_status(db, work_order_id, data.status, current_user)
    await db.commit()
    return await work_order_service.get_detail(db, work_order_id)


@router.post("/{work_order_id}/cancel", response_model=WorkOrderResponse)
async def cancel_work_order(
    work_order_id: UUID,
    data: WorkOrderCancel,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """작업 지시 취소 (사유 필수)."""
    await work_order_service.cancel_work_order(db, work_order_id, data.reason, current_user)
    await db.commit()
    return await work_order_service.get_detail(db, work_order_id)


@router.get("/items/{item_id}/progress")
async def item_progress(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> dict[str, Any]:
    """품목 진행 현황 — Ordered steps with execution status."""
    return await execution_service.item_progress(db, item_id)
