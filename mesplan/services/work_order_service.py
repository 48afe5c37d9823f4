"""작업 지시 서비스 — 작업 지시/품목 생성, 조회, 그룹화, 상태 전이.

Work Order Service — Creation with serialised items, filtered listing,
grouping, partial updates, status transitions, cancellation and the
production step catalog.

Status transitions:
    planned     → in_progress | on_hold | cancelled
    in_progress → on_hold | completed | cancelled
    on_hold     → planned | in_progress | cancelled
"""

import logging
import re
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.production import (
    PRODUCT_PREFIXES,
    PRODUCT_TYPES,
    ProductionStep,
    WorkOrder,
    WorkOrderItem,
)
from mesplan.models.user import User
from mesplan.repositories.assignment_repository import assignment_repository
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.schemas.work_order import (
    ProductionStepCreate,
    ProductionStepUpdate,
    WorkOrderCreate,
    WorkOrderUpdate,
)
from mesplan.services.notification_service import notification_service
from mesplan.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

# 허용 상태 전이 — Allowed status transitions
STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "planned": ("in_progress", "on_hold", "cancelled"),
    "in_progress": ("on_hold", "completed", "cancelled"),
    "on_hold": ("planned", "in_progress", "cancelled"),
    "completed": (),
    "cancelled": (),
}

# 그룹 기준 — Supported group_by values
GROUP_BY_OPTIONS: tuple[str, ...] = ("none", "status", "product", "customer", "delivery_month")

NO_CUSTOMER: str = "No Customer"
NO_DATE: str = "no_date"


def group_key(work_order: WorkOrder, group_by: str) -> str:
    """작업 지시의 그룹 키.

    Key of one work order under a grouping. Every order maps to exactly
    one key, so the groups partition the list.
    """
    if group_by == "none":
        return "all"
    if group_by == "status":
        return work_order.status
    if group_by == "product":
        return work_order.product_type
    if group_by == "customer":
        return (work_order.customer_name or "").strip() or NO_CUSTOMER
    if group_by == "delivery_month":
        return work_order.shipping_date.strftime("%Y-%m") if work_order.shipping_date else NO_DATE
    raise BadRequestError(f"group_by must be one of: {', '.join(GROUP_BY_OPTIONS)}")


class WorkOrderService:
    """작업 지시 서비스."""

    # --- 응답 (Responses) ---

    def build_item_response(self, item: WorkOrderItem) -> dict[str, Any]:
        """품목 응답 딕셔너리 — WorkOrderItemResponse-shaped dict."""
        return {
            "id": str(item.id),
            "work_order_id": str(item.work_order_id),
            "serial_number": item.serial_number,
            "position_in_batch": item.position_in_batch,
            "product_type": item.product_type,
            "current_step": item.current_step,
            "status": item.status,
            "assigned_to": str(item.assigned_to) if item.assigned_to else None,
            "label_printed": item.label_printed,
            "quality_approved": item.quality_approved,
            "certificate_generated": item.certificate_generated,
            "completed_at": item.completed_at,
        }

    def build_response(
        self,
        work_order: WorkOrder,
        items: Sequence[WorkOrderItem] | None = None,
        include_items: bool = False,
    ) -> dict[str, Any]:
        """작업 지시 응답 딕셔너리.

        WorkOrderResponse-shaped dict. Item stats are filled when the
        items are passed in.
        """
        response: dict[str, Any] = {
            "id": str(work_order.id),
            "wo_number": work_order.wo_number,
            "product_type": work_order.product_type,
            "batch_size": work_order.batch_size,
            "status": work_order.status,
            "priority": work_order.priority,
            "estimated_hours": work_order.estimated_hours,
            "customer_name": work_order.customer_name,
            "external_order_number": work_order.external_order_number,
            "order_value": work_order.order_value,
            "start_date": work_order.start_date,
            "shipping_date": work_order.shipping_date,
            "notes": work_order.notes,
            "cancellation_reason": work_order.cancellation_reason,
            "assigned_to": str(work_order.assigned_to) if work_order.assigned_to else None,
            "created_by": str(work_order.created_by) if work_order.created_by else None,
            "started_at": work_order.started_at,
            "completed_at": work_order.completed_at,
            "created_at": work_order.created_at,
            "completed_items": 0,
            "total_items": work_order.batch_size,
            "items": None,
        }
        if items is not None:
            response["completed_items"] = sum(1 for i in items if i.status == "completed")
            response["total_items"] = len(items)
            if include_items:
                response["items"] = [self.build_item_response(i) for i in items]
        return response

    async def build_responses(
        self,
        db: AsyncSession,
        work_orders: Sequence[WorkOrder],
    ) -> list[dict[str, Any]]:
        """여러 작업 지시 응답 (품목 통계 포함) — Responses with item stats, one item query."""
        items: list[WorkOrderItem] = await work_order_repository.get_items_for_orders(
            db, [wo.id for wo in work_orders]
        )
        by_order: dict[UUID, list[WorkOrderItem]] = {wo.id: [] for wo in work_orders}
        for item in items:
            by_order[item.work_order_id].append(item)
        return [self.build_response(wo, by_order[wo.id]) for wo in work_orders]

    # --- 생성 (Creation) ---

    def _validate_product_type(self, product_type: str) -> None:
        if product_type not in PRODUCT_TYPES:
            raise BadRequestError(f"Product type must be one of: {', '.join(PRODUCT_TYPES)}")

    async def next_wo_number(self, db: AsyncSession, year: int | None = None) -> str:
        """다음 작업 지시 번호 — Next free number in the WO-YYYY-NNNN sequence."""
        prefix: str = f"WO-{year or date.today().year}-"
        sequence: int = await work_order_repository.count_wo_numbers_with_prefix(db, prefix) + 1
        while await work_order_repository.get_by_number(db, f"{prefix}{sequence:04d}") is not None:
            sequence += 1
        return f"{prefix}{sequence:04d}"

    async def next_serial_sequence(self, db: AsyncSession, product_type: str) -> int:
        """제품 접두사의 다음 시리얼 순번.

        Continue from the highest existing "<prefix>-NNNN" serial.
        """
        prefix: str = PRODUCT_PREFIXES[product_type]
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        highest: int = 0
        for serial in await work_order_repository.get_serials_with_prefix(db, prefix):
            match = pattern.match(serial)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest + 1

    async def create_work_order(
        self,
        db: AsyncSession,
        data: WorkOrderCreate,
        created_by: User,
    ) -> WorkOrder:
        """작업 지시와 품목을 생성합니다.

        Create the work order and its serialised items. Serial numbers use
        the product prefix (e.g. "Q-0042") and continue from the highest
        existing serial. The number is generated when omitted.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 생성 요청 (Creation request)
            created_by: 생성자 (Creating user)

        Returns:
            WorkOrder: 생성된 작업 지시 (Created work order)

        Raises:
            DuplicateError: 작업 지시 번호 중복 (Duplicate wo_number)
            BadRequestError: 잘못된 제품 유형 또는 날짜 (Invalid product type or dates)
        """
        self._validate_product_type(data.product_type)
        lines: list[tuple[str, int]] = (
            [(line.product_type, line.quantity) for line in data.lines]
            if data.lines
            else [(data.product_type, data.batch_size)]
        )
        for product_type, _ in lines:
            self._validate_product_type(product_type)
        if data.start_date and data.shipping_date and data.shipping_date < data.start_date:
            raise BadRequestError("Shipping date must not be before start date")

        wo_number: str = (data.wo_number or "").strip() or await self.next_wo_number(db)
        if await work_order_repository.get_by_number(db, wo_number) is not None:
            raise DuplicateError(f"Work order {wo_number} already exists")

        work_order: WorkOrder = await work_order_repository.create(
            db,
            {
                "wo_number": wo_number,
                "product_type": data.product_type,
                "batch_size": sum(quantity for _, quantity in lines),
                "priority": data.priority,
                "estimated_hours": data.estimated_hours,
                "customer_name": data.customer_name,
                "external_order_number": data.external_order_number,
                "order_value": data.order_value,
                "start_date": data.start_date,
                "shipping_date": data.shipping_date,
                "notes": data.notes,
                "created_by": created_by.id,
            },
        )

        position: int = 0
        sequences: dict[str, int] = {}
        for product_type, quantity in lines:
            if product_type not in sequences:
                sequences[product_type] = await self.next_serial_sequence(db, product_type)
            prefix: str = PRODUCT_PREFIXES[product_type]
            for _ in range(quantity):
                position += 1
                db.add(WorkOrderItem(
                    work_order_id=work_order.id,
                    serial_number=f"{prefix}-{sequences[product_type]:04d}",
                    position_in_batch=position,
                    product_type=product_type,
                ))
                sequences[product_type] += 1
        await db.flush()

        await activity_repository.log(
            db, created_by.id, "create_work_order", "work_order", work_order.id,
            {"wo_number": wo_number, "batch_size": work_order.batch_size},
        )
        logger.info("Work order %s created with %d items", wo_number, work_order.batch_size)
        return work_order

    # --- 조회 (Queries) ---

    async def get_work_order(self, db: AsyncSession, work_order_id: UUID) -> WorkOrder:
        """작업 지시 조회 — Work order or 404."""
        work_order: WorkOrder | None = await work_order_repository.get_by_id(db, work_order_id)
        if work_order is None:
            raise NotFoundError("Work order not found")
        return work_order

    async def get_detail(self, db: AsyncSession, work_order_id: UUID) -> dict[str, Any]:
        """작업 지시 상세 (품목 포함) — Work order with items and stats."""
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        items: list[WorkOrderItem] = await work_order_repository.get_items(db, work_order.id)
        return self.build_response(work_order, items, include_items=True)

    async def list_work_orders(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        **filters: Any,
    ) -> tuple[Sequence[WorkOrder], int]:
        """필터/페이지네이션 목록 — Filtered, paginated work orders, newest first."""
        query = work_order_repository.build_filter_query(**filters)
        return await work_order_repository.get_paginated(db, query, page, per_page)

    async def group_work_orders(
        self,
        db: AsyncSession,
        group_by: str,
        **filters: Any,
    ) -> dict[str, Any]:
        """필터된 작업 지시를 그룹으로 나눕니다.

        Partition the filtered work orders by status, product, customer or
        delivery month ("none" gives a single "all" group). Groups are
        disjoint and their union is the filtered set. Keys are sorted, with
        "No Customer" and "no_date" last.
        """
        if group_by not in GROUP_BY_OPTIONS:
            raise BadRequestError(f"group_by must be one of: {', '.join(GROUP_BY_OPTIONS)}")
        work_orders: list[WorkOrder] = await work_order_repository.list_filtered(db, **filters)
        responses: list[dict[str, Any]] = await self.build_responses(db, work_orders)

        grouped: dict[str, list[dict[str, Any]]] = OrderedDict()
        for work_order, response in zip(work_orders, responses):
            grouped.setdefault(group_key(work_order, group_by), []).append(response)

        keys: list[str] = sorted(grouped, key=lambda k: (k in (NO_CUSTOMER, NO_DATE), k))
        return {
            "group_by": group_by,
            "total": len(work_orders),
            "groups": [{"key": k, "count": len(grouped[k]), "items": grouped[k]} for k in keys],
        }

    # --- 수정/상태 (Updates and status) ---

    async def update_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        data: WorkOrderUpdate,
    ) -> WorkOrder:
        """작업 지시 부분 수정 — Partial update; start_date moves through the planner."""
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        shipping: date | None = update_data.get("shipping_date", work_order.shipping_date)
        if work_order.start_date and shipping and shipping < work_order.start_date:
            raise BadRequestError("Shipping date must not be before start date")
        for field, value in update_data.items():
            setattr(work_order, field, value)
        await db.flush()
        return work_order

    async def change_status(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        new_status: str,
        user: User,
    ) -> WorkOrder:
        """상태 전이 — Move the work order along an allowed transition."""
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        if new_status not in STATUS_TRANSITIONS:
            raise BadRequestError(f"Unknown status: {new_status}")
        if new_status == "cancelled":
            raise BadRequestError("Cancellation requires a reason")
        if new_status not in STATUS_TRANSITIONS[work_order.status]:
            raise BadRequestError(f"Cannot change status from {work_order.status} to {new_status}")

        now: datetime = datetime.now(timezone.utc)
        previous: str = work_order.status
        work_order.status = new_status
        if new_status == "in_progress" and work_order.started_at is None:
            work_order.started_at = now
        if new_status == "completed":
            work_order.completed_at = now
        await db.flush()
        await activity_repository.log(
            db, user.id, "change_status", "work_order", work_order.id,
            {"from": previous, "to": new_status},
        )
        return work_order

    async def cancel_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        reason: str,
        user: User,
    ) -> WorkOrder:
        """작업 지시 취소.

        Cancel with a mandatory reason. Completed or already cancelled
        orders cannot be cancelled. The order's operator-day rows are
        removed so it no longer consumes capacity.
        """
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        if not reason or not reason.strip():
            raise BadRequestError("Cancellation requires a reason")
        if work_order.status in ("completed", "cancelled"):
            raise BadRequestError(f"Cannot cancel a {work_order.status} work order")

        work_order.status = "cancelled"
        work_order.cancellation_reason = reason.strip()
        await assignment_repository.delete_for_work_order(db, work_order.id)
        await db.flush()
        await activity_repository.log(
            db, user.id, "cancel_work_order", "work_order", work_order.id, {"reason": reason.strip()}
        )
        if work_order.assigned_to is not None:
            await notification_service.notify(
                db,
                user_id=work_order.assigned_to,
                notification_type="work_order_cancelled",
                title=f"Work order {work_order.wo_number} cancelled",
                message=f"{work_order.wo_number} was cancelled: {reason.strip()}",
                entity_type="work_order",
                entity_id=work_order.id,
            )
        return work_order

    async def production_summary(self, db: AsyncSession) -> dict[str, Any]:
        """생산 요약 — Work-order counts by status and product, and item totals."""
        by_status: dict[str, int] = await work_order_repository.count_by(db, WorkOrder.status)
        by_product: dict[str, int] = await work_order_repository.count_by(db, WorkOrder.product_type)
        items: dict[str, int] = await work_order_repository.item_status_counts(db)
        total_items: int = sum(items.values())
        completed_items: int = items.get("completed", 0)
        return {
            "work_orders_by_status": by_status,
            "work_orders_by_product": by_product,
            "total_work_orders": sum(by_status.values()),
            "items_total": total_items,
            "items_completed": completed_items,
            "items_in_progress": items.get("in_progress", 0),
            "completion_pct": round(completed_items / total_items * 100, 1) if total_items else 0.0,
        }

    # --- 공정 단계 카탈로그 (Production step catalog) ---

    def build_step_response(self, step: ProductionStep) -> dict[str, Any]:
        """공정 단계 응답 딕셔너리 — ProductionStepResponse-shaped dict."""
        return {
            "id": str(step.id),
            "product_type": step.product_type,
            "step_number": step.step_number,
            "title_en": step.title_en,
            "title_nl": step.title_nl,
            "description": step.description,
            "requires_value_input": step.requires_value_input,
            "measurement_fields": step.measurement_fields,
            "estimated_minutes": step.estimated_minutes,
        }

    async def list_steps(self, db: AsyncSession, product_type: str) -> list[ProductionStep]:
        """제품 유형의 공정 단계 — Steps of a product type, in order."""
        self._validate_product_type(product_type)
        return await work_order_repository.get_steps(db, product_type)

    async def create_step(self, db: AsyncSession, data: ProductionStepCreate) -> ProductionStep:
        """공정 단계 생성 — (product_type, step_number) is unique."""
        self._validate_product_type(data.product_type)
        if await work_order_repository.get_step_by_number(db, data.product_type, data.step_number):
            raise DuplicateError(f"Step {data.step_number} already exists for {data.product_type}")
        step: ProductionStep = ProductionStep(**data.model_dump())
        db.add(step)
        await db.flush()
        await db.refresh(step)
        return step

    async def update_step(
        self,
        db: AsyncSession,
        step_id: UUID,
        data: ProductionStepUpdate,
    ) -> ProductionStep:
        """공정 단계 수정 (부분) — Partial update of a step."""
        step: ProductionStep | None = await work_order_repository.get_step(db, step_id)
        if step is None:
            raise NotFoundError("Production step not found")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(step, field, value)
        await db.flush()
        return step


# 싱글턴 인스턴스 — Singleton instance
work_order_service: WorkOrderService = WorkOrderService()
