"""작업 지시 레포지토리 — 작업 지시, 품목, 공정 단계 쿼리.

Work Order Repository — Work orders, their serialised items and the
production step catalog.
"""

from datetime import date
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mesplan.models.production import ProductionStep, WorkOrder, WorkOrderItem
from mesplan.repositories.base import BaseRepository

# 백로그 제외 상태 — Statuses that never appear in the backlog
_CLOSED_STATUSES: tuple[str, ...] = ("cancelled", "completed")


class WorkOrderRepository(BaseRepository[WorkOrder]):
    """작업 지시 및 품목 레포지토리.

    Repository for work orders and their items.
    """

    def __init__(self) -> None:
        super().__init__(WorkOrder)

    async def get_with_items(
        self,
        db: AsyncSession,
        work_order_id: UUID,
    ) -> WorkOrder | None:
        """품목을 함께 로드하여 작업 지시 조회.

        Retrieve a work order with its items eagerly loaded.
        """
        result = await db.execute(
            select(WorkOrder)
            .options(selectinload(WorkOrder.items))
            .where(WorkOrder.id == work_order_id)
        )
        return result.scalar_one_or_none()

    async def get_by_number(
        self,
        db: AsyncSession,
        wo_number: str,
    ) -> WorkOrder | None:
        """작업 지시 번호로 조회 — Work order by number."""
        result = await db.execute(select(WorkOrder).where(WorkOrder.wo_number == wo_number))
        return result.scalar_one_or_none()

    def build_filter_query(
        self,
        status: str | None = None,
        product_type: str | None = None,
        customer: str | None = None,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Select:
        """필터가 적용된 작업 지시 SELECT 쿼리를 만듭니다.

        Build the filtered work-order query shared by the list, grouping
        and export operations. The date range matches on start_date.

        Args:
            status: 상태 필터 (Status filter)
            product_type: 제품 유형 필터 (Product type filter)
            customer: 고객명 부분 검색 (Partial customer match)
            search: 번호/고객 부분 검색 (Partial wo_number or customer match)
            date_from: 시작일 하한 (Earliest start date)
            date_to: 시작일 상한 (Latest start date)

        Returns:
            Select: 최신순 정렬 쿼리 (Query ordered newest first)
        """
        query: Select = select(WorkOrder)
        if status:
            query = query.where(WorkOrder.status == status)
        if product_type:
            query = query.where(WorkOrder.product_type == product_type)
        if customer:
            query = query.where(WorkOrder.customer_name.ilike(f"%{customer}%"))
        if search:
            pattern: str = f"%{search}%"
            query = query.where(
                or_(WorkOrder.wo_number.ilike(pattern), WorkOrder.customer_name.ilike(pattern))
            )
        if date_from:
            query = query.where(WorkOrder.start_date >= date_from)
        if date_to:
            query = query.where(WorkOrder.start_date <= date_to)
        return query.order_by(WorkOrder.created_at.desc(), WorkOrder.wo_number.desc())

    async def list_filtered(self, db: AsyncSession, **filters: Any) -> list[WorkOrder]:
        """필터된 전체 목록 — All work orders matching the filters."""
        result = await db.execute(self.build_filter_query(**filters))
        return list(result.scalars().all())

    async def list_in_window(
        self,
        db: AsyncSession,
        window_start: date,
        window_end: date,
    ) -> list[WorkOrder]:
        """기간과 겹치는 취소되지 않은 작업 지시 목록.

        Non-cancelled work orders whose start or shipping date intersects
        the window. With both dates set, the order spans
        [start_date, shipping_date]; with only one set, that date must
        fall inside the window.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            window_start: 기간 시작일 (Window start, inclusive)
            window_end: 기간 종료일 (Window end, inclusive)

        Returns:
            list[WorkOrder]: 시작일순 작업 지시 (Orders by start date then number)
        """
        both_set = and_(
            WorkOrder.start_date.is_not(None),
            WorkOrder.shipping_date.is_not(None),
            WorkOrder.start_date <= window_end,
            WorkOrder.shipping_date >= window_start,
        )
        only_start = and_(
            WorkOrder.shipping_date.is_(None),
            WorkOrder.start_date >= window_start,
            WorkOrder.start_date <= window_end,
        )
        only_shipping = and_(
            WorkOrder.start_date.is_(None),
            WorkOrder.shipping_date >= window_start,
            WorkOrder.shipping_date <= window_end,
        )
        result = await db.execute(
            select(WorkOrder)
            .where(WorkOrder.status != "cancelled", or_(both_set, only_start, only_shipping))
            .order_by(WorkOrder.start_date, WorkOrder.wo_number)
        )
        return list(result.scalars().all())

    async def list_backlog(
        self,
        db: AsyncSession,
        limit: int,
    ) -> list[WorkOrder]:
        """미배정 백로그 — Unscheduled open work orders, newest first."""
        result = await db.execute(
            select(WorkOrder)
            .where(WorkOrder.start_date.is_(None), WorkOrder.status.not_in(_CLOSED_STATUSES))
            .order_by(WorkOrder.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def search_by_number(
        self,
        db: AsyncSession,
        term: str,
        limit: int,
    ) -> list[WorkOrder]:
        """번호 부분 검색 (취소 제외) — Non-cancelled orders whose number contains the term."""
        result = await db.execute(
            select(WorkOrder)
            .where(WorkOrder.wo_number.ilike(f"%{term}%"), WorkOrder.status != "cancelled")
            .order_by(WorkOrder.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_wo_numbers_with_prefix(self, db: AsyncSession, prefix: str) -> int:
        """접두사로 시작하는 작업 지시 번호 개수 — Count of numbers sharing a prefix."""
        result = await db.execute(
            select(func.count()).select_from(WorkOrder).where(WorkOrder.wo_number.like(f"{prefix}%"))
        )
        return result.scalar() or 0

    async def count_by(
        self,
        db: AsyncSession,
        column: Any,
    ) -> dict[str, int]:
        """컬럼별 작업 지시 개수 — Work-order counts grouped by one column."""
        result = await db.execute(select(column, func.count()).group_by(column))
        return {key: count for key, count in result.all()}

    # --- 품목 (Items) ---

    async def get_item(
        self,
        db: AsyncSession,
        item_id: UUID,
    ) -> WorkOrderItem | None:
        """품목 조회 (작업 지시 포함) — Item with its work order loaded."""
        result = await db.execute(
            select(WorkOrderItem)
            .options(selectinload(WorkOrderItem.work_order))
            .where(WorkOrderItem.id == item_id)
        )
        return result.scalar_one_or_none()

    async def get_item_by_serial(
        self,
        db: AsyncSession,
        serial_number: str,
    ) -> WorkOrderItem | None:
        """시리얼 번호로 품목 조회 — Item by exact serial number."""
        result = await db.execute(
            select(WorkOrderItem)
            .options(selectinload(WorkOrderItem.work_order))
            .where(WorkOrderItem.serial_number == serial_number)
        )
        return result.scalar_one_or_none()

    async def get_items(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        product_type: str | None = None,
    ) -> list[WorkOrderItem]:
        """작업 지시의 품목 목록 (배치 순번순) — Items of an order by position."""
        query: Select = select(WorkOrderItem).where(WorkOrderItem.work_order_id == work_order_id)
        if product_type is not None:
            query = query.where(WorkOrderItem.product_type == product_type)
        result = await db.execute(query.order_by(WorkOrderItem.position_in_batch))
        return list(result.scalars().all())

    async def get_items_for_orders(
        self,
        db: AsyncSession,
        work_order_ids: Sequence[UUID],
    ) -> list[WorkOrderItem]:
        """여러 작업 지시의 품목 — Items of several orders."""
        if not work_order_ids:
            return []
        result = await db.execute(
            select(WorkOrderItem).where(WorkOrderItem.work_order_id.in_(list(work_order_ids)))
        )
        return list(result.scalars().all())

    async def search_items_by_serial(
        self,
        db: AsyncSession,
        term: str,
        limit: int,
    ) -> list[WorkOrderItem]:
        """시리얼 부분 검색 — Items whose serial contains the term."""
        result = await db.execute(
            select(WorkOrderItem)
            .options(selectinload(WorkOrderItem.work_order))
            .where(WorkOrderItem.serial_number.ilike(f"%{term}%"))
            .order_by(WorkOrderItem.serial_number)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_assigned_items(
        self,
        db: AsyncSession,
        operator_id: UUID,
    ) -> list[WorkOrderItem]:
        """작업자의 미완료 품목 — Open items assigned to an operator on open orders."""
        result = await db.execute(
            select(WorkOrderItem)
            .join(WorkOrder, WorkOrder.id == WorkOrderItem.work_order_id)
            .options(selectinload(WorkOrderItem.work_order))
            .where(
                WorkOrderItem.assigned_to == operator_id,
                WorkOrderItem.status != "completed",
                WorkOrder.status.not_in(_CLOSED_STATUSES),
            )
            .order_by(WorkOrder.priority, WorkOrder.start_date, WorkOrderItem.serial_number)
        )
        return list(result.scalars().all())

    async def get_serials_with_prefix(
        self,
        db: AsyncSession,
        prefix: str,
    ) -> list[str]:
        """접두사로 시작하는 시리얼 목록 — Serial numbers starting with "<prefix>-"."""
        result = await db.execute(
            select(WorkOrderItem.serial_number).where(
                WorkOrderItem.serial_number.like(f"{prefix}-%")
            )
        )
        return list(result.scalars().all())

    async def item_status_counts(self, db: AsyncSession) -> dict[str, int]:
        """품목 상태별 개수 — Item counts grouped by status."""
        result = await db.execute(
            select(WorkOrderItem.status, func.count()).group_by(WorkOrderItem.status)
        )
        return {key: count for key, count in result.all()}

    # --- 공정 단계 (Production steps) ---

    async def get_steps(
        self,
        db: AsyncSession,
        product_type: str,
    ) -> list[ProductionStep]:
        """제품 유형의 공정 단계 (순서대로) — Steps of a product type in order."""
        result = await db.execute(
            select(ProductionStep)
            .where(ProductionStep.product_type == product_type)
            .order_by(ProductionStep.step_number)
        )
        return list(result.scalars().all())

    async def get_steps_for_types(
        self,
        db: AsyncSession,
        product_types: Sequence[str],
    ) -> dict[str, list[ProductionStep]]:
        """제품 유형별 공정 단계 맵 — Steps keyed by product type."""
        steps: dict[str, list[ProductionStep]] = {pt: [] for pt in product_types}
        if not product_types:
            return steps
        result = await db.execute(
            select(ProductionStep)
            .where(ProductionStep.product_type.in_(list(product_types)))
            .order_by(ProductionStep.product_type, ProductionStep.step_number)
        )
        for step in result.scalars().all():
            steps[step.product_type].append(step)
        return steps

    async def get_step(
        self,
        db: AsyncSession,
        step_id: UUID,
    ) -> ProductionStep | None:
        """공정 단계 조회 — Step by id."""
        result = await db.execute(select(ProductionStep).where(ProductionStep.id == step_id))
        return result.scalar_one_or_none()

    async def get_step_by_number(
        self,
        db: AsyncSession,
        product_type: str,
        step_number: int,
    ) -> ProductionStep | None:
        """제품 유형+번호로 단계 조회 — Step by (product type, number)."""
        result = await db.execute(
            select(ProductionStep).where(
                ProductionStep.product_type == product_type,
                ProductionStep.step_number == step_number,
            )
        )
        return result.scalar_one_or_none()

    async def count_steps(self, db: AsyncSession, product_type: str) -> int:
        """제품 유형의 단계 수 — Number of steps for a product type."""
        result = await db.execute(
            select(func.count())
            .select_from(ProductionStep)
            .where(ProductionStep.product_type == product_type)
        )
        return result.scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
work_order_repository: WorkOrderRepository = WorkOrderRepository()
