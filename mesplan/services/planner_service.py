"""생산 계획 서비스 — 달력 보기, 백로그, 일정 지정.

Planner Service — Month/week/day calendar windows, the unscheduled
backlog, and scheduling work orders by start date (drag-drop and quick
schedule). Overlapping orders are not detected; the calendar simply
shows them side by side with the per-day capacity.
"""

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.config import settings
from mesplan.models.assignment import OperatorAssignment
from mesplan.models.production import WorkOrder
from mesplan.models.user import User
from mesplan.repositories.assignment_repository import assignment_repository
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.services.assignment_service import OPERATOR_UNAVAILABLE
from mesplan.services.availability_service import availability_service
from mesplan.services.capacity_service import capacity_service
from mesplan.services.work_order_service import work_order_service
from mesplan.utils.dates import iter_days, month_bounds, week_bounds
from mesplan.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

CALENDAR_VIEWS: tuple[str, ...] = ("month", "week", "day")


def view_range(view: str, anchor: date) -> tuple[date, date]:
    """보기 종류별 기간.

    month: first to last day of the anchor's month; week: Monday to
    Sunday; day: the anchor itself.
    """
    if view == "month":
        return month_bounds(anchor)
    if view == "week":
        return week_bounds(anchor)
    if view == "day":
        return anchor, anchor
    raise BadRequestError(f"view must be one of: {', '.join(CALENDAR_VIEWS)}")


class PlannerService:
    """생산 계획 서비스."""

    async def orders_in_window(
        self,
        db: AsyncSession,
        start: date,
        end: date,
    ) -> list[dict[str, Any]]:
        """기간과 겹치는 작업 지시 (목록 보기) — Non-cancelled orders intersecting the window."""
        work_orders: list[WorkOrder] = await work_order_repository.list_in_window(db, start, end)
        return await work_order_service.build_responses(db, work_orders)

    async def calendar(
        self,
        db: AsyncSession,
        view: str,
        anchor: date,
    ) -> dict[str, Any]:
        """달력 데이터를 한 번에 반환합니다.

        Window bounds, one entry per day with the orders starting that
        day and every pool operator's capacity, and the orders
        intersecting the window for list mode.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            view: month | week | day
            anchor: 기준일 (Anchor date)

        Returns:
            dict: CalendarResponse-shaped dict
        """
        start, end = view_range(view, anchor)
        orders: list[dict[str, Any]] = await self.orders_in_window(db, start, end)
        capacity: list[dict[str, Any]] = await capacity_service.range_capacity(db, start, end)
        capacity_by_day: dict[date, list[dict[str, Any]]] = {c["date"]: c["operators"] for c in capacity}

        days: list[dict[str, Any]] = [
            {
                "date": day,
                "orders": [o for o in orders if o["start_date"] == day],
                "operators": capacity_by_day.get(day, []),
            }
            for day in iter_days(start, end)
        ]
        return {"view": view, "anchor": anchor, "start": start, "end": end, "days": days, "orders": orders}

    async def unscheduled_backlog(self, db: AsyncSession, limit: int | None = None) -> list[dict[str, Any]]:
        """미배정 백로그 — Open orders without a start date, newest first."""
        work_orders: list[WorkOrder] = await work_order_repository.list_backlog(
            db, limit or settings.BACKLOG_LIMIT
        )
        return await work_order_service.build_responses(db, work_orders)

    async def _move_assignments(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
        start_date: date,
    ) -> None:
        """일자별 배정을 새 시작일로 이동합니다.

        Rows of the same operator collapse into one, summing planned
        hours. An operator who is absent on the new date rejects the move
        before anything changes.
        """
        rows: list[OperatorAssignment] = await assignment_repository.list_for_work_order(db, work_order.id)
        for operator_id in {r.operator_id for r in rows}:
            if await availability_service.is_unavailable(db, operator_id, start_date):
                raise BadRequestError(OPERATOR_UNAVAILABLE)

        kept: dict[UUID, OperatorAssignment] = {}
        for row in sorted(rows, key=lambda r: r.assigned_date):
            if row.operator_id in kept:
                target: OperatorAssignment = kept[row.operator_id]
                target.planned_hours = float(target.planned_hours or 0) + float(row.planned_hours or 0)
                await db.delete(row)
                continue
            kept[row.operator_id] = row
        await db.flush()
        for row in kept.values():
            row.assigned_date = start_date
        await db.flush()

    async def schedule_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        start_date: date,
        shipping_date: date | None,
        user: User,
    ) -> WorkOrder:
        """작업 지시 일정 지정 (드래그 앤 드롭/빠른 일정).

        Set the start date, and the shipping date when given. The order's
        operator assignments move with it.

        Raises:
            BadRequestError: 출하일이 시작일 이전, 종료된 작업 지시, 부재 작업자
                (Shipping before start, closed order, absent operator)
        """
        work_order: WorkOrder = await work_order_service.get_work_order(db, work_order_id)
        if work_order.status in ("cancelled", "completed"):
            raise BadRequestError(f"Cannot schedule a {work_order.status} work order")
        shipping: date | None = shipping_date or work_order.shipping_date
        if shipping is not None and shipping < start_date:
            raise BadRequestError("Shipping date must not be before start date")

        await self._move_assignments(db, work_order, start_date)
        previous: date | None = work_order.start_date
        work_order.start_date = start_date
        if shipping_date is not None:
            work_order.shipping_date = shipping_date
        await db.flush()

        await activity_repository.log(
            db, user.id, "schedule_work_order", "work_order", work_order.id,
            {
                "from": previous.isoformat() if previous else None,
                "to": start_date.isoformat(),
                "shipping_date": work_order.shipping_date.isoformat() if work_order.shipping_date else None,
            },
        )
        logger.info("Work order %s scheduled on %s", work_order.wo_number, start_date)
        return work_order

    async def unschedule_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        user: User,
    ) -> WorkOrder:
        """일정 해제 — Clear the start date; the order returns to the backlog."""
        work_order: WorkOrder = await work_order_service.get_work_order(db, work_order_id)
        if work_order.status in ("cancelled", "completed"):
            raise BadRequestError(f"Cannot unschedule a {work_order.status} work order")
        previous: date | None = work_order.start_date
        work_order.start_date = None
        await db.flush()
        await activity_repository.log(
            db, user.id, "unschedule_work_order", "work_order", work_order.id,
            {"from": previous.isoformat() if previous else None},
        )
        return work_order


# 싱글턴 인스턴스 — Singleton instance
planner_service: PlannerService = PlannerService()
