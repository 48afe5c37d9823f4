"""배정 서비스 — 작업 지시 품목/단계별 작업자 배정 편집기.

Assignment Service — Bulk and individual assignment of work-order items
and steps to operators.

Every write first validates the operator against the availability store
for the work order's start date (today when unscheduled). A rejected
operator raises before anything is written, and the router never commits
a failed request, so the editor is all-or-nothing. After each write the
per-day operator assignments are re-synced from the step map so the
capacity views count the new state.
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.assignment import OperatorAssignment, StepAssignment
from mesplan.models.production import ProductionStep, StepExecution, WorkOrder, WorkOrderItem
from mesplan.models.user import User
from mesplan.repositories.assignment_repository import assignment_repository
from mesplan.repositories.execution_repository import execution_repository
from mesplan.repositories.user_repository import user_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.schemas.planning import OperatorAssignmentCreate
from mesplan.services.availability_service import availability_service
from mesplan.services.notification_service import notification_service
from mesplan.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

OPERATOR_UNAVAILABLE: str = "Operator is unavailable"

# 배정 불가 상태 — Work orders that can no longer be assigned
_CLOSED_STATUSES: tuple[str, ...] = ("cancelled", "completed")

# 작업자 수를 모를 때 계획 시간 — Planned hours when no estimate exists
DEFAULT_PLANNED_HOURS: float = 8.0


def summarize_operators(operator_ids: list[UUID], names: dict[UUID, str]) -> str:
    """배정 요약 문구.

    "Unassigned" with no operator, the operator's name with exactly one
    distinct operator, "N operators" otherwise.
    """
    distinct: list[UUID] = list(OrderedDict.fromkeys(operator_ids))
    if not distinct:
        return "Unassigned"
    if len(distinct) == 1:
        return names.get(distinct[0], "1 operator")
    return f"{len(distinct)} operators"


def completion_stats(statuses: list[str], total_steps: int) -> dict[str, int]:
    """품목 완료 통계 — skipped steps count as completed."""
    completed: int = sum(1 for s in statuses if s in ("completed", "skipped"))
    in_progress: int = sum(1 for s in statuses if s == "in_progress")
    percentage: int = round(completed / total_steps * 100) if total_steps else 0
    return {
        "completed": completed,
        "in_progress": in_progress,
        "total": total_steps,
        "percentage": percentage,
    }


class AssignmentService:
    """배정 편집기 서비스."""

    # --- 검증 (Validation) ---

    async def get_work_order(self, db: AsyncSession, work_order_id: UUID) -> WorkOrder:
        """작업 지시 조회 — Work order or 404."""
        work_order: WorkOrder | None = await work_order_repository.get_by_id(db, work_order_id)
        if work_order is None:
            raise NotFoundError("Work order not found")
        return work_order

    def _ensure_open(self, work_order: WorkOrder) -> None:
        if work_order.status in _CLOSED_STATUSES:
            raise BadRequestError(f"Cannot assign operators to a {work_order.status} work order")

    async def check_operator(
        self,
        db: AsyncSession,
        operator_id: UUID,
        on_date: date,
    ) -> User:
        """작업자가 해당 일자에 배정 가능한지 확인합니다.

        Verify the operator exists, is active and has no full-day absence
        on the date. Partial-hours days are accepted.

        Raises:
            NotFoundError: 없거나 비활성 작업자 (Unknown or inactive operator)
            BadRequestError: 해당 일자 부재 ("Operator is unavailable")
        """
        operator: User | None = await user_repository.get_by_id(db, operator_id)
        if operator is None or not operator.is_active:
            raise NotFoundError("Operator not found")
        if await availability_service.is_unavailable(db, operator_id, on_date):
            logger.info("Rejected assignment of %s on %s: unavailable", operator.username, on_date)
            raise BadRequestError(OPERATOR_UNAVAILABLE)
        return operator

    def assignment_date(self, work_order: WorkOrder) -> date:
        """배정 기준일 — The order's start date, or today when unscheduled."""
        return work_order.start_date or date.today()

    async def _get_item(self, db: AsyncSession, item_id: UUID) -> WorkOrderItem:
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Work order item not found")
        return item

    # --- 동기화 (Sync) ---

    async def sync_operator_assignments(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
        assigned_by: UUID | None,
    ) -> list[OperatorAssignment]:
        """단계 배정으로부터 일자별 작업자 배정을 다시 만듭니다.

        Rebuild the work order's operator assignments: delete them, then
        insert one row per distinct operator found in the item and step
        assignments, dated on the start date (today when unscheduled) with
        estimated_hours split evenly (8.0 each without an estimate). The
        work order's assigned_to becomes the first operator, or None.
        Newly added operators are notified.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            work_order: 대상 작업 지시 (Work order)
            assigned_by: 편집한 사용자 (Editing user)

        Returns:
            list[OperatorAssignment]: 생성된 배정 (Inserted rows)
        """
        previous: set[UUID] = {
            a.operator_id for a in await assignment_repository.list_for_work_order(db, work_order.id)
        }
        await assignment_repository.delete_for_work_order(db, work_order.id)

        items: list[WorkOrderItem] = await work_order_repository.get_items(db, work_order.id)
        step_rows: list[StepAssignment] = await assignment_repository.get_step_assignments(db, work_order.id)
        steps_by_type: dict[str, list[ProductionStep]] = await work_order_repository.get_steps_for_types(
            db, list({i.product_type for i in items})
        )
        step_numbers: dict[UUID, int] = {
            s.id: s.step_number for steps in steps_by_type.values() for s in steps
        }

        operator_ids: list[UUID] = []
        for item in items:
            if item.assigned_to is not None:
                operator_ids.append(item.assigned_to)
            item_rows: list[StepAssignment] = sorted(
                (r for r in step_rows if r.work_order_item_id == item.id),
                key=lambda r: step_numbers.get(r.production_step_id, 0),
            )
            operator_ids.extend(r.operator_id for r in item_rows)
        distinct: list[UUID] = list(OrderedDict.fromkeys(operator_ids))

        on_date: date = self.assignment_date(work_order)
        planned: float = (
            round(float(work_order.estimated_hours) / len(distinct), 2)
            if work_order.estimated_hours and distinct
            else DEFAULT_PLANNED_HOURS
        )
        created: list[OperatorAssignment] = []
        for operator_id in distinct:
            created.append(
                await assignment_repository.create(
                    db,
                    {
                        "work_order_id": work_order.id,
                        "operator_id": operator_id,
                        "assigned_date": on_date,
                        "planned_hours": planned,
                        "assigned_by": assigned_by,
                    },
                )
            )
        work_order.assigned_to = distinct[0] if distinct else None
        await db.flush()

        for operator_id in distinct:
            if operator_id not in previous:
                await notification_service.notify_work_assigned(db, work_order, operator_id)
        return created

    # --- 편집 작업 (Editor operations) ---

    async def _assign_items(
        self,
        db: AsyncSession,
        work_order: WorkOrder,
        items: list[WorkOrderItem],
        operator_id: UUID,
        assigned_by: UUID | None,
    ) -> None:
        steps_by_type: dict[str, list[ProductionStep]] = await work_order_repository.get_steps_for_types(
            db, list({i.product_type for i in items})
        )
        for item in items:
            item.assigned_to = operator_id
            for step in steps_by_type.get(item.product_type, []):
                await assignment_repository.upsert_step_assignment(
                    db, work_order.id, item.id, step.id, operator_id, assigned_by
                )
        await db.flush()

    async def assign_all(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        operator_id: UUID,
        assigned_by: UUID | None,
    ) -> dict[str, Any]:
        """작업 지시의 모든 품목/단계를 한 작업자에게 배정합니다.

        Assign every item and every step of the work order to one operator.

        Raises:
            BadRequestError: 작업자 부재 또는 닫힌 작업 지시 (Unavailable operator or closed order)
            NotFoundError: 작업 지시/작업자 없음 (Unknown order or operator)
        """
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        self._ensure_open(work_order)
        await self.check_operator(db, operator_id, self.assignment_date(work_order))

        items: list[WorkOrderItem] = await work_order_repository.get_items(db, work_order.id)
        await self._assign_items(db, work_order, items, operator_id, assigned_by)
        await self.sync_operator_assignments(db, work_order, assigned_by)
        return await self.assignment_overview(db, work_order.id)

    async def assign_product_group(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        product_type: str,
        operator_id: UUID,
        assigned_by: UUID | None,
    ) -> dict[str, Any]:
        """한 제품 유형의 품목 전체를 배정 — assign_all restricted to one product type."""
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        self._ensure_open(work_order)
        items: list[WorkOrderItem] = await work_order_repository.get_items(
            db, work_order.id, product_type=product_type
        )
        if not items:
            raise NotFoundError(f"No {product_type} items in this work order")
        await self.check_operator(db, operator_id, self.assignment_date(work_order))

        await self._assign_items(db, work_order, items, operator_id, assigned_by)
        await self.sync_operator_assignments(db, work_order, assigned_by)
        return await self.assignment_overview(db, work_order.id)

    async def assign_item(
        self,
        db: AsyncSession,
        item_id: UUID,
        operator_id: UUID | None,
        assigned_by: UUID | None,
    ) -> dict[str, Any]:
        """품목 하나를 배정하거나 해제합니다.

        Set the item's operator and all of its steps to that operator.
        None clears the item and removes its step assignments.
        """
        item: WorkOrderItem = await self._get_item(db, item_id)
        work_order: WorkOrder = item.work_order
        self._ensure_open(work_order)

        if operator_id is None:
            item.assigned_to = None
            await assignment_repository.delete_step_assignments(db, item_ids=[item.id])
        else:
            await self.check_operator(db, operator_id, self.assignment_date(work_order))
            await self._assign_items(db, work_order, [item], operator_id, assigned_by)

        await self.sync_operator_assignments(db, work_order, assigned_by)
        return await self.assignment_overview(db, work_order.id)

    async def assign_step(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
        operator_id: UUID | None,
        assigned_by: UUID | None,
    ) -> dict[str, Any]:
        """품목의 한 단계를 배정하거나 해제합니다.

        Set or remove one step assignment. The item's assigned_to then
        becomes the first operator found in its steps, in step order.
        """
        item: WorkOrderItem = await self._get_item(db, item_id)
        work_order: WorkOrder = item.work_order
        self._ensure_open(work_order)
        step: ProductionStep | None = await work_order_repository.get_step(db, step_id)
        if step is None or step.product_type != item.product_type:
            raise NotFoundError("Production step not found for this item")

        if operator_id is None:
            await assignment_repository.delete_step_assignments(db, item_ids=[item.id], step_id=step.id)
        else:
            await self.check_operator(db, operator_id, self.assignment_date(work_order))
            await assignment_repository.upsert_step_assignment(
                db, work_order.id, item.id, step.id, operator_id, assigned_by
            )

        steps: list[ProductionStep] = await work_order_repository.get_steps(db, item.product_type)
        rows: dict[UUID, UUID] = {
            r.production_step_id: r.operator_id
            for r in await assignment_repository.get_step_assignments(db, work_order.id)
            if r.work_order_item_id == item.id
        }
        item.assigned_to = next((rows[s.id] for s in steps if s.id in rows), None)
        await db.flush()

        await self.sync_operator_assignments(db, work_order, assigned_by)
        return await self.assignment_overview(db, work_order.id)

    async def clear_all(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        assigned_by: UUID | None,
    ) -> dict[str, Any]:
        """모든 배정 해제 — Remove every step, item, operator and order assignment."""
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        self._ensure_open(work_order)
        await assignment_repository.delete_step_assignments(db, work_order_id=work_order.id)
        for item in await work_order_repository.get_items(db, work_order.id):
            item.assigned_to = None
        await db.flush()
        await self.sync_operator_assignments(db, work_order, assigned_by)
        return await self.assignment_overview(db, work_order.id)

    async def assignment_overview(
        self,
        db: AsyncSession,
        work_order_id: UUID,
    ) -> dict[str, Any]:
        """작업 지시 배정 현황.

        For each item: serial, assigned operator, the step → operator map,
        a summary ("Unassigned" / name / "N operators") and completion stats.
        """
        work_order: WorkOrder = await self.get_work_order(db, work_order_id)
        items: list[WorkOrderItem] = await work_order_repository.get_items(db, work_order.id)
        steps_by_type: dict[str, list[ProductionStep]] = await work_order_repository.get_steps_for_types(
            db, list({i.product_type for i in items})
        )
        step_rows: list[StepAssignment] = await assignment_repository.get_step_assignments(db, work_order.id)
        executions: list[StepExecution] = await execution_repository.list_for_items(db, [i.id for i in items])

        user_ids: set[UUID] = {r.operator_id for r in step_rows} | {
            i.assigned_to for i in items if i.assigned_to is not None
        }
        names: dict[UUID, str] = {
            uid: u.full_name for uid, u in (await user_repository.get_users_by_ids(db, list(user_ids))).items()
        }

        result_items: list[dict[str, Any]] = []
        for item in items:
            steps: list[ProductionStep] = steps_by_type.get(item.product_type, [])
            rows: dict[UUID, UUID] = {
                r.production_step_id: r.operator_id for r in step_rows if r.work_order_item_id == item.id
            }
            step_map: dict[str, str | None] = {
                str(s.step_number): (str(rows[s.id]) if s.id in rows else None) for s in steps
            }
            operator_ids: list[UUID] = ([item.assigned_to] if item.assigned_to else []) + [
                rows[s.id] for s in steps if s.id in rows
            ]
            statuses: list[str] = [e.status for e in executions if e.work_order_item_id == item.id]
            result_items.append({
                "item_id": str(item.id),
                "serial_number": item.serial_number,
                "product_type": item.product_type,
                "status": item.status,
                "assigned_to": str(item.assigned_to) if item.assigned_to else None,
                "assigned_name": names.get(item.assigned_to) if item.assigned_to else None,
                "steps": step_map,
                "summary": summarize_operators(operator_ids, names),
                "stats": completion_stats(statuses, len(steps)),
            })

        return {
            "work_order_id": str(work_order.id),
            "wo_number": work_order.wo_number,
            "assigned_to": str(work_order.assigned_to) if work_order.assigned_to else None,
            "items": result_items,
        }

    # --- 일자별 배정 수동 관리 (Manual operator assignments) ---

    def build_operator_assignment(
        self,
        assignment: OperatorAssignment,
        wo_number: str | None = None,
    ) -> dict[str, Any]:
        """일자 배정 응답 딕셔너리 — OperatorAssignmentResponse-shaped dict."""
        return {
            "id": str(assignment.id),
            "work_order_id": str(assignment.work_order_id),
            "wo_number": wo_number,
            "operator_id": str(assignment.operator_id),
            "assigned_date": assignment.assigned_date,
            "planned_hours": float(assignment.planned_hours or 0),
            "actual_hours": float(assignment.actual_hours) if assignment.actual_hours is not None else None,
            "notes": assignment.notes,
        }

    async def create_operator_assignment(
        self,
        db: AsyncSession,
        data: OperatorAssignmentCreate,
        assigned_by: UUID | None,
    ) -> tuple[OperatorAssignment, str]:
        """일자 배정 수동 생성 — Add one operator-day row after the availability check."""
        work_order: WorkOrder = await self.get_work_order(db, data.work_order_id)
        self._ensure_open(work_order)
        operator_id: UUID = data.operator_id
        await self.check_operator(db, operator_id, data.assigned_date)
        if await assignment_repository.get_existing(db, work_order.id, operator_id, data.assigned_date):
            raise DuplicateError("Operator is already assigned to this work order on that date")

        assignment: OperatorAssignment = await assignment_repository.create(
            db,
            {
                "work_order_id": work_order.id,
                "operator_id": operator_id,
                "assigned_date": data.assigned_date,
                "planned_hours": data.planned_hours,
                "notes": data.notes,
                "assigned_by": assigned_by,
            },
        )
        if work_order.assigned_to is None:
            work_order.assigned_to = operator_id
            await db.flush()
        return assignment, work_order.wo_number

    async def list_operator_assignments(
        self,
        db: AsyncSession,
        date_from: date,
        date_to: date,
        operator_id: UUID | None = None,
    ) -> list[tuple[OperatorAssignment, str]]:
        """일자 배정 목록 — Operator assignments in a range, optionally for one operator."""
        if date_to < date_from:
            raise BadRequestError("End date must not be before start date")
        return await assignment_repository.list_range(db, date_from, date_to, operator_id=operator_id)

    async def delete_operator_assignment(self, db: AsyncSession, assignment_id: UUID) -> None:
        """일자 배정 삭제 — Delete one operator-day row."""
        if not await assignment_repository.delete(db, assignment_id):
            raise NotFoundError("Operator assignment not found")


# 싱글턴 인스턴스 — Singleton instance
assignment_service: AssignmentService = AssignmentService()
