"""공정 단계 실행 서비스 — 단계 상태 머신.

Step Execution Service — The per-(item, step) state machine:

    pending → in_progress → {completed | skipped}

Only the item's current step can be started. Completing or skipping a
step advances the item; past the last step the item is completed, gets
its certificate (when enabled) and, once every item of the work order
is done, the work order is completed and its creator notified.
Completion retries return the existing execution without advancing again.
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.config import settings
from mesplan.models.production import ProductionStep, StepExecution, WorkOrder, WorkOrderItem
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.repositories.execution_repository import execution_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.schemas.execution import StepCompleteRequest
from mesplan.services.certificate_service import certificate_service
from mesplan.services.notification_service import notification_service
from mesplan.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

# 실행 불가 작업 지시 상태 — Work-order statuses that block execution
_BLOCKED_STATUSES: tuple[str, ...] = ("cancelled", "on_hold")


def validate_measurements(
    step: ProductionStep,
    values: dict[str, Any] | None,
) -> str:
    """측정값 검증.

    "passed" when the step defines no measurement fields or every
    required field has a value, "failed" otherwise. Fields are required
    unless they say "required": false.
    """
    fields: list[dict[str, Any]] = step.measurement_fields or []
    if not fields:
        return "passed"
    values = values or {}
    for field in fields:
        if not field.get("required", True):
            continue
        value = values.get(field.get("name"))
        if value is None or (isinstance(value, str) and not value.strip()):
            return "failed"
    return "passed"


class ExecutionService:
    """공정 단계 실행 서비스."""

    def build_response(
        self,
        execution: StepExecution,
        step_number: int | None = None,
    ) -> dict[str, Any]:
        """실행 응답 딕셔너리 — ExecutionResponse-shaped dict."""
        return {
            "id": str(execution.id),
            "work_order_item_id": str(execution.work_order_item_id),
            "production_step_id": str(execution.production_step_id),
            "step_number": step_number,
            "status": execution.status,
            "executed_by": str(execution.executed_by) if execution.executed_by else None,
            "measurement_values": execution.measurement_values,
            "validation_status": execution.validation_status,
            "notes": execution.notes,
            "started_at": execution.started_at,
            "completed_at": execution.completed_at,
        }

    async def _load(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
    ) -> tuple[WorkOrderItem, ProductionStep, StepExecution | None]:
        """품목, 단계, 기존 실행 조회 — Item, step and the existing execution."""
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")
        step: ProductionStep | None = await work_order_repository.get_step(db, step_id)
        if step is None:
            raise NotFoundError("Production step not found")
        if step.product_type != item.product_type:
            raise BadRequestError("Step does not belong to the item's product type")
        execution: StepExecution | None = await execution_repository.get_for_item_step(db, item.id, step.id)
        return item, step, execution

    def _ensure_executable(self, item: WorkOrderItem, step: ProductionStep) -> None:
        if item.work_order.status in _BLOCKED_STATUSES:
            raise BadRequestError(f"Work order is {item.work_order.status}")
        if item.status == "completed":
            raise BadRequestError("Item is already completed")
        if step.step_number != item.current_step:
            raise BadRequestError(f"Step {step.step_number} is not the current step ({item.current_step})")

    async def start_step(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
        user: User,
    ) -> tuple[StepExecution, ProductionStep]:
        """단계 시작 — pending → in_progress.

        Starting a step that is already in progress returns it unchanged.
        The item becomes in_progress, and a planned work order moves to
        in_progress with started_at set.

        Raises:
            BadRequestError: 현재 단계 아님 또는 이미 종료 (Not current, or already finished)
        """
        item, step, execution = await self._load(db, item_id, step_id)
        if execution is not None and execution.status == "in_progress":
            return execution, step
        if execution is not None and execution.status in ("completed", "skipped"):
            raise BadRequestError(f"Step is already {execution.status}")
        self._ensure_executable(item, step)

        now: datetime = datetime.now(timezone.utc)
        if execution is None:
            execution = await execution_repository.create(
                db,
                {
                    "work_order_item_id": item.id,
                    "production_step_id": step.id,
                    "status": "in_progress",
                    "executed_by": user.id,
                    "started_at": now,
                },
            )
        else:
            execution.status = "in_progress"
            execution.executed_by = user.id
            execution.started_at = now

        item.status = "in_progress"
        work_order: WorkOrder = item.work_order
        if work_order.status == "planned":
            work_order.status = "in_progress"
        if work_order.started_at is None:
            work_order.started_at = now
        await db.flush()
        return execution, step

    async def complete_step(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
        data: StepCompleteRequest,
        user: User,
    ) -> tuple[StepExecution, ProductionStep]:
        """단계 완료 — in_progress → completed, 멱등.

        Record measurements and validation, then advance the item.
        Completing an already completed step returns the existing
        execution and changes nothing.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 품목 UUID (Item)
            step_id: 단계 UUID (Step)
            data: 측정값과 비고 (Measurements and notes)
            user: 수행 작업자 (Executing operator)

        Returns:
            tuple: (실행 기록, 단계) — (Execution, step)

        Raises:
            BadRequestError: 시작되지 않은 단계 또는 건너뛴 단계 (Not started, or skipped)
        """
        item, step, execution = await self._load(db, item_id, step_id)
        if execution is not None and execution.status == "completed":
            return execution, step
        if execution is None or execution.status != "in_progress":
            status: str = execution.status if execution is not None else "pending"
            raise BadRequestError(f"Step must be in progress to complete (currently {status})")
        self._ensure_executable(item, step)

        execution.status = "completed"
        execution.executed_by = user.id
        execution.measurement_values = data.measurement_values
        execution.validation_status = validate_measurements(step, data.measurement_values)
        execution.notes = data.notes
        execution.completed_at = datetime.now(timezone.utc)
        await db.flush()

        await activity_repository.log(
            db, user.id, "complete_step", "work_order_item", item.id,
            {
                "serial_number": item.serial_number,
                "step_number": step.step_number,
                "validation_status": execution.validation_status,
            },
        )
        await self._advance(db, item, step, user)
        return execution, step

    async def skip_step(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
        notes: str | None,
        user: User,
    ) -> tuple[StepExecution, ProductionStep]:
        """단계 건너뛰기 — pending/in_progress → skipped, 완료와 같은 진행."""
        item, step, execution = await self._load(db, item_id, step_id)
        if execution is not None and execution.status == "skipped":
            return execution, step
        if execution is not None and execution.status == "completed":
            raise BadRequestError("Step is already completed")
        self._ensure_executable(item, step)

        now: datetime = datetime.now(timezone.utc)
        if execution is None:
            execution = await execution_repository.create(
                db,
                {
                    "work_order_item_id": item.id,
                    "production_step_id": step.id,
                    "status": "skipped",
                    "executed_by": user.id,
                    "notes": notes,
                    "completed_at": now,
                },
            )
        else:
            execution.status = "skipped"
            execution.executed_by = user.id
            execution.notes = notes
            execution.completed_at = now
        await db.flush()

        await activity_repository.log(
            db, user.id, "skip_step", "work_order_item", item.id,
            {"serial_number": item.serial_number, "step_number": step.step_number},
        )
        await self._advance(db, item, step, user)
        return execution, step

    async def _advance(
        self,
        db: AsyncSession,
        item: WorkOrderItem,
        step: ProductionStep,
        user: User,
    ) -> None:
        """품목을 다음 단계로 — Move the item past the step; complete it after the last one."""
        total_steps: int = await work_order_repository.count_steps(db, item.product_type)
        item.current_step = step.step_number + 1
        if item.current_step <= total_steps:
            item.status = "in_progress"
            await db.flush()
            return

        item.status = "completed"
        item.completed_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Item %s completed", item.serial_number)

        if settings.AUTO_GENERATE_CERTIFICATES:
            await certificate_service.generate_certificate(db, item.id, user)
        await self._complete_work_order_if_done(db, item.work_order)

    async def _complete_work_order_if_done(self, db: AsyncSession, work_order: WorkOrder) -> None:
        """모든 품목 완료 시 작업 지시 완료 — Complete the order once every item is."""
        items: list[WorkOrderItem] = await work_order_repository.get_items(db, work_order.id)
        if not items or any(i.status != "completed" for i in items):
            return
        if work_order.status == "completed":
            return
        work_order.status = "completed"
        work_order.completed_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Work order %s completed", work_order.wo_number)
        await notification_service.notify_work_order_completed(db, work_order)

    async def item_progress(self, db: AsyncSession, item_id: UUID) -> dict[str, Any]:
        """품목 진행 현황.

        The item's ordered steps with each step's execution status,
        operator and timestamps. Steps without an execution are pending.
        """
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")
        steps: list[ProductionStep] = await work_order_repository.get_steps(db, item.product_type)
        executions: dict[UUID, StepExecution] = {
            e.production_step_id: e for e in await execution_repository.list_for_item(db, item.id)
        }

        step_rows: list[dict[str, Any]] = []
        for step in steps:
            execution: StepExecution | None = executions.get(step.id)
            step_rows.append({
                "step_id": str(step.id),
                "step_number": step.step_number,
                "title_en": step.title_en,
                "title_nl": step.title_nl,
                "requires_value_input": step.requires_value_input,
                "measurement_fields": step.measurement_fields,
                "is_current": step.step_number == item.current_step and item.status != "completed",
                "status": execution.status if execution else "pending",
                "execution_id": str(execution.id) if execution else None,
                "executed_by": str(execution.executed_by) if execution and execution.executed_by else None,
                "operator_name": execution.executor.full_name if execution and execution.executor else None,
                "measurement_values": execution.measurement_values if execution else None,
                "validation_status": execution.validation_status if execution else None,
                "started_at": execution.started_at if execution else None,
                "completed_at": execution.completed_at if execution else None,
            })

        return {
            "item_id": str(item.id),
            "serial_number": item.serial_number,
            "product_type": item.product_type,
            "wo_number": item.work_order.wo_number,
            "status": item.status,
            "current_step": item.current_step,
            "total_steps": len(steps),
            "steps": step_rows,
        }

    async def my_queue(self, db: AsyncSession, user: User) -> list[dict[str, Any]]:
        """작업자 작업 목록 — Open items assigned to the user, most urgent first."""
        items: list[WorkOrderItem] = await work_order_repository.list_assigned_items(db, user.id)
        return [
            {
                "item_id": str(item.id),
                "serial_number": item.serial_number,
                "product_type": item.product_type,
                "status": item.status,
                "current_step": item.current_step,
                "work_order_id": str(item.work_order_id),
                "wo_number": item.work_order.wo_number,
                "priority": item.work_order.priority,
                "start_date": item.work_order.start_date,
                "shipping_date": item.work_order.shipping_date,
            }
            for item in items
        ]


# 싱글턴 인스턴스 — Singleton instance
execution_service: ExecutionService = ExecutionService()
