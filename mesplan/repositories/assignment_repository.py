"""배정 레포지토리 — 단계 배정과 일자별 작업자 배정.

Assignment Repository — Step assignments (item/step → operator) and
per-day operator assignments counted by the capacity views.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.assignment import OperatorAssignment, StepAssignment
from mesplan.models.production import WorkOrder
from mesplan.repositories.base import BaseRepository


class AssignmentRepository(BaseRepository[OperatorAssignment]):
    """작업자 배정 레포지토리.

    Repository for operator assignments; step assignment helpers live
    alongside because every editor write touches both tables.
    """

    def __init__(self) -> None:
        super().__init__(OperatorAssignment)

    # --- 단계 배정 (Step assignments) ---

    async def get_step_assignments(
        self,
        db: AsyncSession,
        work_order_id: UUID,
    ) -> list[StepAssignment]:
        """작업 지시의 단계 배정 목록 — Step assignments of a work order."""
        result = await db.execute(
            select(StepAssignment).where(StepAssignment.work_order_id == work_order_id)
        )
        return list(result.scalars().all())

    async def get_step_assignment(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
    ) -> StepAssignment | None:
        """품목+단계 배정 조회 — One step assignment by (item, step)."""
        result = await db.execute(
            select(StepAssignment).where(
                StepAssignment.work_order_item_id == item_id,
                StepAssignment.production_step_id == step_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_step_assignment(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        item_id: UUID,
        step_id: UUID,
        operator_id: UUID,
        assigned_by: UUID | None,
    ) -> StepAssignment:
        """단계 배정 저장 (있으면 교체) — Insert or replace the operator of one item step."""
        row: StepAssignment | None = await self.get_step_assignment(db, item_id, step_id)
        if row is None:
            row = StepAssignment(
                work_order_id=work_order_id,
                work_order_item_id=item_id,
                production_step_id=step_id,
                operator_id=operator_id,
                assigned_by=assigned_by,
            )
            db.add(row)
        else:
            row.operator_id = operator_id
            row.assigned_by = assigned_by
        await db.flush()
        return row

    async def delete_step_assignments(
        self,
        db: AsyncSession,
        work_order_id: UUID | None = None,
        item_ids: Sequence[UUID] | None = None,
        step_id: UUID | None = None,
    ) -> None:
        """단계 배정 삭제 — Delete step assignments by order, items and/or step."""
        stmt = delete(StepAssignment)
        if work_order_id is not None:
            stmt = stmt.where(StepAssignment.work_order_id == work_order_id)
        if item_ids is not None:
            stmt = stmt.where(StepAssignment.work_order_item_id.in_(list(item_ids)))
        if step_id is not None:
            stmt = stmt.where(StepAssignment.production_step_id == step_id)
        await db.execute(stmt)
        await db.flush()

    # --- 일자별 작업자 배정 (Operator assignments) ---

    async def list_for_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
    ) -> list[OperatorAssignment]:
        """작업 지시의 일자 배정 목록 — Operator assignments of a work order."""
        result = await db.execute(
            select(OperatorAssignment).where(OperatorAssignment.work_order_id == work_order_id)
        )
        return list(result.scalars().all())

    async def delete_for_work_order(
        self,
        db: AsyncSession,
        work_order_id: UUID,
    ) -> None:
        """작업 지시의 일자 배정 전체 삭제 — Delete all operator assignments of an order."""
        await db.execute(
            delete(OperatorAssignment).where(OperatorAssignment.work_order_id == work_order_id)
        )
        await db.flush()

    async def list_range(
        self,
        db: AsyncSession,
        date_from: date,
        date_to: date,
        operator_id: UUID | None = None,
        operator_ids: Sequence[UUID] | None = None,
    ) -> list[tuple[OperatorAssignment, str]]:
        """기간 내 일자 배정과 작업 지시 번호.

        Operator assignments in a date range, each paired with its work
        order number so the capacity views can list them without a
        second query.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            date_from: 시작일 (First date, inclusive)
            date_to: 종료일 (Last date, inclusive)
            operator_id: 단일 작업자 필터 (Single operator filter)
            operator_ids: 작업자 목록 필터 (Operator set filter)

        Returns:
            list[tuple[OperatorAssignment, str]]: (배정, 작업 지시 번호) 목록
        """
        query: Select = (
            select(OperatorAssignment, WorkOrder.wo_number)
            .join(WorkOrder, WorkOrder.id == OperatorAssignment.work_order_id)
            .where(
                OperatorAssignment.assigned_date >= date_from,
                OperatorAssignment.assigned_date <= date_to,
            )
        )
        if operator_id is not None:
            query = query.where(OperatorAssignment.operator_id == operator_id)
        if operator_ids is not None:
            query = query.where(OperatorAssignment.operator_id.in_(list(operator_ids)))
        result = await db.execute(
            query.order_by(OperatorAssignment.assigned_date, WorkOrder.wo_number)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_existing(
        self,
        db: AsyncSession,
        work_order_id: UUID,
        operator_id: UUID,
        assigned_date: date,
    ) -> OperatorAssignment | None:
        """(작업 지시, 작업자, 일자) 배정 조회 — Assignment by its unique key."""
        result = await db.execute(
            select(OperatorAssignment).where(
                OperatorAssignment.work_order_id == work_order_id,
                OperatorAssignment.operator_id == operator_id,
                OperatorAssignment.assigned_date == assigned_date,
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
assignment_repository: AssignmentRepository = AssignmentRepository()
