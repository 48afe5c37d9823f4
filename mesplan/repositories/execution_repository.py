"""단계 실행 레포지토리 — Step execution queries."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mesplan.models.production import StepExecution
from mesplan.repositories.base import BaseRepository


class ExecutionRepository(BaseRepository[StepExecution]):
    """단계 실행 레포지토리 — Repository for step executions."""

    def __init__(self) -> None:
        super().__init__(StepExecution)

    async def get_for_item_step(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID,
    ) -> StepExecution | None:
        """품목+단계 실행 조회 — The execution of one (item, step) pair."""
        result = await db.execute(
            select(StepExecution).where(
                StepExecution.work_order_item_id == item_id,
                StepExecution.production_step_id == step_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_item(
        self,
        db: AsyncSession,
        item_id: UUID,
    ) -> list[StepExecution]:
        """품목의 실행 목록 (단계/작업자 포함).

        Executions of an item with step and executor loaded, in the
        order they were completed.
        """
        result = await db.execute(
            select(StepExecution)
            .options(selectinload(StepExecution.production_step), selectinload(StepExecution.executor))
            .where(StepExecution.work_order_item_id == item_id)
            .order_by(StepExecution.completed_at, StepExecution.created_at)
        )
        return list(result.scalars().all())

    async def list_for_items(
        self,
        db: AsyncSession,
        item_ids: Sequence[UUID],
    ) -> list[StepExecution]:
        """여러 품목의 실행 목록 — Executions of several items."""
        if not item_ids:
            return []
        result = await db.execute(
            select(StepExecution).where(StepExecution.work_order_item_id.in_(list(item_ids)))
        )
        return list(result.scalars().all())

    async def count_for_item(self, db: AsyncSession, item_id: UUID) -> int:
        """품목의 실행 행 수 — Number of execution rows of an item."""
        result = await db.execute(
            select(func.count())
            .select_from(StepExecution)
            .where(StepExecution.work_order_item_id == item_id)
        )
        return result.scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
execution_repository: ExecutionRepository = ExecutionRepository()
