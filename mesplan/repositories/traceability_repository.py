"""추적성 레포지토리 — 하위 조립품 연결과 배치 자재 쿼리.

Traceability Repository — Sub-assembly links and scanned material
batches of an item.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mesplan.models.traceability import BatchMaterial, SubAssembly
from mesplan.repositories.base import BaseRepository


class SubAssemblyRepository(BaseRepository[SubAssembly]):
    """하위 조립품 연결 레포지토리."""

    def __init__(self) -> None:
        super().__init__(SubAssembly)

    async def list_for_parent(
        self,
        db: AsyncSession,
        parent_item_id: UUID,
    ) -> list[SubAssembly]:
        """상위 품목의 연결 목록 (연결 순) — Links of a parent with child items loaded."""
        result = await db.execute(
            select(SubAssembly)
            .options(selectinload(SubAssembly.child_item))
            .where(SubAssembly.parent_item_id == parent_item_id)
            .order_by(SubAssembly.linked_at, SubAssembly.id)
        )
        return list(result.scalars().all())

    async def get_link(
        self,
        db: AsyncSession,
        parent_item_id: UUID,
        child_item_id: UUID,
    ) -> SubAssembly | None:
        result = await db.execute(
            select(SubAssembly).where(
                SubAssembly.parent_item_id == parent_item_id,
                SubAssembly.child_item_id == child_item_id,
            )
        )
        return result.scalar_one_or_none()


class BatchMaterialRepository(BaseRepository[BatchMaterial]):
    """배치 자재 레포지토리."""

    def __init__(self) -> None:
        super().__init__(BatchMaterial)

    async def list_for_item(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID | None = None,
    ) -> list[BatchMaterial]:
        """품목의 자재 배치 (스캔 순) — Optionally only those scanned at one step."""
        query = select(BatchMaterial).where(BatchMaterial.work_order_item_id == item_id)
        if step_id is not None:
            query = query.where(BatchMaterial.production_step_id == step_id)
        result = await db.execute(query.order_by(BatchMaterial.scanned_at, BatchMaterial.id))
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instances
sub_assembly_repository: SubAssemblyRepository = SubAssemblyRepository()
batch_material_repository: BatchMaterialRepository = BatchMaterialRepository()
