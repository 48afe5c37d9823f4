"""기본 레포지토리 — 모든 도메인 레포지토리의 부모 클래스.

Base Repository — Parent class of the domain repositories (work orders,
assignments, availability, sessions, ...). Writes flush but never
commit; the router owns the transaction.

Usage:
    class WorkOrderRepository(BaseRepository[WorkOrder]):
        def __init__(self) -> None:
            super().__init__(WorkOrder)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.database import Base

# 제네릭 모델 타입 — Generic SQLAlchemy model type
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 레포지토리.

    Attributes:
        model: SQLAlchemy 모델 클래스 (Mapped model class with a UUID `id`)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(
        self,
        db: AsyncSession,
        record_id: UUID,
    ) -> ModelType | None:
        """UUID로 단일 행 조회 — One row by primary key, or None."""
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """쿼리 결과의 한 페이지와 전체 개수.

        Run `query` for one page. The total is counted over the same query
        (as a subquery) so filters and joins are respected.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            query: 정렬된 SELECT 쿼리 (Ordered SELECT query)
            page: 페이지 번호, 1부터 (1-based page number, clamped to >= 1)
            per_page: 페이지당 행 수 (Rows per page)

        Returns:
            tuple: (행 목록, 전체 개수) — (Rows, total count)
        """
        page = max(page, 1)
        total: int = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0
        result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
        return result.scalars().all(), total

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """행 생성 — Add, flush and refresh so the id and column defaults are set."""
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        record_id: UUID,
    ) -> bool:
        """행 삭제 — False when no row has that id."""
        db_obj: ModelType | None = await self.get_by_id(db, record_id)
        if db_obj is None:
            return False
        await db.delete(db_obj)
        await db.flush()
        return True
