"""작업자 가용성 레포지토리 — 일자별 가용 시간 쿼리.

Availability Repository — Per-operator, per-date availability queries.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.availability import OperatorAvailability
from mesplan.repositories.base import BaseRepository


class AvailabilityRepository(BaseRepository[OperatorAvailability]):
    """작업자 가용성 테이블 레포지토리.

    Repository for the operator_availability table.
    """

    def __init__(self) -> None:
        super().__init__(OperatorAvailability)

    async def get_for_user_date(
        self,
        db: AsyncSession,
        user_id: UUID,
        on_date: date,
    ) -> OperatorAvailability | None:
        """작업자의 특정 일자 가용성 조회.

        Retrieve the availability entry of one operator on one date.
        """
        result = await db.execute(
            select(OperatorAvailability).where(
                OperatorAvailability.user_id == user_id,
                OperatorAvailability.date == on_date,
            )
        )
        return result.scalar_one_or_none()

    async def list_range(
        self,
        db: AsyncSession,
        date_from: date,
        date_to: date,
        user_id: UUID | None = None,
        user_ids: Sequence[UUID] | None = None,
        absent_only: bool = False,
    ) -> list[OperatorAvailability]:
        """기간 내 가용성 항목 목록.

        List availability entries between two dates (inclusive), ordered
        by date then user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            date_from: 시작일 (First date, inclusive)
            date_to: 종료일 (Last date, inclusive)
            user_id: 단일 작업자 필터 (Single operator filter)
            user_ids: 작업자 목록 필터 (Operator set filter)
            absent_only: 전일 부재만 (Only zero-hour entries)

        Returns:
            list[OperatorAvailability]: 가용성 목록 (Entries ordered by date)
        """
        query: Select = select(OperatorAvailability).where(
            OperatorAvailability.date >= date_from,
            OperatorAvailability.date <= date_to,
        )
        if user_id is not None:
            query = query.where(OperatorAvailability.user_id == user_id)
        if user_ids is not None:
            query = query.where(OperatorAvailability.user_id.in_(list(user_ids)))
        if absent_only:
            query = query.where(OperatorAvailability.available_hours == 0)
        result = await db.execute(
            query.order_by(OperatorAvailability.date, OperatorAvailability.user_id)
        )
        return list(result.scalars().all())

    async def delete_range(
        self,
        db: AsyncSession,
        user_id: UUID,
        date_from: date,
        date_to: date,
    ) -> None:
        """기간 내 작업자 가용성 삭제 — Delete one operator's entries in a range."""
        await db.execute(
            delete(OperatorAvailability).where(
                OperatorAvailability.user_id == user_id,
                OperatorAvailability.date >= date_from,
                OperatorAvailability.date <= date_to,
            )
        )
        await db.flush()

    async def bulk_create(
        self,
        db: AsyncSession,
        rows: list[dict],
    ) -> list[OperatorAvailability]:
        """가용성 일괄 생성 — Insert several entries and return them."""
        entries: list[OperatorAvailability] = [OperatorAvailability(**row) for row in rows]
        db.add_all(entries)
        await db.flush()
        for entry in entries:
            await db.refresh(entry)
        return entries


# 싱글턴 인스턴스 — Singleton instance
availability_repository: AvailabilityRepository = AvailabilityRepository()
