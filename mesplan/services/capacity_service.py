"""용량 집계 서비스 — 작업자별 일자별 배정 수와 가용 상태.

Capacity Service — Per-operator, per-day assignment counts and availability.
Each aggregation issues one availability query and one assignment query
for the whole date range and groups the rows in Python.
"""

from collections import defaultdict
from datetime import date
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.config import settings
from mesplan.models.assignment import OperatorAssignment
from mesplan.models.availability import OperatorAvailability
from mesplan.models.user import User
from mesplan.repositories.assignment_repository import assignment_repository
from mesplan.repositories.availability_repository import availability_repository
from mesplan.repositories.user_repository import user_repository
from mesplan.utils.dates import iter_days
from mesplan.utils.exceptions import BadRequestError, NotFoundError

# 한 번에 집계할 수 있는 최대 일수 — Longest range aggregated in one call
MAX_RANGE_DAYS: int = 92


def utilization_pct(planned_hours: float, capacity_hours: float) -> float:
    """가동률(%) — round(planned / capacity * 100, 1), 0 when capacity is 0."""
    if capacity_hours <= 0:
        return 0.0
    return round(planned_hours / capacity_hours * 100, 1)


class CapacityService:
    """용량 집계 서비스."""

    async def operator_pool(self, db: AsyncSession) -> list[User]:
        """작업자 풀 — Production team members, or active operators/supervisors."""
        return await user_repository.get_operator_pool(db, settings.PRODUCTION_TEAM_NAME)

    def _default_capacity(self, user: User) -> float:
        if user.daily_capacity_hours is not None:
            return float(user.daily_capacity_hours)
        return settings.DEFAULT_DAILY_CAPACITY_HOURS

    async def _load(
        self,
        db: AsyncSession,
        start: date,
        end: date,
        operator_ids: Sequence[UUID],
    ) -> tuple[
        dict[tuple[UUID, date], OperatorAvailability],
        dict[tuple[UUID, date], list[tuple[OperatorAssignment, str]]],
    ]:
        """기간 내 가용성/배정을 한 번씩 조회하여 (작업자, 일자)로 묶습니다."""
        entries = await availability_repository.list_range(db, start, end, user_ids=operator_ids)
        availability: dict[tuple[UUID, date], OperatorAvailability] = {
            (e.user_id, e.date): e for e in entries
        }
        assignments: dict[tuple[UUID, date], list[tuple[OperatorAssignment, str]]] = defaultdict(list)
        for assignment, wo_number in await assignment_repository.list_range(
            db, start, end, operator_ids=operator_ids
        ):
            assignments[(assignment.operator_id, assignment.assigned_date)].append(
                (assignment, wo_number)
            )
        return availability, assignments

    def _operator_day(
        self,
        user: User,
        entry: OperatorAvailability | None,
        rows: list[tuple[OperatorAssignment, str]],
    ) -> dict[str, Any]:
        capacity: float = float(entry.available_hours) if entry is not None else self._default_capacity(user)
        return {
            "operator_id": str(user.id),
            "full_name": user.full_name,
            "initials": user.initials,
            "is_unavailable": entry is not None and entry.is_absent,
            "reason": entry.display_reason if entry is not None else None,
            "assignment_count": len(rows),
            "assignments": [wo_number for _, wo_number in rows],
            "capacity_hours": capacity,
            "planned_hours": round(sum(float(a.planned_hours or 0) for a, _ in rows), 2),
        }

    async def range_capacity(
        self,
        db: AsyncSession,
        start: date,
        end: date,
        operators: list[User] | None = None,
    ) -> list[dict[str, Any]]:
        """기간 내 일자별 작업자 용량.

        Per-day capacity entries for every operator of the pool, for every
        day in [start, end].

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            start: 시작일 (First date)
            end: 종료일 (Last date)
            operators: 작업자 목록, 생략 시 작업자 풀 (Operators, defaults to the pool)

        Returns:
            list[dict]: [{"date": d, "operators": [...]}, ...]
        """
        if end < start:
            raise BadRequestError("End date must not be before start date")
        if (end - start).days + 1 > MAX_RANGE_DAYS:
            raise BadRequestError(f"Range cannot exceed {MAX_RANGE_DAYS} days")
        pool: list[User] = operators if operators is not None else await self.operator_pool(db)
        availability, assignments = await self._load(db, start, end, [u.id for u in pool])

        return [
            {
                "date": day,
                "operators": [
                    self._operator_day(user, availability.get((user.id, day)), assignments.get((user.id, day), []))
                    for user in pool
                ],
            }
            for day in iter_days(start, end)
        ]

    async def day_capacity(
        self,
        db: AsyncSession,
        on_date: date,
        operators: list[User] | None = None,
    ) -> dict[str, Any]:
        """하루 작업자 용량 — One entry per pool operator for a single date."""
        return (await self.range_capacity(db, on_date, on_date, operators))[0]

    async def operator_workload(
        self,
        db: AsyncSession,
        operator_id: UUID,
        start: date,
        end: date,
    ) -> dict[str, Any]:
        """작업자 기간 부하.

        One row per day: capacity (availability hours when an entry exists,
        else the operator's daily capacity, else the default), planned
        hours, assignment count and utilization percentage.
        """
        if end < start:
            raise BadRequestError("End date must not be before start date")
        if (end - start).days + 1 > MAX_RANGE_DAYS:
            raise BadRequestError(f"Range cannot exceed {MAX_RANGE_DAYS} days")
        user: User | None = await user_repository.get_by_id(db, operator_id)
        if user is None:
            raise NotFoundError("Operator not found")
        availability, assignments = await self._load(db, start, end, [user.id])

        days: list[dict[str, Any]] = []
        for day in iter_days(start, end):
            row: dict[str, Any] = self._operator_day(
                user, availability.get((user.id, day)), assignments.get((user.id, day), [])
            )
            days.append({
                "date": day,
                "capacity_hours": row["capacity_hours"],
                "planned_hours": row["planned_hours"],
                "assignment_count": row["assignment_count"],
                "utilization_pct": utilization_pct(row["planned_hours"], row["capacity_hours"]),
            })
        return {"operator_id": str(user.id), "full_name": user.full_name, "days": days}


# 싱글턴 인스턴스 — Singleton instance
capacity_service: CapacityService = CapacityService()
