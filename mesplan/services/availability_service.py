"""작업자 가용성 서비스 — 부재/가용 시간 관리.

Availability Service — Per-operator, per-date available hours.
A zero-hour entry is a full-day absence and blocks assignment on that
date; partial hours keep the operator assignable but lower capacity.
"""

import logging
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.availability import REASON_TYPES, OperatorAvailability
from mesplan.models.user import User
from mesplan.repositories.availability_repository import availability_repository
from mesplan.repositories.user_repository import user_repository
from mesplan.schemas.availability import AvailabilityRangeCreate
from mesplan.utils.dates import iter_days
from mesplan.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

# 한 번에 설정 가능한 최대 일수 — Longest range accepted in one request
MAX_RANGE_DAYS: int = 366


class AvailabilityService:
    """작업자 가용성 서비스."""

    def build_response(self, entry: OperatorAvailability) -> dict[str, Any]:
        """가용성 응답 딕셔너리 — AvailabilityResponse-shaped dict."""
        return {
            "id": str(entry.id),
            "user_id": str(entry.user_id),
            "date": entry.date,
            "available_hours": float(entry.available_hours or 0),
            "reason_type": entry.reason_type,
            "reason": entry.reason,
            "display_reason": entry.display_reason,
            "is_absent": entry.is_absent,
            "created_at": entry.created_at,
        }

    async def set_availability_range(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: AvailabilityRangeCreate,
        created_by: UUID | None,
    ) -> list[OperatorAvailability]:
        """기간 내 모든 날짜의 가용성을 교체합니다.

        Replace the operator's availability for every day in
        [start_date, end_date]: existing entries on those dates are
        deleted, then one entry per day is inserted.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 대상 작업자 UUID (Operator UUID)
            data: 기간 설정 요청 (Range request)
            created_by: 입력자 UUID (User recording the entry)

        Returns:
            list[OperatorAvailability]: 생성된 항목 (Inserted entries, by date)

        Raises:
            BadRequestError: 잘못된 기간/시간/사유 유형 (Invalid range, hours or reason type)
            NotFoundError: 작업자 없음 (Unknown operator)
        """
        if data.end_date < data.start_date:
            raise BadRequestError("End date must not be before start date")
        day_count: int = (data.end_date - data.start_date).days + 1
        if day_count > MAX_RANGE_DAYS:
            raise BadRequestError(f"Range cannot exceed {MAX_RANGE_DAYS} days")
        if not 0 <= data.available_hours <= 24:
            raise BadRequestError("Available hours must be between 0 and 24")
        if data.reason_type not in REASON_TYPES:
            raise BadRequestError(f"Reason type must be one of: {', '.join(REASON_TYPES)}")
        if await user_repository.get_by_id(db, user_id) is None:
            raise NotFoundError("Operator not found")

        await availability_repository.delete_range(db, user_id, data.start_date, data.end_date)
        rows: list[dict[str, Any]] = [
            {
                "user_id": user_id,
                "date": day,
                "available_hours": data.available_hours,
                "reason_type": data.reason_type,
                "reason": data.reason or None,
                "created_by": created_by,
            }
            for day in iter_days(data.start_date, data.end_date)
        ]
        entries: list[OperatorAvailability] = await availability_repository.bulk_create(db, rows)
        logger.info(
            "Availability set for %s: %s..%s at %.1fh (%s)",
            user_id, data.start_date, data.end_date, data.available_hours, data.reason_type,
        )
        return entries

    async def list_availability(
        self,
        db: AsyncSession,
        date_from: date,
        date_to: date,
        user_id: UUID | None = None,
    ) -> list[OperatorAvailability]:
        """가용성 목록 — Entries in a range, ordered by date."""
        if date_to < date_from:
            raise BadRequestError("End date must not be before start date")
        return await availability_repository.list_range(db, date_from, date_to, user_id=user_id)

    async def delete_availability(
        self,
        db: AsyncSession,
        entry_id: UUID,
        user_id: UUID | None = None,
    ) -> None:
        """가용성 항목 삭제.

        Delete one entry. When user_id is given the entry must belong to
        that operator (self-service route).
        """
        entry: OperatorAvailability | None = await availability_repository.get_by_id(db, entry_id)
        if entry is None or (user_id is not None and entry.user_id != user_id):
            raise NotFoundError("Availability entry not found")
        await db.delete(entry)
        await db.flush()

    async def get_entry(
        self,
        db: AsyncSession,
        user_id: UUID,
        on_date: date,
    ) -> OperatorAvailability | None:
        """작업자의 해당 일자 항목 — The operator's entry on a date, if any."""
        return await availability_repository.get_for_user_date(db, user_id, on_date)

    async def is_unavailable(
        self,
        db: AsyncSession,
        user_id: UUID,
        on_date: date,
    ) -> bool:
        """전일 부재 여부 — True iff a zero-hour entry exists on that date."""
        entry: OperatorAvailability | None = await self.get_entry(db, user_id, on_date)
        return entry is not None and entry.is_absent

    def unavailable_reason(self, entry: OperatorAvailability | None) -> str | None:
        """부재 사유 표시 — reason, else reason_type, else "Away"."""
        if entry is None:
            return None
        return entry.display_reason

    async def upcoming_time_off(
        self,
        db: AsyncSession,
        days_ahead: int = 14,
    ) -> list[dict[str, Any]]:
        """다가오는 휴가를 작업자+사유 유형별로 묶어 반환합니다.

        Zero-hour entries from today through today + days_ahead, grouped by
        (operator, reason_type) with start_date, end_date and day count,
        ordered by start date.
        """
        today: date = date.today()
        entries: list[OperatorAvailability] = await availability_repository.list_range(
            db, today, today + timedelta(days=days_ahead), absent_only=True
        )
        users: dict[UUID, User] = await user_repository.get_users_by_ids(
            db, list({e.user_id for e in entries})
        )

        groups: dict[tuple[UUID, str], dict[str, Any]] = {}
        for entry in entries:
            key: tuple[UUID, str] = (entry.user_id, entry.reason_type)
            group: dict[str, Any] | None = groups.get(key)
            if group is None:
                user: User | None = users.get(entry.user_id)
                groups[key] = {
                    "user_id": str(entry.user_id),
                    "full_name": user.full_name if user else "",
                    "reason_type": entry.reason_type,
                    "reason": entry.display_reason,
                    "start_date": entry.date,
                    "end_date": entry.date,
                    "days": 1,
                }
            else:
                group["start_date"] = min(group["start_date"], entry.date)
                group["end_date"] = max(group["end_date"], entry.date)
                group["days"] += 1
        return sorted(groups.values(), key=lambda g: (g["start_date"], g["full_name"]))


# 싱글턴 인스턴스 — Singleton instance
availability_service: AvailabilityService = AvailabilityService()
