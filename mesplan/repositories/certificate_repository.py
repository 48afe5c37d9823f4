"""품질 인증서 및 활동 로그 레포지토리.

Certificate Repository — Quality certificates and the activity log.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mesplan.models.quality import ActivityLog, QualityCertificate
from mesplan.repositories.base import BaseRepository


class CertificateRepository(BaseRepository[QualityCertificate]):
    """품질 인증서 레포지토리 — Repository for quality certificates."""

    def __init__(self) -> None:
        super().__init__(QualityCertificate)

    async def get_for_item(
        self,
        db: AsyncSession,
        item_id: UUID,
    ) -> QualityCertificate | None:
        """품목의 인증서 조회 — Certificate of an item, or None."""
        result = await db.execute(
            select(QualityCertificate).where(QualityCertificate.work_order_item_id == item_id)
        )
        return result.scalar_one_or_none()

    async def get_paginated_list(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[QualityCertificate], int]:
        """인증서 목록 (최신순) — Certificates, newest first, with items loaded."""
        query: Select = (
            select(QualityCertificate)
            .options(selectinload(QualityCertificate.item))
            .order_by(QualityCertificate.generated_at.desc())
        )
        return await self.get_paginated(db, query, page, per_page)


class ActivityRepository(BaseRepository[ActivityLog]):
    """활동 로그 레포지토리 — Repository for activity log entries."""

    def __init__(self) -> None:
        super().__init__(ActivityLog)

    async def log(
        self,
        db: AsyncSession,
        user_id: UUID | None,
        action: str,
        entity_type: str,
        entity_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """활동 기록 추가 — Append one activity log entry."""
        entry: ActivityLog = ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def list_recent(
        self,
        db: AsyncSession,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        action: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[ActivityLog], int]:
        """활동 로그 목록 (최신순) — Activity entries, newest first."""
        query: Select = select(ActivityLog)
        if entity_type is not None:
            query = query.where(ActivityLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.where(ActivityLog.entity_id == entity_id)
        if action is not None:
            query = query.where(ActivityLog.action == action)
        return await self.get_paginated(db, query.order_by(ActivityLog.created_at.desc()), page, per_page)


# 싱글턴 인스턴스 — Singleton instances
certificate_repository: CertificateRepository = CertificateRepository()
activity_repository: ActivityRepository = ActivityRepository()
