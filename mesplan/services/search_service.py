"""검색 및 사용자 상태 서비스.

Search Service — Global work-order/serial search, genealogy lookup,
recent searches, session-scoped view state and the last visited route.

Recent searches and the last route persist per user across logins.
View state belongs to one login session and disappears with it.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.config import settings
from mesplan.models.production import StepExecution, WorkOrder, WorkOrderItem
from mesplan.models.quality import QualityCertificate
from mesplan.models.session import RecentSearch, SessionViewState, UserPreference, UserSession
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import certificate_repository
from mesplan.repositories.execution_repository import execution_repository
from mesplan.repositories.session_repository import session_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.services.traceability_service import traceability_service
from mesplan.utils.exceptions import BadRequestError, NotFoundError

SEARCH_SCOPES: tuple[str, ...] = ("system", "genealogy")

# 검색 결과 개수 — Results per category
SEARCH_RESULT_LIMIT: int = 10


def normalize_term(term: str | None) -> str:
    """검색어 정규화 — Trim and uppercase; empty terms are rejected."""
    normalized: str = (term or "").strip().upper()
    if not normalized:
        raise BadRequestError("Search query must not be empty")
    return normalized


def is_restorable_route(route: str) -> bool:
    """복원 가능한 경로인지 — The root and auth pages are never restored."""
    path: str = route.strip()
    if not path or path == "/":
        return False
    return not (path == "/auth" or path.startswith("/auth/") or path.startswith("/auth?"))


class SearchService:
    """검색/상태 서비스."""

    def _check_scope(self, scope: str) -> None:
        if scope not in SEARCH_SCOPES:
            raise BadRequestError(f"scope must be one of: {', '.join(SEARCH_SCOPES)}")

    # --- 검색 (Search) ---

    async def global_search(
        self,
        db: AsyncSession,
        user: User,
        query: str,
    ) -> dict[str, Any]:
        """통합 검색.

        Up to 10 non-cancelled work orders by number and 10 items by
        serial. The term goes into the user's "system" recent searches
        only when something was found.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 검색하는 사용자 (Searching user)
            query: 검색어 (Raw query)

        Returns:
            dict: SearchResponse-shaped dict

        Raises:
            BadRequestError: 빈 검색어 (Empty query)
        """
        term: str = normalize_term(query)
        work_orders: list[WorkOrder] = await work_order_repository.search_by_number(
            db, term, SEARCH_RESULT_LIMIT
        )
        items: list[WorkOrderItem] = await work_order_repository.search_items_by_serial(
            db, term, SEARCH_RESULT_LIMIT
        )

        if work_orders or items:
            await session_repository.record_search(
                db, user.id, "system", term, settings.RECENT_SEARCH_LIMIT
            )
        return {
            "query": term,
            "work_orders": [
                {
                    "id": str(wo.id),
                    "wo_number": wo.wo_number,
                    "product_type": wo.product_type,
                    "status": wo.status,
                    "customer_name": wo.customer_name,
                    "start_date": wo.start_date,
                }
                for wo in work_orders
            ],
            "items": [
                {
                    "id": str(item.id),
                    "serial_number": item.serial_number,
                    "product_type": item.product_type,
                    "status": item.status,
                    "work_order_id": str(item.work_order_id),
                    "wo_number": item.work_order.wo_number,
                }
                for item in items
            ],
            "recent": await self.recent_terms(db, user.id, "system"),
        }

    async def genealogy(
        self,
        db: AsyncSession,
        user: User,
        serial_number: str,
    ) -> dict[str, Any]:
        """시리얼 계보 조회.

        Exact serial lookup with its executions, linked sub-assemblies,
        scanned material batches and certificate.
        """
        serial: str = normalize_term(serial_number)
        item: WorkOrderItem | None = await work_order_repository.get_item_by_serial(db, serial)
        if item is None:
            raise NotFoundError(f"Serial {serial} not found")

        await session_repository.record_search(
            db, user.id, "genealogy", serial, settings.RECENT_SEARCH_LIMIT
        )
        executions: list[StepExecution] = await execution_repository.list_for_item(db, item.id)
        certificate: QualityCertificate | None = await certificate_repository.get_for_item(db, item.id)
        work_order: WorkOrder = item.work_order
        return {
            "item": {
                "id": str(item.id),
                "serial_number": item.serial_number,
                "product_type": item.product_type,
                "status": item.status,
                "current_step": item.current_step,
                "label_printed": item.label_printed,
                "quality_approved": item.quality_approved,
                "completed_at": item.completed_at,
            },
            "work_order": {
                "id": str(work_order.id),
                "wo_number": work_order.wo_number,
                "status": work_order.status,
                "customer_name": work_order.customer_name,
                "start_date": work_order.start_date,
                "shipping_date": work_order.shipping_date,
            },
            "executions": [
                {
                    "step_number": e.production_step.step_number,
                    "title_en": e.production_step.title_en,
                    "status": e.status,
                    "operator": e.executor.full_name if e.executor else None,
                    "measurement_values": e.measurement_values,
                    "validation_status": e.validation_status,
                    "notes": e.notes,
                    "started_at": e.started_at,
                    "completed_at": e.completed_at,
                }
                for e in executions
            ],
            **await traceability_service.trace(db, item.id),
            "certificate_id": str(certificate.id) if certificate else None,
        }

    # --- 최근 검색어 (Recent searches) ---

    async def recent_terms(self, db: AsyncSession, user_id: UUID, scope: str) -> list[str]:
        """최근 검색어 (최신순, 최대 N개) — Newest first, capped."""
        self._check_scope(scope)
        rows: list[RecentSearch] = await session_repository.get_recent_searches(db, user_id, scope)
        return [r.term for r in rows[: settings.RECENT_SEARCH_LIMIT]]

    async def clear_recent(self, db: AsyncSession, user_id: UUID, scope: str) -> None:
        """최근 검색어 삭제."""
        self._check_scope(scope)
        await session_repository.clear_recent_searches(db, user_id, scope)

    # --- 세션 화면 상태 (Session view state) ---

    async def get_view_states(self, db: AsyncSession, session: UserSession) -> dict[str, Any]:
        """세션의 모든 화면 상태 — {key: value} of the current session."""
        states: list[SessionViewState] = await session_repository.get_view_states(db, session.id)
        return {s.key: s.value for s in states}

    async def get_view_state(self, db: AsyncSession, session: UserSession, key: str) -> Any:
        state: SessionViewState | None = await session_repository.get_view_state(db, session.id, key)
        if state is None:
            raise NotFoundError(f"No view state for {key}")
        return state.value

    async def set_view_state(self, db: AsyncSession, session: UserSession, key: str, value: Any) -> Any:
        state: SessionViewState = await session_repository.upsert_view_state(db, session.id, key, value)
        return state.value

    async def delete_view_state(self, db: AsyncSession, session: UserSession, key: str) -> None:
        if not await session_repository.delete_view_state(db, session.id, key):
            raise NotFoundError(f"No view state for {key}")

    # --- 마지막 경로 (Last route) ---

    async def get_last_route(self, db: AsyncSession, user_id: UUID) -> str | None:
        pref: UserPreference | None = await session_repository.get_preference(db, user_id)
        return pref.last_route if pref else None

    async def set_last_route(self, db: AsyncSession, user_id: UUID, route: str) -> str | None:
        """마지막 경로 저장 — "/" and /auth routes are ignored and leave the stored one."""
        if not is_restorable_route(route):
            return await self.get_last_route(db, user_id)
        pref: UserPreference = await session_repository.set_last_route(db, user_id, route.strip())
        return pref.last_route


# 싱글턴 인스턴스 — Singleton instance
search_service: SearchService = SearchService()
