"""생산 계획 API 테스트 — 달력, 백로그, 일정 지정/해제.

Planner API tests — Calendar windows, the unscheduled backlog and
scheduling orders, including moving their operator assignments.
"""

from datetime import date, timedelta

from httpx import AsyncClient
from sqlalchemy import select

from mesplan.models.assignment import OperatorAssignment
from mesplan.models.availability import OperatorAvailability
from mesplan.schemas.work_order import WorkOrderCreate
from mesplan.services.work_order_service import work_order_service
from tests.conftest import ADMIN, auth_header


async def _backlog_order(db, admin_user, number: str = "WO-TEST-0100"):
    return await work_order_service.create_work_order(
        db, WorkOrderCreate(wo_number=number, product_type="SENSOR", batch_size=1), admin_user,
    )


class TestCalendar:
    """달력 테스트."""

    async def test_week_view(self, client: AsyncClient, supervisor_token, production_team, work_order):
        """주 보기 — 월요일부터 일요일까지 7일."""
        anchor = work_order.start_date
        res = await client.get(f"{ADMIN}/planner/calendar", headers=auth_header(supervisor_token), params={
            "view": "week", "anchor": anchor.isoformat(),
        })
        assert res.status_code == 200
        data = res.json()
        assert len(data["days"]) == 7
        assert date.fromisoformat(data["start"]).weekday() == 0
        day = [d for d in data["days"] if d["date"] == anchor.isoformat()][0]
        assert [o["wo_number"] for o in day["orders"]] == ["WO-TEST-0001"]
        assert len(day["operators"]) == 2
        assert [o["wo_number"] for o in data["orders"]] == ["WO-TEST-0001"]

    async def test_month_view(self, client: AsyncClient, supervisor_token, production_team):
        """월 보기 — 해당 월의 모든 날짜."""
        res = await client.get(f"{ADMIN}/planner/calendar", headers=auth_header(supervisor_token), params={
            "view": "month", "anchor": "2026-02-11",
        })
        data = res.json()
        assert data["start"] == "2026-02-01"
        assert data["end"] == "2026-02-28"
        assert len(data["days"]) == 28

    async def test_unknown_view(self, client: AsyncClient, supervisor_token):
        """알 수 없는 보기는 400."""
        res = await client.get(f"{ADMIN}/planner/calendar", headers=auth_header(supervisor_token), params={
            "view": "year",
        })
        assert res.status_code == 400

    async def test_window_excludes_cancelled(self, client: AsyncClient, supervisor_token, work_order):
        """기간 목록은 취소된 작업 지시를 제외합니다."""
        headers = auth_header(supervisor_token)
        await client.post(f"{ADMIN}/work-orders/{work_order.id}/cancel", headers=headers, json={"reason": "Dup"})
        day = work_order.start_date.isoformat()
        res = await client.get(f"{ADMIN}/planner/window", headers=headers, params={"start": day, "end": day})
        assert res.json() == []


class TestBacklog:
    """백로그 테스트."""

    async def test_backlog_lists_unscheduled(self, client: AsyncClient, db, supervisor_token, admin_user, work_order):
        """시작일 없는 작업 지시만 백로그에 표시됩니다."""
        await _backlog_order(db, admin_user)
        res = await client.get(f"{ADMIN}/planner/backlog", headers=auth_header(supervisor_token))
        assert res.status_code == 200
        assert [o["wo_number"] for o in res.json()] == ["WO-TEST-0100"]


class TestSchedule:
    """일정 지정/해제 테스트."""

    async def test_schedule_from_backlog(self, client: AsyncClient, db, supervisor_token, admin_user):
        """백로그 작업 지시 일정 지정 — 백로그에서 사라집니다."""
        order = await _backlog_order(db, admin_user)
        headers = auth_header(supervisor_token)
        start = date.today() + timedelta(days=3)
        res = await client.put(f"{ADMIN}/planner/work-orders/{order.id}/schedule", headers=headers, json={
            "start_date": start.isoformat(),
            "shipping_date": (start + timedelta(days=5)).isoformat(),
        })
        assert res.status_code == 200
        assert res.json()["start_date"] == start.isoformat()

        res = await client.get(f"{ADMIN}/planner/backlog", headers=headers)
        assert res.json() == []

    async def test_shipping_before_start_rejected(self, client: AsyncClient, supervisor_token, work_order):
        """출하일이 새 시작일보다 앞서면 400."""
        res = await client.put(
            f"{ADMIN}/planner/work-orders/{work_order.id}/schedule",
            headers=auth_header(supervisor_token),
            json={"start_date": (work_order.shipping_date + timedelta(days=1)).isoformat()},
        )
        assert res.status_code == 400

    async def test_assignments_move_with_order(
        self, client: AsyncClient, db, supervisor_token, work_order, operator_user,
    ):
        """일정 변경 시 일자별 배정도 새 시작일로 이동합니다."""
        headers = auth_header(supervisor_token)
        await client.post(
            f"{ADMIN}/work-orders/{work_order.id}/assignments/all",
            headers=headers,
            json={"operator_id": str(operator_user.id)},
        )
        new_start = work_order.start_date + timedelta(days=2)
        res = await client.put(f"{ADMIN}/planner/work-orders/{work_order.id}/schedule", headers=headers, json={
            "start_date": new_start.isoformat(),
        })
        assert res.status_code == 200

        rows = (await db.execute(select(OperatorAssignment))).scalars().all()
        assert [r.assigned_date for r in rows] == [new_start]

    async def test_move_onto_absence_rejected(
        self, client: AsyncClient, db, supervisor_token, work_order, operator_user,
    ):
        """배정된 작업자가 부재인 날로는 이동 불가, 기존 일정 유지."""
        headers = auth_header(supervisor_token)
        await client.post(
            f"{ADMIN}/work-orders/{work_order.id}/assignments/all",
            headers=headers,
            json={"operator_id": str(operator_user.id)},
        )
        original = work_order.start_date
        new_start = original + timedelta(days=2)
        db.add(OperatorAvailability(user_id=operator_user.id, date=new_start, available_hours=0))
        await db.flush()

        res = await client.put(f"{ADMIN}/planner/work-orders/{work_order.id}/schedule", headers=headers, json={
            "start_date": new_start.isoformat(),
        })
        assert res.status_code == 400
        assert res.json()["detail"] == "Operator is unavailable"
        rows = (await db.execute(select(OperatorAssignment))).scalars().all()
        assert [r.assigned_date for r in rows] == [original]

    async def test_unschedule_returns_to_backlog(self, client: AsyncClient, supervisor_token, work_order):
        """일정 해제 — 백로그로 돌아갑니다."""
        headers = auth_header(supervisor_token)
        res = await client.delete(f"{ADMIN}/planner/work-orders/{work_order.id}/schedule", headers=headers)
        assert res.status_code == 200
        assert res.json()["start_date"] is None

        res = await client.get(f"{ADMIN}/planner/backlog", headers=headers)
        assert [o["wo_number"] for o in res.json()] == ["WO-TEST-0001"]

    async def test_completed_order_cannot_be_scheduled(self, client: AsyncClient, db, supervisor_token, work_order):
        """완료된 작업 지시는 일정 변경 불가."""
        work_order.status = "completed"
        await db.flush()
        res = await client.put(
            f"{ADMIN}/planner/work-orders/{work_order.id}/schedule",
            headers=auth_header(supervisor_token),
            json={"start_date": date.today().isoformat()},
        )
        assert res.status_code == 400
