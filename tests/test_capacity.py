"""용량 API 테스트 — 작업자 풀, 일자/기간 용량, 작업자 부하.

Capacity API tests — Operator pool membership, per-day capacity with
absences and partial days, range limits and the workload view.
"""

from datetime import date, timedelta

from httpx import AsyncClient

from mesplan.models.assignment import OperatorAssignment
from mesplan.models.availability import OperatorAvailability
from mesplan.models.user import TeamMember
from tests.conftest import ADMIN, auth_header

DAY = date.today() + timedelta(days=7)


class TestOperatorPool:
    """작업자 풀 테스트."""

    async def test_pool_is_production_team(
        self, client: AsyncClient, supervisor_token, production_team, operator_user, second_operator,
    ):
        """작업자 풀은 생산 팀 구성원 (이름순)."""
        res = await client.get(f"{ADMIN}/capacity/pool", headers=auth_header(supervisor_token))
        assert res.status_code == 200
        assert [o["full_name"] for o in res.json()] == ["Anna Bakker", "Bram de Vries"]

    async def test_inactive_member_excluded(
        self, client: AsyncClient, db, supervisor_token, production_team, second_operator,
    ):
        """비활성 사용자는 풀에서 제외됩니다."""
        second_operator.is_active = False
        await db.flush()
        res = await client.get(f"{ADMIN}/capacity/pool", headers=auth_header(supervisor_token))
        assert [o["full_name"] for o in res.json()] == ["Anna Bakker"]

    async def test_fallback_without_team(
        self, client: AsyncClient, supervisor_token, operator_user, second_operator,
    ):
        """생산 팀이 없으면 작업자/수퍼바이저 역할로 대체."""
        res = await client.get(f"{ADMIN}/capacity/pool", headers=auth_header(supervisor_token))
        names = [o["full_name"] for o in res.json()]
        assert names == ["Anna Bakker", "Bram de Vries", "Paula Planner"]


class TestDayCapacity:
    """하루 용량 테스트."""

    async def test_day_capacity(
        self, client: AsyncClient, db, supervisor_token, production_team, work_order,
        operator_user, second_operator,
    ):
        """부재, 부분 가용, 배정 시간이 반영됩니다."""
        db.add(OperatorAvailability(
            user_id=operator_user.id, date=DAY, available_hours=0, reason_type="holiday", reason="Ski trip",
        ))
        db.add(OperatorAssignment(
            work_order_id=work_order.id, operator_id=second_operator.id, assigned_date=DAY, planned_hours=5,
        ))
        await db.flush()

        res = await client.get(
            f"{ADMIN}/capacity/day", headers=auth_header(supervisor_token), params={"date": DAY.isoformat()},
        )
        assert res.status_code == 200
        data = res.json()
        assert data["date"] == DAY.isoformat()
        anna, bram = data["operators"]
        assert anna["is_unavailable"] is True
        assert anna["reason"] == "Ski trip"
        assert anna["capacity_hours"] == 0
        assert anna["initials"] == "AB"
        assert bram["is_unavailable"] is False
        assert bram["capacity_hours"] == 6
        assert bram["planned_hours"] == 5
        assert bram["assignments"] == ["WO-TEST-0001"]

    async def test_partial_day_lowers_capacity(
        self, client: AsyncClient, db, supervisor_token, production_team, operator_user,
    ):
        """부분 가용일은 용량만 줄이고 부재로 표시되지 않습니다."""
        db.add(OperatorAvailability(user_id=operator_user.id, date=DAY, available_hours=3, reason_type="other"))
        await db.flush()
        res = await client.get(
            f"{ADMIN}/capacity/day", headers=auth_header(supervisor_token), params={"date": DAY.isoformat()},
        )
        anna = res.json()["operators"][0]
        assert anna["is_unavailable"] is False
        assert anna["capacity_hours"] == 3

    async def test_overbooking_is_reported_not_blocked(
        self, client: AsyncClient, db, supervisor_token, production_team, work_order, second_operator,
    ):
        """용량 초과 배정도 허용되고 그대로 표시됩니다."""
        db.add(OperatorAssignment(
            work_order_id=work_order.id, operator_id=second_operator.id, assigned_date=DAY, planned_hours=10,
        ))
        await db.flush()
        res = await client.get(
            f"{ADMIN}/capacity/day", headers=auth_header(supervisor_token), params={"date": DAY.isoformat()},
        )
        bram = res.json()["operators"][1]
        assert bram["planned_hours"] == 10
        assert bram["capacity_hours"] == 6


class TestRangeCapacity:
    """기간 용량 테스트."""

    async def test_one_entry_per_day(self, client: AsyncClient, supervisor_token, production_team):
        """기간의 모든 날짜에 대해 항목이 있습니다."""
        end = DAY + timedelta(days=6)
        res = await client.get(f"{ADMIN}/capacity/range", headers=auth_header(supervisor_token), params={
            "start": DAY.isoformat(), "end": end.isoformat(),
        })
        assert res.status_code == 200
        data = res.json()
        assert len(data) == 7
        assert all(len(day["operators"]) == 2 for day in data)

    async def test_range_limits(self, client: AsyncClient, supervisor_token, production_team):
        """역전된 기간과 92일 초과 기간은 400."""
        headers = auth_header(supervisor_token)
        res = await client.get(f"{ADMIN}/capacity/range", headers=headers, params={
            "start": DAY.isoformat(), "end": (DAY - timedelta(days=1)).isoformat(),
        })
        assert res.status_code == 400
        res = await client.get(f"{ADMIN}/capacity/range", headers=headers, params={
            "start": DAY.isoformat(), "end": (DAY + timedelta(days=120)).isoformat(),
        })
        assert res.status_code == 400


class TestWorkload:
    """작업자 부하 테스트."""

    async def test_workload_utilization(
        self, client: AsyncClient, db, supervisor_token, work_order, second_operator,
    ):
        """일자별 가동률 — 계획 시간 / 용량."""
        db.add(OperatorAssignment(
            work_order_id=work_order.id, operator_id=second_operator.id, assigned_date=DAY, planned_hours=3,
        ))
        await db.flush()
        res = await client.get(
            f"{ADMIN}/capacity/operators/{second_operator.id}/workload",
            headers=auth_header(supervisor_token),
            params={"start": DAY.isoformat(), "end": (DAY + timedelta(days=1)).isoformat()},
        )
        assert res.status_code == 200
        days = res.json()["days"]
        assert days[0]["utilization_pct"] == 50.0
        assert days[0]["assignment_count"] == 1
        assert days[1]["utilization_pct"] == 0

    async def test_unknown_operator(self, client: AsyncClient, supervisor_token):
        """존재하지 않는 작업자는 404."""
        res = await client.get(
            f"{ADMIN}/capacity/operators/00000000-0000-0000-0000-000000000000/workload",
            headers=auth_header(supervisor_token),
            params={"start": DAY.isoformat(), "end": DAY.isoformat()},
        )
        assert res.status_code == 404
