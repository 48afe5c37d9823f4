"""작업 지시 API 테스트 — 생성, 시리얼 번호, 목록/필터, 그룹화, 상태 전이, 취소.

Work order API tests — Creation with serialised items, filtering,
grouping partitions, status transitions, cancellation and the step
catalog.
"""

from datetime import date

from httpx import AsyncClient
from sqlalchemy import select

from mesplan.models.assignment import OperatorAssignment
from mesplan.models.notification import Notification
from mesplan.schemas.work_order import WorkOrderCreate
from mesplan.services.work_order_service import work_order_service
from tests.conftest import ADMIN, auth_header

URL = f"{ADMIN}/work-orders"


async def _seed_orders(db, admin_user) -> None:
    """그룹화 테스트용 작업 지시 5건."""
    specs = [
        ("WO-G-01", "SENSOR", "Acme", date(2026, 3, 2), date(2026, 3, 20)),
        ("WO-G-02", "SENSOR", "Acme", date(2026, 3, 9), date(2026, 4, 3)),
        ("WO-G-03", "HMI", "Globex", date(2026, 3, 16), date(2026, 4, 17)),
        ("WO-G-04", "MLA", None, date(2026, 3, 23), None),
        ("WO-G-05", "HMI", "  ", None, date(2026, 5, 1)),
    ]
    for number, product, customer, start, shipping in specs:
        await work_order_service.create_work_order(
            db,
            WorkOrderCreate(
                wo_number=number,
                product_type=product,
                batch_size=1,
                customer_name=customer,
                start_date=start,
                shipping_date=shipping,
            ),
            admin_user,
        )


class TestCreateWorkOrder:
    """작업 지시 생성 테스트."""

    async def test_create_with_serials(self, client: AsyncClient, supervisor_token):
        """배치 크기만큼 시리얼 품목이 생성됩니다."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "SENSOR",
            "batch_size": 3,
            "customer_name": "Acme",
        })
        assert res.status_code == 201
        data = res.json()
        assert data["wo_number"].startswith(f"WO-{date.today().year}-")
        assert data["status"] == "planned"
        assert [i["serial_number"] for i in data["items"]] == ["Q-0001", "Q-0002", "Q-0003"]
        assert [i["position_in_batch"] for i in data["items"]] == [1, 2, 3]
        assert data["total_items"] == 3
        assert data["completed_items"] == 0

    async def test_serials_continue_across_orders(self, client: AsyncClient, supervisor_token, work_order):
        """시리얼 번호는 기존 최대값 다음부터 이어집니다."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "SENSOR",
            "batch_size": 1,
        })
        assert [i["serial_number"] for i in res.json()["items"]] == ["Q-0003"]

    async def test_mixed_lines(self, client: AsyncClient, supervisor_token):
        """혼합 작업 지시 — 라인 순서대로 품목 생성."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "HMI",
            "lines": [
                {"product_type": "HMI", "quantity": 1},
                {"product_type": "TRANSMITTER", "quantity": 2},
            ],
        })
        assert res.status_code == 201
        data = res.json()
        assert data["batch_size"] == 3
        assert [i["serial_number"] for i in data["items"]] == ["X-0001", "T-0001", "T-0002"]

    async def test_duplicate_number(self, client: AsyncClient, supervisor_token, work_order):
        """중복 작업 지시 번호는 409."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "wo_number": "WO-TEST-0001",
            "product_type": "SENSOR",
        })
        assert res.status_code == 409

    async def test_invalid_product_type(self, client: AsyncClient, supervisor_token):
        """알 수 없는 제품 유형은 400."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "TOASTER",
        })
        assert res.status_code == 400

    async def test_zero_batch_rejected(self, client: AsyncClient, supervisor_token):
        """배치 크기 0은 422."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "SENSOR",
            "batch_size": 0,
        })
        assert res.status_code == 422

    async def test_shipping_before_start(self, client: AsyncClient, supervisor_token):
        """출하일이 시작일보다 앞서면 400."""
        res = await client.post(URL, headers=auth_header(supervisor_token), json={
            "product_type": "SENSOR",
            "start_date": "2026-03-10",
            "shipping_date": "2026-03-01",
        })
        assert res.status_code == 400


class TestListAndFilter:
    """목록/필터 테스트."""

    async def test_paginated_list(self, client: AsyncClient, db, supervisor_token, admin_user):
        """페이지네이션 메타데이터."""
        await _seed_orders(db, admin_user)
        res = await client.get(URL, headers=auth_header(supervisor_token), params={"per_page": 2})
        data = res.json()
        assert data["total"] == 5
        assert data["pages"] == 3
        assert len(data["items"]) == 2

    async def test_filters(self, client: AsyncClient, db, supervisor_token, admin_user):
        """상태/제품/고객/기간 필터."""
        await _seed_orders(db, admin_user)
        headers = auth_header(supervisor_token)

        res = await client.get(URL, headers=headers, params={"product_type": "HMI"})
        assert {o["wo_number"] for o in res.json()["items"]} == {"WO-G-03", "WO-G-05"}

        res = await client.get(URL, headers=headers, params={"customer": "acme"})
        assert {o["wo_number"] for o in res.json()["items"]} == {"WO-G-01", "WO-G-02"}

        res = await client.get(URL, headers=headers, params={"date_from": "2026-03-09", "date_to": "2026-03-16"})
        assert {o["wo_number"] for o in res.json()["items"]} == {"WO-G-02", "WO-G-03"}

    async def test_summary(self, client: AsyncClient, logistics_token, work_order):
        """생산 요약 — 상태/제품별 건수와 품목 합계."""
        res = await client.get(f"{URL}/summary", headers=auth_header(logistics_token))
        assert res.status_code == 200
        data = res.json()
        assert data["total_work_orders"] == 1
        assert data["work_orders_by_status"] == {"planned": 1}
        assert data["work_orders_by_product"] == {"SENSOR": 1}
        assert data["items_total"] == 2
        assert data["completion_pct"] == 0.0


class TestGrouping:
    """그룹화 테스트 — 그룹은 서로소이며 합집합은 필터 결과와 같습니다."""

    async def _groups(self, client, token, **params) -> dict:
        res = await client.get(f"{URL}/grouped", headers=auth_header(token), params=params)
        assert res.status_code == 200
        return res.json()

    def _assert_partition(self, data: dict, expected: set[str]) -> None:
        numbers = [o["wo_number"] for g in data["groups"] for o in g["items"]]
        assert len(numbers) == len(set(numbers))
        assert set(numbers) == expected
        assert data["total"] == len(expected)
        assert all(g["count"] == len(g["items"]) for g in data["groups"])

    async def test_group_by_delivery_month(self, client: AsyncClient, db, supervisor_token, admin_user):
        """출하 월별 — 출하일이 없으면 "no_date" (마지막)."""
        await _seed_orders(db, admin_user)
        data = await self._groups(client, supervisor_token, group_by="delivery_month")
        self._assert_partition(data, {"WO-G-01", "WO-G-02", "WO-G-03", "WO-G-04", "WO-G-05"})
        assert [g["key"] for g in data["groups"]] == ["2026-03", "2026-04", "2026-05", "no_date"]

    async def test_group_by_status_with_filter(self, client: AsyncClient, db, supervisor_token, admin_user):
        """상태별 그룹 — 필터 결과의 분할."""
        await _seed_orders(db, admin_user)
        headers = auth_header(supervisor_token)
        orders = (await client.get(URL, headers=headers, params={"search": "WO-G-0"})).json()["items"]
        first = [o for o in orders if o["wo_number"] == "WO-G-01"][0]
        await client.put(f"{URL}/{first['id']}/status", headers=headers, json={"status": "on_hold"})

        data = await self._groups(client, supervisor_token, group_by="status", product_type="SENSOR")
        self._assert_partition(data, {"WO-G-01", "WO-G-02"})
        assert {g["key"]: g["count"] for g in data["groups"]} == {"on_hold": 1, "planned": 1}

    async def test_group_by_customer(self, client: AsyncClient, db, supervisor_token, admin_user):
        """고객별 — 빈 고객은 "No Customer" (마지막)."""
        await _seed_orders(db, admin_user)
        data = await self._groups(client, supervisor_token, group_by="customer")
        self._assert_partition(data, {"WO-G-01", "WO-G-02", "WO-G-03", "WO-G-04", "WO-G-05"})
        assert [g["key"] for g in data["groups"]] == ["Acme", "Globex", "No Customer"]

    async def test_group_by_none(self, client: AsyncClient, db, supervisor_token, admin_user):
        """그룹 없음 — 단일 "all" 그룹."""
        await _seed_orders(db, admin_user)
        data = await self._groups(client, supervisor_token)
        assert [g["key"] for g in data["groups"]] == ["all"]

    async def test_unknown_group_by(self, client: AsyncClient, supervisor_token):
        """알 수 없는 그룹 기준은 400."""
        res = await client.get(f"{URL}/grouped", headers=auth_header(supervisor_token), params={"group_by": "color"})
        assert res.status_code == 400


class TestStatusAndCancel:
    """상태 전이/취소 테스트."""

    async def test_allowed_transition(self, client: AsyncClient, supervisor_token, work_order):
        """planned → in_progress 허용, started_at 기록."""
        res = await client.put(
            f"{URL}/{work_order.id}/status", headers=auth_header(supervisor_token), json={"status": "in_progress"},
        )
        assert res.status_code == 200
        assert res.json()["status"] == "in_progress"
        assert res.json()["started_at"] is not None

    async def test_disallowed_transition(self, client: AsyncClient, supervisor_token, work_order):
        """planned → completed 불가."""
        res = await client.put(
            f"{URL}/{work_order.id}/status", headers=auth_header(supervisor_token), json={"status": "completed"},
        )
        assert res.status_code == 400

    async def test_cancel_via_status_requires_reason(self, client: AsyncClient, supervisor_token, work_order):
        """상태 변경으로 취소 불가 — 사유가 있는 취소 경로 사용."""
        res = await client.put(
            f"{URL}/{work_order.id}/status", headers=auth_header(supervisor_token), json={"status": "cancelled"},
        )
        assert res.status_code == 400

    async def test_cancel_removes_assignments_and_notifies(
        self, client: AsyncClient, db, supervisor_token, work_order, operator_user,
    ):
        """취소 — 일자 배정 삭제, 담당 작업자 알림."""
        headers = auth_header(supervisor_token)
        await client.post(
            f"{URL}/{work_order.id}/assignments/all",
            headers=headers,
            json={"operator_id": str(operator_user.id)},
        )
        res = await client.post(f"{URL}/{work_order.id}/cancel", headers=headers, json={"reason": "Customer cancelled"})
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "cancelled"
        assert data["cancellation_reason"] == "Customer cancelled"

        assert (await db.execute(select(OperatorAssignment))).scalars().all() == []
        types = [n.type for n in (await db.execute(
            select(Notification).where(Notification.user_id == operator_user.id)
        )).scalars().all()]
        assert "work_order_cancelled" in types

    async def test_cancel_requires_reason(self, client: AsyncClient, supervisor_token, work_order):
        """빈 사유는 422."""
        res = await client.post(
            f"{URL}/{work_order.id}/cancel", headers=auth_header(supervisor_token), json={"reason": ""},
        )
        assert res.status_code == 422

    async def test_cannot_cancel_twice(self, client: AsyncClient, supervisor_token, work_order):
        """이미 취소된 작업 지시는 다시 취소 불가."""
        headers = auth_header(supervisor_token)
        await client.post(f"{URL}/{work_order.id}/cancel", headers=headers, json={"reason": "x"})
        res = await client.post(f"{URL}/{work_order.id}/cancel", headers=headers, json={"reason": "y"})
        assert res.status_code == 400

    async def test_partial_update(self, client: AsyncClient, supervisor_token, work_order):
        """부분 수정 — 지정한 필드만 변경."""
        res = await client.patch(
            f"{URL}/{work_order.id}", headers=auth_header(supervisor_token), json={"priority": 1},
        )
        assert res.status_code == 200
        assert res.json()["priority"] == 1
        assert res.json()["customer_name"] == "Acme"

    async def test_not_found(self, client: AsyncClient, supervisor_token):
        """존재하지 않는 작업 지시는 404."""
        res = await client.get(f"{URL}/00000000-0000-0000-0000-000000000000", headers=auth_header(supervisor_token))
        assert res.status_code == 404


class TestSteps:
    """공정 단계 카탈로그 테스트."""

    async def test_list_and_create(self, client: AsyncClient, admin_token, sensor_steps):
        """단계 목록 (순서대로) 및 생성, 중복 번호 409."""
        headers = auth_header(admin_token)
        res = await client.get(f"{ADMIN}/production-steps", headers=headers, params={"product_type": "SENSOR"})
        assert [s["step_number"] for s in res.json()] == [1, 2, 3]

        body = {"product_type": "SENSOR", "step_number": 4, "title_en": "Packing"}
        res = await client.post(f"{ADMIN}/production-steps", headers=headers, json=body)
        assert res.status_code == 201
        res = await client.post(f"{ADMIN}/production-steps", headers=headers, json=body)
        assert res.status_code == 409

    async def test_supervisor_cannot_create_step(self, client: AsyncClient, supervisor_token):
        """단계 생성은 관리자 전용."""
        res = await client.post(f"{ADMIN}/production-steps", headers=auth_header(supervisor_token), json={
            "product_type": "SENSOR", "step_number": 1, "title_en": "Assembly",
        })
        assert res.status_code == 403
