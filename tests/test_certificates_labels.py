"""품질 인증서/라벨/활동 로그 API 테스트.

Certificate, label and activity log API tests.
"""

from httpx import AsyncClient
from sqlalchemy import select

from mesplan.models.production import WorkOrderItem
from mesplan.models.quality import ActivityLog
from tests.conftest import ADMIN, APP, auth_header


async def _first_item(client: AsyncClient, token: str, work_order) -> dict:
    res = await client.get(f"{ADMIN}/work-orders/{work_order.id}", headers=auth_header(token))
    return res.json()["items"][0]


async def _complete_item(client: AsyncClient, token: str, item_id: str, steps) -> None:
    headers = auth_header(token)
    for step in steps:
        await client.post(f"{APP}/items/{item_id}/steps/{step.id}/start", headers=headers)
        values = {"voltage": 5.0, "offset": 0.1} if step.step_number == 2 else None
        res = await client.post(
            f"{APP}/items/{item_id}/steps/{step.id}/complete",
            headers=headers,
            json={"measurement_values": values},
        )
        assert res.status_code == 200, res.text


class TestCertificates:
    """품질 인증서 테스트."""

    async def test_uncompleted_item_rejected(self, client: AsyncClient, supervisor_token, work_order):
        """미완료 품목의 인증서 생성은 400."""
        item = await _first_item(client, supervisor_token, work_order)
        res = await client.post(f"{ADMIN}/certificates/items/{item['id']}", headers=auth_header(supervisor_token))
        assert res.status_code == 400

    async def test_unknown_item(self, client: AsyncClient, supervisor_token):
        """존재하지 않는 품목은 404."""
        res = await client.post(
            f"{ADMIN}/certificates/items/00000000-0000-0000-0000-000000000000",
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 404

    async def test_generated_once_and_rendered(
        self, client: AsyncClient, db, supervisor_token, operator_token, work_order, sensor_steps,
    ):
        """완료 시 자동 생성, 재요청은 같은 인증서, HTML 문서 제공."""
        item = await _first_item(client, supervisor_token, work_order)
        await _complete_item(client, operator_token, item["id"], sensor_steps)
        headers = auth_header(supervisor_token)

        res = await client.get(f"{ADMIN}/certificates", headers=headers)
        listed = res.json()["items"]
        assert len(listed) == 1
        assert listed[0]["serial_number"] == item["serial_number"]

        res = await client.post(f"{ADMIN}/certificates/items/{item['id']}", headers=headers)
        assert res.status_code == 201
        assert res.json()["id"] == listed[0]["id"]
        assert res.json()["document_url"]

        res = await client.get(f"{ADMIN}/certificates/{listed[0]['id']}/document", headers=headers)
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/html")
        assert "Quality Certificate" in res.text
        assert item["serial_number"] in res.text
        assert "voltage: 5.0" in res.text

        stored = (await db.execute(
            select(WorkOrderItem).where(WorkOrderItem.serial_number == item["serial_number"])
        )).scalar_one()
        assert stored.certificate_generated is True
        assert stored.quality_approved is True

    async def test_failed_measurement_not_approved(
        self, client: AsyncClient, db, operator_token, work_order, sensor_steps,
    ):
        """측정 실패가 있으면 quality_approved는 False."""
        item = await _first_item(client, operator_token, work_order)
        headers = auth_header(operator_token)
        for step in sensor_steps:
            await client.post(f"{APP}/items/{item['id']}/steps/{step.id}/start", headers=headers)
            await client.post(f"{APP}/items/{item['id']}/steps/{step.id}/complete", headers=headers, json={})

        stored = (await db.execute(
            select(WorkOrderItem).where(WorkOrderItem.serial_number == item["serial_number"])
        )).scalar_one()
        assert stored.status == "completed"
        assert stored.certificate_generated is True
        assert stored.quality_approved is False

    async def test_missing_certificate(self, client: AsyncClient, supervisor_token):
        """존재하지 않는 인증서는 404."""
        res = await client.get(
            f"{ADMIN}/certificates/00000000-0000-0000-0000-000000000000", headers=auth_header(supervisor_token),
        )
        assert res.status_code == 404


class TestLabels:
    """라벨 인쇄 테스트."""

    async def test_label_page(self, client: AsyncClient, db, operator_token, work_order):
        """라벨 HTML — QR 이미지, 인쇄 표시, 활동 로그."""
        item = await _first_item(client, operator_token, work_order)
        res = await client.get(f"{APP}/items/{item['id']}/label", headers=auth_header(operator_token))
        assert res.status_code == 200
        assert "data:image/png;base64," in res.text
        assert "window.print()" in res.text
        assert item["serial_number"] in res.text
        assert "WO-TEST-0001" in res.text

        stored = (await db.execute(
            select(WorkOrderItem).where(WorkOrderItem.serial_number == item["serial_number"])
        )).scalar_one()
        assert stored.label_printed is True
        actions = (await db.execute(
            select(ActivityLog.action).where(ActivityLog.entity_id == stored.id)
        )).scalars().all()
        assert "print_label" in actions

    async def test_logistics_cannot_print(self, client: AsyncClient, logistics_token, work_order):
        """물류 역할은 라벨 인쇄 불가."""
        item = await _first_item(client, logistics_token, work_order)
        res = await client.get(f"{APP}/items/{item['id']}/label", headers=auth_header(logistics_token))
        assert res.status_code == 403


class TestActivity:
    """활동 로그 테스트."""

    async def test_filtered_by_entity(self, client: AsyncClient, supervisor_token, work_order):
        """엔티티별 감사 기록."""
        headers = auth_header(supervisor_token)
        await client.post(f"{ADMIN}/work-orders/{work_order.id}/cancel", headers=headers, json={"reason": "Dup"})
        res = await client.get(f"{ADMIN}/activity", headers=headers, params={
            "entity_type": "work_order", "entity_id": str(work_order.id),
        })
        assert res.status_code == 200
        actions = [e["action"] for e in res.json()["items"]]
        assert set(actions) == {"create_work_order", "cancel_work_order"}

    async def test_operator_forbidden(self, client: AsyncClient, operator_token):
        """작업자는 활동 로그 조회 불가."""
        res = await client.get(f"{ADMIN}/activity", headers=auth_header(operator_token))
        assert res.status_code == 403
