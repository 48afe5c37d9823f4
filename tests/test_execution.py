"""공정 단계 실행 API 테스트 — 시작/완료/건너뛰기, 멱등 완료, 품목/작업 지시 완료.

Step execution API tests — The pending → in_progress → completed/skipped
state machine, measurement validation, idempotent completion retries,
item and work order completion and the operator queue.
"""

from httpx import AsyncClient
from sqlalchemy import func, select

from mesplan.models.notification import Notification
from mesplan.models.production import StepExecution
from mesplan.models.quality import QualityCertificate
from tests.conftest import ADMIN, APP, auth_header


async def _items(client: AsyncClient, token: str, work_order) -> list[dict]:
    res = await client.get(f"{ADMIN}/work-orders/{work_order.id}", headers=auth_header(token))
    return res.json()["items"]


async def _run_step(client: AsyncClient, token: str, item_id: str, step, values: dict | None = None):
    headers = auth_header(token)
    res = await client.post(f"{APP}/items/{item_id}/steps/{step.id}/start", headers=headers)
    assert res.status_code == 200, res.text
    return await client.post(
        f"{APP}/items/{item_id}/steps/{step.id}/complete",
        headers=headers,
        json={"measurement_values": values},
    )


async def _finish_item(client: AsyncClient, token: str, item_id: str, steps) -> None:
    for step in steps:
        values = {"voltage": 4.98} if step.step_number == 2 else None
        res = await _run_step(client, token, item_id, step, values)
        assert res.status_code == 200, res.text


class TestStartStep:
    """단계 시작 테스트."""

    async def test_start_current_step(self, client: AsyncClient, db, operator_token, work_order, sensor_steps):
        """현재 단계 시작 — 품목과 작업 지시가 진행 중이 됩니다."""
        item = (await _items(client, operator_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/start", headers=auth_header(operator_token),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "in_progress"
        assert data["step_number"] == 1
        assert work_order.status == "in_progress"
        assert work_order.started_at is not None

    async def test_start_is_repeatable(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """진행 중인 단계를 다시 시작하면 같은 실행을 반환합니다."""
        item = (await _items(client, operator_token, work_order))[0]
        url = f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/start"
        first = await client.post(url, headers=auth_header(operator_token))
        second = await client.post(url, headers=auth_header(operator_token))
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

    async def test_cannot_start_future_step(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """현재 단계가 아닌 단계는 시작 불가."""
        item = (await _items(client, operator_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[2].id}/start", headers=auth_header(operator_token),
        )
        assert res.status_code == 400

    async def test_complete_requires_start(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """시작하지 않은 단계는 완료 불가."""
        item = (await _items(client, operator_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/complete",
            headers=auth_header(operator_token),
            json={},
        )
        assert res.status_code == 400

    async def test_on_hold_order_blocks_execution(
        self, client: AsyncClient, db, operator_token, work_order, sensor_steps,
    ):
        """보류 중인 작업 지시는 실행 불가."""
        work_order.status = "on_hold"
        await db.flush()
        item = (await _items(client, operator_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/start", headers=auth_header(operator_token),
        )
        assert res.status_code == 400

    async def test_logistics_cannot_execute(self, client: AsyncClient, logistics_token, work_order, sensor_steps):
        """물류 역할은 실행 불가 (403)."""
        item = (await _items(client, logistics_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/start", headers=auth_header(logistics_token),
        )
        assert res.status_code == 403


class TestCompleteStep:
    """단계 완료 테스트."""

    async def test_complete_advances_item(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """완료 시 품목이 다음 단계로 진행합니다."""
        item = (await _items(client, operator_token, work_order))[0]
        res = await _run_step(client, operator_token, item["id"], sensor_steps[0])
        assert res.status_code == 200
        assert res.json()["validation_status"] == "passed"

        res = await client.get(f"{APP}/items/{item['id']}/progress", headers=auth_header(operator_token))
        progress = res.json()
        assert progress["current_step"] == 2
        assert progress["total_steps"] == 3
        assert [s["status"] for s in progress["steps"]] == ["completed", "pending", "pending"]
        assert progress["steps"][0]["operator_name"] == "Anna Bakker"
        assert progress["steps"][1]["is_current"] is True

    async def test_missing_required_measurement_fails_validation(
        self, client: AsyncClient, operator_token, work_order, sensor_steps,
    ):
        """필수 측정값이 없으면 validation_status "failed"."""
        item = (await _items(client, operator_token, work_order))[0]
        await _run_step(client, operator_token, item["id"], sensor_steps[0])
        res = await _run_step(client, operator_token, item["id"], sensor_steps[1], {"offset": 3})
        assert res.status_code == 200
        assert res.json()["status"] == "completed"
        assert res.json()["validation_status"] == "failed"

    async def test_optional_measurement_may_be_omitted(
        self, client: AsyncClient, operator_token, work_order, sensor_steps,
    ):
        """선택 측정값은 생략 가능."""
        item = (await _items(client, operator_token, work_order))[0]
        await _run_step(client, operator_token, item["id"], sensor_steps[0])
        res = await _run_step(client, operator_token, item["id"], sensor_steps[1], {"voltage": 5.01})
        assert res.json()["validation_status"] == "passed"

    async def test_final_step_completes_item(
        self, client: AsyncClient, db, operator_token, work_order, sensor_steps,
    ):
        """마지막 단계 완료 — 품목 완료, 인증서 자동 생성."""
        item = (await _items(client, operator_token, work_order))[0]
        await _finish_item(client, operator_token, item["id"], sensor_steps)

        res = await client.get(f"{APP}/items/{item['id']}/progress", headers=auth_header(operator_token))
        assert res.json()["status"] == "completed"

        certificate = (await db.execute(select(QualityCertificate))).scalar_one()
        assert certificate.certificate_data["serial_number"] == item["serial_number"]
        assert len(certificate.certificate_data["measurements"]) == 3
        assert work_order.status == "in_progress"

    async def test_completion_retry_is_idempotent(
        self, client: AsyncClient, db, operator_token, work_order, sensor_steps,
    ):
        """완료 재시도는 같은 실행을 반환하고 행을 추가하지 않습니다."""
        item = (await _items(client, operator_token, work_order))[0]
        await _finish_item(client, operator_token, item["id"], sensor_steps)

        url = f"{APP}/items/{item['id']}/steps/{sensor_steps[2].id}/complete"
        first = await client.post(url, headers=auth_header(operator_token), json={})
        second = await client.post(url, headers=auth_header(operator_token), json={})
        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]

        count = (await db.execute(
            select(func.count()).select_from(StepExecution).where(
                StepExecution.production_step_id == sensor_steps[2].id
            )
        )).scalar()
        assert count == 1
        res = await client.get(f"{APP}/items/{item['id']}/progress", headers=auth_header(operator_token))
        assert res.json()["current_step"] == 4

    async def test_all_items_complete_the_work_order(
        self, client: AsyncClient, db, operator_token, admin_user, work_order, sensor_steps,
    ):
        """모든 품목 완료 시 작업 지시 완료, 생성자에게 알림."""
        for item in await _items(client, operator_token, work_order):
            await _finish_item(client, operator_token, item["id"], sensor_steps)

        assert work_order.status == "completed"
        assert work_order.completed_at is not None
        notes = (await db.execute(
            select(Notification).where(Notification.user_id == admin_user.id)
        )).scalars().all()
        assert [n.type for n in notes] == ["work_order_completed"]


class TestSkipStep:
    """단계 건너뛰기 테스트."""

    async def test_skip_advances(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """건너뛴 단계도 진행으로 계산됩니다."""
        item = (await _items(client, operator_token, work_order))[0]
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/skip",
            headers=auth_header(operator_token),
            json={"notes": "Pre-assembled by supplier"},
        )
        assert res.status_code == 200
        assert res.json()["status"] == "skipped"

        res = await client.get(f"{APP}/items/{item['id']}/progress", headers=auth_header(operator_token))
        assert res.json()["current_step"] == 2

    async def test_cannot_skip_completed(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """완료된 단계는 건너뛸 수 없습니다."""
        item = (await _items(client, operator_token, work_order))[0]
        await _run_step(client, operator_token, item["id"], sensor_steps[0])
        res = await client.post(
            f"{APP}/items/{item['id']}/steps/{sensor_steps[0].id}/skip",
            headers=auth_header(operator_token),
            json={},
        )
        assert res.status_code == 400


class TestMyQueue:
    """작업자 작업 목록 테스트."""

    async def test_queue_lists_assigned_open_items(
        self, client: AsyncClient, supervisor_token, operator_token, work_order, sensor_steps, operator_user,
    ):
        """배정된 미완료 품목만 표시됩니다."""
        items = await _items(client, supervisor_token, work_order)
        await client.put(
            f"{ADMIN}/items/{items[0]['id']}/assignment",
            headers=auth_header(supervisor_token),
            json={"operator_id": str(operator_user.id)},
        )
        res = await client.get(f"{APP}/my/queue", headers=auth_header(operator_token))
        assert res.status_code == 200
        assert [q["serial_number"] for q in res.json()] == [items[0]["serial_number"]]

        await _finish_item(client, operator_token, items[0]["id"], sensor_steps)
        res = await client.get(f"{APP}/my/queue", headers=auth_header(operator_token))
        assert res.json() == []
