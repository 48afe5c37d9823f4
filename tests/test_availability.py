"""작업자 가용성 API 테스트 — 기간 설정, 교체, 조회, 삭제, 휴가 목록.

Availability API tests — Range replacement, partial days, self-service
entries and the upcoming time-off summary.
"""

from datetime import date, timedelta

from httpx import AsyncClient

from tests.conftest import ADMIN, APP, auth_header

TODAY = date.today()


def _range(days_from: int, days_to: int) -> tuple[str, str]:
    return (
        (TODAY + timedelta(days=days_from)).isoformat(),
        (TODAY + timedelta(days=days_to)).isoformat(),
    )


class TestSetAvailability:
    """기간 가용성 설정 테스트."""

    async def test_set_range_creates_entry_per_day(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """기간의 모든 날짜에 항목이 생성됩니다."""
        start, end = _range(1, 3)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
            "available_hours": 0,
            "reason_type": "holiday",
        })
        assert res.status_code == 201
        data = res.json()
        assert len(data) == 3
        assert all(e["is_absent"] for e in data)
        assert data[0]["display_reason"] == "holiday"

    async def test_set_range_replaces_existing(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """같은 날짜의 기존 항목은 교체됩니다."""
        start, end = _range(1, 2)
        headers = auth_header(supervisor_token)
        await client.post(f"{ADMIN}/availability", headers=headers, json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
            "available_hours": 0,
        })
        res = await client.post(f"{ADMIN}/availability", headers=headers, json={
            "user_id": str(operator_user.id),
            "start_date": end,
            "end_date": end,
            "available_hours": 4,
            "reason_type": "training",
            "reason": "Forklift course",
        })
        assert res.status_code == 201

        res = await client.get(
            f"{ADMIN}/availability",
            headers=headers,
            params={"date_from": start, "date_to": end, "user_id": str(operator_user.id)},
        )
        entries = res.json()
        assert len(entries) == 2
        partial = [e for e in entries if e["date"] == end][0]
        assert partial["available_hours"] == 4
        assert partial["is_absent"] is False
        assert partial["display_reason"] == "Forklift course"

    async def test_inverted_range_rejected(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """종료일이 시작일 이전이면 400."""
        start, end = _range(3, 1)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
        })
        assert res.status_code == 400

    async def test_range_too_long_rejected(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """366일 초과 기간은 400."""
        start, end = _range(0, 400)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
        })
        assert res.status_code == 400

    async def test_unknown_reason_type_rejected(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """알 수 없는 사유 유형은 400."""
        start, end = _range(1, 1)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
            "reason_type": "vacation",
        })
        assert res.status_code == 400

    async def test_user_id_required_on_admin_route(self, client: AsyncClient, supervisor_token):
        """관리자 경로는 user_id 필수."""
        start, end = _range(1, 1)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "start_date": start,
            "end_date": end,
        })
        assert res.status_code == 400

    async def test_operator_cannot_use_admin_route(
        self, client: AsyncClient, operator_token, second_operator,
    ):
        """작업자는 다른 작업자의 가용성을 설정할 수 없습니다."""
        start, end = _range(1, 1)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(operator_token), json={
            "user_id": str(second_operator.id),
            "start_date": start,
            "end_date": end,
        })
        assert res.status_code == 403


class TestMyAvailability:
    """작업자 본인 가용성 테스트."""

    async def test_set_and_list_own(self, client: AsyncClient, operator_token, operator_user, second_operator):
        """본인 항목 설정 — body의 user_id는 무시됩니다."""
        start, end = _range(5, 6)
        headers = auth_header(operator_token)
        res = await client.post(f"{APP}/my/availability", headers=headers, json={
            "user_id": str(second_operator.id),
            "start_date": start,
            "end_date": end,
            "reason_type": "sick",
        })
        assert res.status_code == 201
        assert all(e["user_id"] == str(operator_user.id) for e in res.json())

        res = await client.get(f"{APP}/my/availability", headers=headers, params={
            "date_from": start, "date_to": end,
        })
        assert res.status_code == 200
        assert len(res.json()) == 2

    async def test_cannot_delete_other_operators_entry(
        self, client: AsyncClient, supervisor_token, operator_token, second_operator,
    ):
        """다른 작업자의 항목 삭제는 404."""
        start, end = _range(1, 1)
        res = await client.post(f"{ADMIN}/availability", headers=auth_header(supervisor_token), json={
            "user_id": str(second_operator.id),
            "start_date": start,
            "end_date": end,
        })
        entry_id = res.json()[0]["id"]

        res = await client.delete(f"{APP}/my/availability/{entry_id}", headers=auth_header(operator_token))
        assert res.status_code == 404

    async def test_delete_own_entry(self, client: AsyncClient, operator_token):
        """본인 항목 삭제."""
        start, end = _range(2, 2)
        headers = auth_header(operator_token)
        res = await client.post(f"{APP}/my/availability", headers=headers, json={
            "start_date": start,
            "end_date": end,
        })
        entry_id = res.json()[0]["id"]

        res = await client.delete(f"{APP}/my/availability/{entry_id}", headers=headers)
        assert res.status_code == 200
        res = await client.get(f"{APP}/my/availability", headers=headers, params={
            "date_from": start, "date_to": end,
        })
        assert res.json() == []


class TestTimeOff:
    """다가오는 휴가 테스트."""

    async def test_grouped_per_operator_and_reason(
        self, client: AsyncClient, supervisor_token, operator_user, second_operator,
    ):
        """작업자+사유 유형별로 묶이고 부분 가용일은 제외됩니다."""
        headers = auth_header(supervisor_token)
        start, end = _range(2, 4)
        await client.post(f"{ADMIN}/availability", headers=headers, json={
            "user_id": str(operator_user.id),
            "start_date": start,
            "end_date": end,
            "reason_type": "holiday",
        })
        start, end = _range(1, 1)
        await client.post(f"{ADMIN}/availability", headers=headers, json={
            "user_id": str(second_operator.id),
            "start_date": start,
            "end_date": end,
            "available_hours": 4,
            "reason_type": "training",
        })

        res = await client.get(f"{ADMIN}/availability/time-off", headers=headers)
        assert res.status_code == 200
        data = res.json()
        assert len(data) == 1
        assert data[0]["user_id"] == str(operator_user.id)
        assert data[0]["days"] == 3
        assert data[0]["start_date"] == (TODAY + timedelta(days=2)).isoformat()
        assert data[0]["end_date"] == (TODAY + timedelta(days=4)).isoformat()
