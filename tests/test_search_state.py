"""검색/상태 API 테스트 — 통합 검색, 계보, 최근 검색어, 세션 화면 상태, 마지막 경로.

Search and state API tests — Recent searches survive a new login, view
state lives and dies with its session and the last route ignores the
root and auth pages.
"""

from httpx import AsyncClient
from sqlalchemy import func, select

from mesplan.models.session import SessionViewState
from tests.conftest import APP, auth_header, login


class TestGlobalSearch:
    """통합 검색 테스트."""

    async def test_finds_orders_and_serials(self, client: AsyncClient, operator_token, work_order):
        """작업 지시 번호와 시리얼을 대소문자 구분 없이 찾습니다."""
        res = await client.get(f"{APP}/search", headers=auth_header(operator_token), params={"q": " q-000 "})
        assert res.status_code == 200
        data = res.json()
        assert data["query"] == "Q-000"
        assert [i["serial_number"] for i in data["items"]] == ["Q-0001", "Q-0002"]
        assert data["items"][0]["wo_number"] == "WO-TEST-0001"
        assert data["recent"] == ["Q-000"]

    async def test_empty_query_rejected(self, client: AsyncClient, operator_token):
        """빈 검색어는 400."""
        res = await client.get(f"{APP}/search", headers=auth_header(operator_token), params={"q": "  "})
        assert res.status_code == 400

    async def test_no_hits_not_recorded(self, client: AsyncClient, operator_token, work_order):
        """결과 없는 검색은 최근 검색어에 남지 않습니다."""
        headers = auth_header(operator_token)
        await client.get(f"{APP}/search", headers=headers, params={"q": "NOPE"})
        res = await client.get(f"{APP}/search/recent", headers=headers)
        assert res.json()["terms"] == []


class TestRecentSearches:
    """최근 검색어 테스트."""

    async def test_capped_deduplicated_and_kept_across_logins(
        self, client: AsyncClient, operator_user, work_order,
    ):
        """최대 5개, 중복 없음, 새 로그인 후에도 유지."""
        token = (await login(client, "anna"))["access_token"]
        headers = auth_header(token)
        for term in ("Q-0001", "Q-0002", "WO-TEST", "Q-000", "WO-", "Q-0001"):
            await client.get(f"{APP}/search", headers=headers, params={"q": term})

        res = await client.get(f"{APP}/search/recent", headers=headers)
        terms = res.json()["terms"]
        assert len(terms) == 5
        assert len(set(terms)) == 5
        assert terms[0] == "Q-0001"

        token2 = (await login(client, "anna"))["access_token"]
        res = await client.get(f"{APP}/search/recent", headers=auth_header(token2))
        assert res.json()["terms"] == terms

    async def test_clear(self, client: AsyncClient, operator_token, work_order):
        """범위별 삭제."""
        headers = auth_header(operator_token)
        await client.get(f"{APP}/search", headers=headers, params={"q": "Q-0001"})
        res = await client.delete(f"{APP}/search/recent", headers=headers, params={"scope": "system"})
        assert res.status_code == 200
        res = await client.get(f"{APP}/search/recent", headers=headers)
        assert res.json()["terms"] == []

    async def test_unknown_scope(self, client: AsyncClient, operator_token):
        """알 수 없는 범위는 400."""
        res = await client.get(f"{APP}/search/recent", headers=auth_header(operator_token), params={"scope": "x"})
        assert res.status_code == 400


class TestGenealogy:
    """시리얼 계보 테스트."""

    async def test_genealogy(self, client: AsyncClient, operator_token, work_order, sensor_steps):
        """품목, 작업 지시, 실행 이력, 인증서 여부."""
        headers = auth_header(operator_token)
        res = await client.get(f"{APP}/search/genealogy/q-0001", headers=headers)
        assert res.status_code == 200
        data = res.json()
        assert data["item"]["serial_number"] == "Q-0001"
        assert data["work_order"]["wo_number"] == "WO-TEST-0001"
        assert data["executions"] == []
        assert data["certificate_id"] is None

        res = await client.get(f"{APP}/search/recent", headers=headers, params={"scope": "genealogy"})
        assert res.json()["terms"] == ["Q-0001"]

    async def test_unknown_serial(self, client: AsyncClient, operator_token):
        """존재하지 않는 시리얼은 404."""
        res = await client.get(f"{APP}/search/genealogy/Q-9999", headers=auth_header(operator_token))
        assert res.status_code == 404


class TestViewState:
    """세션 화면 상태 테스트."""

    async def test_round_trip_within_session(self, client: AsyncClient, operator_token):
        """같은 세션에서 저장한 상태를 다시 읽습니다."""
        headers = auth_header(operator_token)
        value = {"group_by": "status", "filters": {"product_type": "SENSOR"}}
        res = await client.put(f"{APP}/state/view/work-orders", headers=headers, json={"value": value})
        assert res.status_code == 200

        res = await client.get(f"{APP}/state/view/work-orders", headers=headers)
        assert res.json() == {"key": "work-orders", "value": value}
        res = await client.get(f"{APP}/state/view", headers=headers)
        assert res.json() == {"work-orders": value}

    async def test_not_shared_with_new_session(self, client: AsyncClient, operator_user):
        """새 로그인 세션에서는 이전 화면 상태가 없습니다."""
        first = (await login(client, "anna"))["access_token"]
        await client.put(f"{APP}/state/view/planner", headers=auth_header(first), json={"value": {"view": "week"}})

        second = (await login(client, "anna"))["access_token"]
        res = await client.get(f"{APP}/state/view/planner", headers=auth_header(second))
        assert res.status_code == 404

    async def test_discarded_on_logout(self, client: AsyncClient, db, operator_user):
        """로그아웃 시 세션 화면 상태가 삭제됩니다."""
        token = (await login(client, "anna"))["access_token"]
        await client.put(f"{APP}/state/view/planner", headers=auth_header(token), json={"value": 1})
        res = await client.post(f"{APP}/auth/logout", headers=auth_header(token))
        assert res.status_code == 204
        count = (await db.execute(select(func.count()).select_from(SessionViewState))).scalar()
        assert count == 0

    async def test_delete_missing_key(self, client: AsyncClient, operator_token):
        """없는 키 삭제는 404."""
        res = await client.delete(f"{APP}/state/view/nothing", headers=auth_header(operator_token))
        assert res.status_code == 404


class TestLastRoute:
    """마지막 경로 테스트."""

    async def test_root_and_auth_routes_ignored(self, client: AsyncClient, operator_token):
        """루트와 /auth 경로는 저장하지 않고 기존 경로를 유지합니다."""
        headers = auth_header(operator_token)
        res = await client.get(f"{APP}/state/last-route", headers=headers)
        assert res.json() == {"route": None}

        res = await client.put(f"{APP}/state/last-route", headers=headers, json={"route": "/planner?view=week"})
        assert res.json() == {"route": "/planner?view=week"}
        for ignored in ("/", "/auth", "/auth/login"):
            res = await client.put(f"{APP}/state/last-route", headers=headers, json={"route": ignored})
            assert res.json() == {"route": "/planner?view=week"}

    async def test_survives_new_login(self, client: AsyncClient, operator_user):
        """다음 로그인에서 복원됩니다."""
        first = (await login(client, "anna"))["access_token"]
        await client.put(f"{APP}/state/last-route", headers=auth_header(first), json={"route": "/work-orders"})
        second = (await login(client, "anna"))["access_token"]
        res = await client.get(f"{APP}/state/last-route", headers=auth_header(second))
        assert res.json() == {"route": "/work-orders"}
