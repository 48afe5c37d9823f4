"""알림 API 테스트.

Notification API tests — List, unread count and mark as read.
Tests both admin and app notification endpoints.
"""

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.notification import Notification
from tests.conftest import ADMIN, APP, auth_header

ADMIN_NOTIFY_URL = f"{ADMIN}/notifications"
APP_NOTIFY_URL = f"{APP}/my/notifications"


@pytest_asyncio.fixture
async def notifications(db: AsyncSession, operator_user, admin_user):
    """테스트용 알림 데이터를 생성합니다."""
    notifs = []
    for i in range(3):
        n = Notification(
            user_id=operator_user.id,
            type="work_assigned",
            title=f"Assigned {i}",
            message=f"Test notification {i}",
            is_read=False,
        )
        db.add(n)
        notifs.append(n)
    db.add(Notification(user_id=admin_user.id, type="work_order_completed", title="Done", message="Done"))
    await db.flush()
    return notifs


class TestListNotifications:
    """알림 목록 테스트."""

    async def test_list_own_only(self, client: AsyncClient, operator_token, notifications):
        """내 알림만 조회됩니다."""
        res = await client.get(APP_NOTIFY_URL, headers=auth_header(operator_token))
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 3
        assert {n["type"] for n in data["items"]} == {"work_assigned"}

    async def test_admin_prefix(self, client: AsyncClient, admin_token, notifications):
        """관리자 경로에서도 같은 라우터."""
        res = await client.get(ADMIN_NOTIFY_URL, headers=auth_header(admin_token))
        assert [n["title"] for n in res.json()["items"]] == ["Done"]

    async def test_unread_count(self, client: AsyncClient, operator_token, notifications):
        """읽지 않은 알림 수."""
        res = await client.get(f"{APP_NOTIFY_URL}/unread-count", headers=auth_header(operator_token))
        assert res.json() == {"unread_count": 3}

    async def test_unread_only_filter(self, client: AsyncClient, operator_token, notifications):
        """읽은 알림은 unread_only 목록에서 빠집니다."""
        headers = auth_header(operator_token)
        await client.patch(f"{APP_NOTIFY_URL}/{notifications[1].id}/read", headers=headers)
        res = await client.get(APP_NOTIFY_URL, headers=headers, params={"unread_only": True})
        assert res.json()["total"] == 2
        assert str(notifications[1].id) not in {n["id"] for n in res.json()["items"]}

    async def test_type_filter(self, client: AsyncClient, operator_token, notifications):
        """유형 필터 — 없는 유형은 400."""
        headers = auth_header(operator_token)
        res = await client.get(APP_NOTIFY_URL, headers=headers, params={"type": "work_order_cancelled"})
        assert res.json()["total"] == 0
        res = await client.get(APP_NOTIFY_URL, headers=headers, params={"type": "birthday"})
        assert res.status_code == 400


class TestMarkRead:
    """읽음 처리 테스트."""

    async def test_mark_one(self, client: AsyncClient, operator_token, notifications):
        """단일 알림 읽음 처리."""
        headers = auth_header(operator_token)
        res = await client.patch(f"{APP_NOTIFY_URL}/{notifications[0].id}/read", headers=headers)
        assert res.status_code == 200
        res = await client.get(f"{APP_NOTIFY_URL}/unread-count", headers=headers)
        assert res.json()["unread_count"] == 2

    async def test_cannot_mark_others(self, client: AsyncClient, admin_token, notifications):
        """다른 사용자의 알림은 404."""
        res = await client.patch(f"{ADMIN_NOTIFY_URL}/{notifications[0].id}/read", headers=auth_header(admin_token))
        assert res.status_code == 404

    async def test_mark_all(self, client: AsyncClient, operator_token, notifications):
        """모든 알림 읽음 처리."""
        headers = auth_header(operator_token)
        res = await client.patch(f"{APP_NOTIFY_URL}/read-all", headers=headers)
        assert res.status_code == 200
        assert res.json()["message"] == "3 notifications marked as read"
        res = await client.get(f"{APP_NOTIFY_URL}/unread-count", headers=headers)
        assert res.json()["unread_count"] == 0
