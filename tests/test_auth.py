"""인증 API 테스트 — 로그인, 세션 만료, 토큰 갱신, 로그아웃, /me.

Auth API tests — Login sessions with an absolute expiry, refresh token
rotation, logout, /me and role-level checks on both API prefixes.
"""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy import select

from mesplan.models.session import UserSession
from tests.conftest import ADMIN, APP, PASSWORD, auth_header, login


# ===== Login =====

class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, admin_user):
        """로그인 성공 — 토큰 쌍과 세션 만료 시각."""
        res = await client.post(f"{ADMIN}/auth/login", json={
            "username": "admin",
            "password": PASSWORD,
        })
        assert res.status_code == 200
        data = res.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["session_expires_at"]

    async def test_login_on_app_prefix(self, client: AsyncClient, operator_user):
        """작업자 앱 경로에서도 로그인 가능."""
        res = await client.post(f"{APP}/auth/login", json={
            "username": "anna",
            "password": PASSWORD,
        })
        assert res.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, admin_user):
        """잘못된 비밀번호로 로그인 실패."""
        res = await client.post(f"{ADMIN}/auth/login", json={
            "username": "admin",
            "password": "wrong_password",
        })
        assert res.status_code == 401

    async def test_login_nonexistent_user(self, client: AsyncClient, roles):
        """존재하지 않는 사용자로 로그인 실패."""
        res = await client.post(f"{ADMIN}/auth/login", json={
            "username": "nobody",
            "password": PASSWORD,
        })
        assert res.status_code == 401

    async def test_login_inactive_user(self, client: AsyncClient, db, admin_user):
        """비활성 계정 로그인 실패."""
        admin_user.is_active = False
        await db.flush()

        res = await client.post(f"{ADMIN}/auth/login", json={
            "username": "admin",
            "password": PASSWORD,
        })
        assert res.status_code == 401

    async def test_each_login_opens_session(self, client: AsyncClient, db, admin_user):
        """로그인마다 새 세션이 생성됩니다."""
        await login(client, "admin")
        await login(client, "admin")
        sessions = (await db.execute(
            select(UserSession).where(UserSession.user_id == admin_user.id)
        )).scalars().all()
        assert len(sessions) == 2


# ===== /me =====

class TestMe:
    """현재 사용자 정보 테스트."""

    async def test_me(self, client: AsyncClient, admin_token):
        """/me — 역할과 세션 정보 포함."""
        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["username"] == "admin"
        assert data["role_name"] == "admin"
        assert data["role_level"] == 1
        assert data["session_id"]

    async def test_me_without_token(self, client: AsyncClient):
        """토큰 없이 접근 시 거부."""
        res = await client.get(f"{ADMIN}/auth/me")
        assert res.status_code in (401, 403)

    async def test_me_with_garbage_token(self, client: AsyncClient):
        """잘못된 토큰은 401."""
        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401

    async def test_refresh_token_rejected_as_access(self, client: AsyncClient, admin_user):
        """리프레시 토큰을 액세스 토큰으로 사용 불가."""
        tokens = await login(client, "admin")
        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(tokens["refresh_token"]))
        assert res.status_code == 401


# ===== Session expiry =====

class TestSessionExpiry:
    """세션 절대 만료 테스트."""

    async def _expire(self, db, user):
        session = (await db.execute(
            select(UserSession).where(UserSession.user_id == user.id)
        )).scalar_one()
        session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db.flush()

    async def test_expired_session_rejects_access_token(self, client: AsyncClient, db, admin_user):
        """만료된 세션의 액세스 토큰은 401 "Session expired"."""
        tokens = await login(client, "admin")
        await self._expire(db, admin_user)

        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(tokens["access_token"]))
        assert res.status_code == 401
        assert res.json()["detail"] == "Session expired"

    async def test_expired_session_rejects_refresh(self, client: AsyncClient, db, admin_user):
        """만료된 세션은 토큰 갱신도 불가."""
        tokens = await login(client, "admin")
        await self._expire(db, admin_user)

        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 401
        assert res.json()["detail"] == "Session expired"

    async def test_refresh_does_not_extend_session(self, client: AsyncClient, admin_user):
        """토큰 갱신은 세션 만료 시각을 연장하지 않습니다."""
        tokens = await login(client, "admin")
        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 200
        assert res.json()["session_expires_at"] == tokens["session_expires_at"]


# ===== Refresh / Logout =====

class TestRefreshAndLogout:
    """토큰 갱신 및 로그아웃 테스트."""

    async def test_refresh_rotates_token(self, client: AsyncClient, admin_user):
        """갱신 후 이전 리프레시 토큰은 무효."""
        tokens = await login(client, "admin")
        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 200
        new_tokens = res.json()
        assert new_tokens["refresh_token"] != tokens["refresh_token"]

        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 401

        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(new_tokens["access_token"]))
        assert res.status_code == 200

    async def test_refresh_with_access_token(self, client: AsyncClient, admin_user):
        """액세스 토큰으로 갱신 불가."""
        tokens = await login(client, "admin")
        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert res.status_code == 401

    async def test_logout_ends_session(self, client: AsyncClient, admin_user):
        """로그아웃 후 같은 세션의 토큰은 사용 불가."""
        tokens = await login(client, "admin")
        res = await client.post(f"{ADMIN}/auth/logout", headers=auth_header(tokens["access_token"]))
        assert res.status_code == 204

        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(tokens["access_token"]))
        assert res.status_code == 401
        res = await client.post(f"{ADMIN}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 401

    async def test_logout_keeps_other_sessions(self, client: AsyncClient, admin_user):
        """다른 로그인 세션은 유지됩니다."""
        first = await login(client, "admin")
        second = await login(client, "admin")
        await client.post(f"{ADMIN}/auth/logout", headers=auth_header(first["access_token"]))

        res = await client.get(f"{ADMIN}/auth/me", headers=auth_header(second["access_token"]))
        assert res.status_code == 200


# ===== Role levels =====

class TestRoleLevels:
    """역할 레벨 권한 테스트."""

    async def test_operator_cannot_list_users(self, client: AsyncClient, operator_token):
        """작업자는 사용자 목록 접근 불가 (403)."""
        res = await client.get(f"{ADMIN}/users", headers=auth_header(operator_token))
        assert res.status_code == 403

    async def test_logistics_reads_work_orders(self, client: AsyncClient, logistics_token):
        """물류 사용자는 작업 지시 조회 가능."""
        res = await client.get(f"{ADMIN}/work-orders", headers=auth_header(logistics_token))
        assert res.status_code == 200

    async def test_logistics_cannot_create_work_orders(self, client: AsyncClient, logistics_token):
        """물류 사용자는 작업 지시 생성 불가."""
        res = await client.post(f"{ADMIN}/work-orders", headers=auth_header(logistics_token), json={
            "product_type": "SENSOR",
            "batch_size": 1,
        })
        assert res.status_code == 403
