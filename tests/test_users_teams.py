"""사용자/팀/프로필 API 테스트.

User, team and profile API tests — Admin user management with capacity
profiles, team membership and self-service profile changes.
"""

from httpx import URL, AsyncClient

from tests.conftest import ADMIN, APP, PASSWORD, auth_header, login


class TestUsers:
    """사용자 관리 테스트."""

    async def test_create_user(self, client: AsyncClient, admin_token, roles):
        """관리자가 작업자를 생성합니다."""
        res = await client.post(f"{ADMIN}/users", headers=auth_header(admin_token), json={
            "username": "cees",
            "password": PASSWORD,
            "full_name": "Cees Jansen",
            "daily_capacity_hours": 7.5,
        })
        assert res.status_code == 201
        data = res.json()
        assert data["role_name"] == "operator"
        assert data["daily_capacity_hours"] == 7.5
        assert data["initials"] == "CJ"

    async def test_duplicate_username(self, client: AsyncClient, admin_token, operator_user):
        """중복 사용자명은 409."""
        res = await client.post(f"{ADMIN}/users", headers=auth_header(admin_token), json={
            "username": "anna", "password": PASSWORD, "full_name": "Other Anna",
        })
        assert res.status_code == 409

    async def test_weak_password(self, client: AsyncClient, admin_token, roles):
        """약한 비밀번호는 400."""
        res = await client.post(f"{ADMIN}/users", headers=auth_header(admin_token), json={
            "username": "weak", "password": "short", "full_name": "Weak Pw",
        })
        assert res.status_code == 400

    async def test_unknown_role(self, client: AsyncClient, admin_token, roles):
        """알 수 없는 역할은 400."""
        res = await client.post(f"{ADMIN}/users", headers=auth_header(admin_token), json={
            "username": "x", "password": PASSWORD, "full_name": "X Y", "role": "wizard",
        })
        assert res.status_code == 400

    async def test_supervisor_lists_but_cannot_create(
        self, client: AsyncClient, supervisor_token, operator_user,
    ):
        """수퍼바이저는 조회만 가능."""
        headers = auth_header(supervisor_token)
        res = await client.get(f"{ADMIN}/users", headers=headers, params={"role": "operator"})
        assert [u["username"] for u in res.json()] == ["anna"]
        res = await client.post(f"{ADMIN}/users", headers=headers, json={
            "username": "y", "password": PASSWORD, "full_name": "Y Z",
        })
        assert res.status_code == 403

    async def test_change_role_and_capacity(self, client: AsyncClient, admin_token, operator_user):
        """역할 변경과 용량 프로필 수정."""
        headers = auth_header(admin_token)
        res = await client.put(f"{ADMIN}/users/{operator_user.id}/role", headers=headers, json={"role": "supervisor"})
        assert res.json()["role_name"] == "supervisor"
        res = await client.put(
            f"{ADMIN}/users/{operator_user.id}/capacity", headers=headers, json={"daily_capacity_hours": 4},
        )
        assert res.json()["daily_capacity_hours"] == 4

    async def test_deactivated_user_cannot_login(self, client: AsyncClient, admin_token, operator_user):
        """비활성 사용자는 로그인 불가."""
        res = await client.put(
            f"{ADMIN}/users/{operator_user.id}/active", headers=auth_header(admin_token), json={"is_active": False},
        )
        assert res.json()["is_active"] is False
        res = await client.post(f"{ADMIN}/auth/login", json={"username": "anna", "password": PASSWORD})
        assert res.status_code == 401

    async def test_cannot_deactivate_self(self, client: AsyncClient, admin_token, admin_user):
        """자기 자신은 비활성화 불가."""
        res = await client.put(
            f"{ADMIN}/users/{admin_user.id}/active", headers=auth_header(admin_token), json={"is_active": False},
        )
        assert res.status_code == 400


class TestTeams:
    """팀 테스트."""

    async def test_create_and_members(self, client: AsyncClient, admin_token, operator_user, second_operator):
        """팀 생성, 멤버 추가/제거."""
        headers = auth_header(admin_token)
        res = await client.post(f"{ADMIN}/teams", headers=headers, json={"name": "Assembly"})
        assert res.status_code == 201
        team_id = res.json()["id"]

        await client.post(f"{ADMIN}/teams/{team_id}/members", headers=headers, json={
            "user_id": str(second_operator.id),
        })
        res = await client.post(f"{ADMIN}/teams/{team_id}/members", headers=headers, json={
            "user_id": str(operator_user.id), "is_lead": True,
        })
        assert res.status_code == 201
        assert [m["full_name"] for m in res.json()["members"]] == ["Anna Bakker", "Bram de Vries"]

        res = await client.post(f"{ADMIN}/teams/{team_id}/members", headers=headers, json={
            "user_id": str(operator_user.id),
        })
        assert res.status_code == 409

        res = await client.delete(f"{ADMIN}/teams/{team_id}/members/{operator_user.id}", headers=headers)
        assert res.status_code == 200
        res = await client.get(f"{ADMIN}/teams", headers=headers)
        assert [m["full_name"] for m in res.json()[0]["members"]] == ["Bram de Vries"]

    async def test_duplicate_team_name(self, client: AsyncClient, admin_token, production_team):
        """중복 팀 이름은 409."""
        res = await client.post(f"{ADMIN}/teams", headers=auth_header(admin_token), json={
            "name": production_team.name,
        })
        assert res.status_code == 409


class TestProfile:
    """본인 프로필 테스트."""

    async def test_update_profile(self, client: AsyncClient, operator_token):
        """이름과 언어 변경."""
        res = await client.put(f"{APP}/profile", headers=auth_header(operator_token), json={
            "full_name": "Anna B. Bakker", "language": "nl",
        })
        assert res.status_code == 200
        assert res.json()["full_name"] == "Anna B. Bakker"
        assert res.json()["language"] == "nl"

    async def test_invalid_language(self, client: AsyncClient, operator_token):
        """지원하지 않는 언어는 400."""
        res = await client.put(f"{APP}/profile", headers=auth_header(operator_token), json={"language": "fr"})
        assert res.status_code == 400

    async def test_change_password(self, client: AsyncClient, operator_token):
        """현재 비밀번호 확인 후 변경, 새 비밀번호로 로그인."""
        headers = auth_header(operator_token)
        res = await client.put(f"{APP}/profile/password", headers=headers, json={
            "current_password": "wrong", "new_password": "NewPassw0rd",
        })
        assert res.status_code == 400
        res = await client.put(f"{APP}/profile/password", headers=headers, json={
            "current_password": PASSWORD, "new_password": "NewPassw0rd",
        })
        assert res.status_code == 200
        assert (await login(client, "anna", "NewPassw0rd"))["access_token"]

    async def test_avatar_upload_is_finalized(self, client: AsyncClient, operator_token, uploads_dir):
        """로컬 모드 — temp 업로드 후 프로필 저장 시 최종 위치로 이동."""
        headers = auth_header(operator_token)
        res = await client.post(f"{APP}/profile/presigned-url", headers=headers, json={
            "filename": "me.png", "content_type": "image/png",
        })
        urls = res.json()
        assert "/temp/avatars/" in urls["file_url"]

        res = await client.put(URL(urls["upload_url"]).path, content=b"png-bytes")
        assert res.json() == {"ok": True}

        res = await client.put(f"{APP}/profile", headers=headers, json={"avatar_url": urls["file_url"]})
        avatar_url = res.json()["avatar_url"]
        assert "/temp/" not in avatar_url
        key = avatar_url.split("/uploads/", 1)[1]
        assert (uploads_dir / key).read_bytes() == b"png-bytes"

    async def test_avatar_must_be_image(self, client: AsyncClient, operator_token):
        """이미지가 아닌 아바타는 400."""
        res = await client.post(f"{APP}/profile/presigned-url", headers=auth_header(operator_token), json={
            "filename": "cv.pdf", "content_type": "application/pdf",
        })
        assert res.status_code == 400

    async def test_upload_outside_temp_rejected(self, client: AsyncClient):
        """temp/ 밖의 키는 400."""
        res = await client.put(f"{APP}/profile/upload/avatars/x.png", content=b"x")
        assert res.status_code == 400
