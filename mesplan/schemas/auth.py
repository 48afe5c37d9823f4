"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers login, token issuance/refresh, and current user info.
"""

from datetime import datetime

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Login request schema shared by the admin and shop-floor apps.

    Attributes:
        username: 사용자 로그인 아이디 (User login identifier)
        password: 비밀번호 (Plain text password, verified against bcrypt hash)
    """

    username: str  # 사용자 로그인 아이디 (User login identifier)
    password: str  # 비밀번호 — 평문, 서버에서 bcrypt 해시와 비교 (Plain text, compared to bcrypt hash)


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마.

    JWT token issuance response schema.
    Returned after successful login or token refresh.

    Attributes:
        access_token: JWT 액세스 토큰 (Short-lived access token)
        refresh_token: JWT 리프레시 토큰 (Refresh token, rotated on every refresh)
        token_type: 토큰 유형 (Always "bearer")
        session_expires_at: 세션 절대 만료 시각 (Absolute session expiry)
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    session_expires_at: datetime  # 갱신해도 연장되지 않음 (Never extended by refresh)


class RefreshRequest(BaseModel):
    """토큰 갱신 요청 스키마 — Exchange a refresh token for a new pair."""

    refresh_token: str


class UserMeResponse(BaseModel):
    """현재 사용자 정보 응답 스키마 (GET /me).

    Current user profile with role and the login session expiry.
    """

    id: str
    username: str
    full_name: str
    email: str | None
    avatar_url: str | None
    role_name: str
    role_level: int
    language: str
    daily_capacity_hours: float
    session_id: str
    session_expires_at: datetime
