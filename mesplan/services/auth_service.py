"""인증 서비스 — 로그인, 세션, 토큰 갱신, 로그아웃 비즈니스 로직.

Auth Service — Business logic for login sessions and the JWT lifecycle.
Every login opens a UserSession with an absolute expiry; tokens carry
its id as the "sid" claim and stop working once the session has ended
or expired, regardless of activity.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.config import settings
from mesplan.models.session import UserSession
from mesplan.models.user import Role, User
from mesplan.repositories.session_repository import session_repository
from mesplan.repositories.user_repository import user_repository
from mesplan.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, UserMeResponse
from mesplan.utils.dates import as_utc
from mesplan.utils.exceptions import BadRequestError, UnauthorizedError
from mesplan.utils.jwt import create_access_token, create_refresh_token, decode_token
from mesplan.utils.password import hash_password, password_problems, verify_password

logger = logging.getLogger(__name__)

SESSION_EXPIRED: str = "Session expired"


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling login, session validation, token refresh and logout.
    """

    def _build_jwt_payload(self, user: User, role: Role, session: UserSession) -> dict[str, str | int]:
        """JWT 토큰 페이로드를 생성합니다.

        Build the JWT token payload from user, role and session.
        """
        return {
            "sub": str(user.id),
            "sid": str(session.id),
            "role": role.name,
            "level": role.level,
        }

    async def _generate_tokens(
        self,
        db: AsyncSession,
        user: User,
        role: Role,
        session: UserSession,
    ) -> TokenResponse:
        """액세스 토큰과 리프레시 토큰을 생성합니다.

        Generate an access/refresh pair bound to the session and store the
        refresh token as the session's only valid one.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 사용자 모델 (User model instance)
            role: 역할 모델 (Role model instance)
            session: 로그인 세션 (Login session)

        Returns:
            TokenResponse: 토큰 응답 (Token response)
        """
        payload: dict[str, str | int] = self._build_jwt_payload(user, role, session)
        expires_at: datetime = as_utc(session.expires_at)
        access_token: str = create_access_token(payload, session_expires_at=expires_at)
        refresh_token: str = create_refresh_token(payload, session_expires_at=expires_at)

        # 이전 리프레시 토큰은 즉시 무효화 — Rotation invalidates the previous refresh token
        session.refresh_token = refresh_token
        await db.flush()

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            session_expires_at=expires_at,
        )

    def is_session_active(self, session: UserSession | None) -> bool:
        """세션 유효 여부 — False once ended or past the absolute expiry."""
        if session is None or session.ended_at is not None:
            return False
        return as_utc(session.expires_at) > datetime.now(timezone.utc)

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> TokenResponse:
        """로그인을 처리하고 새 세션을 시작합니다.

        Verify credentials and start a new login session that expires
        SESSION_TIMEOUT_HOURS from now.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 로그인 요청 데이터 (Login request data)

        Returns:
            TokenResponse: 토큰 응답 (Token response)

        Raises:
            UnauthorizedError: 잘못된 인증 정보 또는 비활성 계정 (Invalid credentials or inactive)
        """
        user: User | None = await user_repository.get_by_username(db, data.username)
        if user is None or not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Invalid username or password")
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        now: datetime = datetime.now(timezone.utc)
        session: UserSession = await session_repository.create(
            db,
            {
                "user_id": user.id,
                "started_at": now,
                "expires_at": now + timedelta(hours=settings.SESSION_TIMEOUT_HOURS),
            },
        )
        logger.info("Session %s started for user %s", session.id, user.username)
        return await self._generate_tokens(db, user, user.role, session)

    async def get_active_session(
        self,
        db: AsyncSession,
        session_id: UUID,
    ) -> UserSession:
        """활성 세션을 조회합니다.

        Load a session and verify it is still active.

        Raises:
            UnauthorizedError: 세션이 없거나 종료/만료됨 ("Session expired")
        """
        session: UserSession | None = await session_repository.get_by_id(db, session_id)
        if not self.is_session_active(session):
            raise UnauthorizedError(SESSION_EXPIRED)
        return session

    async def refresh_tokens(
        self,
        db: AsyncSession,
        data: RefreshRequest,
    ) -> TokenResponse:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Rotate the token pair within the same session. The session's
        expires_at is never extended.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 토큰 갱신 요청 (Refresh request)

        Returns:
            TokenResponse: 새 토큰 응답 (New token response)

        Raises:
            UnauthorizedError: 유효하지 않은 토큰 또는 만료된 세션
                               (Invalid token or expired session)
        """
        try:
            payload: dict = decode_token(data.refresh_token)
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError(SESSION_EXPIRED)
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid refresh token")
        if payload.get("type") != "refresh" or not payload.get("sid"):
            raise UnauthorizedError("Invalid token type")

        session: UserSession = await self.get_active_session(db, UUID(payload["sid"]))
        if session.refresh_token != data.refresh_token:
            raise UnauthorizedError("Refresh token revoked")

        user: User | None = await user_repository.get_with_role(db, session.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found or inactive")
        return await self._generate_tokens(db, user, user.role, session)

    async def logout(
        self,
        db: AsyncSession,
        session: UserSession,
    ) -> None:
        """로그아웃 — 세션 종료 및 세션 화면 상태 삭제.

        End the session and discard its view state.
        """
        await session_repository.end_session(db, session)
        logger.info("Session %s ended", session.id)

    def get_me(self, user: User, session: UserSession) -> UserMeResponse:
        """현재 사용자 정보 — Current user profile with session expiry."""
        return UserMeResponse(
            id=str(user.id),
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            avatar_url=user.avatar_url,
            role_name=user.role.name,
            role_level=user.role.level,
            language=user.language,
            daily_capacity_hours=float(user.daily_capacity_hours or 0),
            session_id=str(session.id),
            session_expires_at=as_utc(session.expires_at),
        )

    async def change_password(
        self,
        db: AsyncSession,
        user: User,
        current_password: str,
        new_password: str,
    ) -> None:
        """비밀번호 변경 — Change own password after verifying the current one."""
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        problems: list[str] = password_problems(new_password)
        if problems:
            raise BadRequestError("; ".join(problems))
        user.password_hash = hash_password(new_password)
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
