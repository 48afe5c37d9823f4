"""FastAPI 의존성 주입 모듈 — 인증, 세션 및 권한 검사.

FastAPI dependency injection module — Authentication, sessions and authorization.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sid"로 로그인 세션을 조회 — 종료/만료 시 401 "Session expired"
       (The "sid" session is loaded; ended or expired sessions get 401)
    4. 페이로드의 "sub"로 사용자를 조회하고 활성 상태를 확인
       (User is fetched by "sub" and must be active)

Authorization Flow (require_level):
    역할 레벨이 max_level 이하인지 확인, 아니면 403
    (Role level must be <= max_level, otherwise 403)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.database import get_db
from mesplan.models.session import UserSession
from mesplan.models.user import User
from mesplan.repositories.user_repository import user_repository
from mesplan.services.auth_service import SESSION_EXPIRED, auth_service
from mesplan.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — Extracts JWT token from Authorization: Bearer <token>
security: HTTPBearer = HTTPBearer()


async def get_current_session(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserSession:
    """액세스 토큰의 로그인 세션을 반환합니다.

    Decode the access token and return its login session.

    Raises:
        HTTPException(401): 토큰이 유효하지 않음 (Invalid token)
        UnauthorizedError(401): 세션 종료/만료 ("Session expired")
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        session_id: UUID = UUID(payload["sid"])
        UUID(payload["sub"])
    except HTTPException:
        raise
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=SESSION_EXPIRED)
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    session: UserSession = await auth_service.get_active_session(db, session_id)
    if str(session.user_id) != payload["sub"]:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return session


async def get_current_user(
    session: Annotated[UserSession, Depends(get_current_session)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """현재 인증된 사용자를 반환합니다 (역할 포함).

    Return the authenticated user of the current session, role loaded.

    Raises:
        HTTPException(401): 사용자를 찾을 수 없거나 비활성 (User not found or inactive)
    """
    user: User | None = await user_repository.get_with_role(db, session.user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


def require_level(max_level: int) -> Callable[..., Awaitable[User]]:
    """역할 레벨 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing a maximum role level.
    Lower level = higher authority.

    Level hierarchy:
        1 = admin (최고 권한, highest authority)
        2 = supervisor (계획/배정/일정, planning and assignment)
        3 = operator (단계 실행, step execution)
        4 = logistics (작업 지시 조회 전용, read-only work orders)

    Args:
        max_level: 허용되는 최대 역할 레벨 (Maximum allowed role level, inclusive)
    """
    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        role = current_user.role
        if role is None or role.level > max_level:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user
    return _check


# 편의 의존성 — Pre-configured level dependencies
require_admin = require_level(1)       # Admin만 허용 (Admin only)
require_supervisor = require_level(2)  # Admin + Supervisor (Planning)
require_operator = require_level(3)    # Admin + Supervisor + Operator (Shop floor)
require_reader = require_level(4)      # 모든 역할, 조회 전용 포함 (Every role incl. logistics)
