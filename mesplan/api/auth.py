"""공통 인증 라우터 — 로그인, 토큰 갱신, 로그아웃, 내 정보.

Common Auth Router — Login, token refresh, logout and profile endpoints.
Shared by both admin and shop-floor clients. Every login starts a session
with an absolute expiry that refresh never extends.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_session, get_current_user
from mesplan.database import get_db
from mesplan.models.session import UserSession
from mesplan.models.user import User
from mesplan.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, UserMeResponse
from mesplan.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """로그인 — 새 세션을 시작하고 토큰 쌍을 발급합니다.

    Login endpoint. Starts a new session and issues a token pair.
    """
    result: TokenResponse = await auth_service.login(db, data)
    await db.commit()
    return result


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """토큰 갱신 — 리프레시 토큰으로 새 토큰 쌍 발급.

    Refresh token endpoint. Issues a new token pair within the same session.
    """
    result: TokenResponse = await auth_service.refresh_tokens(db, data)
    await db.commit()
    return result


@router.post("/logout", status_code=204)
async def logout(
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> None:
    """로그아웃 — 현재 세션 종료.

    Logout endpoint. Ends the current session and drops its view state.
    """
    await auth_service.logout(db, session)
    await db.commit()


@router.get("/me", response_model=UserMeResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[UserSession, Depends(get_current_session)],
) -> UserMeResponse:
    """현재 사용자 프로필 조회.

    Get the profile of the currently authenticated user and the session expiry.
    """
    return auth_service.get_me(current_user, session)
