"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.
Provides functions for creating access/refresh tokens and decoding them.

JWT Payload Structure:
    액세스/리프레시 토큰 모두 동일한 기본 페이로드를 사용합니다.
    Both access and refresh tokens share the same base payload:
    {
        "sub": "user_uuid",         # 사용자 ID (User identifier)
        "sid": "session_uuid",      # 로그인 세션 ID (Login session identifier)
        "role": "supervisor",       # 역할 이름 (Role name)
        "level": 2,                 # 역할 레벨 (Role permission level)
        "exp": 1234567890,          # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"|"refresh"  # 토큰 유형 (Token type discriminator)
    }

    토큰의 exp는 세션 만료 시각을 넘지 않습니다.
    A token's exp never outlives the login session it belongs to.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
import uuid

import jwt

from mesplan.config import settings


def _expiry(lifetime: timedelta, session_expires_at: datetime | None) -> datetime:
    """토큰 만료 시각 — Token expiry capped at the session expiry."""
    expire: datetime = datetime.now(timezone.utc) + lifetime
    if session_expires_at is not None and session_expires_at < expire:
        return session_expires_at
    return expire


def create_access_token(
    data: dict[str, Any],
    session_expires_at: datetime | None = None,
) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Generate a JWT access token with the given payload data.
    Token expires after JWT_ACCESS_TOKEN_EXPIRE_MINUTES, or at the
    session expiry when that comes first.

    Args:
        data: JWT 페이로드 데이터 {"sub", "sid", "role", "level"}
              (JWT payload data)
        session_expires_at: 세션 절대 만료 시각, 선택 (Optional session expiry cap)

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)
    """
    to_encode: dict[str, Any] = data.copy()
    expire: datetime = _expiry(
        timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES), session_expires_at
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(
    data: dict[str, Any],
    session_expires_at: datetime | None = None,
) -> str:
    """JWT 리프레시 토큰을 생성합니다.

    Generate a JWT refresh token. A random "jti" keeps tokens issued in
    the same second distinct, since refresh tokens are stored uniquely.

    Args:
        data: JWT 페이로드 데이터 (JWT payload data, same structure as access token)
        session_expires_at: 세션 절대 만료 시각, 선택 (Optional session expiry cap)

    Returns:
        str: 인코딩된 JWT 리프레시 토큰 문자열 (Encoded JWT refresh token string)
    """
    to_encode: dict[str, Any] = data.copy()
    expire: datetime = _expiry(
        timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS), session_expires_at
    )
    to_encode.update({"exp": expire, "type": "refresh", "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Decode and verify a JWT token string.

    Args:
        token: JWT 토큰 문자열 (Encoded JWT token string)

    Returns:
        dict[str, Any]: 디코딩된 페이로드 딕셔너리 (Decoded payload dictionary)

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
