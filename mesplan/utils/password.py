"""비밀번호 해싱, 검증 및 강도 검사 유틸리티 모듈.

Password hashing, verification and strength-check utilities.
Uses bcrypt directly; plain text passwords are never stored.
"""

import re

import bcrypt

# 비밀번호 강도 규칙 — (패턴, 오류 메시지) 목록
# Strength rules applied to new passwords: (pattern, message)
_STRENGTH_RULES: list[tuple[str, str]] = [
    (r"[A-Z]", "Password must contain at least one uppercase letter"),
    (r"[a-z]", "Password must contain at least one lowercase letter"),
    (r"[0-9]", "Password must contain at least one number"),
]


def hash_password(password: str) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Hash a plain text password using bcrypt with a random salt.

    Args:
        password: 평문 비밀번호 (Plain text password to hash)

    Returns:
        str: bcrypt 해시 문자열 (Bcrypt hash string, ~60 chars)
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문 비밀번호와 bcrypt 해시를 비교 검증합니다.

    Verify a plain text password against a stored bcrypt hash.

    Args:
        plain_password: 검증할 평문 비밀번호 (Plain text password to verify)
        hashed_password: 저장된 bcrypt 해시 (Stored bcrypt hash to compare against)

    Returns:
        bool: 일치하면 True (True if password matches hash)
    """
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


def password_problems(password: str) -> list[str]:
    """새 비밀번호의 강도 문제 목록을 반환합니다. 빈 목록이면 통과.

    Return the list of strength problems for a new password.
    An empty list means the password is acceptable:
    8 to 128 characters with upper case, lower case and a digit.
    """
    problems: list[str] = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters")
    if len(password) > 128:
        problems.append("Password must be less than 128 characters")
    for pattern, message in _STRENGTH_RULES:
        if not re.search(pattern, password):
            problems.append(message)
    return problems
