"""공통 Pydantic 응답 스키마 정의.

Common Pydantic response schemas shared across API domains:
generic messages, pagination and notifications.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """일반 메시지 응답 스키마 — Generic message response."""

    message: str


class PaginatedResponse(BaseModel):
    """페이지네이션 응답 스키마.

    Paginated response wrapper used by list endpoints.
    """

    items: list[Any]
    total: int
    page: int
    per_page: int
    pages: int = 0


class NotificationResponse(BaseModel):
    """알림 응답 스키마."""

    id: str
    type: str
    title: str
    message: str
    entity_type: str | None
    entity_id: str | None
    is_read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    """읽지 않은 알림 수 응답 — Unread notification count."""

    unread_count: int
