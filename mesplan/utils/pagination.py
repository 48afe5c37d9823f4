"""페이지네이션 응답 유틸리티.

Builds the PaginatedResponse payload for the work-order, certificate,
notification and activity lists. Queries are paged by
BaseRepository.get_paginated.
"""

import math
from typing import Any


def build_page(items: list[Any], total: int, page: int, per_page: int) -> dict[str, Any]:
    """Page 응답 딕셔너리 생성 — Build a PaginatedResponse-shaped dict."""
    return {
        "items": items,
        "total": total,
        "page": max(page, 1),
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if per_page else 0,
    }
