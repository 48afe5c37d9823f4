"""Axiom 요청 로깅 미들웨어.

Axiom request logging middleware — One structured event per API call:
method, path, client (admin or shop floor), masked query/body, status,
duration and the error detail of failed requests.

Credentials and tokens are masked. Only JSON bodies are captured, so
uploads, Excel exports and label/certificate pages never reach the log.
Without an Axiom token the middleware passes requests straight through.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mesplan.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 키 — Keys whose values are replaced by "***"
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_?key|credential)",
    re.IGNORECASE,
)

_SKIP_PATHS: frozenset[str] = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})
_SKIP_PREFIXES: tuple[str, ...] = ("/uploads/",)

# 클라이언트 구분 — API prefix → client name
_CLIENTS: tuple[tuple[str, str], ...] = (
    ("/api/v1/admin", "admin"),
    ("/api/v1/app", "app"),
)

_MAX_BODY_CHARS: int = 2000
_MAX_ERROR_CHARS: int = 500


def mask(data: Any, depth: int = 0) -> Any:
    """민감 값 마스킹 — Recursively mask sensitive keys, capping depth and list length."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(str(key)) else mask(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask(value, depth + 1) for value in data[:20]]
    if isinstance(data, str) and len(data) > _MAX_BODY_CHARS:
        return data[:_MAX_BODY_CHARS] + "...(truncated)"
    return data


def client_of(path: str) -> str | None:
    return next((name for prefix, name in _CLIENTS if path.startswith(prefix)), None)


async def _json_body(request: Request) -> Any:
    """JSON 요청 본문 (마스킹) — None for other content types."""
    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    if not request.headers.get("content-type", "").startswith("application/json"):
        return None
    raw: bytes = await request.body()
    if not raw:
        return None
    try:
        return mask(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


def _error_detail(body: bytes) -> str:
    """에러 응답의 사유 — The {"detail": ...} of an error body, or its text."""
    try:
        detail: Any = json.loads(body).get("detail", body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        detail = body.decode("utf-8", errors="replace")
    if not isinstance(detail, str):
        detail = json.dumps(detail, default=str)
    return detail[:_MAX_ERROR_CHARS]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """API 요청/응답을 Axiom 데이터셋으로 보내는 미들웨어."""

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._dataset: str = settings.AXIOM_DATASET
        self._client: AxiomClient | None = (
            AxiomClient(token=settings.AXIOM_API_TOKEN)
            if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET
            else None
        )

    def _skipped(self, path: str) -> bool:
        return self._client is None or path in _SKIP_PATHS or path.startswith(_SKIP_PREFIXES)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path: str = request.url.path
        if self._skipped(path):
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": path, "status_code": 500}
        if client_of(path):
            event["client"] = client_of(path)
        if request.query_params:
            event["query_params"] = mask(dict(request.query_params))
        body: Any = await _json_body(request)
        if body is not None:
            event["request_body"] = body

        try:
            response: Response = await call_next(request)
            event["status_code"] = response.status_code
            if response.status_code >= 400:
                # 본문을 읽은 뒤 새 응답으로 감쌉니다 — Re-wrap the consumed body
                content: bytes = b"".join(
                    [chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                     async for chunk in response.body_iterator]
                )
                event["error"] = _error_detail(content)
                response = Response(
                    content=content,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
            return response
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            if request.path_params:
                event["path_params"] = dict(request.path_params)
            try:
                self._client.ingest_events(self._dataset, [event])
            except Exception as exc:
                # 로깅 실패는 요청에 영향 없음 — A failed ingest never fails the request
                logger.warning("Axiom ingest failed: %s", exc)
