"""앱 API 라우터 패키지 — 모든 앱(작업장) 엔드포인트 통합.

App API Router package — Aggregates all shop-floor endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - auth: 공통 인증 (Shared authentication)
    - profile: 내 프로필, 비밀번호, 내 가용성 (My profile, password, my availability)
    - execution: 내 작업 목록, 단계 실행, 라벨 (My queue, step execution, labels)
    - traceability: 하위 조립품 연결, 배치 자재 스캔 (Sub-assembly links, material batches)
    - search: 검색과 화면 상태 (Search and persisted view state)
    - notifications: 내 알림 (My notifications)
"""

from fastapi import APIRouter

from mesplan.api.auth import router as auth_router
from mesplan.api.app.profile import router as profile_router
from mesplan.api.app.execution import router as execution_router
from mesplan.api.app.traceability import router as traceability_router
from mesplan.api.app.search import router as search_router
from mesplan.api.notifications import router as notifications_router

app_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# 인증/프로필 라우터 등록 — Register auth and profile routers
# ---------------------------------------------------------------------------
app_router.include_router(auth_router, prefix="/auth", tags=["App Auth"])
# 프로필: /profile, /my/availability 엔드포인트
app_router.include_router(profile_router, tags=["App Profile"])

# ---------------------------------------------------------------------------
# 작업장 라우터 등록 — Register shop-floor routers
# ---------------------------------------------------------------------------
# 실행: /my/queue, /items/{item_id}/... 하위 (Step execution and labels)
app_router.include_router(execution_router, tags=["Execution"])
# 추적성: /items/{item_id}/sub-assemblies, /items/{item_id}/batches
app_router.include_router(traceability_router, tags=["Traceability"])
# 검색/상태: /search, /state 하위 (Search and view state)
app_router.include_router(search_router, tags=["Search"])
app_router.include_router(notifications_router, prefix="/my/notifications", tags=["My Notifications"])
