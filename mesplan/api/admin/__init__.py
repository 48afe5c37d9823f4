"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all planner/supervisor endpoints
into a single router for inclusion in the FastAPI application.

Included routers (People):
    - auth: 공통 인증 (Shared authentication)
    - roles, users, teams: 사용자/팀 관리 (User and team management)
    - availability: 작업자 가용성 (Operator availability)
    - capacity: 작업자 용량 집계 (Operator capacity aggregation)

Included routers (Production):
    - work_orders: 작업 지시 (Work orders and items)
    - steps: 공정 단계 카탈로그 (Production step catalog)
    - assignments: 작업자 배정 (Operator assignment editor)
    - planner: 생산 계획 달력 (Planner calendar and backlog)

Included routers (Quality & Reporting):
    - certificates: 품질 인증서 (Quality certificates)
    - reports: Excel 내보내기 (Excel export)
    - activity: 활동 로그 (Audit trail)
    - notifications: 알림 (Notifications)
"""

from fastapi import APIRouter

# People 라우터 임포트
from mesplan.api.auth import router as auth_router
from mesplan.api.admin.roles import router as roles_router
from mesplan.api.admin.users import router as users_router
from mesplan.api.admin.teams import router as teams_router
from mesplan.api.admin.availability import router as availability_router
from mesplan.api.admin.capacity import router as capacity_router

# Production 라우터 임포트
from mesplan.api.admin.work_orders import router as work_orders_router
from mesplan.api.admin.steps import router as steps_router
from mesplan.api.admin.assignments import router as assignments_router
from mesplan.api.admin.planner import router as planner_router

# Quality & Reporting 라우터 임포트
from mesplan.api.admin.certificates import router as certificates_router
from mesplan.api.admin.reports import router as reports_router
from mesplan.api.admin.activity import router as activity_router
from mesplan.api.notifications import router as notifications_router

admin_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# People 라우터 등록 — Register people routers
# ---------------------------------------------------------------------------
admin_router.include_router(auth_router, prefix="/auth", tags=["Admin Auth"])
admin_router.include_router(roles_router, prefix="/roles", tags=["Roles"])
admin_router.include_router(users_router, prefix="/users", tags=["Users"])
admin_router.include_router(teams_router, prefix="/teams", tags=["Teams"])
admin_router.include_router(availability_router, prefix="/availability", tags=["Availability"])
admin_router.include_router(capacity_router, prefix="/capacity", tags=["Capacity"])

# ---------------------------------------------------------------------------
# Production 라우터 등록 — Register production routers
# ---------------------------------------------------------------------------
admin_router.include_router(work_orders_router, prefix="/work-orders", tags=["Work Orders"])
admin_router.include_router(steps_router, prefix="/production-steps", tags=["Production Steps"])
# 배정: /work-orders/{id}/assignments, /items/{id}/..., /operator-assignments (no prefix)
admin_router.include_router(assignments_router, tags=["Assignments"])
admin_router.include_router(planner_router, prefix="/planner", tags=["Planner"])

# ---------------------------------------------------------------------------
# Quality & Reporting 라우터 등록 — Register quality and reporting routers
# ---------------------------------------------------------------------------
admin_router.include_router(certificates_router, prefix="/certificates", tags=["Certificates"])
admin_router.include_router(reports_router, prefix="/reports", tags=["Reports"])
admin_router.include_router(activity_router, prefix="/activity", tags=["Activity"])
admin_router.include_router(notifications_router, prefix="/notifications", tags=["Admin Notifications"])
