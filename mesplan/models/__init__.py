"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    user: 역할, 사용자, 팀 (Role, User, Team, TeamMember)
    session: 로그인 세션 및 저장 상태 (Login sessions, view state, recent searches, preferences)
    availability: 작업자 가용성 (Operator availability)
    production: 작업 지시, 품목, 공정 단계, 실행 (Work orders, items, steps, executions)
    assignment: 단계 배정 및 일자 배정 (Step and per-day operator assignments)
    quality: 품질 인증서 및 활동 로그 (Certificates and activity log)
    traceability: 하위 조립품과 배치 자재 (Sub-assembly links and material batches)
    notification: 알림 (User notifications)
"""

from mesplan.models.user import Role, User, Team, TeamMember
from mesplan.models.session import UserSession, SessionViewState, RecentSearch, UserPreference
from mesplan.models.availability import OperatorAvailability
from mesplan.models.production import WorkOrder, WorkOrderItem, ProductionStep, StepExecution
from mesplan.models.assignment import StepAssignment, OperatorAssignment
from mesplan.models.quality import QualityCertificate, ActivityLog
from mesplan.models.traceability import SubAssembly, BatchMaterial
from mesplan.models.notification import Notification

__all__ = [
    "Role", "User", "Team", "TeamMember",
    "UserSession", "SessionViewState", "RecentSearch", "UserPreference",
    "OperatorAvailability",
    "WorkOrder", "WorkOrderItem", "ProductionStep", "StepExecution",
    "StepAssignment", "OperatorAssignment",
    "QualityCertificate", "ActivityLog",
    "SubAssembly", "BatchMaterial",
    "Notification",
]
