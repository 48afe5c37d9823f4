"""초기 데이터 시드 스크립트 — 역할, 관리자 계정, 생산 팀, 공정 단계 생성.

Seed script — Creates the role hierarchy, the admin user, the production
team and a starter step catalog for every product type.
Run this script once to bootstrap the database with required initial data.

Usage:
    python -m mesplan.seed

Creates:
    - 4개 역할: admin(1), supervisor(2), operator(3), logistics(4) (4 roles)
    - 1개 관리자 계정: admin / admin123 (1 admin user)
    - 생산 팀: settings.PRODUCTION_TEAM_NAME (Operator pool team)
    - 제품 유형별 기본 공정 단계 (Default steps per product type)
"""

import asyncio
import logging

from sqlalchemy import select

from mesplan.config import settings
from mesplan.database import Base, async_session, engine
from mesplan.models import ProductionStep, Role, Team, User
from mesplan.models.production import PRODUCT_TYPES
from mesplan.models.user import ROLE_LEVELS
from mesplan.utils.password import hash_password

logger = logging.getLogger(__name__)

# 기본 공정 단계 — (title_en, title_nl, measurement fields or None)
DEFAULT_STEPS: list[tuple[str, str, list[dict] | None]] = [
    ("Assembly", "Assemblage", None),
    ("Wiring", "Bedrading", None),
    ("Calibration", "Kalibratie", [
        {"name": "voltage", "unit": "V", "required": True},
        {"name": "offset", "unit": "mV", "required": False},
    ]),
    ("Functional test", "Functionele test", [
        {"name": "result", "unit": None, "required": True},
    ]),
    ("Final inspection", "Eindinspectie", None),
]


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data.
    Creates tables if they don't exist, then inserts the roles, admin
    user, production team and step catalog.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if already seeded).
    """
    # 테이블 생성 — DDL 실행 (Create all tables from ORM metadata)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        # 이미 시드되었는지 확인 — 역할이 하나라도 있으면 건너뜀
        result = await db.execute(select(Role).limit(1))
        if result.scalar_one_or_none():
            logger.info("Already seeded. Skipping.")
            return

        # 역할 계층 생성 — Create role hierarchy (level 1=admin ~ 4=logistics)
        roles: dict[str, Role] = {}
        for name, level in ROLE_LEVELS.items():
            role: Role = Role(name=name, level=level)
            db.add(role)
            roles[name] = role
        await db.flush()

        # 관리자 계정 생성 — Create initial admin user (admin/admin123)
        admin: User = User(
            role_id=roles["admin"].id,
            username="admin",
            full_name="System Admin",
            password_hash=hash_password("admin123"),
            is_active=True,
        )
        db.add(admin)

        # 생산 팀 — The operator pool team
        db.add(Team(name=settings.PRODUCTION_TEAM_NAME, description="Shop-floor operators"))

        # 공정 단계 카탈로그 — Step catalog per product type
        for product_type in PRODUCT_TYPES:
            for number, (title_en, title_nl, fields) in enumerate(DEFAULT_STEPS, start=1):
                db.add(ProductionStep(
                    product_type=product_type,
                    step_number=number,
                    title_en=title_en,
                    title_nl=title_nl,
                    requires_value_input=fields is not None,
                    measurement_fields=fields,
                ))

        await db.commit()
        logger.info("Seeded: roles, admin user=admin/admin123, team=%s", settings.PRODUCTION_TEAM_NAME)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
