"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite (aiosqlite) database, session, and
httpx client fixtures. The schema is created for every test on a single
shared connection (StaticPool) and dropped afterwards.
"""

from collections.abc import AsyncGenerator
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from mesplan.config import settings
from mesplan.database import Base, get_db
from mesplan.main import app
from mesplan.models import *  # noqa: F401,F403 — register all models with metadata
from mesplan.models.production import ProductionStep, WorkOrder
from mesplan.models.user import ROLE_LEVELS, Role, Team, TeamMember, User
from mesplan.schemas.work_order import WorkOrderCreate
from mesplan.services.work_order_service import work_order_service
from mesplan.utils.password import hash_password

# ---------------------------------------------------------------------------
# 테스트 DB 설정
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN = "/api/v1/admin"
APP = "/api/v1/app"

PASSWORD = "Passw0rd1"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 — 테스트마다 스키마를 새로 만듭니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    """인증서/업로드 파일을 임시 디렉토리에 저장합니다."""
    monkeypatch.setattr(settings, "LOCAL_UPLOADS_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "")
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    return tmp_path


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def roles(db: AsyncSession) -> dict[str, Role]:
    """기본 4개 역할을 생성합니다."""
    result = {}
    for name, level in ROLE_LEVELS.items():
        role = Role(name=name, level=level)
        db.add(role)
        result[name] = role
    await db.flush()
    return result


async def make_user(
    db: AsyncSession,
    role: Role,
    username: str,
    full_name: str,
    **kwargs,
) -> User:
    """사용자를 생성합니다 (역할 관계 포함)."""
    user = User(
        role=role,
        username=username,
        full_name=full_name,
        password_hash=hash_password(PASSWORD),
        **kwargs,
    )
    db.add(user)
    await db.flush()
    return user


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession, roles) -> User:
    """관리자 사용자를 생성합니다."""
    return await make_user(db, roles["admin"], "admin", "Test Admin", email="admin@test.com")


@pytest_asyncio.fixture
async def supervisor_user(db: AsyncSession, roles) -> User:
    """수퍼바이저(계획 담당) 사용자를 생성합니다."""
    return await make_user(db, roles["supervisor"], "planner", "Paula Planner")


@pytest_asyncio.fixture
async def operator_user(db: AsyncSession, roles) -> User:
    """작업자 사용자를 생성합니다."""
    return await make_user(db, roles["operator"], "anna", "Anna Bakker")


@pytest_asyncio.fixture
async def second_operator(db: AsyncSession, roles) -> User:
    """두 번째 작업자 (용량 6시간)."""
    return await make_user(db, roles["operator"], "bram", "Bram de Vries", daily_capacity_hours=6.0)


@pytest_asyncio.fixture
async def logistics_user(db: AsyncSession, roles) -> User:
    """물류(조회 전용) 사용자를 생성합니다."""
    return await make_user(db, roles["logistics"], "logistics", "Lars Logistics")


@pytest_asyncio.fixture
async def production_team(db: AsyncSession, operator_user, second_operator) -> Team:
    """생산 팀 — 두 작업자가 작업자 풀을 구성합니다."""
    team = Team(name=settings.PRODUCTION_TEAM_NAME)
    db.add(team)
    await db.flush()
    for user in (operator_user, second_operator):
        db.add(TeamMember(team_id=team.id, user_id=user.id))
    await db.flush()
    return team


@pytest_asyncio.fixture
async def sensor_steps(db: AsyncSession) -> list[ProductionStep]:
    """SENSOR 공정 단계 3개 — 2단계에 필수 측정값."""
    steps = [
        ProductionStep(product_type="SENSOR", step_number=1, title_en="Assembly"),
        ProductionStep(
            product_type="SENSOR",
            step_number=2,
            title_en="Calibration",
            requires_value_input=True,
            measurement_fields=[
                {"name": "voltage", "unit": "V", "required": True},
                {"name": "offset", "unit": "mV", "required": False},
            ],
        ),
        ProductionStep(product_type="SENSOR", step_number=3, title_en="Final inspection"),
    ]
    db.add_all(steps)
    await db.flush()
    return steps


@pytest_asyncio.fixture
async def work_order(db: AsyncSession, admin_user, sensor_steps) -> WorkOrder:
    """SENSOR 작업 지시 (품목 2개, 내일 시작)."""
    return await work_order_service.create_work_order(
        db,
        WorkOrderCreate(
            wo_number="WO-TEST-0001",
            product_type="SENSOR",
            batch_size=2,
            estimated_hours=16,
            customer_name="Acme",
            start_date=date.today() + timedelta(days=1),
            shipping_date=date.today() + timedelta(days=10),
        ),
        admin_user,
    )


# ---------------------------------------------------------------------------
# 인증 헬퍼 — 실제 로그인으로 세션을 만든 토큰
# ---------------------------------------------------------------------------
async def login(client: AsyncClient, username: str, password: str = PASSWORD) -> dict:
    """로그인하여 토큰 응답을 반환합니다."""
    res = await client.post(f"{ADMIN}/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return res.json()


@pytest_asyncio.fixture
async def admin_token(client: AsyncClient, admin_user) -> str:
    return (await login(client, "admin"))["access_token"]


@pytest_asyncio.fixture
async def supervisor_token(client: AsyncClient, supervisor_user) -> str:
    return (await login(client, "planner"))["access_token"]


@pytest_asyncio.fixture
async def operator_token(client: AsyncClient, operator_user) -> str:
    return (await login(client, "anna"))["access_token"]


@pytest_asyncio.fixture
async def logistics_token(client: AsyncClient, logistics_user) -> str:
    return (await login(client, "logistics"))["access_token"]


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
