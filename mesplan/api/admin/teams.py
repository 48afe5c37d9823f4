"""관리자 팀 라우터 — 팀 생성/조회 및 멤버 관리.

Admin Team Router — Team creation and listing plus membership changes.
Members of the production team form the operator pool.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_admin, require_supervisor
from mesplan.database import get_db
from mesplan.models.user import Team, User
from mesplan.schemas.common import MessageResponse
from mesplan.schemas.user import TeamCreate, TeamMemberAdd, TeamResponse
from mesplan.services.user_service import user_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> list[dict]:
    """팀 목록 (멤버 포함)."""
    teams: list[Team] = await user_service.list_teams(db)
    return [user_service.build_team_response(t) for t in teams]


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    data: TeamCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """팀 생성."""
    team: Team = await user_service.create_team(db, data)
    await db.commit()
    return user_service.build_team_response(team)


@router.post("/{team_id}/members", response_model=TeamResponse, status_code=201)
async def add_member(
    team_id: UUID,
    data: TeamMemberAdd,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """팀 멤버 추가."""
    team: Team = await user_service.add_member(db, team_id, data.user_id, data.is_lead)
    await db.commit()
    return user_service.build_team_response(team)


@router.delete("/{team_id}/members/{user_id}", response_model=MessageResponse)
async def remove_member(
    team_id: UUID,
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """팀 멤버 제거."""
    await user_service.remove_member(db, team_id, user_id)
    await db.commit()
    return {"message": "Member removed"}
