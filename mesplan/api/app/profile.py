"""앱 프로필 라우터 — 내 프로필, 비밀번호, 아바타, 내 가용성.

App Profile Router — The current user's profile, password, avatar upload
and self-service availability (holidays, sick days, partial hours).
"""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import get_current_user
from mesplan.database import get_db
from mesplan.models.availability import OperatorAvailability
from mesplan.models.user import User
from mesplan.schemas.availability import AvailabilityRangeCreate, AvailabilityResponse
from mesplan.schemas.common import MessageResponse
from mesplan.schemas.user import PasswordChange, ProfileUpdate, UserResponse
from mesplan.services.auth_service import auth_service
from mesplan.services.availability_service import availability_service
from mesplan.services.storage_service import storage_service
from mesplan.services.user_service import user_service

router: APIRouter = APIRouter()


class PresignedUrlRequest(BaseModel):
    filename: str | None = None
    content_type: str


class PresignedUrlResponse(BaseModel):
    upload_url: str
    file_url: str


@router.get("/profile", response_model=UserResponse)
async def get_my_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """내 프로필을 조회합니다.

    Get the current user's profile.

    Args:
        current_user: 인증된 사용자 (Authenticated user)
    """
    return user_service.build_response(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_my_profile(
    data: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """내 프로필을 업데이트합니다.

    Update the current user's profile. Only provided fields change.

    Args:
        data: 업데이트 데이터 (Update data)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)
    """
    user: User = await user_service.update_profile(db, current_user, data)
    await db.commit()
    return user_service.build_response(user)


@router.put("/profile/password", response_model=MessageResponse)
async def change_my_password(
    data: PasswordChange,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """비밀번호 변경 — Requires the current password."""
    await auth_service.change_password(db, current_user, data.current_password, data.new_password)
    await db.commit()
    return {"message": "Password changed"}


@router.post("/profile/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(
    data: PresignedUrlRequest,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """아바타 업로드 URL을 생성합니다 (S3 또는 로컬).

    Only PNG, JPEG and WebP images are accepted. The returned file_url is
    a temporary location until the profile is saved with it.
    """
    return storage_service.avatar_upload_urls(current_user.id, data.content_type)


@router.put("/profile/upload/{key:path}")
async def upload_local(
    key: str,
    request: Request,
) -> dict[str, bool]:
    """로컬 모드 전용 — 파일을 서버에 직접 저장합니다.

    Local storage mode only. The client PUTs here instead of to S3;
    the URL was issued to an authenticated user.
    """
    storage_service.receive_local_upload(key, await request.body())
    return {"ok": True}


# --- 내 가용성 (My availability) ---

@router.get("/my/availability", response_model=list[AvailabilityResponse])
async def list_my_availability(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    date_from: Annotated[date, Query(description="시작일")],
    date_to: Annotated[date, Query(description="종료일")],
) -> list[dict[str, Any]]:
    """내 가용성 항목 조회."""
    entries: list[OperatorAvailability] = await availability_service.list_availability(
        db, date_from, date_to, current_user.id
    )
    return [availability_service.build_response(e) for e in entries]


@router.post("/my/availability", response_model=list[AvailabilityResponse], status_code=201)
async def set_my_availability(
    data: AvailabilityRangeCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """내 기간 가용성 설정 — user_id in the body is ignored."""
    entries: list[OperatorAvailability] = await availability_service.set_availability_range(
        db, current_user.id, data, current_user.id
    )
    await db.commit()
    return [availability_service.build_response(e) for e in entries]


@router.delete("/my/availability/{entry_id}", response_model=MessageResponse)
async def delete_my_availability(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """내 가용성 항목 삭제 — Other operators' entries are 404."""
    await availability_service.delete_availability(db, entry_id, current_user.id)
    await db.commit()
    return {"message": "Availability entry deleted"}
