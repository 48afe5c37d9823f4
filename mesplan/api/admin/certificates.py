"""관리자 품질 인증서 라우터 — 인증서 생성, 조회, 문서.

Admin Certificate Router — Generate certificates for completed items,
list and fetch them, and serve the printable HTML document.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_reader, require_supervisor
from mesplan.database import get_db
from mesplan.models.quality import QualityCertificate
from mesplan.models.user import User
from mesplan.schemas.common import PaginatedResponse
from mesplan.schemas.execution import CertificateResponse
from mesplan.services.certificate_service import certificate_service
from mesplan.utils.pagination import build_page

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_certificates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=200)] = 20,
) -> dict[str, Any]:
    """인증서 목록 (최신순)."""
    certificates, total = await certificate_service.list_certificates(db, page, per_page)
    items: list[dict[str, Any]] = [
        certificate_service.build_response(c, c.item.serial_number if c.item else None)
        for c in certificates
    ]
    return build_page(items, total, page, per_page)


@router.post("/items/{item_id}", response_model=CertificateResponse, status_code=201)
async def generate_certificate(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> dict[str, Any]:
    """완료된 품목의 인증서 생성 — Returns the existing one when already generated."""
    certificate: QualityCertificate = await certificate_service.generate_certificate(db, item_id, current_user)
    await db.commit()
    return certificate_service.build_response(certificate)


@router.get("/{certificate_id}", response_model=CertificateResponse)
async def get_certificate(
    certificate_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> dict[str, Any]:
    """인증서 조회."""
    certificate: QualityCertificate = await certificate_service.get_certificate(db, certificate_id)
    return certificate_service.build_response(certificate)


@router.get("/{certificate_id}/document", response_class=HTMLResponse)
async def get_certificate_document(
    certificate_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> HTMLResponse:
    """인증서 HTML 문서 — Printable certificate."""
    return HTMLResponse(await certificate_service.get_certificate_document(db, certificate_id))
