"""관리자 리포트 라우터 — Excel 내보내기와 생산 요약.

Admin Report Router — Work order and capacity Excel export, production summary.
"""

from datetime import date
from io import BytesIO
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.api.deps import require_reader
from mesplan.database import get_db
from mesplan.models.user import User
from mesplan.services.report_service import report_service

router: APIRouter = APIRouter()


@router.get("/summary")
async def production_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
) -> dict[str, Any]:
    """생산 요약."""
    return await report_service.production_summary(db)


@router.get("/work-orders/export")
async def export_work_orders(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_reader)],
    group_by: Annotated[str, Query()] = "none",
    status: Annotated[str | None, Query()] = None,
    product_type: Annotated[str | None, Query()] = None,
    customer: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    date_from: Annotated[date | None, Query()] = None,
    date_to: Annotated[date | None, Query()] = None,
    capacity_from: Annotated[date | None, Query(description="용량 시트 시작일")] = None,
    capacity_to: Annotated[date | None, Query(description="용량 시트 종료일")] = None,
) -> StreamingResponse:
    """작업 지시와 작업자 용량을 Excel 파일로 내보냅니다."""
    excel_bytes: bytes = await report_service.export_work_orders_xlsx(
        db,
        group_by=group_by,
        capacity_from=capacity_from,
        capacity_to=capacity_to,
        status=status,
        product_type=product_type,
        customer=customer,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    return StreamingResponse(
        BytesIO(excel_bytes),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=work_orders.xlsx"},
    )
