"""리포트 서비스 — Excel 내보내기와 생산 요약.

Report Service — Excel export of the (filtered, optionally grouped) work
order list with a capacity sheet, and the production summary.
"""

from datetime import date, timedelta
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.services.capacity_service import capacity_service, utilization_pct
from mesplan.services.work_order_service import work_order_service

# 기본 용량 시트 기간 — Default capacity sheet length
DEFAULT_CAPACITY_DAYS: int = 14


class ReportService:
    """리포트 서비스."""

    async def production_summary(self, db: AsyncSession) -> dict[str, Any]:
        """생산 요약 — Counts by status and product plus item completion."""
        return await work_order_service.production_summary(db)

    async def export_work_orders_xlsx(
        self,
        db: AsyncSession,
        group_by: str = "none",
        capacity_from: date | None = None,
        capacity_to: date | None = None,
        **filters: Any,
    ) -> bytes:
        """작업 지시 목록과 작업자 용량을 Excel 파일로 내보내기.

        "Work Orders" lists the filtered orders in group order (with a
        Group column when grouped). "Capacity" has one row per operator
        per day of the capacity range (two weeks from today by default).
        """
        if capacity_from is None:
            capacity_from = date.today()
        if capacity_to is None:
            capacity_to = capacity_from + timedelta(days=DEFAULT_CAPACITY_DAYS - 1)

        grouped: dict[str, Any] = await work_order_service.group_work_orders(db, group_by, **filters)
        capacity: list[dict[str, Any]] = await capacity_service.range_capacity(db, capacity_from, capacity_to)

        wb = Workbook()
        header_font = Font(bold=True, color="FFFFFF", size=11)
        header_fill = PatternFill(start_color="2D3436", end_color="2D3436", fill_type="solid")

        def style_headers(ws, headers: list[str]) -> None:
            for col_idx, h in enumerate(headers, 1):
                cell = ws.cell(row=1, column=col_idx, value=h)
                cell.font = header_font
                cell.fill = header_fill
                cell.alignment = Alignment(horizontal="center")

        # --- Sheet 1: Work Orders ---
        ws1 = wb.active
        ws1.title = "Work Orders"
        headers1 = ["WO Number", "Product", "Batch", "Status", "Customer", "Start", "Shipping", "Completed Items"]
        if group_by != "none":
            headers1.insert(0, "Group")
        style_headers(ws1, headers1)

        for group in grouped["groups"]:
            for wo in group["items"]:
                row: list[Any] = [
                    wo["wo_number"],
                    wo["product_type"],
                    wo["batch_size"],
                    wo["status"],
                    wo["customer_name"] or "",
                    str(wo["start_date"]) if wo["start_date"] else "",
                    str(wo["shipping_date"]) if wo["shipping_date"] else "",
                    f"{wo['completed_items']}/{wo['total_items']}",
                ]
                if group_by != "none":
                    row.insert(0, group["key"])
                ws1.append(row)

        widths1: list[int] = [18, 14, 8, 14, 24, 12, 12, 16]
        if group_by != "none":
            widths1.insert(0, 16)
        for i, w in enumerate(widths1, 1):
            ws1.column_dimensions[ws1.cell(row=1, column=i).column_letter].width = w

        # --- Sheet 2: Capacity ---
        ws2 = wb.create_sheet("Capacity")
        headers2 = ["Operator", "Date", "Capacity (h)", "Planned (h)", "Utilization %", "Unavailable", "Work Orders"]
        style_headers(ws2, headers2)

        for day in capacity:
            for op in day["operators"]:
                ws2.append([
                    op["full_name"],
                    str(day["date"]),
                    op["capacity_hours"],
                    op["planned_hours"],
                    utilization_pct(op["planned_hours"], op["capacity_hours"]),
                    op["reason"] if op["is_unavailable"] else "",
                    ", ".join(op["assignments"]),
                ])

        for i, w in enumerate([22, 12, 12, 12, 14, 18, 30], 1):
            ws2.column_dimensions[ws2.cell(row=1, column=i).column_letter].width = w

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()


# 싱글턴 인스턴스 — Singleton instance
report_service: ReportService = ReportService()
