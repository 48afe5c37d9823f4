"""리포트 API 테스트 — Excel 내보내기.

Report API tests — Work order and capacity workbook export.
"""

from datetime import timedelta
from io import BytesIO

from httpx import AsyncClient
from openpyxl import load_workbook

from tests.conftest import ADMIN, auth_header

URL = f"{ADMIN}/reports/work-orders/export"


class TestExport:
    """Excel 내보내기 테스트."""

    async def test_workbook_sheets(self, client: AsyncClient, logistics_token, production_team, work_order):
        """작업 지시 시트와 용량 시트."""
        start = work_order.start_date
        res = await client.get(URL, headers=auth_header(logistics_token), params={
            "capacity_from": start.isoformat(),
            "capacity_to": (start + timedelta(days=1)).isoformat(),
        })
        assert res.status_code == 200
        assert res.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )

        wb = load_workbook(BytesIO(res.content))
        assert wb.sheetnames == ["Work Orders", "Capacity"]

        orders = list(wb["Work Orders"].iter_rows(values_only=True))
        assert orders[0][0] == "WO Number"
        assert orders[1][0] == "WO-TEST-0001"
        assert orders[1][7] == "0/2"

        capacity = list(wb["Capacity"].iter_rows(values_only=True))
        assert capacity[0][0] == "Operator"
        # 작업자 2명 x 2일 — two operators over two days
        assert len(capacity) == 1 + 4
        assert {row[0] for row in capacity[1:]} == {"Anna Bakker", "Bram de Vries"}

    async def test_grouped_export_has_group_column(
        self, client: AsyncClient, logistics_token, work_order,
    ):
        """그룹 기준이 있으면 첫 열이 Group."""
        res = await client.get(URL, headers=auth_header(logistics_token), params={"group_by": "customer"})
        wb = load_workbook(BytesIO(res.content))
        rows = list(wb["Work Orders"].iter_rows(values_only=True))
        assert rows[0][0] == "Group"
        assert rows[1][:2] == ("Acme", "WO-TEST-0001")

    async def test_invalid_group_by(self, client: AsyncClient, logistics_token):
        """알 수 없는 그룹 기준은 400."""
        res = await client.get(URL, headers=auth_header(logistics_token), params={"group_by": "color"})
        assert res.status_code == 400

    async def test_summary(self, client: AsyncClient, logistics_token, work_order):
        """리포트 요약."""
        res = await client.get(f"{ADMIN}/reports/summary", headers=auth_header(logistics_token))
        assert res.status_code == 200
        assert res.json()["items_total"] == 2
