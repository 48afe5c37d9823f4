"""라벨 서비스 — 품목 QR 라벨 인쇄 페이지.

Label Service — Renders a printable 4in x 3in label for a work-order item
with a QR code encoding {serial, wo, product, date}. The page prints
itself on load.
"""

import base64
import html
import json
from datetime import date
from io import BytesIO
from uuid import UUID

import qrcode
from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.production import WorkOrderItem
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.utils.exceptions import NotFoundError


def qr_payload(item: WorkOrderItem, on_date: date) -> str:
    """QR 코드 내용 — Compact JSON {serial, wo, product, date}."""
    return json.dumps(
        {
            "serial": item.serial_number,
            "wo": item.work_order.wo_number,
            "product": item.product_type,
            "date": on_date.isoformat(),
        },
        separators=(",", ":"),
    )


def qr_png_base64(data: str) -> str:
    """QR 코드 PNG (base64) — Base64-encoded PNG of the QR code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode()


class LabelService:
    """라벨 인쇄 서비스."""

    def render_html(self, item: WorkOrderItem, operator: User, on_date: date) -> str:
        """라벨 HTML — 4in x 3in page with a data-URL QR image, printing on load."""
        qr_image: str = qr_png_base64(qr_payload(item, on_date))
        esc = html.escape
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>Label {esc(item.serial_number)}</title>"
            "<style>@page{size:4in 3in;margin:0}"
            "body{width:4in;height:3in;margin:0;font-family:Arial,sans-serif}"
            ".label{box-sizing:border-box;width:4in;height:3in;padding:0.15in;display:flex}"
            ".info{flex:1;font-size:11pt;line-height:1.5}"
            ".serial{font-size:18pt;font-weight:bold}"
            ".qr img{width:1.6in;height:1.6in}</style>"
            "</head><body onload=\"window.print()\"><div class=\"label\">"
            "<div class=\"info\">"
            f"<div>{esc(on_date.isoformat())}</div>"
            f"<div>{esc(item.product_type)}</div>"
            f"<div class=\"serial\">{esc(item.serial_number)}</div>"
            f"<div>{esc(item.work_order.wo_number)}</div>"
            f"<div>{esc(operator.initials)}</div>"
            "</div>"
            f"<div class=\"qr\"><img src=\"data:image/png;base64,{qr_image}\" alt=\"QR\"></div>"
            "</div></body></html>"
        )

    async def render_label(
        self,
        db: AsyncSession,
        item_id: UUID,
        user: User,
    ) -> str:
        """품목 라벨을 렌더링하고 인쇄 기록을 남깁니다.

        Render the label page, mark the item as label_printed and log
        print_label.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 품목 UUID (Item)
            user: 인쇄하는 사용자 (Printing user, initials go on the label)

        Returns:
            str: 라벨 HTML (Label page)
        """
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")

        page: str = self.render_html(item, user, date.today())
        item.label_printed = True
        await db.flush()
        await activity_repository.log(
            db, user.id, "print_label", "work_order_item", item.id,
            {"serial_number": item.serial_number},
        )
        return page


# 싱글턴 인스턴스 — Singleton instance
label_service: LabelService = LabelService()
