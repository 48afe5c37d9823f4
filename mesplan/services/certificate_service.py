"""품질 인증서 서비스 — 완료된 품목의 인증서 생성/조회.

Certificate Service — Builds a quality certificate for a completed item
from its step executions, renders it as printable HTML and stores the
document through the storage service.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.production import StepExecution, WorkOrderItem
from mesplan.models.quality import QualityCertificate
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import activity_repository, certificate_repository
from mesplan.repositories.execution_repository import execution_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.services.storage_service import storage_service
from mesplan.services.traceability_service import traceability_service
from mesplan.utils.dates import as_utc
from mesplan.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

_MIN: datetime = datetime.min.replace(tzinfo=timezone.utc)


def _esc(value: Any) -> str:
    return html.escape("" if value is None else str(value))


class CertificateService:
    """품질 인증서 서비스."""

    def build_response(
        self,
        certificate: QualityCertificate,
        serial_number: str | None = None,
    ) -> dict[str, Any]:
        """인증서 응답 딕셔너리 — CertificateResponse-shaped dict."""
        return {
            "id": str(certificate.id),
            "work_order_item_id": str(certificate.work_order_item_id),
            "serial_number": serial_number or certificate.certificate_data.get("serial_number"),
            "certificate_data": certificate.certificate_data,
            "document_url": certificate.document_url,
            "generated_by": str(certificate.generated_by) if certificate.generated_by else None,
            "generated_at": certificate.generated_at,
        }

    def build_certificate_data(
        self,
        item: WorkOrderItem,
        executions: Sequence[StepExecution],
        generated_by: User,
        trace: dict[str, list[dict[str, Any]]] | None = None,
    ) -> dict[str, Any]:
        """인증서 데이터 스냅샷.

        Snapshot of the item, its work order, the completed step
        executions in completion order, and the linked sub-assemblies and
        material batches from `trace`.
        """
        completed: list[StepExecution] = sorted(
            (e for e in executions if e.status == "completed"),
            key=lambda e: as_utc(e.completed_at) if e.completed_at else _MIN,
        )
        measurements: list[dict[str, Any]] = []
        for execution in completed:
            step = execution.production_step
            measurements.append({
                "step_number": step.step_number if step else None,
                "title": step.title_en if step else None,
                "values": execution.measurement_values or {},
                "validation_status": execution.validation_status,
                "operator": execution.executor.initials if execution.executor else None,
                "completed_at": as_utc(execution.completed_at).isoformat() if execution.completed_at else None,
            })
        work_order = item.work_order
        return {
            "serial_number": item.serial_number,
            "product_type": item.product_type,
            "wo_number": work_order.wo_number,
            "customer_name": work_order.customer_name,
            "external_order_number": work_order.external_order_number,
            "completed_at": as_utc(item.completed_at).isoformat() if item.completed_at else None,
            "generated_by": generated_by.full_name,
            "measurements": measurements,
            "sub_assemblies": (trace or {}).get("sub_assemblies", []),
            "batch_materials": (trace or {}).get("batch_materials", []),
        }

    def render_html(self, data: dict[str, Any]) -> str:
        """인증서 HTML 렌더링 — Printable certificate document."""
        rows: list[str] = []
        for m in data.get("measurements", []):
            values: str = ", ".join(f"{_esc(k)}: {_esc(v)}" for k, v in m["values"].items()) or "-"
            rows.append(
                "<tr>"
                f"<td>{_esc(m['step_number'])}</td><td>{_esc(m['title'])}</td>"
                f"<td>{values}</td><td>{_esc(m['validation_status'])}</td>"
                f"<td>{_esc(m['operator'])}</td><td>{_esc(m['completed_at'])}</td>"
                "</tr>"
            )
        # 구성품과 자재 배치 — Components and material batches, when recorded
        trace_parts: list[str] = []
        components: list[dict[str, Any]] = data.get("sub_assemblies") or []
        if components:
            trace_parts.append(
                "<h2>Components</h2><ul>"
                + "".join(
                    f"<li>{_esc(c['component_type'])}: {_esc(c['child_serial_number'])}</li>"
                    for c in components
                )
                + "</ul>"
            )
        batches: list[dict[str, Any]] = data.get("batch_materials") or []
        if batches:
            trace_parts.append(
                "<h2>Materials</h2><ul>"
                + "".join(
                    f"<li>{_esc(b['material_type'])}: {_esc(b['batch_number'])}"
                    + (f" (opened {_esc(b['opening_date'])})" if b.get("opening_date") else "")
                    + "</li>"
                    for b in batches
                )
                + "</ul>"
            )
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>Certificate {_esc(data['serial_number'])}</title>"
            "<style>body{font-family:Arial,sans-serif;margin:2em}"
            "table{border-collapse:collapse;width:100%}"
            "td,th{border:1px solid #999;padding:4px 8px;text-align:left}</style>"
            "</head><body>"
            "<h1>Quality Certificate</h1>"
            f"<p><strong>Serial:</strong> {_esc(data['serial_number'])}<br>"
            f"<strong>Product:</strong> {_esc(data['product_type'])}<br>"
            f"<strong>Work order:</strong> {_esc(data['wo_number'])}<br>"
            f"<strong>Customer:</strong> {_esc(data.get('customer_name') or '-')}<br>"
            f"<strong>Completed:</strong> {_esc(data.get('completed_at') or '-')}</p>"
            "<table><thead><tr><th>Step</th><th>Title</th><th>Measurements</th>"
            "<th>Validation</th><th>Operator</th><th>Completed</th></tr></thead>"
            f"<tbody>{''.join(rows)}</tbody></table>"
            f"{''.join(trace_parts)}"
            f"<p>Generated by {_esc(data.get('generated_by'))}</p>"
            "</body></html>"
        )

    async def generate_certificate(
        self,
        db: AsyncSession,
        item_id: UUID,
        user: User,
    ) -> QualityCertificate:
        """완료된 품목의 품질 인증서를 생성합니다.

        Generate the certificate of a completed item. An existing
        certificate is returned unchanged.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            item_id: 품목 UUID (Item)
            user: 생성자 (Generating user)

        Returns:
            QualityCertificate: 인증서 (Certificate)

        Raises:
            NotFoundError: 품목 없음 (Item not found)
            BadRequestError: 미완료 품목 (Item not completed)
        """
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")

        existing: QualityCertificate | None = await certificate_repository.get_for_item(db, item.id)
        if existing is not None:
            return existing
        if item.status != "completed":
            raise BadRequestError("Item is not completed")

        executions: list[StepExecution] = await execution_repository.list_for_item(db, item.id)
        trace: dict[str, list[dict[str, Any]]] = await traceability_service.trace(db, item.id)
        data: dict[str, Any] = self.build_certificate_data(item, executions, user, trace)
        document: bytes = self.render_html(data).encode("utf-8")
        document_url: str = storage_service.put_document(
            f"certificates/{item.serial_number}.html", document, "text/html"
        )

        certificate: QualityCertificate = await certificate_repository.create(
            db,
            {
                "work_order_item_id": item.id,
                "certificate_data": data,
                "document_url": document_url,
                "generated_by": user.id,
            },
        )
        item.certificate_generated = True
        item.quality_approved = all(
            m["validation_status"] != "failed" for m in data["measurements"]
        )
        await db.flush()
        await activity_repository.log(
            db, user.id, "generate_certificate", "work_order_item", item.id,
            {"serial_number": item.serial_number},
        )
        logger.info("Certificate generated for %s", item.serial_number)
        return certificate

    async def list_certificates(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[QualityCertificate], int]:
        """인증서 목록 — Certificates, newest first."""
        return await certificate_repository.get_paginated_list(db, page, per_page)

    async def get_certificate(self, db: AsyncSession, certificate_id: UUID) -> QualityCertificate:
        """인증서 조회 — Certificate or 404."""
        certificate: QualityCertificate | None = await certificate_repository.get_by_id(db, certificate_id)
        if certificate is None:
            raise NotFoundError("Certificate not found")
        return certificate

    async def get_certificate_document(self, db: AsyncSession, certificate_id: UUID) -> str:
        """인증서 HTML 문서 — Re-rendered from the stored snapshot."""
        certificate: QualityCertificate = await self.get_certificate(db, certificate_id)
        return self.render_html(certificate.certificate_data)


# 싱글턴 인스턴스 — Singleton instance
certificate_service: CertificateService = CertificateService()
