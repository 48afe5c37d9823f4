"""추적성 서비스 — 하위 조립품 연결과 배치 자재 스캔.

Traceability Service — Builds the genealogy of a serialised unit:
component units linked into it (sub-assemblies) and the material
batches scanned while producing it. Both feed the genealogy lookup and
the quality certificate snapshot.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from mesplan.models.production import ProductionStep, WorkOrderItem
from mesplan.models.traceability import COMPONENT_TYPES, MATERIAL_TYPES, BatchMaterial, SubAssembly
from mesplan.models.user import User
from mesplan.repositories.certificate_repository import activity_repository
from mesplan.repositories.traceability_repository import batch_material_repository, sub_assembly_repository
from mesplan.repositories.work_order_repository import work_order_repository
from mesplan.schemas.execution import BatchScanRequest, SubAssemblyLinkRequest
from mesplan.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)


class TraceabilityService:
    """추적성 서비스."""

    def build_link(self, link: SubAssembly, child_serial: str | None = None) -> dict[str, Any]:
        """연결 응답 딕셔너리 — SubAssemblyResponse-shaped dict."""
        if child_serial is None and link.child_item is not None:
            child_serial = link.child_item.serial_number
        return {
            "id": str(link.id),
            "parent_item_id": str(link.parent_item_id),
            "child_item_id": str(link.child_item_id),
            "child_serial_number": child_serial,
            "component_type": link.component_type,
            "linked_at": link.linked_at,
        }

    def build_batch(self, batch: BatchMaterial) -> dict[str, Any]:
        return {
            "id": str(batch.id),
            "work_order_item_id": str(batch.work_order_item_id),
            "production_step_id": str(batch.production_step_id) if batch.production_step_id else None,
            "material_type": batch.material_type,
            "batch_number": batch.batch_number,
            "opening_date": batch.opening_date,
            "scanned_at": batch.scanned_at,
        }

    async def _get_item(self, db: AsyncSession, item_id: UUID) -> WorkOrderItem:
        item: WorkOrderItem | None = await work_order_repository.get_item(db, item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return item

    # --- 하위 조립품 (Sub-assemblies) ---

    async def list_sub_assemblies(self, db: AsyncSession, item_id: UUID) -> list[SubAssembly]:
        item: WorkOrderItem = await self._get_item(db, item_id)
        return await sub_assembly_repository.list_for_parent(db, item.id)

    async def link_sub_assembly(
        self,
        db: AsyncSession,
        parent_item_id: UUID,
        data: SubAssemblyLinkRequest,
        user: User,
    ) -> dict[str, Any]:
        """스캔한 구성품 시리얼을 상위 품목에 연결합니다.

        Link a scanned component serial into a parent unit. The scanned
        unit must be of the selected component type.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            parent_item_id: 상위 품목 UUID (Parent item)
            data: 구성품 유형과 시리얼 (Component type and scanned serial)
            user: 연결하는 작업자 (Linking operator)

        Returns:
            dict: SubAssemblyResponse-shaped dict

        Raises:
            NotFoundError: 상위 품목 또는 시리얼 없음 (Unknown parent or serial)
            BadRequestError: 잘못된 유형, 유형 불일치, 자기 자신 (Bad type, mismatch, self link)
            DuplicateError: 이미 연결됨 (Already linked)
        """
        parent: WorkOrderItem = await self._get_item(db, parent_item_id)
        if data.component_type not in COMPONENT_TYPES:
            raise BadRequestError(f"component_type must be one of: {', '.join(COMPONENT_TYPES)}")

        serial: str = data.serial_number.strip().upper()
        child: WorkOrderItem | None = await work_order_repository.get_item_by_serial(db, serial)
        if child is None:
            raise NotFoundError(f"Serial {serial} not found")
        if child.id == parent.id:
            raise BadRequestError("An item cannot be linked into itself")
        if child.product_type != data.component_type:
            raise BadRequestError(f"{serial} is a {child.product_type}, not a {data.component_type}")
        if await sub_assembly_repository.get_link(db, parent.id, child.id) is not None:
            raise DuplicateError("This component is already linked")

        link: SubAssembly = await sub_assembly_repository.create(
            db,
            {
                "parent_item_id": parent.id,
                "child_item_id": child.id,
                "component_type": data.component_type,
                "linked_by": user.id,
            },
        )
        await activity_repository.log(
            db, user.id, "link_subassembly", "sub_assembly", link.id,
            {
                "parent_serial": parent.serial_number,
                "child_serial": child.serial_number,
                "component_type": data.component_type,
            },
        )
        logger.info("Linked %s into %s", child.serial_number, parent.serial_number)
        return self.build_link(link, child.serial_number)

    async def unlink_sub_assembly(self, db: AsyncSession, link_id: UUID, user: User) -> None:
        """연결 해제."""
        link: SubAssembly | None = await sub_assembly_repository.get_by_id(db, link_id)
        if link is None:
            raise NotFoundError("Sub-assembly link not found")
        await sub_assembly_repository.delete(db, link.id)
        await activity_repository.log(
            db, user.id, "unlink_subassembly", "sub_assembly", link_id,
            {"parent_item_id": str(link.parent_item_id), "child_item_id": str(link.child_item_id)},
        )

    # --- 배치 자재 (Material batches) ---

    async def list_batches(
        self,
        db: AsyncSession,
        item_id: UUID,
        step_id: UUID | None = None,
    ) -> list[BatchMaterial]:
        item: WorkOrderItem = await self._get_item(db, item_id)
        return await batch_material_repository.list_for_item(db, item.id, step_id)

    async def scan_batch(
        self,
        db: AsyncSession,
        item_id: UUID,
        data: BatchScanRequest,
        user: User,
    ) -> BatchMaterial:
        """자재 배치 스캔을 기록합니다.

        Record a material batch used for an item. Epoxy needs its
        opening date. A given step must belong to the item's product type.

        Raises:
            NotFoundError: 품목 또는 단계 없음 (Unknown item or step)
            BadRequestError: 알 수 없는 자재, 빈 배치 번호, 개봉일 누락
                             (Unknown material, blank batch, missing opening date)
        """
        item: WorkOrderItem = await self._get_item(db, item_id)
        material_type: str = data.material_type.strip().lower()
        if material_type not in MATERIAL_TYPES:
            raise BadRequestError(f"Unknown material type: {data.material_type}")
        batch_number: str = data.batch_number.strip()
        if not batch_number:
            raise BadRequestError("Batch number must not be empty")
        if MATERIAL_TYPES[material_type] and data.opening_date is None:
            raise BadRequestError(f"Opening date is required for {material_type}")

        if data.production_step_id is not None:
            step: ProductionStep | None = await work_order_repository.get_step(db, data.production_step_id)
            if step is None or step.product_type != item.product_type:
                raise NotFoundError("Production step not found for this item")

        batch: BatchMaterial = await batch_material_repository.create(
            db,
            {
                "work_order_item_id": item.id,
                "production_step_id": data.production_step_id,
                "material_type": material_type,
                "batch_number": batch_number,
                "opening_date": data.opening_date,
                "scanned_by": user.id,
            },
        )
        await activity_repository.log(
            db, user.id, "scan_batch", "batch_material", batch.id,
            {"material_type": material_type, "batch_number": batch_number, "serial_number": item.serial_number},
        )
        return batch

    async def remove_batch(self, db: AsyncSession, batch_id: UUID) -> None:
        if not await batch_material_repository.delete(db, batch_id):
            raise NotFoundError("Batch material not found")

    # --- 계보 스냅샷 (Genealogy snapshot) ---

    async def trace(self, db: AsyncSession, item_id: UUID) -> dict[str, list[dict[str, Any]]]:
        """품목의 하위 조립품과 자재 배치 — Used by genealogy and certificates.

        Dates are ISO strings so the result can be stored as JSON.
        """
        links: list[SubAssembly] = await sub_assembly_repository.list_for_parent(db, item_id)
        batches: list[BatchMaterial] = await batch_material_repository.list_for_item(db, item_id)
        return {
            "sub_assemblies": [
                {
                    "component_type": link.component_type,
                    "child_serial_number": link.child_item.serial_number if link.child_item else None,
                    "linked_at": link.linked_at.isoformat() if link.linked_at else None,
                }
                for link in links
            ],
            "batch_materials": [
                {
                    "material_type": batch.material_type,
                    "batch_number": batch.batch_number,
                    "opening_date": batch.opening_date.isoformat() if batch.opening_date else None,
                    "scanned_at": batch.scanned_at.isoformat() if batch.scanned_at else None,
                }
                for batch in batches
            ],
        }


# 싱글턴 인스턴스 — Singleton instance
traceability_service: TraceabilityService = TraceabilityService()
