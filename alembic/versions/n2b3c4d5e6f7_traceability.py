"""traceability

Revision ID: n2b3c4d5e6f7
Revises: m1a2b3c4d5e6
Create Date: 2026-10-18 14:00:00.000000

계보 추적 테이블 추가: 하위 조립품 연결, 배치 자재.
Add the genealogy tables: sub-assembly links and scanned material batches.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'n2b3c4d5e6f7'
down_revision: Union[str, None] = 'm1a2b3c4d5e6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'sub_assemblies',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('parent_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('child_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('component_type', sa.String(20), nullable=False),
        sa.Column('linked_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('linked_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('parent_item_id', 'child_item_id', name='uq_sub_assembly_parent_child'),
    )
    op.create_index('ix_sub_assemblies_parent', 'sub_assemblies', ['parent_item_id'])

    op.create_table(
        'batch_materials',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('production_step_id', UUID(as_uuid=True), sa.ForeignKey('production_steps.id', ondelete='SET NULL'), nullable=True),
        sa.Column('material_type', sa.String(50), nullable=False),
        sa.Column('batch_number', sa.String(100), nullable=False),
        sa.Column('opening_date', sa.Date(), nullable=True),
        sa.Column('scanned_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('scanned_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_batch_materials_item', 'batch_materials', ['work_order_item_id'])
    op.create_index('ix_batch_materials_material_type', 'batch_materials', ['material_type'])


def downgrade() -> None:
    op.drop_table('batch_materials')
    op.drop_table('sub_assemblies')
