"""initial_mes_schema

Revision ID: m1a2b3c4d5e6
Revises:
Create Date: 2026-10-18 09:00:00.000000

생산 계획 스키마 생성: 사용자/팀, 세션 상태, 가용성, 작업 지시, 공정, 배정, 품질, 알림.
Create the planning schema: users/teams, session state, availability, work
orders, steps, assignments, quality and notifications.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 'm1a2b3c4d5e6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # roles / users / teams — 사용자와 작업자 풀
    op.create_table(
        'roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('level', sa.Integer(), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('avatar_url', sa.String(1000), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('daily_capacity_hours', sa.Numeric(4, 2), server_default='8.0'),
        sa.Column('is_available', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('language', sa.String(5), server_default='en', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'teams',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'team_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_lead', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_member'),
    )

    # user_sessions — 절대 만료가 있는 로그인 세션 (Login sessions with absolute expiry)
    op.create_table(
        'user_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('refresh_token', sa.String(1024), nullable=True, unique=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_user_sessions_user', 'user_sessions', ['user_id'])
    op.create_table(
        'session_view_states',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('session_id', UUID(as_uuid=True), sa.ForeignKey('user_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', JSONB(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('session_id', 'key', name='uq_session_view_state_key'),
    )
    op.create_table(
        'recent_searches',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scope', sa.String(20), nullable=False),
        sa.Column('term', sa.String(200), nullable=False),
        sa.Column('searched_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'scope', 'term', name='uq_recent_search_term'),
    )
    op.create_table(
        'user_preferences',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('last_route', sa.String(500), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # operator_availability — 작업자+일자당 한 행 (One row per operator per date)
    op.create_table(
        'operator_availability',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('available_hours', sa.Numeric(4, 2), server_default='0', nullable=False),
        sa.Column('reason_type', sa.String(20), server_default='holiday', nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'date', name='uq_operator_availability_user_date'),
    )
    op.create_index('ix_operator_availability_date', 'operator_availability', ['date'])

    # work_orders / work_order_items — 생산 배치와 시리얼 품목
    op.create_table(
        'work_orders',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('wo_number', sa.String(50), nullable=False, unique=True),
        sa.Column('product_type', sa.String(20), nullable=False),
        sa.Column('batch_size', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), server_default='planned', nullable=False),
        sa.Column('priority', sa.Integer(), server_default='3', nullable=False),
        sa.Column('estimated_hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('external_order_number', sa.String(100), nullable=True),
        sa.Column('order_value', sa.Numeric(10, 2), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('shipping_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('parent_wo_id', UUID(as_uuid=True), sa.ForeignKey('work_orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('batch_size > 0', name='ck_work_orders_batch_size_positive'),
    )
    op.create_index('ix_work_orders_start_date', 'work_orders', ['start_date'])
    op.create_index('ix_work_orders_shipping_date', 'work_orders', ['shipping_date'])
    op.create_index('ix_work_orders_status', 'work_orders', ['status'])
    op.create_table(
        'work_order_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_id', UUID(as_uuid=True), sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('serial_number', sa.String(50), nullable=False, unique=True),
        sa.Column('position_in_batch', sa.Integer(), nullable=False),
        sa.Column('product_type', sa.String(20), nullable=False),
        sa.Column('current_step', sa.Integer(), server_default='1', nullable=False),
        sa.Column('status', sa.String(20), server_default='planned', nullable=False),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('label_printed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('quality_approved', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('certificate_generated', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_work_order_items_work_order', 'work_order_items', ['work_order_id'])

    # production_steps / step_executions — 공정 단계와 실행 기록
    op.create_table(
        'production_steps',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('product_type', sa.String(20), nullable=False),
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('title_en', sa.String(255), nullable=False),
        sa.Column('title_nl', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requires_value_input', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('measurement_fields', JSONB(), nullable=True),
        sa.Column('estimated_minutes', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('product_type', 'step_number', name='uq_production_step_product_number'),
    )
    op.create_table(
        'step_executions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('production_step_id', UUID(as_uuid=True), sa.ForeignKey('production_steps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('executed_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('measurement_values', JSONB(), nullable=True),
        sa.Column('validation_status', sa.String(20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('work_order_item_id', 'production_step_id', name='uq_step_execution_item_step'),
    )

    # step_assignments / operator_assignments — 배정 편집기와 일자별 용량 행
    op.create_table(
        'step_assignments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_id', UUID(as_uuid=True), sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('work_order_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('production_step_id', UUID(as_uuid=True), sa.ForeignKey('production_steps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('operator_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('work_order_item_id', 'production_step_id', name='uq_step_assignment_item_step'),
    )
    op.create_index('ix_step_assignments_work_order', 'step_assignments', ['work_order_id'])
    op.create_table(
        'operator_assignments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_id', UUID(as_uuid=True), sa.ForeignKey('work_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('operator_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_date', sa.Date(), nullable=False),
        sa.Column('planned_hours', sa.Numeric(5, 2), server_default='8.0', nullable=False),
        sa.Column('actual_hours', sa.Numeric(5, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('assigned_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('work_order_id', 'operator_id', 'assigned_date', name='uq_operator_assignment_wo_op_date'),
    )
    op.create_index('ix_operator_assignments_date', 'operator_assignments', ['assigned_date'])
    op.create_index('ix_operator_assignments_operator_date', 'operator_assignments', ['operator_id', 'assigned_date'])

    # quality_certificates / activity_logs / notifications
    op.create_table(
        'quality_certificates',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('work_order_item_id', UUID(as_uuid=True), sa.ForeignKey('work_order_items.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('certificate_data', JSONB(), nullable=False),
        sa.Column('document_url', sa.String(1000), nullable=True),
        sa.Column('generated_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('generated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'activity_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=True),
        sa.Column('details', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_activity_logs_entity', 'activity_logs', ['entity_type', 'entity_id'])
    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.String(1000), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=True),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'])


def downgrade() -> None:
    # 역순으로 삭제 (인덱스, 제약은 테이블과 함께 삭제됨)
    # Drop in reverse dependency order (indexes and constraints go with the tables)
    for table in (
        'notifications',
        'activity_logs',
        'quality_certificates',
        'operator_assignments',
        'step_assignments',
        'step_executions',
        'production_steps',
        'work_order_items',
        'work_orders',
        'operator_availability',
        'user_preferences',
        'recent_searches',
        'session_view_states',
        'user_sessions',
        'team_members',
        'teams',
        'users',
        'roles',
    ):
        op.drop_table(table)
