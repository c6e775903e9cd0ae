"""initial schema

Revision ID: 3f1c2a9b7d01
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d01'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _uuid_pk():
    return sa.Column('id', sa.String(36), primary_key=True)


def _creator(ondelete='SET NULL', nullable=True):
    return sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete=ondelete),
                     nullable=nullable, index=True)


def _link(name, left, left_table, right, right_table):
    op.create_table(
        name,
        sa.Column(left, sa.String(36), sa.ForeignKey(f'{left_table}.id', ondelete='CASCADE'), primary_key=True),
        sa.Column(right, sa.String(36), sa.ForeignKey(f'{right_table}.id', ondelete='CASCADE'), primary_key=True),
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('username', sa.String(255), unique=True, index=True, nullable=True),
        sa.Column('email', sa.String(255), unique=True, index=True, nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'access_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('token', sa.String(512), unique=True, nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'sensors',
        _uuid_pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('category', sa.String(255), nullable=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_custom', sa.Boolean(), default=False),
        _creator(),
        *_timestamps(),
    )
    op.create_table(
        'domains',
        _uuid_pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_custom', sa.Boolean(), default=False),
        _creator(),
        *_timestamps(),
    )
    op.create_table(
        'tasks',
        _uuid_pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('time', sa.Integer(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('additional_notes', sa.Text(), nullable=True),
        sa.Column('enabled', sa.Boolean(), default=True, index=True),
        sa.Column('type', sa.String(16), default='task', index=True),
        sa.Column('is_custom', sa.Boolean(), default=False),
        _creator(),
        *_timestamps(),
    )
    _link('task_sensors', 'task_id', 'tasks', 'sensor_id', 'sensors')
    _link('task_domains', 'task_id', 'tasks', 'domain_id', 'domains')

    op.create_table(
        'protocols',
        _uuid_pk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_template', sa.Boolean(), default=False, index=True),
        sa.Column('template_protocol_id', sa.String(36), sa.ForeignKey('protocols.id', ondelete='SET NULL'),
                  nullable=True),
        _creator(ondelete='CASCADE', nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('created_by', 'name', name='uq_protocol_name_per_user'),
    )
    op.create_table(
        'protocol_tasks',
        _uuid_pk(),
        sa.Column('protocol_id', sa.String(36), sa.ForeignKey('protocols.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('task_id', sa.String(36), sa.ForeignKey('tasks.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('importance_rating', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('override_title', sa.String(255), nullable=True),
        sa.Column('override_time', sa.Integer(), nullable=True),
        sa.Column('override_description', sa.Text(), nullable=True),
        sa.Column('override_additional_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('protocol_id', 'task_id', name='uq_protocol_task'),
        sa.UniqueConstraint('protocol_id', 'order_index', name='uq_protocol_task_order'),
    )
    _link('protocol_task_sensors', 'protocol_task_id', 'protocol_tasks', 'sensor_id', 'sensors')
    _link('protocol_task_domains', 'protocol_task_id', 'protocol_tasks', 'domain_id', 'domains')

    op.create_table(
        'sections',
        _uuid_pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('enabled', sa.Boolean(), default=True),
        sa.Column('is_public', sa.Boolean(), default=False),
        _creator(),
        *_timestamps(),
    )
    op.create_table(
        'subsections',
        _uuid_pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('time', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('additional_notes', sa.Text(), nullable=True),
        sa.Column('enabled', sa.Boolean(), default=True),
        sa.Column('type', sa.String(16), default='subsection'),
        sa.Column('is_public', sa.Boolean(), default=False),
        _creator(),
        *_timestamps(),
    )
    _link('subsection_sensors', 'subsection_id', 'subsections', 'sensor_id', 'sensors')

    op.create_table(
        'section_subsections',
        _uuid_pk(),
        sa.Column('section_id', sa.String(36), sa.ForeignKey('sections.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('subsection_id', sa.String(36), sa.ForeignKey('subsections.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.UniqueConstraint('section_id', 'subsection_id', name='uq_section_subsection'),
        sa.UniqueConstraint('section_id', 'order_index', name='uq_section_subsection_order'),
    )
    _link('section_subsection_sensors', 'section_subsection_id', 'section_subsections', 'sensor_id', 'sensors')

    op.create_table(
        'protocol_sections',
        _uuid_pk(),
        sa.Column('protocol_id', sa.String(36), sa.ForeignKey('protocols.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('section_id', sa.String(36), sa.ForeignKey('sections.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.UniqueConstraint('protocol_id', 'section_id', name='uq_protocol_section'),
        sa.UniqueConstraint('protocol_id', 'order_index', name='uq_protocol_section_order'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'protocol_sections',
        'section_subsection_sensors',
        'section_subsections',
        'subsection_sensors',
        'subsections',
        'sections',
        'protocol_task_domains',
        'protocol_task_sensors',
        'protocol_tasks',
        'protocols',
        'task_domains',
        'task_sensors',
        'tasks',
        'domains',
        'sensors',
        'access_tokens',
        'users',
    ):
        op.drop_table(table)
