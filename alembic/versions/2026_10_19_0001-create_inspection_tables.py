"""Create inspection tables: sampling_reasons, defects, parts, inspectiondata, defectdata

Revision ID: 5c1e0a7d2b41
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e0a7d2b41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('created_by', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_by', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('sampling_reasons'):
        op.create_table(
            'sampling_reasons',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            *_audit_columns(),
            sa.UniqueConstraint('name', name='uq_sampling_reasons_name'),
        )

    if not inspector.has_table('defects'):
        op.create_table(
            'defects',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            *_audit_columns(),
            sa.UniqueConstraint('name', name='uq_defects_name'),
        )

    if not inspector.has_table('parts'):
        op.create_table(
            'parts',
            sa.Column('part_no', sa.String(30), primary_key=True, comment='Item number'),
            sa.Column('product_family', sa.String(100), nullable=True),
            sa.Column('version', sa.String(100), nullable=True),
            sa.Column('production_site', sa.String(10), nullable=True),
            sa.Column('part_site', sa.String(10), nullable=True),
            sa.Column('customer', sa.String(100), nullable=True),
            sa.Column('product_type', sa.String(50), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            *_audit_columns(),
        )

    if not inspector.has_table('inspectiondata'):
        op.create_table(
            'inspectiondata',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('station', sa.String(3), nullable=False),
            sa.Column('inspection_no', sa.String(20), nullable=False),
            sa.Column('inspection_no_ref', sa.String(20), nullable=True),
            sa.Column('inspection_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column('fy', sa.String(4), nullable=False),
            sa.Column('ww', sa.String(2), nullable=False),
            sa.Column('month_year', sa.String(20), nullable=False),
            sa.Column('shift', sa.String(1), nullable=True),
            sa.Column('lot_no', sa.String(30), nullable=False),
            sa.Column('part_site', sa.String(10), nullable=True),
            sa.Column('item_no', sa.String(30), nullable=True),
            sa.Column('model', sa.String(100), nullable=True),
            sa.Column('version', sa.String(100), nullable=True),
            sa.Column('fvi_line_no', sa.String(5), nullable=True),
            sa.Column('mc_line_no', sa.String(5), nullable=True),
            sa.Column('round', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('qc_id', sa.Integer(), nullable=True),
            sa.Column('fvi_lot_qty', sa.Integer(), nullable=True),
            sa.Column('general_sampling_qty', sa.Integer(), nullable=True),
            sa.Column('crack_sampling_qty', sa.Integer(), nullable=True),
            sa.Column('sampling_reason_id', sa.Integer(), nullable=True),
            sa.Column('judgment', sa.Boolean(), nullable=True),
            *_audit_columns(),
            sa.ForeignKeyConstraint(['sampling_reason_id'], ['sampling_reasons.id'], ondelete='SET NULL'),
            sa.UniqueConstraint('inspection_no', name='uq_inspectiondata_inspection_no'),
            sa.UniqueConstraint('station', 'lot_no', 'round', name='uq_inspectiondata_station_lot_round'),
        )
        op.create_index('ix_inspectiondata_station_lot', 'inspectiondata', ['station', 'lot_no'])
        op.create_index('ix_inspectiondata_fy_ww', 'inspectiondata', ['fy', 'ww'])

    if not inspector.has_table('defectdata'):
        op.create_table(
            'defectdata',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('inspection_no', sa.String(20), nullable=False),
            sa.Column('defect_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column('station', sa.String(3), nullable=True),
            sa.Column('inspector', sa.String(50), nullable=True),
            sa.Column('qc_name', sa.String(50), nullable=True),
            sa.Column('defect_id', sa.Integer(), nullable=False),
            sa.Column('ng_qty', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('tray_no', sa.String(20), nullable=True),
            sa.Column('tray_position', sa.String(20), nullable=True),
            sa.Column('color', sa.String(30), nullable=True),
            sa.Column('defect_detail', sa.Text(), nullable=True),
            *_audit_columns(),
            sa.ForeignKeyConstraint(['defect_id'], ['defects.id'], ondelete='RESTRICT'),
        )
        op.create_index('ix_defectdata_inspection_no', 'defectdata', ['inspection_no'])


def downgrade() -> None:
    op.drop_index('ix_defectdata_inspection_no', table_name='defectdata')
    op.drop_table('defectdata')
    op.drop_index('ix_inspectiondata_fy_ww', table_name='inspectiondata')
    op.drop_index('ix_inspectiondata_station_lot', table_name='inspectiondata')
    op.drop_table('inspectiondata')
    op.drop_table('parts')
    op.drop_table('defects')
    op.drop_table('sampling_reasons')
