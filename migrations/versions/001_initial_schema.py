"""Initial schema with all tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Last value handed out; the first issued values are J-1001 and 3001
JOB_SEQUENCE_SEED = 1000
MASTER_SEQUENCE_SEED = 3000

MONEY = sa.Numeric(precision=12, scale=2)
RATE = sa.Numeric(precision=12, scale=4)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    # Create companies table
    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='CUSTOMER'),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_companies_name'), 'companies', ['name'], unique=False)

    # Create vendors table
    op.create_table(
        'vendors',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('vendor_code', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('vendor_code')
    )
    op.create_index(op.f('ix_vendors_name'), 'vendors', ['name'], unique=False)

    # Create global_sequences table
    sequences = op.create_table(
        'global_sequences',
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('current_value', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('name')
    )
    op.bulk_insert(sequences, [
        {'name': 'job-seq', 'current_value': JOB_SEQUENCE_SEED},
        {'name': 'master-seq', 'current_value': MASTER_SEQUENCE_SEED},
    ])

    # Create jobs table
    op.create_table(
        'jobs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('job_no', sa.String(length=20), nullable=False),
        sa.Column('base_job_id', sa.String(length=30), nullable=True),
        sa.Column('master_seq', sa.BigInteger(), nullable=True),
        sa.Column('job_type_code', sa.String(length=10), nullable=True),
        sa.Column('pathway', sa.String(length=2), nullable=True),
        sa.Column('routing_type', sa.String(length=30), nullable=False, server_default='THIRD_PARTY_VENDOR'),
        sa.Column('vendor_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('job_meta_type', sa.String(length=20), nullable=True),
        sa.Column('mail_format', sa.String(length=20), nullable=True),
        sa.Column('envelope_components', sa.Integer(), nullable=True),
        sa.Column('job_type', sa.String(length=30), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('customer_id', sa.String(length=36), nullable=False),
        sa.Column('vendor_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='ACTIVE'),
        sa.Column('source', sa.String(length=20), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sell_price', MONEY, nullable=False, server_default='0'),
        sa.Column('size_name', sa.String(length=50), nullable=True),
        sa.Column('paper_source', sa.String(length=30), nullable=False, server_default='SELF_SUPPLIED'),
        sa.Column('print_cpm', RATE, nullable=True),
        sa.Column('specs', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('customer_po_number', sa.String(length=100), nullable=True),
        sa.Column('partner_po_number', sa.String(length=100), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('mail_date', sa.Date(), nullable=True),
        sa.Column('in_homes_date', sa.Date(), nullable=True),
        sa.Column('external_job_id', sa.String(length=100), nullable=True),
        sa.Column('external_source', sa.String(length=100), nullable=True),
        sa.Column('customer_payment_amount', MONEY, nullable=True),
        sa.Column('customer_payment_date', sa.DateTime(), nullable=True),
        sa.Column('partner_payment_amount', MONEY, nullable=True),
        sa.Column('partner_payment_date', sa.DateTime(), nullable=True),
        sa.Column('notice_generated_at', sa.DateTime(), nullable=True),
        sa.Column('notice_sent_at', sa.DateTime(), nullable=True),
        sa.Column('notice_sent_to', sa.String(length=255), nullable=True),
        sa.Column('notice_last_error', sa.Text(), nullable=True),
        sa.Column('downstream_payment_amount', MONEY, nullable=True),
        sa.Column('downstream_payment_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['companies.id']),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_jobs_job_no'), 'jobs', ['job_no'], unique=True)
    op.create_index(op.f('ix_jobs_base_job_id'), 'jobs', ['base_job_id'], unique=True)
    op.create_index(op.f('ix_jobs_external_job_id'), 'jobs', ['external_job_id'], unique=True)
    op.create_index(op.f('ix_jobs_pathway'), 'jobs', ['pathway'], unique=False)
    op.create_index(op.f('ix_jobs_customer_id'), 'jobs', ['customer_id'], unique=False)
    op.create_index(op.f('ix_jobs_vendor_id'), 'jobs', ['vendor_id'], unique=False)
    op.create_index(op.f('ix_jobs_status'), 'jobs', ['status'], unique=False)
    op.create_index(op.f('ix_jobs_created_at'), 'jobs', ['created_at'], unique=False)

    # Create job_components table
    op.create_table(
        'job_components',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('specs', sa.JSON(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('owner', sa.String(length=20), nullable=True),
        sa.Column('vendor_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_job_components_job_id'), 'job_components', ['job_id'], unique=False)
    op.create_index(op.f('ix_job_components_vendor_id'), 'job_components', ['vendor_id'], unique=False)

    # Create purchase_orders table
    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('po_number', sa.String(length=100), nullable=False),
        sa.Column('origin_company_id', sa.String(length=50), nullable=True),
        sa.Column('target_company_id', sa.String(length=50), nullable=True),
        sa.Column('target_vendor_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('buy_cost', MONEY, nullable=True),
        sa.Column('paper_cost', MONEY, nullable=True),
        sa.Column('paper_markup', MONEY, nullable=True),
        sa.Column('mfg_cost', MONEY, nullable=True),
        sa.Column('print_cpm', RATE, nullable=True),
        sa.Column('paper_cpm', RATE, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_vendor_id'], ['vendors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('po_number')
    )
    op.create_index(op.f('ix_purchase_orders_job_id'), 'purchase_orders', ['job_id'], unique=False)
    op.create_index(
        op.f('ix_purchase_orders_origin_company_id'), 'purchase_orders', ['origin_company_id'], unique=False
    )
    op.create_index(
        op.f('ix_purchase_orders_target_vendor_id'), 'purchase_orders', ['target_vendor_id'], unique=False
    )

    # Create profit_splits table
    op.create_table(
        'profit_splits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('sell_price', MONEY, nullable=False, server_default='0'),
        sa.Column('total_cost', MONEY, nullable=False, server_default='0'),
        sa.Column('paper_cost', MONEY, nullable=False, server_default='0'),
        sa.Column('paper_markup', MONEY, nullable=False, server_default='0'),
        sa.Column('gross_margin', MONEY, nullable=False, server_default='0'),
        sa.Column('partner_share', MONEY, nullable=False, server_default='0'),
        sa.Column('broker_share', MONEY, nullable=False, server_default='0'),
        sa.Column('calculated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id')
    )
    op.create_index(op.f('ix_profit_splits_id'), 'profit_splits', ['id'], unique=False)

    # Create job_activities table
    op.create_table(
        'job_activities',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('field', sa.String(length=100), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.String(length=255), nullable=False, server_default='system'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_job_activities_job_id'), 'job_activities', ['job_id'], unique=False)
    op.create_index(op.f('ix_job_activities_created_at'), 'job_activities', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('job_activities')
    op.drop_table('profit_splits')
    op.drop_table('purchase_orders')
    op.drop_table('job_components')
    op.drop_table('jobs')
    op.drop_table('global_sequences')
    op.drop_table('vendors')
    op.drop_table('companies')
