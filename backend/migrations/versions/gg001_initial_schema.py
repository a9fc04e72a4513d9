"""initial schema

Revision ID: gg001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the GiftGrab schema:
- persons: imported participants
- events: organizer setup plus applicant/approver/gift association tables
- orders: PENDING -> COMPLETE, with the reconciliation flag
- gifts: one per applicant, claim fields guarded by ck_gifts_claim_pair
- order_gifts: ordered lines with per-gift claim outcome
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'gg001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # persons: participants, immutable after import
    # ============================================================================
    op.create_table(
        'persons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', sa.String(length=64), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=True),
        sa.Column('last_name', sa.String(length=120), nullable=True),
        sa.Column('employee_id', sa.String(length=64), nullable=True),
        sa.Column('person_id', sa.String(length=64), nullable=True),
        sa.Column('source_format', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_persons_employee_id', 'persons', ['employee_id'])
    op.create_index('ix_persons_person_id', 'persons', ['person_id'])

    # ============================================================================
    # events: organizer setup
    # ============================================================================
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', sa.String(length=64), nullable=False),
        sa.Column('event_id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('event_qr_code_base64', sa.Text(), nullable=True),
        sa.Column('owner_qr_code_base64', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_id'),
        sa.UniqueConstraint('event_id'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # orders: PENDING until an approver (never the applicant) confirms
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', sa.String(length=64), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('confirmation_code', sa.String(length=255), nullable=False),
        sa.Column('applicant_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('confirmed_by_id', sa.Integer(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reconciliation_required', sa.Boolean(), nullable=False,
                  server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['applicant_id'], ['persons.id']),
        sa.ForeignKeyConstraint(['confirmed_by_id'], ['persons.id']),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_id'),
        sa.UniqueConstraint('order_id', name='uq_orders_order_id'),
        sa.CheckConstraint(
            "(status = 'PENDING' AND confirmed_by_id IS NULL AND confirmed_at IS NULL) OR "
            "(status = 'COMPLETE' AND confirmed_by_id IS NOT NULL AND confirmed_at IS NOT NULL)",
            name='ck_orders_confirmation_state'
        ),
        sa.CheckConstraint(
            'confirmed_by_id IS NULL OR confirmed_by_id != applicant_id',
            name='ck_orders_no_self_approval'
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'])
    op.create_index('ix_orders_applicant_id', 'orders', ['applicant_id'])
    op.create_index('ix_orders_event_id', 'orders', ['event_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_reconciliation_required', 'orders', ['reconciliation_required'])

    # ============================================================================
    # gifts: applicant_id and order_id are set together or not at all
    # ============================================================================
    op.create_table(
        'gifts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('applicant_id', sa.Integer(), nullable=True),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['owner_id'], ['persons.id']),
        sa.ForeignKeyConstraint(['applicant_id'], ['persons.id']),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_id'),
        sa.CheckConstraint(
            '(applicant_id IS NULL AND order_id IS NULL) OR '
            '(applicant_id IS NOT NULL AND order_id IS NOT NULL)',
            name='ck_gifts_claim_pair'
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_gifts_owner_id', 'gifts', ['owner_id'])
    op.create_index('ix_gifts_applicant_id', 'gifts', ['applicant_id'])
    op.create_index('ix_gifts_order_id', 'gifts', ['order_id'])
    op.create_index('ix_gifts_owner_applicant', 'gifts', ['owner_id', 'applicant_id'])

    # ============================================================================
    # order_gifts: ordered bundle lines with claim outcome
    # ============================================================================
    op.create_table(
        'order_gifts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('gift_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('claim_status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('claim_error', sa.String(length=255), nullable=True),
        sa.Column('claim_attempted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['gift_id'], ['gifts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'gift_id', name='uq_order_gifts_order_gift'),
        sa.UniqueConstraint('order_id', 'position', name='uq_order_gifts_order_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_gifts_order_id', 'order_gifts', ['order_id'])
    op.create_index('ix_order_gifts_gift_id', 'order_gifts', ['gift_id'])

    # ============================================================================
    # event association tables
    # ============================================================================
    op.create_table(
        'event_applicants',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.ForeignKeyConstraint(['person_id'], ['persons.id']),
        sa.PrimaryKeyConstraint('event_id', 'person_id')
    )
    op.create_table(
        'event_approvers',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.ForeignKeyConstraint(['person_id'], ['persons.id']),
        sa.PrimaryKeyConstraint('event_id', 'person_id')
    )
    op.create_table(
        'event_gifts',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('gift_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id']),
        sa.ForeignKeyConstraint(['gift_id'], ['gifts.id']),
        sa.PrimaryKeyConstraint('event_id', 'gift_id')
    )


def downgrade():
    op.drop_table('event_gifts')
    op.drop_table('event_approvers')
    op.drop_table('event_applicants')
    op.drop_index('ix_order_gifts_gift_id', table_name='order_gifts')
    op.drop_index('ix_order_gifts_order_id', table_name='order_gifts')
    op.drop_table('order_gifts')
    op.drop_index('ix_gifts_owner_applicant', table_name='gifts')
    op.drop_index('ix_gifts_order_id', table_name='gifts')
    op.drop_index('ix_gifts_applicant_id', table_name='gifts')
    op.drop_index('ix_gifts_owner_id', table_name='gifts')
    op.drop_table('gifts')
    op.drop_index('ix_orders_reconciliation_required', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_event_id', table_name='orders')
    op.drop_index('ix_orders_applicant_id', table_name='orders')
    op.drop_index('ix_orders_order_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('events')
    op.drop_index('ix_persons_person_id', table_name='persons')
    op.drop_index('ix_persons_employee_id', table_name='persons')
    op.drop_table('persons')
