"""Initial schema: stock, accounts, sessions, condominium finance

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

Creates:
1. products, people, output_logs (stock tool)
2. users, session_tokens (shared login)
3. residents, payments, expenses (condominium tool)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. STOCK
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('serial_number', sa.String(length=128), nullable=True),
        sa.Column('mac_address', sa.String(length=64), nullable=True),
        sa.Column('asset_tag', sa.String(length=128), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_name', ['name'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_serial_number'), ['serial_number'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_asset_tag'), ['asset_tag'], unique=False)

    op.create_table('people',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('output_logs',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('person_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('person_name', sa.String(length=255), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_output_logs_quantity_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('output_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_output_logs_product_id'), ['product_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_output_logs_person_id'), ['person_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_output_logs_timestamp'), ['timestamp'], unique=False)

    # ==========================================================================
    # 2. ACCOUNTS AND SESSIONS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='staff'),
        sa.Column('apartment_number', sa.Integer(), nullable=True),
        sa.Column('password', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)

    # ==========================================================================
    # 3. CONDOMINIUM FINANCE
    # ==========================================================================
    op.create_table('residents',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('owner_name', sa.String(length=255), nullable=False),
        sa.Column('tenant_name', sa.String(length=255), nullable=True),
        sa.Column('apartment_number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('residents', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_residents_apartment_number'), ['apartment_number'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('apartment_number', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.CheckConstraint('amount >= 0', name='ck_payments_amount_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payments_apartment_number'), ['apartment_number'], unique=False)
        batch_op.create_index('ix_payments_period', ['year', 'month'], unique=False)

    op.create_table('expenses',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.CheckConstraint('amount >= 0', name='ck_expenses_amount_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_expenses_date'), ['date'], unique=False)


def downgrade():
    with op.batch_alter_table('expenses', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_expenses_date'))
    op.drop_table('expenses')

    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.drop_index('ix_payments_period')
        batch_op.drop_index(batch_op.f('ix_payments_apartment_number'))
    op.drop_table('payments')

    with op.batch_alter_table('residents', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_residents_apartment_number'))
    op.drop_table('residents')

    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_session_tokens_token_hash'))
        batch_op.drop_index(batch_op.f('ix_session_tokens_user_id'))
    op.drop_table('session_tokens')

    op.drop_table('users')

    with op.batch_alter_table('output_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_output_logs_timestamp'))
        batch_op.drop_index(batch_op.f('ix_output_logs_person_id'))
        batch_op.drop_index(batch_op.f('ix_output_logs_product_id'))
    op.drop_table('output_logs')

    op.drop_table('people')

    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_products_asset_tag'))
        batch_op.drop_index(batch_op.f('ix_products_serial_number'))
        batch_op.drop_index('ix_products_name')
    op.drop_table('products')
