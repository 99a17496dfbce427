"""create accounts, offers and payments tables

Revision ID: create_offer_tables_001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = 'create_offer_tables_001'
down_revision = None
branch_labels = None
depends_on = None

JSON_DOC = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade():
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if 'accounts' not in existing_tables:
        op.create_table(
            'accounts',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('email', sa.String(255), nullable=False),
            sa.Column('username', sa.String(100), nullable=False),
            sa.Column('avatar', JSON_DOC, nullable=True),
            sa.Column('salt', sa.String(64), nullable=False),
            sa.Column('hash', sa.String(128), nullable=False),
            sa.Column('token', sa.String(64), nullable=False),
            sa.Column('newsletter', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)
        op.create_index('ix_accounts_token', 'accounts', ['token'], unique=True)

    if 'offers' not in existing_tables:
        op.create_table(
            'offers',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('owner_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
            sa.Column('product_name', sa.String(50), nullable=False),
            sa.Column('product_description', sa.Text(), nullable=False),
            sa.Column('product_price', sa.Numeric(10, 2), nullable=False),
            sa.Column('product_details', JSON_DOC, nullable=False),
            sa.Column('product_image', JSON_DOC, nullable=False),
            sa.Column('product_pictures', JSON_DOC, nullable=False),
            sa.Column('is_purchased', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index('ix_offers_owner_id', 'offers', ['owner_id'])
        op.create_index('ix_offers_product_name', 'offers', ['product_name'])
        op.create_index('ix_offers_product_price', 'offers', ['product_price'])

    if 'payments' not in existing_tables:
        op.create_table(
            'payments',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('amount', sa.Numeric(10, 2), nullable=False),
            sa.Column('offer_id', sa.String(36), sa.ForeignKey('offers.id', ondelete='SET NULL')),
            sa.Column('owner_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='SET NULL')),
            sa.Column('buyer_id', sa.String(36), sa.ForeignKey('accounts.id', ondelete='SET NULL')),
            sa.Column('provider_reference', sa.String(255)),
            sa.Column('date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index('ix_payments_offer_id', 'payments', ['offer_id'])
        op.create_index('ix_payments_owner_id', 'payments', ['owner_id'])
        op.create_index('ix_payments_buyer_id', 'payments', ['buyer_id'])


def downgrade():
    op.drop_table('payments')
    op.drop_table('offers')
    op.drop_table('accounts')
