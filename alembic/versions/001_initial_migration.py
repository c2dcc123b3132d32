"""Initial migration - create contract_state, offers, offer_party_index and offer_audit tables

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Single-value entries (offers_count)
    op.create_table(
        'contract_state',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )

    # Create offers table
    op.create_table(
        'offers',
        sa.Column('id', sa.String(length=20), nullable=False),
        sa.Column('holder', sa.String(length=255), nullable=False),
        sa.Column('spender', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.String(length=80), nullable=False),
        sa.Column('asset_id', sa.String(length=255), nullable=False),
        sa.Column('asset_subid', sa.String(length=20), nullable=False),
        sa.Column('status', sa.Enum('SUBMITTED', 'COMPLETED', 'DELETED', name='offer_status'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_offers_holder'), 'offers', ['holder'])
    op.create_index(op.f('ix_offers_spender'), 'offers', ['spender'])
    op.create_index(op.f('ix_offers_status'), 'offers', ['status'])

    # Append-only party index
    op.create_table(
        'offer_party_index',
        sa.Column('seq', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('HOLDER', 'SPENDER', name='party_role'), nullable=False),
        sa.Column('offer_id', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('seq')
    )
    op.create_index('idx_party_index_address_role', 'offer_party_index', ['address', 'role', 'seq'])

    # Create offer_audit table
    op.create_table(
        'offer_audit',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('offer_id', sa.String(length=20), nullable=False),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('ts', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payload_json', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_audit_offer_ts', 'offer_audit', ['offer_id', 'ts'])
    op.create_index(op.f('ix_offer_audit_offer_id'), 'offer_audit', ['offer_id'])


def downgrade() -> None:
    op.drop_index(op.f('ix_offer_audit_offer_id'), table_name='offer_audit')
    op.drop_index('idx_audit_offer_ts', table_name='offer_audit')
    op.drop_table('offer_audit')

    op.drop_index('idx_party_index_address_role', table_name='offer_party_index')
    op.drop_table('offer_party_index')

    op.drop_index(op.f('ix_offers_status'), table_name='offers')
    op.drop_index(op.f('ix_offers_spender'), table_name='offers')
    op.drop_index(op.f('ix_offers_holder'), table_name='offers')
    op.drop_table('offers')

    op.drop_table('contract_state')

    # Drop enum types
    op.execute("DROP TYPE IF EXISTS party_role")
    op.execute("DROP TYPE IF EXISTS offer_status")
