"""create licenses, clients and client_sessions

Revision ID: 20261019_120000
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = '20261019_120000'
down_revision = None
branch_labels = None
depends_on = None

LIVE_BINDING_PREDICATE = sa.text("status IN ('active', 'pending')")


def upgrade() -> None:
    op.create_table(
        'licenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('license_key', sa.String(64), nullable=False),
        sa.Column('account_id', sa.String(255), nullable=False),
        sa.Column('account_server', sa.String(255), nullable=True),
        sa.Column('hardware_id', sa.String(255), nullable=False),
        sa.Column('ea_name', sa.String(255), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('requested_by', sa.String(64), nullable=True),
        sa.Column('requested_email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_licenses_id', 'licenses', ['id'])
    op.create_index('ix_licenses_license_key', 'licenses', ['license_key'], unique=True)
    op.create_index('ix_licenses_status', 'licenses', ['status'])
    op.create_index('ix_licenses_requested_by', 'licenses', ['requested_by'])
    op.create_index('ix_licenses_requested_email', 'licenses', ['requested_email'])
    op.create_index('idx_licenses_created_at', 'licenses', ['created_at'])

    # At most one active or pending license per account/hardware pair
    op.create_index(
        'uq_licenses_live_binding',
        'licenses',
        ['account_id', 'hardware_id'],
        unique=True,
        postgresql_where=LIVE_BINDING_PREDICATE,
        sqlite_where=LIVE_BINDING_PREDICATE,
    )

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])
    op.create_index('ix_clients_email', 'clients', ['email'], unique=True)

    op.create_table(
        'client_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_token', sa.String(255), nullable=False, unique=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
    )
    op.create_index('ix_client_sessions_id', 'client_sessions', ['id'])
    op.create_index('idx_client_sessions_token', 'client_sessions', ['session_token'])
    op.create_index('idx_client_sessions_client_id', 'client_sessions', ['client_id'])
    op.create_index('idx_client_sessions_expires_at', 'client_sessions', ['expires_at'])


def downgrade() -> None:
    op.drop_table('client_sessions')
    op.drop_table('clients')
    op.drop_index('uq_licenses_live_binding', table_name='licenses')
    op.drop_table('licenses')
