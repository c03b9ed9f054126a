"""Event templates, contract deployments and the content-hash ledger chain.

Existing ledger rows are marked ``simulated``; only rows appended in content
mode from now on join the verifiable chain.

Revision ID: 002
Revises: 001
Create Date: 2025-02-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'event_templates',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_event_templates_type', 'event_templates', ['type'])
    op.create_index('ix_event_templates_is_active', 'event_templates', ['is_active'])
    op.create_index('ix_event_templates_created_at', 'event_templates', ['created_at'])

    op.create_table(
        'contract_deployments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('template_id', sa.String(36), nullable=False),
        sa.Column('contract_address', sa.String(42), nullable=False),
        sa.Column('network_id', sa.String(100), nullable=False),
        sa.Column('deployer_id', sa.String(255), nullable=False),
        sa.Column('deployment_params', sa.JSON(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('transaction_hash', sa.String(255), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['event_templates.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('contract_address'),
    )
    op.create_index('ix_contract_deployments_template_id', 'contract_deployments', ['template_id'])
    op.create_index('ix_contract_deployments_deployer_id', 'contract_deployments', ['deployer_id'])
    op.create_index('ix_contract_deployments_created_at', 'contract_deployments', ['created_at'])

    for table in ('voting_events', 'petition_events'):
        op.add_column(table, sa.Column('template_id', sa.String(36), nullable=True))
        op.create_index(f'ix_{table}_template_id', table, ['template_id'])
        op.create_foreign_key(f'fk_{table}_template_id', table, 'event_templates', ['template_id'], ['id'])

    op.create_table(
        'ledger_sequences',
        sa.Column('chain', sa.String(50), nullable=False),
        sa.Column('last_sequence', sa.BigInteger(), nullable=False),
        sa.Column('last_hash', sa.String(255), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('chain'),
    )

    op.add_column(
        'blockchain_transactions',
        sa.Column('hash_mode', sa.String(20), nullable=False, server_default='simulated'),
    )
    op.add_column('blockchain_transactions', sa.Column('chain_sequence', sa.BigInteger(), nullable=True))
    op.add_column('blockchain_transactions', sa.Column('previous_hash', sa.String(255), nullable=True))
    op.create_index('ix_blockchain_transactions_hash_mode', 'blockchain_transactions', ['hash_mode'])
    op.create_unique_constraint('uq_ledger_chain_sequence', 'blockchain_transactions', ['chain_sequence'])


def downgrade() -> None:
    op.drop_constraint('uq_ledger_chain_sequence', 'blockchain_transactions', type_='unique')
    op.drop_index('ix_blockchain_transactions_hash_mode', table_name='blockchain_transactions')
    op.drop_column('blockchain_transactions', 'previous_hash')
    op.drop_column('blockchain_transactions', 'chain_sequence')
    op.drop_column('blockchain_transactions', 'hash_mode')
    op.drop_table('ledger_sequences')
    for table in ('petition_events', 'voting_events'):
        op.drop_constraint(f'fk_{table}_template_id', table, type_='foreignkey')
        op.drop_index(f'ix_{table}_template_id', table_name=table)
        op.drop_column(table, 'template_id')
    op.drop_index('ix_contract_deployments_created_at', table_name='contract_deployments')
    op.drop_index('ix_contract_deployments_deployer_id', table_name='contract_deployments')
    op.drop_index('ix_contract_deployments_template_id', table_name='contract_deployments')
    op.drop_table('contract_deployments')
    op.drop_index('ix_event_templates_created_at', table_name='event_templates')
    op.drop_index('ix_event_templates_is_active', table_name='event_templates')
    op.drop_index('ix_event_templates_type', table_name='event_templates')
    op.drop_table('event_templates')
