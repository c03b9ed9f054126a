"""Initial schema: events, participation records, ledger and role grants.

Revision ID: 001
Revises:
Create Date: 2025-01-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'voting_events',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('blockchain_hash', sa.String(255), nullable=True),
        sa.Column('results_reference', sa.String(512), nullable=True),
        sa.Column('total_votes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_voting_time_range'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_voting_events_end_time', 'voting_events', ['end_time'])
    op.create_index('ix_voting_events_status', 'voting_events', ['status'])
    op.create_index('ix_voting_events_created_by', 'voting_events', ['created_by'])
    op.create_index('ix_voting_events_created_at', 'voting_events', ['created_at'])

    op.create_table(
        'voting_option_tallies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voting_event_id', sa.String(36), nullable=False),
        sa.Column('option_index', sa.Integer(), nullable=False),
        sa.Column('option_label', sa.String(255), nullable=False),
        sa.Column('vote_count', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['voting_event_id'], ['voting_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('voting_event_id', 'option_index', name='uq_tally_event_option'),
    )
    op.create_index('ix_voting_option_tallies_voting_event_id', 'voting_option_tallies', ['voting_event_id'])

    op.create_table(
        'petition_events',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('target_signatures', sa.Integer(), nullable=False),
        sa.Column('current_signatures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('blockchain_hash', sa.String(255), nullable=True),
        sa.Column('results_reference', sa.String(512), nullable=True),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_petition_time_range'),
        sa.CheckConstraint('target_signatures > 0', name='ck_petition_target_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_petition_events_end_time', 'petition_events', ['end_time'])
    op.create_index('ix_petition_events_status', 'petition_events', ['status'])
    op.create_index('ix_petition_events_created_by', 'petition_events', ['created_by'])
    op.create_index('ix_petition_events_created_at', 'petition_events', ['created_at'])

    op.create_table(
        'votes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('voting_event_id', sa.String(36), nullable=False),
        sa.Column('vote_option', sa.String(255), nullable=False),
        sa.Column('option_index', sa.Integer(), nullable=False),
        sa.Column('blockchain_hash', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['voting_event_id'], ['voting_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'voting_event_id', name='uq_vote_user_event'),
    )
    op.create_index('ix_votes_user_id', 'votes', ['user_id'])
    op.create_index('ix_votes_voting_event_id', 'votes', ['voting_event_id'])
    op.create_index('ix_votes_created_at', 'votes', ['created_at'])

    op.create_table(
        'petition_signatures',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('petition_id', sa.String(36), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('blockchain_hash', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['petition_id'], ['petition_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'petition_id', name='uq_signature_user_petition'),
    )
    op.create_index('ix_petition_signatures_user_id', 'petition_signatures', ['user_id'])
    op.create_index('ix_petition_signatures_petition_id', 'petition_signatures', ['petition_id'])
    op.create_index('ix_petition_signatures_created_at', 'petition_signatures', ['created_at'])

    # Append-only; related_id deliberately has no FK so entries outlive deleted events
    op.create_table(
        'blockchain_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_hash', sa.String(255), nullable=False),
        sa.Column('transaction_type', sa.String(100), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('related_id', sa.String(255), nullable=True),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blockchain_transactions_transaction_hash', 'blockchain_transactions', ['transaction_hash'], unique=True)
    op.create_index('ix_blockchain_transactions_transaction_type', 'blockchain_transactions', ['transaction_type'])
    op.create_index('ix_blockchain_transactions_block_number', 'blockchain_transactions', ['block_number'])
    op.create_index('ix_blockchain_transactions_related_id', 'blockchain_transactions', ['related_id'])
    op.create_index('ix_blockchain_transactions_user_id', 'blockchain_transactions', ['user_id'])
    op.create_index('ix_blockchain_transactions_created_at', 'blockchain_transactions', ['created_at'])

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_role'),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_user_roles_user_id', table_name='user_roles')
    op.drop_table('user_roles')
    for index in (
        'ix_blockchain_transactions_created_at',
        'ix_blockchain_transactions_user_id',
        'ix_blockchain_transactions_related_id',
        'ix_blockchain_transactions_block_number',
        'ix_blockchain_transactions_transaction_type',
        'ix_blockchain_transactions_transaction_hash',
    ):
        op.drop_index(index, table_name='blockchain_transactions')
    op.drop_table('blockchain_transactions')
    op.drop_table('petition_signatures')
    op.drop_table('votes')
    op.drop_table('petition_events')
    op.drop_table('voting_option_tallies')
    op.drop_table('voting_events')
