"""Simulated ledger models."""

import enum

from sqlalchemy import BigInteger, Column, DateTime, Integer, JSON, String, UniqueConstraint

from blocktrust_api.db.base import Base
from blocktrust_api.utils.clock import utcnow


class LedgerEntryType(str, enum.Enum):
    """Kinds of state change recorded on the ledger."""

    VOTING_EVENT_CREATED = "voting_event_created"
    VOTE_CAST = "vote_cast"
    VOTING_EVENT_FINALIZED = "voting_event_finalized"
    VOTING_EVENT_CANCELLED = "voting_event_cancelled"
    VOTING_EVENT_DELETED = "voting_event_deleted"
    PETITION_CREATED = "petition_created"
    PETITION_SIGNED = "petition_signed"
    PETITION_FINALIZED = "petition_finalized"
    PETITION_CANCELLED = "petition_cancelled"
    PETITION_DELETED = "petition_deleted"
    CONTRACT_DEPLOYMENT = "contract_deployment"


class HashMode(str, enum.Enum):
    SIMULATED = "simulated"
    CONTENT = "content"


class LedgerEntry(Base):
    """Append-only audit record mimicking a blockchain transaction."""

    __tablename__ = "blockchain_transactions"
    __table_args__ = (
        # NULL for simulated entries; one content entry per chain position
        UniqueConstraint("chain_sequence", name="uq_ledger_chain_sequence"),
    )

    id = Column(Integer, primary_key=True, index=True)
    transaction_hash = Column(String(255), nullable=False, unique=True, index=True)
    transaction_type = Column(String(100), nullable=False, index=True)
    block_number = Column(BigInteger, nullable=False, index=True)
    related_id = Column(String(255), nullable=True, index=True)  # no FK: survives event deletion
    user_id = Column(String(255), nullable=True, index=True)
    data = Column(JSON, nullable=False, default=dict)
    hash_mode = Column(String(20), nullable=False, default=HashMode.SIMULATED.value, index=True)
    chain_sequence = Column(BigInteger, nullable=True)
    previous_hash = Column(String(255), nullable=True)  # NULL for the first content entry
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class LedgerSequence(Base):
    """Head of the content-hash chain, row-locked while appending."""

    __tablename__ = "ledger_sequences"

    chain = Column(String(50), primary_key=True)
    last_sequence = Column(BigInteger, nullable=False, default=0)
    last_hash = Column(String(255), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
