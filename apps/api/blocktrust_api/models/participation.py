"""Participation records: votes and petition signatures.

The (user, event) unique constraints are the authoritative duplicate guard.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from blocktrust_api.db.base import Base
from blocktrust_api.models.event import OPTION_LABEL_LENGTH, new_id
from blocktrust_api.utils.clock import utcnow


class Vote(Base):
    """One actor's vote on one voting event."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("user_id", "voting_event_id", name="uq_vote_user_event"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    voting_event_id = Column(
        String(36), ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vote_option = Column(String(OPTION_LABEL_LENGTH), nullable=False)
    option_index = Column(Integer, nullable=False)
    blockchain_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    voting_event = relationship("VotingEvent", back_populates="votes")


class PetitionSignature(Base):
    """One actor's signature on one petition."""

    __tablename__ = "petition_signatures"
    __table_args__ = (
        UniqueConstraint("user_id", "petition_id", name="uq_signature_user_petition"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    petition_id = Column(
        String(36), ForeignKey("petition_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comment = Column(Text, nullable=True)
    blockchain_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    petition = relationship("PetitionEvent", back_populates="signatures")
