"""Voting event and petition models."""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from blocktrust_api.db.base import Base
from blocktrust_api.utils.clock import utcnow


class EventStatus(str, enum.Enum):
    """Lifecycle status shared by voting events and petitions."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventType(str, enum.Enum):
    """Discriminator used by the admin actions."""

    VOTING = "voting"
    PETITION = "petition"


# Column limits, also enforced before anything reaches the store
TITLE_LENGTH = 255
OPTION_LABEL_LENGTH = 255
RESULTS_REFERENCE_LENGTH = 512
MAX_TARGET_SIGNATURES = 2**31 - 1  # 32-bit Integer column


def new_id() -> str:
    return str(uuid.uuid4())


class VotingEvent(Base):
    """A voting round over an ordered list of options."""

    __tablename__ = "voting_events"
    __table_args__ = (CheckConstraint("end_time > start_time", name="ck_voting_time_range"),)

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(TITLE_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    options = Column(JSON, nullable=False)  # ordered list of option labels
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(50), default=EventStatus.ACTIVE.value, nullable=False, index=True)
    created_by = Column(String(255), nullable=False, index=True)
    template_id = Column(String(36), ForeignKey("event_templates.id"), nullable=True, index=True)
    blockchain_hash = Column(String(255), nullable=True)
    results_reference = Column(String(RESULTS_REFERENCE_LENGTH), nullable=True)
    total_votes = Column(Integer, default=0, nullable=False)
    finalized_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    tallies = relationship(
        "VotingOptionTally",
        back_populates="voting_event",
        cascade="all, delete-orphan",
        order_by="VotingOptionTally.option_index",
    )
    votes = relationship("Vote", back_populates="voting_event", cascade="all, delete-orphan")


class VotingOptionTally(Base):
    """Running vote count for one option of a voting event."""

    __tablename__ = "voting_option_tallies"
    __table_args__ = (
        UniqueConstraint("voting_event_id", "option_index", name="uq_tally_event_option"),
    )

    id = Column(Integer, primary_key=True, index=True)
    voting_event_id = Column(
        String(36), ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_index = Column(Integer, nullable=False)
    option_label = Column(String(OPTION_LABEL_LENGTH), nullable=False)
    vote_count = Column(Integer, default=0, nullable=False)

    # Relationships
    voting_event = relationship("VotingEvent", back_populates="tallies")


class PetitionEvent(Base):
    """A petition campaign collecting signatures towards a target."""

    __tablename__ = "petition_events"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_petition_time_range"),
        CheckConstraint("target_signatures > 0", name="ck_petition_target_positive"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(TITLE_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(50), default=EventStatus.ACTIVE.value, nullable=False, index=True)
    created_by = Column(String(255), nullable=False, index=True)
    template_id = Column(String(36), ForeignKey("event_templates.id"), nullable=True, index=True)
    target_signatures = Column(Integer, nullable=False)
    current_signatures = Column(Integer, default=0, nullable=False)
    blockchain_hash = Column(String(255), nullable=True)
    results_reference = Column(String(RESULTS_REFERENCE_LENGTH), nullable=True)
    finalized_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    signatures = relationship(
        "PetitionSignature", back_populates="petition", cascade="all, delete-orphan"
    )
