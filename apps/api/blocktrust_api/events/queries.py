"""Read-side views: tallies, signature progress, time remaining."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from blocktrust_api.models import (
    EventStatus,
    EventType,
    PetitionEvent,
    PetitionSignature,
    Vote,
    VotingEvent,
)
from blocktrust_api.utils.clock import utcnow


@dataclass(frozen=True)
class TimeRemaining:
    """Whole days and remainder hours left in an event window."""

    days: int
    hours: int
    total_seconds: int

    @property
    def ended(self) -> bool:
        return self.total_seconds == 0

    def as_dict(self) -> dict:
        return {
            "days": self.days,
            "hours": self.hours,
            "total_seconds": self.total_seconds,
            "ended": self.ended,
        }


def time_remaining(event: Union[VotingEvent, PetitionEvent], now: Optional[datetime] = None) -> TimeRemaining:
    """max(0, end - now), split into days and hours."""
    now = now or utcnow()
    seconds = max(0, int((event.end_time - now).total_seconds()))
    days, rest = divmod(seconds, 86400)
    return TimeRemaining(days=days, hours=rest // 3600, total_seconds=seconds)


def progress_percent(petition: PetitionEvent) -> float:
    """Signature progress, saturating at 100."""
    return min(100.0, petition.current_signatures / petition.target_signatures * 100)


def target_reached(petition: PetitionEvent) -> bool:
    return petition.current_signatures >= petition.target_signatures


def tally(db: Session, event: VotingEvent) -> dict[str, int]:
    """Count vote records per option; every declared option is present."""
    counts = dict(
        db.query(Vote.vote_option, func.count(Vote.id))
        .filter(Vote.voting_event_id == event.id)
        .group_by(Vote.vote_option)
        .all()
    )
    return {option: counts.get(option, 0) for option in event.options}


def list_active_voting_events(db: Session) -> list[VotingEvent]:
    return (
        db.query(VotingEvent)
        .filter(VotingEvent.status == EventStatus.ACTIVE.value)
        .order_by(VotingEvent.created_at.desc())
        .all()
    )


def list_active_petitions(db: Session) -> list[PetitionEvent]:
    return (
        db.query(PetitionEvent)
        .filter(PetitionEvent.status == EventStatus.ACTIVE.value)
        .order_by(PetitionEvent.created_at.desc())
        .all()
    )


def list_all_events(db: Session) -> dict[str, list]:
    """Every event of both kinds, newest first (admin view)."""
    return {
        "voting": db.query(VotingEvent).order_by(VotingEvent.created_at.desc()).all(),
        "petitions": db.query(PetitionEvent).order_by(PetitionEvent.created_at.desc()).all(),
    }


def list_participants(db: Session, event_type: EventType, event_id: str) -> list[Union[Vote, PetitionSignature]]:
    """Votes or signatures for one event, newest first."""
    if EventType(event_type) == EventType.VOTING:
        return (
            db.query(Vote)
            .filter(Vote.voting_event_id == event_id)
            .order_by(Vote.created_at.desc())
            .all()
        )
    return (
        db.query(PetitionSignature)
        .filter(PetitionSignature.petition_id == event_id)
        .order_by(PetitionSignature.created_at.desc())
        .all()
    )
