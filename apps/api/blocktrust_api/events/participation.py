"""Participation guard: casting votes and signing petitions.

The lookup before insert only produces a friendly error. The unique
constraints on (user, event) are what actually stop a second record when two
requests race, and counters are bumped with SQL-side increments so concurrent
participants never lose updates.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor
from blocktrust_api.auth.policy import require_operation
from blocktrust_api.db.session import unit_of_work
from blocktrust_api.errors import (
    DuplicateParticipation,
    EventClosed,
    EventNotFound,
    InvalidOption,
    StorageUnavailable,
)
from blocktrust_api.ledger.service import LedgerService
from blocktrust_api.models import (
    EventStatus,
    LedgerEntryType,
    PetitionEvent,
    PetitionSignature,
    Vote,
    VotingEvent,
    VotingOptionTally,
)
from blocktrust_api.utils.clock import utcnow
from blocktrust_api.utils.metrics import participation_rejections, participations

logger = logging.getLogger(__name__)

# PostgreSQL names the violated constraint; SQLite lists its columns instead
DUPLICATE_VOTE_MARKERS = ("uq_vote_user_event", "votes.user_id, votes.voting_event_id")
DUPLICATE_SIGNATURE_MARKERS = (
    "uq_signature_user_petition",
    "petition_signatures.user_id, petition_signatures.petition_id",
)


def is_duplicate(error: IntegrityError, markers: tuple[str, ...]) -> bool:
    """True when the integrity error is the (user, event) unique constraint."""
    message = str(error.orig)
    return any(marker in message for marker in markers)


def ensure_open(event: Union[VotingEvent, PetitionEvent], now: datetime) -> None:
    """Participation is only accepted while active and inside the window."""
    if event.status != EventStatus.ACTIVE.value:
        raise EventClosed(f"Event is {event.status}")
    if now < event.start_time:
        raise EventClosed("Event has not started")
    if now >= event.end_time:
        raise EventClosed("Event has ended")


class ParticipationGuard:
    """Decides whether an actor may vote or sign, and records it once."""

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        self.db = db
        self.ledger = ledger or LedgerService(db)

    def has_voted(self, actor_id: str, event_id: str) -> bool:
        return (
            self.db.query(Vote.id)
            .filter(Vote.user_id == actor_id, Vote.voting_event_id == event_id)
            .first()
            is not None
        )

    def has_signed(self, actor_id: str, petition_id: str) -> bool:
        return (
            self.db.query(PetitionSignature.id)
            .filter(PetitionSignature.user_id == actor_id, PetitionSignature.petition_id == petition_id)
            .first()
            is not None
        )

    def cast_vote(
        self,
        actor: Actor,
        event_id: str,
        option: str,
        now: Optional[datetime] = None,
    ) -> Vote:
        """Record one vote for ``option`` (matched by label)."""
        require_operation(actor.roles, "voting:vote")

        event = self.db.get(VotingEvent, event_id)
        if event is None:
            raise EventNotFound(f"Voting event {event_id} not found")
        ensure_open(event, now or utcnow())

        if option not in event.options:
            participation_rejections.labels(kind="vote", reason="invalid_option").inc()
            raise InvalidOption(f"Invalid option '{option}'")
        option_index = event.options.index(option)

        if self.has_voted(actor.id, event_id):
            participation_rejections.labels(kind="vote", reason="duplicate").inc()
            raise DuplicateParticipation("Already voted on this event")

        try:
            with unit_of_work(self.db):
                vote = Vote(
                    user_id=actor.id,
                    voting_event_id=event_id,
                    vote_option=option,
                    option_index=option_index,
                )
                self.db.add(vote)
                self.db.flush()

                self.db.execute(
                    update(VotingEvent)
                    .where(VotingEvent.id == event_id)
                    .values(total_votes=VotingEvent.total_votes + 1)
                    .execution_options(synchronize_session=False)
                )
                self.db.execute(
                    update(VotingOptionTally)
                    .where(
                        VotingOptionTally.voting_event_id == event_id,
                        VotingOptionTally.option_index == option_index,
                    )
                    .values(vote_count=VotingOptionTally.vote_count + 1)
                    .execution_options(synchronize_session=False)
                )

                entry = self.ledger.append(
                    LedgerEntryType.VOTE_CAST,
                    vote.id,
                    actor.id,
                    {"voting_event_id": event_id, "vote_option": option},
                )
                vote.blockchain_hash = entry.transaction_hash
        except IntegrityError as e:
            if not is_duplicate(e, DUPLICATE_VOTE_MARKERS):
                logger.error(f"Vote insert violated an unexpected constraint: {e.orig}")
                raise StorageUnavailable("Could not record the vote, please retry later") from e
            participation_rejections.labels(kind="vote", reason="duplicate").inc()
            logger.info(f"Concurrent duplicate vote rejected: {e.orig}")
            raise DuplicateParticipation("Already voted on this event") from e

        participations.labels(kind="vote").inc()
        logger.info(f"Vote cast: {vote.id}", extra={"voting_event_id": event_id})
        return vote

    def sign_petition(
        self,
        actor: Actor,
        petition_id: str,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PetitionSignature:
        """Record one signature. Crossing the target does not close the petition."""
        require_operation(actor.roles, "petition:sign")

        petition = self.db.get(PetitionEvent, petition_id)
        if petition is None:
            raise EventNotFound(f"Petition {petition_id} not found")
        ensure_open(petition, now or utcnow())

        if self.has_signed(actor.id, petition_id):
            participation_rejections.labels(kind="signature", reason="duplicate").inc()
            raise DuplicateParticipation("Already signed this petition")

        try:
            with unit_of_work(self.db):
                signature = PetitionSignature(
                    user_id=actor.id,
                    petition_id=petition_id,
                    comment=comment,
                )
                self.db.add(signature)
                self.db.flush()

                self.db.execute(
                    update(PetitionEvent)
                    .where(PetitionEvent.id == petition_id)
                    .values(current_signatures=PetitionEvent.current_signatures + 1)
                    .execution_options(synchronize_session=False)
                )

                entry = self.ledger.append(
                    LedgerEntryType.PETITION_SIGNED,
                    signature.id,
                    actor.id,
                    {"petition_id": petition_id},
                )
                signature.blockchain_hash = entry.transaction_hash
        except IntegrityError as e:
            if not is_duplicate(e, DUPLICATE_SIGNATURE_MARKERS):
                logger.error(f"Signature insert violated an unexpected constraint: {e.orig}")
                raise StorageUnavailable("Could not record the signature, please retry later") from e
            participation_rejections.labels(kind="signature", reason="duplicate").inc()
            logger.info(f"Concurrent duplicate signature rejected: {e.orig}")
            raise DuplicateParticipation("Already signed this petition") from e

        participations.labels(kind="signature").inc()
        logger.info(f"Petition signed: {signature.id}", extra={"petition_id": petition_id})
        return signature
