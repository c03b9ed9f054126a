"""Event lifecycle manager for voting events and petitions.

State machine::

    draft -> active -(finalize after end)-> completed
                    -(admin cancel)-------> cancelled
                    -(admin delete)-------> [removed]

Nothing transitions back to ``active``. Each transition commits together
with its ledger entry.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor
from blocktrust_api.auth.policy import authorize, require_operation
from blocktrust_api.db.session import unit_of_work
from blocktrust_api.errors import (
    AlreadyFinalized,
    EventNotFound,
    Forbidden,
    InsufficientOptions,
    InvalidTarget,
    InvalidTimeRange,
    InvalidTransition,
    NotYetEnded,
    ValueTooLong,
)
from blocktrust_api.events.templates import TemplateManager
from blocktrust_api.ledger.service import LedgerService
from blocktrust_api.models import (
    EventStatus,
    EventType,
    LedgerEntryType,
    PetitionEvent,
    Role,
    VotingEvent,
    VotingOptionTally,
)
from blocktrust_api.models.event import (
    MAX_TARGET_SIGNATURES,
    OPTION_LABEL_LENGTH,
    RESULTS_REFERENCE_LENGTH,
    TITLE_LENGTH,
)
from blocktrust_api.settings import get_settings
from blocktrust_api.utils.clock import to_naive_utc, utcnow
from blocktrust_api.utils.metrics import events_created, lifecycle_transitions

logger = logging.getLogger(__name__)

Event = Union[VotingEvent, PetitionEvent]

MODELS = {
    EventType.VOTING: VotingEvent,
    EventType.PETITION: PetitionEvent,
}

LEDGER_TYPES = {
    (EventType.VOTING, EventStatus.COMPLETED): LedgerEntryType.VOTING_EVENT_FINALIZED,
    (EventType.VOTING, EventStatus.CANCELLED): LedgerEntryType.VOTING_EVENT_CANCELLED,
    (EventType.PETITION, EventStatus.COMPLETED): LedgerEntryType.PETITION_FINALIZED,
    (EventType.PETITION, EventStatus.CANCELLED): LedgerEntryType.PETITION_CANCELLED,
}

DELETE_TYPES = {
    EventType.VOTING: LedgerEntryType.VOTING_EVENT_DELETED,
    EventType.PETITION: LedgerEntryType.PETITION_DELETED,
}


def validate_time_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Normalize both bounds to naive UTC and require end > start."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    if end <= start:
        raise InvalidTimeRange()
    return start, end


def check_length(value: Optional[str], limit: int, label: str) -> None:
    if value is not None and len(value) > limit:
        raise ValueTooLong(f"{label} must be at most {limit} characters")


def normalize_options(options: list[str]) -> list[str]:
    """Strip labels, drop blanks and repeats, keep first-seen order."""
    distinct = []
    for option in options or []:
        label = str(option).strip()
        check_length(label, OPTION_LABEL_LENGTH, "Option labels")
        if label and label not in distinct:
            distinct.append(label)
    if len(distinct) < 2:
        raise InsufficientOptions()
    return distinct


class EventLifecycleManager:
    """Creates, finalizes, cancels and deletes events."""

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        self.db = db
        self.ledger = ledger or LedgerService(db)
        self.settings = get_settings()

    def get_event(self, event_type: EventType, event_id: str) -> Event:
        event_type = EventType(event_type)
        event = self.db.get(MODELS[event_type], event_id)
        if event is None:
            raise EventNotFound(f"{event_type.value.capitalize()} event {event_id} not found")
        return event

    def create_voting_event(
        self,
        actor: Actor,
        title: str,
        description: str,
        options: list[str],
        start: datetime,
        end: datetime,
        template_id: Optional[str] = None,
    ) -> VotingEvent:
        """Create an active voting event with one tally row per option.

        With a template, missing options come from its ``config["options"]``.
        """
        require_operation(actor.roles, "voting:create")
        check_length(title, TITLE_LENGTH, "Title")
        start, end = validate_time_range(start, end)
        if template_id:
            template = TemplateManager(self.db).resolve_for_event(template_id, EventType.VOTING)
            options = options or template.config.get("options", [])
        options = normalize_options(options)

        with unit_of_work(self.db):
            event = VotingEvent(
                title=title,
                description=description or "",
                options=options,
                start_time=start,
                end_time=end,
                created_by=actor.id,
                template_id=template_id,
                status=EventStatus.ACTIVE.value,
                total_votes=0,
            )
            event.tallies = [
                VotingOptionTally(option_index=index, option_label=label, vote_count=0)
                for index, label in enumerate(options)
            ]
            self.db.add(event)
            self.db.flush()

            payload = {"event_title": title}
            if template_id:
                payload["template_id"] = template_id
            entry = self.ledger.append(
                LedgerEntryType.VOTING_EVENT_CREATED, event.id, actor.id, payload
            )
            event.blockchain_hash = entry.transaction_hash

        self.db.refresh(event)
        events_created.labels(event_type=EventType.VOTING.value).inc()
        logger.info(f"Voting event created: {event.id}", extra={"actor_id": actor.id})
        return event

    def create_petition(
        self,
        actor: Actor,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
        target_signatures: Optional[int] = None,
        template_id: Optional[str] = None,
    ) -> PetitionEvent:
        """Create an active petition.

        A missing target comes from the template's ``config["target_signatures"]``,
        then from the configured default.
        """
        require_operation(actor.roles, "petition:create")
        check_length(title, TITLE_LENGTH, "Title")
        start, end = validate_time_range(start, end)
        if template_id:
            template = TemplateManager(self.db).resolve_for_event(template_id, EventType.PETITION)
            if target_signatures is None:
                target_signatures = template.config.get("target_signatures")
        if target_signatures is None:
            target_signatures = self.settings.default_target_signatures
        if target_signatures <= 0:
            raise InvalidTarget()
        if target_signatures > MAX_TARGET_SIGNATURES:
            raise InvalidTarget(f"Target must be at most {MAX_TARGET_SIGNATURES}")

        with unit_of_work(self.db):
            petition = PetitionEvent(
                title=title,
                description=description or "",
                start_time=start,
                end_time=end,
                target_signatures=target_signatures,
                current_signatures=0,
                created_by=actor.id,
                template_id=template_id,
                status=EventStatus.ACTIVE.value,
            )
            self.db.add(petition)
            self.db.flush()

            payload = {"petition_title": title}
            if template_id:
                payload["template_id"] = template_id
            entry = self.ledger.append(
                LedgerEntryType.PETITION_CREATED, petition.id, actor.id, payload
            )
            petition.blockchain_hash = entry.transaction_hash

        self.db.refresh(petition)
        events_created.labels(event_type=EventType.PETITION.value).inc()
        logger.info(f"Petition created: {petition.id}", extra={"actor_id": actor.id})
        return petition

    def finalize(
        self,
        actor: Actor,
        event_type: EventType,
        event_id: str,
        results_reference: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """Close an event after its window and record the results pointer.

        A second call fails with AlreadyFinalized instead of appending
        another ledger entry.
        """
        check_length(results_reference, RESULTS_REFERENCE_LENGTH, "Results reference")
        event_type = EventType(event_type)
        event = self.get_event(event_type, event_id)
        if event.created_by != actor.id:
            require_operation(actor.roles, "event:finalize")

        if event.status == EventStatus.COMPLETED.value:
            raise AlreadyFinalized()
        if event.status != EventStatus.ACTIVE.value:
            raise InvalidTransition(f"Cannot finalize an event that is {event.status}")

        now = now or utcnow()
        if now < event.end_time:
            raise NotYetEnded()

        with unit_of_work(self.db):
            event.status = EventStatus.COMPLETED.value
            event.results_reference = results_reference
            event.finalized_at = now
            payload = {"results_reference": results_reference}
            if event_type == EventType.VOTING:
                payload["total_votes"] = event.total_votes
            else:
                payload["current_signatures"] = event.current_signatures
            self.ledger.append(
                LEDGER_TYPES[(event_type, EventStatus.COMPLETED)], event.id, actor.id, payload
            )

        self.db.refresh(event)
        lifecycle_transitions.labels(event_type=event_type.value, to_status=EventStatus.COMPLETED.value).inc()
        logger.info(f"{event_type.value.capitalize()} event finalized: {event.id}")
        return event

    def cancel(self, actor: Actor, event_type: EventType, event_id: str) -> Event:
        """Admin-only transition from active to cancelled."""
        require_operation(actor.roles, "event:cancel")
        event_type = EventType(event_type)
        event = self.get_event(event_type, event_id)
        if event.status != EventStatus.ACTIVE.value:
            raise InvalidTransition(f"Cannot cancel an event that is {event.status}")

        with unit_of_work(self.db):
            event.status = EventStatus.CANCELLED.value
            self.ledger.append(
                LEDGER_TYPES[(event_type, EventStatus.CANCELLED)], event.id, actor.id, {}
            )

        self.db.refresh(event)
        lifecycle_transitions.labels(event_type=event_type.value, to_status=EventStatus.CANCELLED.value).inc()
        logger.info(f"{event_type.value.capitalize()} event cancelled: {event.id}")
        return event

    def delete(self, actor: Actor, event_type: EventType, event_id: str) -> None:
        """Remove an event together with its participation records.

        Ledger entries referencing the event are kept.
        """
        require_operation(actor.roles, "event:delete")
        event_type = EventType(event_type)
        event = self.get_event(event_type, event_id)

        with unit_of_work(self.db):
            payload = {"title": event.title, "status": event.status}
            self.db.delete(event)
            self.ledger.append(DELETE_TYPES[event_type], event_id, actor.id, payload)

        lifecycle_transitions.labels(event_type=event_type.value, to_status="deleted").inc()
        logger.info(f"{event_type.value.capitalize()} event deleted: {event_id}")

    def change_status(
        self,
        actor: Actor,
        event_type: EventType,
        event_id: str,
        status: str,
        results_reference: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """Admin status change constrained to the lifecycle state machine."""
        if not authorize(actor.roles, {Role.ADMIN}):
            raise Forbidden("Admin access required")
        try:
            target = EventStatus(status)
        except ValueError:
            raise InvalidTransition(f"Unknown status '{status}'") from None

        if target == EventStatus.CANCELLED:
            return self.cancel(actor, event_type, event_id)
        if target == EventStatus.COMPLETED:
            return self.finalize(actor, event_type, event_id, results_reference, now=now)
        raise InvalidTransition(f"Events cannot transition to {target.value}")
