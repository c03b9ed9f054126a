"""Admin routes for event management and audit reads."""

import logging
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor, get_current_actor
from blocktrust_api.auth.policy import require_operation
from blocktrust_api.db.session import get_db
from blocktrust_api.events import queries
from blocktrust_api.events.lifecycle import EventLifecycleManager
from blocktrust_api.ledger.service import LedgerService
from blocktrust_api.models import EventType
from blocktrust_api.models.event import MAX_TARGET_SIGNATURES, RESULTS_REFERENCE_LENGTH, TITLE_LENGTH
from blocktrust_api.routes.ledger import LedgerEntryResponse
from blocktrust_api.routes.petitions import PetitionResponse, SignatureResponse
from blocktrust_api.routes.voting import OptionLabel, VoteResponse, VotingEventResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class EventsRequest(BaseModel):
    action: Literal["events"]


class ParticipantsRequest(BaseModel):
    action: Literal["participants"]
    eventId: str
    eventType: EventType


class TransactionsRequest(BaseModel):
    action: Literal["transactions"]
    limit: int = Field(50, ge=1, le=500)


class DeleteEventRequest(BaseModel):
    action: Literal["delete-event"]
    eventId: str
    eventType: EventType


class ChangeStatusRequest(BaseModel):
    action: Literal["change-status"]
    eventId: str
    eventType: EventType
    status: str
    results_reference: Optional[str] = Field(None, max_length=RESULTS_REFERENCE_LENGTH)


class AdminCreateVotingRequest(BaseModel):
    """Create a voting event from a template."""

    action: Literal["create-voting"]
    title: str = Field(..., min_length=1, max_length=TITLE_LENGTH)
    description: str = ""
    options: list[OptionLabel] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    template_id: Optional[str] = None


class AdminCreatePetitionRequest(BaseModel):
    """Create a petition from a template."""

    action: Literal["create-petition"]
    title: str = Field(..., min_length=1, max_length=TITLE_LENGTH)
    description: str = ""
    start_time: datetime
    end_time: datetime
    target_signatures: Optional[int] = Field(None, gt=0, le=MAX_TARGET_SIGNATURES)
    template_id: Optional[str] = None


class VerifyLedgerRequest(BaseModel):
    action: Literal["verify-ledger"]


AdminAction = Annotated[
    Union[
        EventsRequest,
        ParticipantsRequest,
        TransactionsRequest,
        DeleteEventRequest,
        ChangeStatusRequest,
        AdminCreateVotingRequest,
        AdminCreatePetitionRequest,
        VerifyLedgerRequest,
    ],
    Body(discriminator="action"),
]


def _all_events(db: Session) -> dict:
    events = queries.list_all_events(db)
    return {
        "voting": [VotingEventResponse.model_validate(event) for event in events["voting"]],
        "petitions": [PetitionResponse.model_validate(petition) for petition in events["petitions"]],
    }


@router.get("")
async def admin_events(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """All events of both kinds (the default admin view)."""
    require_operation(actor.roles, "admin:read")
    return _all_events(db)


@router.post("")
async def admin_action(
    payload: AdminAction,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Dispatch an admin action."""
    require_operation(actor.roles, "admin:read")
    lifecycle = EventLifecycleManager(db)

    if isinstance(payload, EventsRequest):
        return _all_events(db)

    if isinstance(payload, ParticipantsRequest):
        participants = queries.list_participants(db, payload.eventType, payload.eventId)
        schema = VoteResponse if payload.eventType == EventType.VOTING else SignatureResponse
        return {"participants": [schema.model_validate(p) for p in participants]}

    if isinstance(payload, TransactionsRequest):
        entries = LedgerService(db).recent(payload.limit)
        return {"transactions": [LedgerEntryResponse.model_validate(entry) for entry in entries]}

    if isinstance(payload, DeleteEventRequest):
        lifecycle.delete(actor, payload.eventType, payload.eventId)
        return {"success": True}

    if isinstance(payload, ChangeStatusRequest):
        lifecycle.change_status(
            actor,
            payload.eventType,
            payload.eventId,
            payload.status,
            results_reference=payload.results_reference,
        )
        return {"success": True}

    if isinstance(payload, AdminCreateVotingRequest):
        event = lifecycle.create_voting_event(
            actor,
            title=payload.title,
            description=payload.description,
            options=payload.options,
            start=payload.start_time,
            end=payload.end_time,
            template_id=payload.template_id,
        )
        return {"event": VotingEventResponse.model_validate(event)}

    if isinstance(payload, AdminCreatePetitionRequest):
        petition = lifecycle.create_petition(
            actor,
            title=payload.title,
            description=payload.description,
            start=payload.start_time,
            end=payload.end_time,
            target_signatures=payload.target_signatures,
            template_id=payload.template_id,
        )
        return {"petition": PetitionResponse.model_validate(petition)}

    is_valid, error = LedgerService(db).verify_chain()
    logger.info(f"Ledger verification requested: valid={is_valid}")
    return {"valid": is_valid, "error": error}
