"""Voting endpoints: list, create, vote, finalize, results."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor, get_current_actor
from blocktrust_api.db.session import get_db
from blocktrust_api.events import queries
from blocktrust_api.events.lifecycle import EventLifecycleManager
from blocktrust_api.events.participation import ParticipationGuard
from blocktrust_api.models import EventType
from blocktrust_api.models.event import OPTION_LABEL_LENGTH, RESULTS_REFERENCE_LENGTH, TITLE_LENGTH

router = APIRouter(prefix="/v1", tags=["voting"])

OptionLabel = Annotated[str, Field(max_length=OPTION_LABEL_LENGTH)]


class VotingEventResponse(BaseModel):
    """Voting event response."""

    id: str
    title: str
    description: str
    options: list[str]
    start_time: datetime
    end_time: datetime
    status: str
    created_by: str
    template_id: Optional[str] = None
    total_votes: int
    blockchain_hash: Optional[str] = None
    results_reference: Optional[str] = None
    finalized_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VoteResponse(BaseModel):
    """Vote response."""

    id: str
    user_id: str
    voting_event_id: str
    vote_option: str
    blockchain_hash: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreateVotingRequest(BaseModel):
    """Create a voting event."""

    action: Literal["create"]
    title: str = Field(..., min_length=1, max_length=TITLE_LENGTH)
    description: str = ""
    options: list[OptionLabel] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    template_id: Optional[str] = None


class CastVoteRequest(BaseModel):
    """Cast a vote on a voting event."""

    action: Literal["vote"]
    voting_event_id: str
    vote_option: str = Field(..., max_length=OPTION_LABEL_LENGTH)


class FinalizeVotingRequest(BaseModel):
    """Finalize a voting event after it ended."""

    action: Literal["finalize"]
    voting_event_id: str
    results_reference: Optional[str] = Field(
        None, max_length=RESULTS_REFERENCE_LENGTH, description="External pointer to published results"
    )


VotingAction = Annotated[
    Union[CreateVotingRequest, CastVoteRequest, FinalizeVotingRequest],
    Body(discriminator="action"),
]


@router.get("/voting")
async def list_voting_events(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Active voting events, newest first."""
    events = queries.list_active_voting_events(db)
    return {"events": [VotingEventResponse.model_validate(event) for event in events]}


@router.post("/voting")
async def voting_action(
    payload: VotingAction,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Dispatch on ``action``: create, vote or finalize."""
    if isinstance(payload, CreateVotingRequest):
        event = EventLifecycleManager(db).create_voting_event(
            actor,
            title=payload.title,
            description=payload.description,
            options=payload.options,
            start=payload.start_time,
            end=payload.end_time,
            template_id=payload.template_id,
        )
        return {"event": VotingEventResponse.model_validate(event)}

    if isinstance(payload, CastVoteRequest):
        vote = ParticipationGuard(db).cast_vote(actor, payload.voting_event_id, payload.vote_option)
        return {"vote": VoteResponse.model_validate(vote)}

    event = EventLifecycleManager(db).finalize(
        actor, EventType.VOTING, payload.voting_event_id, payload.results_reference
    )
    return {"event": VotingEventResponse.model_validate(event)}


@router.get("/voting/{event_id}/results")
async def voting_results(
    event_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Per-option tally, total votes and time remaining."""
    event = EventLifecycleManager(db).get_event(EventType.VOTING, event_id)
    return {
        "event_id": event.id,
        "status": event.status,
        "tally": queries.tally(db, event),
        "total_votes": event.total_votes,
        "time_remaining": queries.time_remaining(event).as_dict(),
        "has_voted": ParticipationGuard(db).has_voted(actor.id, event.id),
    }
