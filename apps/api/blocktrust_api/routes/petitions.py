"""Petition endpoints: list, create, sign, finalize, progress."""

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
from blocktrust_api.models.event import MAX_TARGET_SIGNATURES, RESULTS_REFERENCE_LENGTH, TITLE_LENGTH

router = APIRouter(prefix="/v1", tags=["petitions"])


class PetitionResponse(BaseModel):
    """Petition response."""

    id: str
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    status: str
    created_by: str
    template_id: Optional[str] = None
    target_signatures: int
    current_signatures: int
    blockchain_hash: Optional[str] = None
    results_reference: Optional[str] = None
    finalized_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SignatureResponse(BaseModel):
    """Petition signature response."""

    id: str
    user_id: str
    petition_id: str
    comment: Optional[str] = None
    blockchain_hash: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreatePetitionRequest(BaseModel):
    """Create a petition."""

    action: Literal["create"]
    title: str = Field(..., min_length=1, max_length=TITLE_LENGTH)
    description: str = ""
    start_time: datetime
    end_time: datetime
    target_signatures: Optional[int] = Field(
        None, gt=0, le=MAX_TARGET_SIGNATURES, description="Defaults to the template or configured target"
    )
    template_id: Optional[str] = None


class SignPetitionRequest(BaseModel):
    """Sign a petition."""

    action: Literal["sign"]
    petition_id: str
    comment: Optional[str] = Field(None, max_length=2000)


class FinalizePetitionRequest(BaseModel):
    """Finalize a petition after it ended."""

    action: Literal["finalize"]
    petition_id: str
    results_reference: Optional[str] = Field(None, max_length=RESULTS_REFERENCE_LENGTH)


PetitionAction = Annotated[
    Union[CreatePetitionRequest, SignPetitionRequest, FinalizePetitionRequest],
    Body(discriminator="action"),
]


@router.get("/petitions")
async def list_petitions(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Active petitions, newest first."""
    petitions = queries.list_active_petitions(db)
    return {"petitions": [PetitionResponse.model_validate(petition) for petition in petitions]}


@router.post("/petitions")
async def petition_action(
    payload: PetitionAction,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Dispatch on ``action``: create, sign or finalize."""
    if isinstance(payload, CreatePetitionRequest):
        petition = EventLifecycleManager(db).create_petition(
            actor,
            title=payload.title,
            description=payload.description,
            start=payload.start_time,
            end=payload.end_time,
            target_signatures=payload.target_signatures,
            template_id=payload.template_id,
        )
        return {"petition": PetitionResponse.model_validate(petition)}

    if isinstance(payload, SignPetitionRequest):
        signature = ParticipationGuard(db).sign_petition(actor, payload.petition_id, payload.comment)
        return {"signature": SignatureResponse.model_validate(signature)}

    petition = EventLifecycleManager(db).finalize(
        actor, EventType.PETITION, payload.petition_id, payload.results_reference
    )
    return {"petition": PetitionResponse.model_validate(petition)}


@router.get("/petitions/{petition_id}/progress")
async def petition_progress(
    petition_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Signature progress towards the target."""
    petition = EventLifecycleManager(db).get_event(EventType.PETITION, petition_id)
    return {
        "petition_id": petition.id,
        "status": petition.status,
        "current_signatures": petition.current_signatures,
        "target_signatures": petition.target_signatures,
        "progress_percent": queries.progress_percent(petition),
        "target_reached": queries.target_reached(petition),
        "time_remaining": queries.time_remaining(petition).as_dict(),
        "has_signed": ParticipationGuard(db).has_signed(actor.id, petition.id),
    }
