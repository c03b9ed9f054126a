"""Template manager endpoints (admin only)."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor, get_current_actor
from blocktrust_api.db.session import get_db
from blocktrust_api.events.templates import TemplateManager
from blocktrust_api.models import TemplateType

router = APIRouter(prefix="/v1", tags=["templates"])


class TemplateResponse(BaseModel):
    """Event template response."""

    id: str
    name: str
    type: str
    description: str
    config: dict
    created_by: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TemplateSummary(BaseModel):
    name: str
    type: str
    description: str

    class Config:
        from_attributes = True


class DeploymentResponse(BaseModel):
    """Simulated contract deployment response."""

    id: str
    template_id: str
    contract_address: str
    network_id: str
    deployer_id: str
    deployment_params: dict
    block_number: int
    transaction_hash: str
    status: str
    created_at: datetime
    template: Optional[TemplateSummary] = None

    class Config:
        from_attributes = True


class CreateTemplateRequest(BaseModel):
    """Create a template."""

    action: Literal["create-template"]
    name: str = Field(..., min_length=1, max_length=255)
    type: TemplateType
    description: str = ""
    config: dict = Field(default_factory=dict)


class DeployContractRequest(BaseModel):
    """Deploy a (simulated) contract from a template."""

    action: Literal["deploy-contract"]
    templateId: str
    networkId: str = Field(..., min_length=1, max_length=100)
    contractParams: dict = Field(default_factory=dict)


TemplateAction = Annotated[
    Union[CreateTemplateRequest, DeployContractRequest],
    Body(discriminator="action"),
]


class TemplateUpdates(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    config: Optional[dict] = None
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"


class UpdateTemplateRequest(BaseModel):
    """Update a template's name, description, config or active flag."""

    action: Literal["update-template"]
    templateId: str
    updates: TemplateUpdates


@router.get("/templates")
async def list_templates(
    action: Literal["list-templates", "list-deployments"] = Query("list-templates"),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Active templates, or every deployment, newest first."""
    manager = TemplateManager(db)
    if action == "list-deployments":
        deployments = manager.list_deployments(actor)
        return {
            "success": True,
            "deployments": [DeploymentResponse.model_validate(d) for d in deployments],
        }
    templates = manager.list_templates(actor, include_inactive=include_inactive)
    return {"success": True, "templates": [TemplateResponse.model_validate(t) for t in templates]}


@router.post("/templates")
async def template_action(
    payload: TemplateAction,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Dispatch on ``action``: create-template or deploy-contract."""
    manager = TemplateManager(db)
    if isinstance(payload, CreateTemplateRequest):
        template = manager.create_template(
            actor,
            name=payload.name,
            template_type=payload.type,
            description=payload.description,
            config=payload.config,
        )
        return {"success": True, "template": TemplateResponse.model_validate(template)}

    deployment = manager.deploy_contract(
        actor, payload.templateId, payload.networkId, payload.contractParams
    )
    return {
        "success": True,
        "deployment": DeploymentResponse.model_validate(deployment),
        "contractAddress": deployment.contract_address,
        "blockNumber": deployment.block_number,
    }


@router.put("/templates")
async def update_template(
    payload: UpdateTemplateRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Apply the fields present in ``updates``."""
    updates = payload.updates.model_dump(exclude_unset=True, exclude_none=True)
    template = TemplateManager(db).update_template(actor, payload.templateId, updates)
    return {"success": True, "template": TemplateResponse.model_validate(template)}
