"""Event templates and simulated contract deployments.

Deployments never reach a network: the address and block come from the
ledger simulator, and the deployment is recorded as a ``contract_deployment``
ledger entry in the same transaction.
"""

import logging
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor
from blocktrust_api.auth.policy import require_operation
from blocktrust_api.db.session import unit_of_work
from blocktrust_api.errors import InvalidTemplate, TemplateNotFound, ValidationError
from blocktrust_api.ledger.service import LedgerService
from blocktrust_api.models import (
    ContractDeployment,
    DeploymentStatus,
    EventTemplate,
    EventType,
    LedgerEntryType,
    TemplateType,
)
from blocktrust_api.models.event import new_id
from blocktrust_api.utils.metrics import contract_deployments

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "description", "config", "is_active"}


class TemplateManager:
    """Admin-side management of templates and their deployments."""

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        self.db = db
        self.ledger = ledger or LedgerService(db)

    def get_template(self, template_id: str) -> EventTemplate:
        template = self.db.get(EventTemplate, template_id)
        if template is None:
            raise TemplateNotFound(f"Template {template_id} not found")
        return template

    def resolve_for_event(self, template_id: str, event_type: EventType) -> EventTemplate:
        """An active template of the matching type, for event creation."""
        template = self.get_template(template_id)
        if not template.is_active:
            raise InvalidTemplate(f"Template {template_id} is inactive")
        if template.type != EventType(event_type).value:
            raise InvalidTemplate(f"Template {template_id} is a {template.type} template")
        return template

    def create_template(
        self,
        actor: Actor,
        name: str,
        template_type: TemplateType,
        description: str = "",
        config: Optional[dict] = None,
    ) -> EventTemplate:
        require_operation(actor.roles, "template:manage")
        with unit_of_work(self.db):
            template = EventTemplate(
                name=name,
                type=TemplateType(template_type).value,
                description=description or "",
                config=config or {},
                created_by=actor.id,
                is_active=True,
            )
            self.db.add(template)

        self.db.refresh(template)
        logger.info(f"Template created: {template.id}", extra={"template_type": template.type})
        return template

    def list_templates(self, actor: Actor, include_inactive: bool = False) -> list[EventTemplate]:
        require_operation(actor.roles, "template:manage")
        query = self.db.query(EventTemplate)
        if not include_inactive:
            query = query.filter(EventTemplate.is_active.is_(True))
        return query.order_by(EventTemplate.created_at.desc()).all()

    def update_template(self, actor: Actor, template_id: str, updates: dict) -> EventTemplate:
        """Change name, description, config or active flag."""
        require_operation(actor.roles, "template:manage")
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update template fields: {', '.join(sorted(unknown))}")
        template = self.get_template(template_id)

        with unit_of_work(self.db):
            for field_name, value in updates.items():
                setattr(template, field_name, value)

        self.db.refresh(template)
        logger.info(f"Template updated: {template.id}", extra={"fields": sorted(updates)})
        return template

    def deploy_contract(
        self,
        actor: Actor,
        template_id: str,
        network_id: str,
        contract_params: Optional[dict] = None,
    ) -> ContractDeployment:
        """Record a simulated deployment of an active template."""
        require_operation(actor.roles, "template:manage")
        template = self.get_template(template_id)
        if not template.is_active:
            raise InvalidTemplate(f"Template {template_id} is inactive")

        deployment_id = new_id()
        contract_address = "0x" + secrets.token_hex(20)
        with unit_of_work(self.db):
            entry = self.ledger.append(
                LedgerEntryType.CONTRACT_DEPLOYMENT,
                deployment_id,
                actor.id,
                {
                    "template_type": template.type,
                    "contract_address": contract_address,
                    "network_id": network_id,
                },
            )
            deployment = ContractDeployment(
                id=deployment_id,
                template_id=template.id,
                contract_address=contract_address,
                network_id=network_id,
                deployer_id=actor.id,
                deployment_params=contract_params or {},
                block_number=entry.block_number,
                transaction_hash=entry.transaction_hash,
                status=DeploymentStatus.DEPLOYED.value,
            )
            self.db.add(deployment)

        self.db.refresh(deployment)
        contract_deployments.labels(template_type=template.type).inc()
        logger.info(
            f"Contract deployed from template {template.id}: {contract_address}",
            extra={"network_id": network_id, "block_number": deployment.block_number},
        )
        return deployment

    def list_deployments(self, actor: Actor) -> list[ContractDeployment]:
        require_operation(actor.roles, "template:manage")
        return (
            self.db.query(ContractDeployment)
            .order_by(ContractDeployment.created_at.desc())
            .all()
        )
