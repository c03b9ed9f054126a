"""Event templates and the simulated contract deployments made from them."""

import enum

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from blocktrust_api.db.base import Base
from blocktrust_api.models.event import new_id
from blocktrust_api.utils.clock import utcnow


class TemplateType(str, enum.Enum):
    """Kinds of event a template can describe."""

    VOTING = "voting"
    PETITION = "petition"
    SURVEY = "survey"


class DeploymentStatus(str, enum.Enum):
    DEPLOYED = "deployed"


class EventTemplate(Base):
    """Reusable configuration for creating events."""

    __tablename__ = "event_templates"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    config = Column(JSON, nullable=False, default=dict)  # e.g. {"options": [...], "target_signatures": 500}
    created_by = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    deployments = relationship("ContractDeployment", back_populates="template")


class ContractDeployment(Base):
    """A simulated contract deployment; nothing is sent to a network."""

    __tablename__ = "contract_deployments"

    id = Column(String(36), primary_key=True, default=new_id)
    template_id = Column(String(36), ForeignKey("event_templates.id"), nullable=False, index=True)
    contract_address = Column(String(42), nullable=False, unique=True)
    network_id = Column(String(100), nullable=False)
    deployer_id = Column(String(255), nullable=False, index=True)
    deployment_params = Column(JSON, nullable=False, default=dict)
    block_number = Column(BigInteger, nullable=False)
    transaction_hash = Column(String(255), nullable=False)
    status = Column(String(50), default=DeploymentStatus.DEPLOYED.value, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    template = relationship("EventTemplate", back_populates="deployments")
