"""Database models - import all models here for Alembic discovery."""

from blocktrust_api.models.event import (
    EventStatus,
    EventType,
    PetitionEvent,
    VotingEvent,
    VotingOptionTally,
)
from blocktrust_api.models.ledger import HashMode, LedgerEntry, LedgerEntryType, LedgerSequence
from blocktrust_api.models.participation import PetitionSignature, Vote
from blocktrust_api.models.role import Role, UserRole
from blocktrust_api.models.template import (
    ContractDeployment,
    DeploymentStatus,
    EventTemplate,
    TemplateType,
)

__all__ = [
    "EventStatus",
    "EventType",
    "VotingEvent",
    "VotingOptionTally",
    "PetitionEvent",
    "Vote",
    "PetitionSignature",
    "LedgerEntry",
    "LedgerEntryType",
    "LedgerSequence",
    "HashMode",
    "Role",
    "UserRole",
    "EventTemplate",
    "ContractDeployment",
    "DeploymentStatus",
    "TemplateType",
]
