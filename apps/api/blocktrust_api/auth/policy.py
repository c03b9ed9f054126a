"""Role-based access policy.

Pure functions over the caller's role set; nothing here reads ambient
identity, so every check takes the roles it needs as arguments.
"""

import logging
from typing import Iterable, Optional

from blocktrust_api.errors import Forbidden
from blocktrust_api.models.role import Role

logger = logging.getLogger(__name__)

# Roles required per lifecycle/participation operation
OPERATION_ROLES = {
    "voting:create": {Role.ADMIN},
    "voting:vote": {Role.VOTER},
    "petition:create": {Role.PETITIONER},
    "petition:sign": {Role.PETITIONER},
    "event:finalize": {Role.ADMIN},
    "event:cancel": {Role.ADMIN},
    "event:delete": {Role.ADMIN},
    "admin:read": {Role.ADMIN},
    "template:manage": {Role.ADMIN},
}


def _normalize(roles: Iterable) -> set[Role]:
    """Coerce strings to Role, dropping labels we do not know."""
    normalized = set()
    for role in roles or ():
        try:
            normalized.add(Role(role))
        except ValueError:
            logger.warning(f"Ignoring unknown role: {role}")
    return normalized


def authorize(actor_roles: Iterable, required_any: Iterable) -> bool:
    """Return True iff the actor holds at least one required role.

    ``admin`` is accepted wherever any other role is.
    """
    held = _normalize(actor_roles)
    if Role.ADMIN in held:
        return True
    return bool(held & _normalize(required_any))


def require_roles(actor_roles: Iterable, required_any: Iterable, action: Optional[str] = None) -> None:
    """Raise Forbidden unless ``authorize`` passes."""
    if authorize(actor_roles, required_any):
        return
    required = sorted(role.value for role in _normalize(required_any))
    label = " or ".join(required) if required else "admin"
    logger.info(
        "Access denied",
        extra={"action": action, "required": required},
    )
    raise Forbidden(f"{label.capitalize()} access required")


def require_operation(actor_roles: Iterable, operation: str) -> None:
    """Check the role set registered for a named operation."""
    require_roles(actor_roles, OPERATION_ROLES[operation], action=operation)
