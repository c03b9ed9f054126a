"""Tests for role-based access checks."""

import pytest

from blocktrust_api.auth.policy import OPERATION_ROLES, authorize, require_operation, require_roles
from blocktrust_api.errors import Forbidden
from blocktrust_api.models import Role


class TestAuthorize:
    """authorize() is pure over the actor's role set."""

    def test_matching_role_is_authorized(self):
        assert authorize({"voter"}, {Role.VOTER}) is True

    def test_any_of_several_required_roles(self):
        assert authorize({"petitioner"}, {Role.VOTER, Role.PETITIONER}) is True

    def test_admin_is_accepted_everywhere(self):
        for required in OPERATION_ROLES.values():
            assert authorize({"admin"}, required) is True

    def test_missing_role_is_denied(self):
        assert authorize({"voter"}, {Role.PETITIONER}) is False

    def test_empty_role_set_is_denied(self):
        assert authorize(set(), {Role.VOTER}) is False
        assert authorize(None, {Role.VOTER}) is False

    def test_unknown_roles_are_ignored(self):
        assert authorize({"superuser"}, {Role.VOTER}) is False


class TestRequireRoles:
    def test_passes_silently(self):
        require_roles({"voter"}, {Role.VOTER})

    def test_raises_forbidden_with_role_name(self):
        with pytest.raises(Forbidden) as exc_info:
            require_roles({"voter"}, {Role.ADMIN})
        assert exc_info.value.message == "Admin access required"
        assert exc_info.value.status_code == 403


@pytest.mark.parametrize(
    "roles,operation,allowed",
    [
        ({"admin"}, "voting:create", True),
        ({"voter"}, "voting:create", False),
        ({"voter"}, "voting:vote", True),
        ({"petitioner"}, "voting:vote", False),
        ({"petitioner"}, "petition:create", True),
        ({"petitioner"}, "petition:sign", True),
        ({"voter"}, "petition:sign", False),
        ({"petitioner"}, "event:delete", False),
        ({"admin"}, "admin:read", True),
    ],
)
def test_operation_roles(roles, operation, allowed):
    """Each named operation is gated by its registered roles."""
    if allowed:
        require_operation(roles, operation)
    else:
        with pytest.raises(Forbidden):
            require_operation(roles, operation)
