# SPDX-License-Identifier: Apache-2.0

"""
Authorization domain logic for role-based access control.

All checks are pure functions of the principal carried in the session
token and, where ownership matters, the target request.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..models.entities import HelpRequest, Principal
from ..models.enums import UserRole

ASSIGNER_ROLES = frozenset({
    UserRole.VOLUNTEER.value,
    UserRole.EMERGENCY_VOLUNTEER.value,
    UserRole.ADMIN.value,
})


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None


def check_role(principal: Principal, allowed_roles: Iterable[str]) -> AuthorizationResult:
    """
    Check that the principal holds one of the allowed roles.

    Args:
        principal: Authenticated caller
        allowed_roles: Role values permitted for the operation

    Returns:
        AuthorizationResult indicating if access is granted
    """
    if principal.role in set(allowed_roles):
        return AuthorizationResult(allowed=True)

    return AuthorizationResult(allowed=False, reason="Forbidden. Insufficient permissions.")


def can_view_request(principal: Principal, help_request: HelpRequest) -> AuthorizationResult:
    """Citizens may only read their own requests."""
    if principal.role == UserRole.USER.value and help_request.user_id != principal.user_id:
        return AuthorizationResult(
            allowed=False,
            reason="Forbidden. You can only view your own requests."
        )
    return AuthorizationResult(allowed=True)


def can_update_request_status(principal: Principal, help_request: HelpRequest) -> AuthorizationResult:
    """Admins may update any request; volunteers only those assigned to them."""
    role_check = check_role(principal, ASSIGNER_ROLES)
    if not role_check.allowed:
        return role_check

    if principal.is_admin or help_request.assigned_volunteer_id == principal.user_id:
        return AuthorizationResult(allowed=True)

    return AuthorizationResult(
        allowed=False,
        reason="Forbidden. You can only update requests assigned to you."
    )
