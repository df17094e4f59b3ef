"""Role Gates — pure authorization checks over the closed Role enum.

Invariants:
    - Unknown role strings never pass a gate (parse_role raises)
    - can_submit_projects, initial_approval and can_view_transaction match every Role
      member explicitly

Design Decisions:
    - match over string comparison: adding a Role member surfaces every gate that must decide
"""

from collections.abc import Iterable
from uuid import UUID

from crowdchain.core.domain_types import Identity, Role
from crowdchain.core.errors import ForbiddenError, UnauthenticatedError


def parse_role(value: str) -> Role:
    """Map a stored role string to Role. Corrupt values fail authentication."""
    try:
        return Role(value)
    except ValueError:
        raise UnauthenticatedError("Account has an unknown role")


def require_role(identity: Identity, allowed: Iterable[Role]) -> Identity:
    """Raise ForbiddenError unless identity.role is in allowed."""
    if identity.role not in frozenset(allowed):
        raise ForbiddenError()
    return identity


def can_submit_projects(role: Role, is_approved: bool) -> bool:
    """Creators may submit only after an admin approved them."""
    match role:
        case Role.CREATOR:
            return is_approved
        case Role.INVESTOR | Role.ADMIN:
            return False


def initial_approval(role: Role) -> bool:
    """Investors and admins start approved; creators wait for review."""
    match role:
        case Role.INVESTOR | Role.ADMIN:
            return True
        case Role.CREATOR:
            return False


def signup_role(requested: str | None) -> Role:
    """Self-service signup never grants admin; anything else falls back to investor."""
    match requested:
        case Role.CREATOR.value:
            return Role.CREATOR
        case _:
            return Role.INVESTOR


def can_view_transaction(
    identity: Identity, investor_id: UUID, project_creator_id: UUID | None,
) -> bool:
    """Receipts are visible to their investor, the project's creator and admins."""
    match identity.role:
        case Role.ADMIN:
            return True
        case Role.INVESTOR:
            return identity.id == investor_id
        case Role.CREATOR:
            return identity.id in (investor_id, project_creator_id)
