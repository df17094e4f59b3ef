"""Role Gates — tests for role parsing and exhaustive role decisions.

Tests cover:
    - parse_role accepts every Role value, rejects unknown strings as unauthenticated
    - require_role raises ForbiddenError outside the allowed set
    - only approved creators can submit projects
    - investors/admins start approved, creators do not
    - signup never yields admin
    - receipt visibility per role
"""

from uuid import uuid4

import pytest

from crowdchain.core.domain_types import Identity, Role
from crowdchain.core.enforce_roles import (
    can_submit_projects,
    can_view_transaction,
    initial_approval,
    parse_role,
    require_role,
    signup_role,
)
from crowdchain.core.errors import ForbiddenError, UnauthenticatedError


def _identity(role: Role) -> Identity:
    return Identity(id=uuid4(), role=role, username="u", email="u@example.com")


def test_parse_role_round_trips_every_member():
    for role in Role:
        assert parse_role(role.value) is role


def test_parse_role_rejects_unknown_value():
    with pytest.raises(UnauthenticatedError):
        parse_role("superuser")


def test_require_role_allows_listed_role():
    identity = _identity(Role.ADMIN)
    assert require_role(identity, [Role.ADMIN]) is identity


def test_require_role_forbids_other_roles():
    with pytest.raises(ForbiddenError) as exc:
        require_role(_identity(Role.INVESTOR), [Role.ADMIN])
    assert exc.value.http_status == 403


def test_only_approved_creators_submit_projects():
    assert can_submit_projects(Role.CREATOR, True) is True
    assert can_submit_projects(Role.CREATOR, False) is False
    assert can_submit_projects(Role.INVESTOR, True) is False
    assert can_submit_projects(Role.ADMIN, True) is False


def test_initial_approval_per_role():
    assert initial_approval(Role.INVESTOR) is True
    assert initial_approval(Role.ADMIN) is True
    assert initial_approval(Role.CREATOR) is False


@pytest.mark.parametrize("requested, expected", [
    ("creator", Role.CREATOR),
    ("investor", Role.INVESTOR),
    ("admin", Role.INVESTOR),
    (None, Role.INVESTOR),
])
def test_signup_role_never_grants_admin(requested, expected):
    assert signup_role(requested) is expected


def test_transaction_visibility():
    investor = _identity(Role.INVESTOR)
    creator = _identity(Role.CREATOR)
    assert can_view_transaction(investor, investor.id, creator.id)
    assert not can_view_transaction(_identity(Role.INVESTOR), investor.id, creator.id)
    assert can_view_transaction(creator, investor.id, creator.id)
    assert not can_view_transaction(_identity(Role.CREATOR), investor.id, creator.id)
    assert can_view_transaction(_identity(Role.ADMIN), investor.id, creator.id)
