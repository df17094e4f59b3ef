"""Review Rules — tests for review-state derivation and terminal-state conflicts."""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from crowdchain.core.domain_types import ReviewStatus
from crowdchain.core.enforce_review import (
    check_project_reviewable,
    check_request_reviewable,
    project_review_status,
)
from crowdchain.core.errors import ReviewConflictError


@dataclass
class _Project:
    is_approved: bool = False
    is_active: bool = True
    goal_amount: Decimal = Decimal("100")
    current_amount: Decimal = Decimal("0")
    id: UUID = field(default_factory=uuid4)


@dataclass
class _Request:
    status: str = "pending"
    reviewed_at: object = None
    user_id: UUID = field(default_factory=uuid4)
    id: UUID = field(default_factory=uuid4)


def test_project_review_status_is_derived_from_flags():
    assert project_review_status(_Project()) is ReviewStatus.PENDING
    assert project_review_status(_Project(is_approved=True)) is ReviewStatus.APPROVED
    assert project_review_status(_Project(is_active=False)) is ReviewStatus.REJECTED


def test_pending_items_are_reviewable():
    check_request_reviewable(_Request())
    check_project_reviewable(_Project())


@pytest.mark.parametrize("status", ["approved", "rejected"])
def test_decided_request_conflicts(status):
    with pytest.raises(ReviewConflictError) as exc:
        check_request_reviewable(_Request(status=status))
    assert exc.value.code == "ALREADY_REVIEWED"
    assert exc.value.http_status == 409
    assert exc.value.details == {"status": status}


def test_decided_project_conflicts():
    with pytest.raises(ReviewConflictError):
        check_project_reviewable(_Project(is_approved=True))
    with pytest.raises(ReviewConflictError):
        check_project_reviewable(_Project(is_active=False))
