"""Investment Rules — tests for the ordered precondition chain.

Tests cover:
    - missing / unapproved / inactive projects → NotFoundError
    - precondition order: project, then amount, then goal, then balance
    - the 100000 / 73420 / 26580 goal arithmetic, then GoalAlreadyReached
    - insufficient balance ($10 balance, $50 investment)
    - reservations shrink remaining goal and available balance
    - check_settlement returns reasons instead of raising
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from crowdchain.core.enforce_investment import (
    available_balance,
    check_settlement,
    remaining_goal,
    validate_investment,
)
from crowdchain.core.errors import (
    ExceedsRemainingGoalError,
    GoalAlreadyReachedError,
    InsufficientBalanceError,
    InvalidAmountError,
    NotFoundError,
)


@dataclass
class _Project:
    goal_amount: Decimal
    current_amount: Decimal = Decimal("0.00")
    is_approved: bool = True
    is_active: bool = True
    id: UUID = field(default_factory=uuid4)


@dataclass
class _Investor:
    balance: Decimal
    id: UUID = field(default_factory=uuid4)


# ─── Project preconditions ───────────────────────────────────────

def test_missing_project_is_not_found():
    with pytest.raises(NotFoundError):
        validate_investment(None, uuid4(), _Investor(Decimal("100")), "10")


@pytest.mark.parametrize("approved, active", [(False, True), (True, False), (False, False)])
def test_unapproved_or_inactive_project_is_not_found(approved, active):
    project = _Project(Decimal("1000"), is_approved=approved, is_active=active)
    with pytest.raises(NotFoundError) as exc:
        validate_investment(project, project.id, _Investor(Decimal("100")), "10")
    assert exc.value.http_status == 404


def test_project_check_runs_before_amount_check():
    with pytest.raises(NotFoundError):
        validate_investment(None, uuid4(), _Investor(Decimal("100")), "not-a-number")


def test_amount_check_runs_before_goal_check():
    project = _Project(Decimal("100"), current_amount=Decimal("100"))
    with pytest.raises(InvalidAmountError):
        validate_investment(project, project.id, _Investor(Decimal("100")), "-1")


# ─── Goal capacity ───────────────────────────────────────────────

def test_exceeding_remaining_goal_reports_remaining():
    project = _Project(Decimal("100000.00"), current_amount=Decimal("73420.00"))
    investor = _Investor(Decimal("50000.00"))
    with pytest.raises(ExceedsRemainingGoalError) as exc:
        validate_investment(project, project.id, investor, "30000")
    assert exc.value.remaining == Decimal("26580.00")
    assert exc.value.details == {"remaining": "26580.00"}


def test_exact_remaining_amount_is_accepted():
    project = _Project(Decimal("100000.00"), current_amount=Decimal("73420.00"))
    amount = validate_investment(project, project.id, _Investor(Decimal("50000")), "26580")
    assert amount == Decimal("26580.00")


def test_fully_funded_project_rejects_even_one_dollar():
    project = _Project(Decimal("100000.00"), current_amount=Decimal("100000.00"))
    with pytest.raises(GoalAlreadyReachedError):
        validate_investment(project, project.id, _Investor(Decimal("50000")), "1")


def test_goal_check_runs_before_balance_check():
    project = _Project(Decimal("100"), current_amount=Decimal("100"))
    with pytest.raises(GoalAlreadyReachedError):
        validate_investment(project, project.id, _Investor(Decimal("0")), "5")


# ─── Balance ─────────────────────────────────────────────────────

def test_insufficient_balance():
    project = _Project(Decimal("1000"))
    with pytest.raises(InsufficientBalanceError) as exc:
        validate_investment(project, project.id, _Investor(Decimal("10.00")), "50")
    assert exc.value.code == "INSUFFICIENT_BALANCE"


def test_spending_entire_balance_is_allowed():
    project = _Project(Decimal("1000"))
    assert validate_investment(
        project, project.id, _Investor(Decimal("50.00")), "50",
    ) == Decimal("50.00")


# ─── Reservations ────────────────────────────────────────────────

def test_pending_reservations_shrink_remaining_goal():
    project = _Project(Decimal("100"))
    assert remaining_goal(project, Decimal("80")) == Decimal("20.00")
    with pytest.raises(ExceedsRemainingGoalError) as exc:
        validate_investment(
            project, project.id, _Investor(Decimal("500")), "80",
            project_reserved=Decimal("80.00"),
        )
    assert exc.value.remaining == Decimal("20.00")


def test_fully_reserved_project_reports_goal_reached():
    project = _Project(Decimal("100"))
    with pytest.raises(GoalAlreadyReachedError):
        validate_investment(
            project, project.id, _Investor(Decimal("500")), "1",
            project_reserved=Decimal("100.00"),
        )


def test_pending_reservations_shrink_available_balance():
    investor = _Investor(Decimal("100"))
    assert available_balance(investor, Decimal("80")) == Decimal("20.00")
    project = _Project(Decimal("1000"))
    with pytest.raises(InsufficientBalanceError):
        validate_investment(
            project, project.id, investor, "30", investor_reserved=Decimal("80.00"),
        )


# ─── Settlement re-check ─────────────────────────────────────────

def test_check_settlement_passes_on_fresh_valid_state():
    assert check_settlement(
        _Project(Decimal("100")), _Investor(Decimal("100")), Decimal("100"),
    ) is None


def test_check_settlement_reports_each_violation():
    investor = _Investor(Decimal("100"))
    assert check_settlement(None, investor, Decimal("1")) is not None
    assert check_settlement(
        _Project(Decimal("100"), is_active=False), investor, Decimal("1"),
    ) is not None
    assert check_settlement(_Project(Decimal("100")), None, Decimal("1")) is not None
    assert "goal" in check_settlement(
        _Project(Decimal("100"), current_amount=Decimal("90")), investor, Decimal("20"),
    )
    assert "balance" in check_settlement(
        _Project(Decimal("1000")), _Investor(Decimal("5")), Decimal("20"),
    )
