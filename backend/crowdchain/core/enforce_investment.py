"""Investment Rule Enforcement — validates an investment before any transaction exists.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - validate_investment chains every precondition in a fixed order — first failure wins:
        1. project exists, approved and active   → NotFoundError
        2. amount well-formed and positive       → InvalidAmountError
        3. remaining goal > 0 and ≥ amount       → GoalAlreadyReachedError / ExceedsRemainingGoalError
        4. investor balance ≥ amount             → InsufficientBalanceError
    - `reserved` amounts (pending, not yet settled) shrink both remaining goal and balance

Design Decisions:
    - Raise typed errors (not dicts): routes surface them through the global handler unchanged
    - check_settlement returns a reason string instead of raising: settlement runs in a
      background task where there is no caller to propagate to
"""

from decimal import Decimal
from uuid import UUID

from crowdchain.core.errors import (
    ErrorContext,
    ExceedsRemainingGoalError,
    GoalAlreadyReachedError,
    InsufficientBalanceError,
    NotFoundError,
)
from crowdchain.core.money import parse_amount, to_money
from crowdchain.core.repository_protocols import ProjectLike, UserLike

ZERO = Decimal("0.00")


def remaining_goal(project: ProjectLike, reserved: Decimal = ZERO) -> Decimal:
    """Goal minus raised minus reserved. May be ≤ 0."""
    return to_money(project.goal_amount) - to_money(project.current_amount) - reserved


def available_balance(investor: UserLike, reserved: Decimal = ZERO) -> Decimal:
    return to_money(investor.balance) - reserved


def check_project_investable(
    project: ProjectLike | None, project_id: UUID,
) -> ProjectLike:
    """Rule 1: only approved, active projects accept investments."""
    if project is None or not project.is_approved or not project.is_active:
        raise NotFoundError(
            "Project", str(project_id),
            ErrorContext(project_id=str(project_id)),
        )
    return project


def check_goal_capacity(
    project: ProjectLike, amount: Decimal, reserved: Decimal = ZERO,
) -> None:
    """Rule 3: the amount must fit in what the project still needs."""
    remaining = remaining_goal(project, reserved)
    ctx = ErrorContext(project_id=str(project.id))
    if remaining <= 0:
        raise GoalAlreadyReachedError(ctx)
    if amount > remaining:
        raise ExceedsRemainingGoalError(remaining, ctx)


def check_balance(
    investor: UserLike, amount: Decimal, reserved: Decimal = ZERO,
) -> None:
    """Rule 4: the investor must be able to cover the amount."""
    if available_balance(investor, reserved) < amount:
        raise InsufficientBalanceError(ErrorContext(user_id=str(investor.id)))


def validate_investment(
    project: ProjectLike | None,
    project_id: UUID,
    investor: UserLike,
    raw_amount: object,
    project_reserved: Decimal = ZERO,
    investor_reserved: Decimal = ZERO,
) -> Decimal:
    """Run every precondition in order. Returns the parsed amount on success."""
    checked = check_project_investable(project, project_id)
    amount = parse_amount(raw_amount)
    check_goal_capacity(checked, amount, project_reserved)
    check_balance(investor, amount, investor_reserved)
    return amount


def check_settlement(
    project: ProjectLike | None, investor: UserLike | None, amount: Decimal,
) -> str | None:
    """Re-check fresh state right before applying. Returns failure reason or None."""
    if project is None or not project.is_approved or not project.is_active:
        return "project no longer accepts investments"
    if investor is None:
        return "investor no longer exists"
    if amount > remaining_goal(project):
        return "amount exceeds remaining goal at settlement"
    if available_balance(investor) < amount:
        return "insufficient balance at settlement"
    return None
