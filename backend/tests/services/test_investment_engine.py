"""Investment Engine — tests for the pending → completed investment flow.

Tests cover:
    - receipt is returned pending, with ledger metadata, before settlement runs
    - settlement moves balance and raised amount exactly once
    - goal-filling investment followed by a $1 attempt → GoalAlreadyReachedError
    - precondition failures create no transaction row
    - INVESTMENT_PENDING precedes INVESTMENT_COMPLETED for the same transaction
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from crowdchain.core.domain_types import Role, TransactionStatus
from crowdchain.core.errors import (
    ExceedsRemainingGoalError, GoalAlreadyReachedError, InsufficientBalanceError,
    InvalidAmountError, NotFoundError,
)
from crowdchain.models.transaction import Transaction
from crowdchain.services.investment_engine import InvestmentEngine


async def _transaction_count(db) -> int:
    return (await db.execute(select(func.count(Transaction.id)))).scalar_one()


async def test_receipt_is_pending_until_settled(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    investor = await make_user(balance="500.00")
    project = await make_project(goal="1000.00")

    tx = await InvestmentEngine(test_db, broadcaster, scheduler).invest(
        investor.id, project.id, "125.50",
    )

    assert tx.status == TransactionStatus.PENDING.value
    assert tx.amount == Decimal("125.50")
    assert tx.transaction_hash.startswith("0x") and len(tx.transaction_hash) == 66
    assert tx.id in scheduler.scheduled_ids

    await scheduler.wait_idle()

    await test_db.refresh(tx)
    await test_db.refresh(investor)
    await test_db.refresh(project)
    assert tx.status == TransactionStatus.COMPLETED.value
    assert tx.settled_at is not None
    assert investor.balance == Decimal("374.50")
    assert project.current_amount == Decimal("125.50")


async def test_settling_twice_applies_once(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    investor = await make_user(balance="500.00")
    project = await make_project()
    tx = await InvestmentEngine(test_db, broadcaster, scheduler).invest(
        investor.id, project.id, 100,
    )
    await scheduler.wait_idle()

    assert await scheduler.settle(tx.id) is None

    await test_db.refresh(investor)
    await test_db.refresh(project)
    assert investor.balance == Decimal("400.00")
    assert project.current_amount == Decimal("100.00")


async def test_filling_the_goal_then_one_more_dollar(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    investor = await make_user(balance="50000.00")
    project = await make_project(goal="100000.00", current="73420.00")
    engine = InvestmentEngine(test_db, broadcaster, scheduler)

    with pytest.raises(ExceedsRemainingGoalError) as exc_info:
        await engine.invest(investor.id, project.id, "26581")
    assert "26580.00" in exc_info.value.message

    await engine.invest(investor.id, project.id, "26580")
    await scheduler.wait_idle()
    await test_db.refresh(project)
    assert project.current_amount == Decimal("100000.00")

    with pytest.raises(GoalAlreadyReachedError):
        await engine.invest(investor.id, project.id, "1")


@pytest.mark.parametrize("balance,amount", [("10.00", "50"), ("49.99", "50.00")])
async def test_insufficient_balance_creates_no_transaction(
    test_db, broadcaster, scheduler, make_user, make_project, balance, amount,
):
    investor = await make_user(balance=balance)
    project = await make_project()

    with pytest.raises(InsufficientBalanceError):
        await InvestmentEngine(test_db, broadcaster, scheduler).invest(
            investor.id, project.id, amount,
        )

    assert await _transaction_count(test_db) == 0
    assert scheduler.scheduled_ids == set()


@pytest.mark.parametrize("raw", ["abc", "0", "-5", "", None, True, "1.001"])
async def test_malformed_amount_rejected(
    test_db, broadcaster, scheduler, make_user, make_project, raw,
):
    investor = await make_user()
    project = await make_project()

    with pytest.raises(InvalidAmountError):
        await InvestmentEngine(test_db, broadcaster, scheduler).invest(
            investor.id, project.id, raw,
        )
    assert await _transaction_count(test_db) == 0


async def test_unapproved_or_inactive_project_is_not_found(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    investor = await make_user()
    engine = InvestmentEngine(test_db, broadcaster, scheduler)
    unapproved = await make_project(is_approved=False)
    inactive = await make_project(is_active=False)

    for project_id in (unapproved.id, inactive.id, uuid4()):
        with pytest.raises(NotFoundError):
            await engine.invest(investor.id, project_id, "10")
    assert await _transaction_count(test_db) == 0


async def test_pending_reservation_blocks_overcommit(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    """A second investment sees the first one's pending amount before it settles."""
    investor = await make_user(balance="1000.00")
    project = await make_project(goal="100.00")
    engine = InvestmentEngine(test_db, broadcaster, scheduler)
    scheduler.delay_seconds = 60

    await engine.invest(investor.id, project.id, "80")
    with pytest.raises(ExceedsRemainingGoalError):
        await engine.invest(investor.id, project.id, "30")


async def test_events_pending_then_completed(
    test_db, broadcaster, scheduler, make_user, make_project,
):
    sub = broadcaster.subscribe()
    investor = await make_user(role=Role.INVESTOR)
    project = await make_project()

    tx = await InvestmentEngine(test_db, broadcaster, scheduler).invest(
        investor.id, project.id, "42",
    )
    await scheduler.wait_idle()

    pending, completed = await sub.next_event(), await sub.next_event()
    assert pending["type"] == "INVESTMENT_PENDING"
    assert pending["data"]["transaction_id"] == str(tx.id)
    assert pending["data"]["transaction_hash"] == tx.transaction_hash
    assert completed["type"] == "INVESTMENT_COMPLETED"
    assert completed["data"]["transaction_id"] == str(tx.id)
    assert completed["data"]["amount"] == "42.00"
