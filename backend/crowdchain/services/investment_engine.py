"""Investment Engine — validate, record pending, announce, schedule settlement.

Invariants:
    - Precondition failures never create a transaction (validate before any write)
    - Under the reserved policy validation, insert and commit happen inside the
      (project, investor) lock, so the next waiter sees this pending row in its totals
    - Returned receipt is always `pending`; settlement happens later in the scheduler
    - Ordering: validation → commit → INVESTMENT_PENDING → schedule

Design Decisions:
    - Policy and locks come from the scheduler: validation and settlement can never
      disagree on which policy is in force
    - Commits its own unit of work (request session) before scheduling: the settlement
      task opens a separate session and must be able to read the row
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.core.chain_metadata import make_ledger_stamp
from crowdchain.core.domain_types import (
    EventType, SettlementPolicy, TransactionStatus, TransactionType,
)
from crowdchain.core.enforce_investment import ZERO, validate_investment
from crowdchain.core.errors import ErrorContext, NotFoundError
from crowdchain.models.transaction import Transaction
from crowdchain.repositories.accounts import UserRepository
from crowdchain.repositories.funding import ProjectRepository, TransactionRepository
from crowdchain.services.broadcaster import NotificationBroadcaster
from crowdchain.services.settlement import SettlementScheduler

logger = logging.getLogger(__name__)


class InvestmentEngine:
    def __init__(
        self,
        db: AsyncSession,
        broadcaster: NotificationBroadcaster,
        scheduler: SettlementScheduler,
    ):
        self.db = db
        self.broadcaster = broadcaster
        self.scheduler = scheduler

    async def invest(
        self, investor_id: UUID, project_id: UUID, raw_amount: object,
    ) -> Transaction:
        async with self.scheduler.guard(project_id, investor_id):
            tx = await self._record_pending(investor_id, project_id, raw_amount)

        self.broadcaster.publish(EventType.INVESTMENT_PENDING, {
            "transaction_id": tx.id,
            "project_id": tx.project_id,
            "investor_id": tx.investor_id,
            "amount": tx.amount,
            "transaction_hash": tx.transaction_hash,
        })
        self.scheduler.schedule(tx.id)
        return tx

    async def _record_pending(
        self, investor_id: UUID, project_id: UUID, raw_amount: object,
    ) -> Transaction:
        project = await ProjectRepository(self.db).get_for_update(project_id)
        investor = await UserRepository(self.db).get_for_update(investor_id)
        if investor is None:
            raise NotFoundError("User", str(investor_id), ErrorContext(user_id=str(investor_id)))

        txs = TransactionRepository(self.db)
        project_reserved = investor_reserved = ZERO
        if self.scheduler.policy is SettlementPolicy.RESERVED and project is not None:
            project_reserved = await txs.pending_total_for_project(project_id)
            investor_reserved = await txs.pending_total_for_investor(investor_id)

        amount = validate_investment(
            project, project_id, investor, raw_amount,
            project_reserved=project_reserved,
            investor_reserved=investor_reserved,
        )

        stamp = make_ledger_stamp()
        tx = await txs.create(
            investor_id=investor_id,
            project_id=project_id,
            amount=amount,
            status=TransactionStatus.PENDING.value,
            type=TransactionType.INVESTMENT.value,
            transaction_hash=stamp.transaction_hash,
            block_number=stamp.block_number,
            gas_used=stamp.gas_used,
        )
        await self.db.commit()
        logger.info(
            "Investment pending",
            extra={
                "transaction_id": str(tx.id), "project_id": str(project_id),
                "user_id": str(investor_id),
            },
        )
        return tx
