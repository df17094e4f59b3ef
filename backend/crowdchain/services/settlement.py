"""Settlement Scheduler — deferred pending → completed/failed transition for investments.

Invariants:
    - At most one scheduled task per transaction id; schedule() is idempotent
    - settle() re-reads transaction, project and investor inside its own DB session —
      never the snapshot taken at validation time
    - A transaction leaves `pending` exactly once; non-pending transactions are skipped
    - reserved policy: settle runs under the same (project, investor) keyed locks as
      validation, re-checks fresh state, and on violation marks the transaction failed
      with balances untouched
    - optimistic policy: applies the validated amount without re-checking goal or balance
    - Background failures never escape the task: logged, transaction marked failed

Design Decisions:
    - asyncio.Task keyed by transaction id: cancellable (graceful shutdown), observable
      (wait_idle for tests and drain), recoverable (resume_pending on startup)
    - session_scope injected as a callable: production resolves db_manager at call time,
      so tests that patch the module singleton are honoured
    - Events published after commit: subscribers never see a state the DB doesn't have
"""

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.config import get_settings
from crowdchain.core.domain_types import EventType, SettlementPolicy, TransactionStatus
from crowdchain.core.enforce_investment import check_settlement
from crowdchain.core.errors import ErrorContext, SettlementFailedError
from crowdchain.core.money import to_money
from crowdchain.infrastructure.database import get_db_manager
from crowdchain.models.transaction import Transaction
from crowdchain.repositories.accounts import UserRepository
from crowdchain.repositories.funding import ProjectRepository, TransactionRepository
from crowdchain.services.broadcaster import NotificationBroadcaster, get_broadcaster
from crowdchain.services.keyed_locks import KeyedLocks, project_key, user_key

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _default_session_scope() -> AbstractAsyncContextManager[AsyncSession]:
    return get_db_manager().session()


@dataclass
class SettlementOutcome:
    transaction: Transaction
    error: SettlementFailedError | None = None

    @property
    def completed(self) -> bool:
        return self.error is None


class SettlementScheduler:
    """Owns every in-flight settlement task."""

    def __init__(
        self,
        broadcaster: NotificationBroadcaster,
        delay_seconds: float = 2.0,
        policy: SettlementPolicy = SettlementPolicy.RESERVED,
        session_scope: SessionScope | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.broadcaster = broadcaster
        self.delay_seconds = delay_seconds
        self.policy = policy
        self.locks = locks or KeyedLocks()
        self._session_scope = session_scope or _default_session_scope
        self._tasks: dict[UUID, asyncio.Task] = {}

    # -- Task management -------------------------------------------------------

    @property
    def scheduled_ids(self) -> set[UUID]:
        return set(self._tasks)

    def guard(self, project_id: UUID, investor_id: UUID) -> AbstractAsyncContextManager:
        """Lock scope shared by validation and settlement (no-op when optimistic)."""
        if self.policy is SettlementPolicy.OPTIMISTIC:
            return nullcontext()
        return self.locks.hold(project_key(project_id), user_key(investor_id))

    def schedule(self, transaction_id: UUID, delay: float | None = None) -> asyncio.Task:
        existing = self._tasks.get(transaction_id)
        if existing is not None:
            return existing
        wait = self.delay_seconds if delay is None else delay
        task = asyncio.create_task(
            self._run(transaction_id, wait), name=f"settle-{transaction_id}",
        )
        self._tasks[transaction_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(transaction_id, None))
        return task

    def cancel(self, transaction_id: UUID) -> bool:
        """Cancel a scheduled settlement. The transaction stays pending."""
        task = self._tasks.get(transaction_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def wait_idle(self) -> None:
        """Wait until every scheduled settlement (including ones scheduled meanwhile) ends."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info("Cancelled %d pending settlement(s)", len(tasks))

    async def resume_pending(self) -> int:
        """Re-schedule transactions left pending by a previous process."""
        async with self._session_scope() as db:
            pending = await TransactionRepository(db).list_pending()
            ids = [tx.id for tx in pending]
        for transaction_id in ids:
            self.schedule(transaction_id)
        if ids:
            logger.info("Resumed %d pending settlement(s)", len(ids))
        return len(ids)

    async def _run(self, transaction_id: UUID, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.settle(transaction_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Settlement crashed: %s", e, exc_info=True,
                extra={"transaction_id": str(transaction_id)},
            )
            await self._fail_after_crash(transaction_id)

    # -- Settlement ------------------------------------------------------------

    async def settle(self, transaction_id: UUID) -> SettlementOutcome | None:
        """Apply one pending transaction now. Returns None if nothing to do."""
        async with self._session_scope() as db:
            tx = await TransactionRepository(db).get(transaction_id)
            if tx is None:
                logger.warning(
                    "Settlement skipped: transaction missing",
                    extra={"transaction_id": str(transaction_id)},
                )
                return None
            async with self.guard(tx.project_id, tx.investor_id):
                outcome = await self._apply(db, transaction_id)
        if outcome is not None:
            self._announce(outcome)
        return outcome

    async def _apply(self, db: AsyncSession, transaction_id: UUID) -> SettlementOutcome | None:
        txs = TransactionRepository(db)
        tx = await txs.get_for_update(transaction_id)
        if tx is None or tx.status != TransactionStatus.PENDING.value:
            logger.info(
                "Settlement skipped: transaction already %s",
                tx.status if tx else "gone",
                extra={"transaction_id": str(transaction_id)},
            )
            return None

        project = await ProjectRepository(db).get_for_update(tx.project_id)
        investor = await UserRepository(db).get_for_update(tx.investor_id)
        amount = to_money(tx.amount)
        now = datetime.now(timezone.utc)

        reason = self._settlement_blocker(project, investor, amount)
        if reason is not None:
            tx.status = TransactionStatus.FAILED.value
            tx.failure_reason = reason
            tx.settled_at = now
            await db.commit()
            ctx = ErrorContext(
                user_id=str(tx.investor_id), project_id=str(tx.project_id),
                transaction_id=str(tx.id),
            )
            logger.warning(
                "Settlement failed: %s", reason,
                extra={"transaction_id": str(tx.id), "project_id": str(tx.project_id)},
            )
            return SettlementOutcome(tx, SettlementFailedError(reason, ctx))

        tx.status = TransactionStatus.COMPLETED.value
        tx.settled_at = now
        investor.balance = to_money(investor.balance) - amount
        investor.updated_at = now
        project.current_amount = to_money(project.current_amount) + amount
        project.updated_at = now
        await db.commit()
        logger.info(
            "Investment settled",
            extra={
                "transaction_id": str(tx.id), "project_id": str(tx.project_id),
                "user_id": str(tx.investor_id),
            },
        )
        return SettlementOutcome(tx)

    def _settlement_blocker(self, project, investor, amount) -> str | None:
        match self.policy:
            case SettlementPolicy.RESERVED:
                return check_settlement(project, investor, amount)
            case SettlementPolicy.OPTIMISTIC:
                if project is None or investor is None:
                    return "project or investor no longer exists"
                return None

    def _announce(self, outcome: SettlementOutcome) -> None:
        tx = outcome.transaction
        data = {
            "transaction_id": tx.id,
            "project_id": tx.project_id,
            "investor_id": tx.investor_id,
            "amount": to_money(tx.amount),
        }
        if outcome.completed:
            self.broadcaster.publish(EventType.INVESTMENT_COMPLETED, data)
        else:
            self.broadcaster.publish(
                EventType.INVESTMENT_FAILED,
                {**outcome.error.to_event(), **data, "reason": outcome.error.reason},
            )

    async def _fail_after_crash(self, transaction_id: UUID) -> None:
        """Best-effort: move a crashed settlement to failed so it isn't retried forever."""
        try:
            async with self._session_scope() as db:
                tx = await TransactionRepository(db).get_for_update(transaction_id)
                if tx is None or tx.status != TransactionStatus.PENDING.value:
                    return
                tx.status = TransactionStatus.FAILED.value
                tx.failure_reason = "internal settlement error"
                tx.settled_at = datetime.now(timezone.utc)
                await db.commit()
                error = SettlementFailedError(
                    tx.failure_reason,
                    ErrorContext(transaction_id=str(tx.id), project_id=str(tx.project_id)),
                )
                self._announce(SettlementOutcome(tx, error))
        except Exception as e:
            logger.error(
                "Could not mark crashed settlement as failed: %s", e,
                extra={"transaction_id": str(transaction_id)},
            )


_scheduler: SettlementScheduler | None = None


def get_settlement_scheduler() -> SettlementScheduler:
    """Process-wide scheduler (FastAPI dependency)."""
    global _scheduler
    if _scheduler is None:
        settings = get_settings()
        _scheduler = SettlementScheduler(
            get_broadcaster(),
            delay_seconds=settings.settlement_delay_seconds,
            policy=SettlementPolicy(settings.settlement_policy),
        )
    return _scheduler
