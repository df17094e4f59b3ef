"""Funding Repositories — projects, transactions and creator requests.

Invariants:
    - list_approved returns only approved AND active projects (public listing)
    - list_pending_review returns projects awaiting a decision (not approved, still active)
    - pending_total_* sums only pending investment transactions; empty sum is 0.00

Design Decisions:
    - SQL SUM over loading rows: reservation totals are read on every investment
"""

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from crowdchain.core.domain_types import ReviewStatus, TransactionStatus, TransactionType
from crowdchain.core.money import to_money
from crowdchain.models.creator_request import CreatorRequest
from crowdchain.models.project import Project
from crowdchain.models.transaction import Transaction
from crowdchain.repositories.base import SqlRepository


class ProjectRepository(SqlRepository[Project]):
    model = Project

    async def list_approved(self) -> Sequence[Project]:
        return await self.list_where(
            Project.is_approved.is_(True), Project.is_active.is_(True),
            order_by=Project.created_at.desc(),
        )

    async def list_pending_review(self) -> Sequence[Project]:
        return await self.list_where(
            Project.is_approved.is_(False), Project.is_active.is_(True),
            order_by=Project.created_at,
        )

    async def list_by_creator(self, creator_id: UUID) -> Sequence[Project]:
        return await self.list_where(
            Project.creator_id == creator_id, order_by=Project.created_at.desc(),
        )


class TransactionRepository(SqlRepository[Transaction]):
    model = Transaction

    async def list_by_investor(
        self, investor_id: UUID, status: TransactionStatus | None = None,
    ) -> Sequence[Transaction]:
        criteria = [Transaction.investor_id == investor_id]
        if status is not None:
            criteria.append(Transaction.status == status.value)
        return await self.list_where(*criteria, order_by=Transaction.created_at.desc())

    async def list_by_project(
        self, project_id: UUID, status: TransactionStatus | None = None,
    ) -> Sequence[Transaction]:
        criteria = [Transaction.project_id == project_id]
        if status is not None:
            criteria.append(Transaction.status == status.value)
        return await self.list_where(*criteria, order_by=Transaction.created_at.desc())

    async def list_pending(self) -> Sequence[Transaction]:
        return await self.list_where(
            Transaction.status == TransactionStatus.PENDING.value,
            order_by=Transaction.created_at,
        )

    async def pending_total_for_project(self, project_id: UUID) -> Decimal:
        return await self._pending_total(Transaction.project_id == project_id)

    async def pending_total_for_investor(self, investor_id: UUID) -> Decimal:
        return await self._pending_total(Transaction.investor_id == investor_id)

    async def _pending_total(self, criterion) -> Decimal:
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            criterion,
            Transaction.status == TransactionStatus.PENDING.value,
            Transaction.type == TransactionType.INVESTMENT.value,
        )
        result = await self.db.execute(stmt)
        return to_money(result.scalar_one())


class CreatorRequestRepository(SqlRepository[CreatorRequest]):
    model = CreatorRequest

    async def list_by_status(self, status: ReviewStatus) -> Sequence[CreatorRequest]:
        return await self.list_where(
            CreatorRequest.status == status.value, order_by=CreatorRequest.created_at,
        )

    async def get_pending_for_user(self, user_id: UUID) -> CreatorRequest | None:
        return await self.get_by(user_id=user_id, status=ReviewStatus.PENDING.value)
