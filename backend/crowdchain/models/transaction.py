"""Transaction ORM — one simulated ledger transfer.

Invariants:
    - created pending; transitions exactly once to completed or failed (settled_at set then)
    - transaction_hash / block_number / gas_used are decorative and never updated
    - amount > 0

Design Decisions:
    - (project_id, status) index: pending reservations are summed per project on every investment
    - failure_reason populated only on the failed path, for display
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from crowdchain.db.base import Base


class Transaction(Base):
    """Ledger transaction entity."""
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_project_status", "project_id", "status"),
        Index("ix_transactions_investor_status", "investor_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    investor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="investment",
    )
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    block_number: Mapped[int] = mapped_column(Integer, nullable=False)
    gas_used: Mapped[Decimal] = mapped_column(Numeric(12, 6), nullable=False)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
