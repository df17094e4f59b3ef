"""Boundary Protocols — structural contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Pure rule functions accept these Protocols, never ORM classes directly

Design Decisions:
    - Protocol over ABC: structural subtyping, ORM models satisfy them without inheritance
    - Only the attributes the rules read are declared — persistence details stay in models/
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID


class UserLike(Protocol):
    """What identity and investment rules read from a user."""
    id: UUID
    username: str
    email: str
    role: str
    is_approved: bool
    is_banned: bool
    balance: Decimal


class ProjectLike(Protocol):
    """What investment and review rules read from a project."""
    id: UUID
    goal_amount: Decimal
    current_amount: Decimal
    is_approved: bool
    is_active: bool


class CreatorRequestLike(Protocol):
    id: UUID
    user_id: UUID
    status: str
    reviewed_at: datetime | None


class TransactionLike(Protocol):
    id: UUID
    investor_id: UUID
    project_id: UUID
    amount: Decimal
    status: str
