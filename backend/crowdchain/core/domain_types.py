"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ProjectId, TransactionId, RequestId wrap UUIDs — never use bare UUID in domain logic
    - Money is always Decimal quantized to 2 places (CENTS)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, stored as-is in String columns
    - Identity is a frozen dataclass: resolved once per request, never mutated downstream
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ProjectId = NewType("ProjectId", UUID)
TransactionId = NewType("TransactionId", UUID)
RequestId = NewType("RequestId", UUID)

CENTS = Decimal("0.01")


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Closed set of account roles — every gate matches on these exhaustively."""
    INVESTOR = "investor"
    CREATOR = "creator"
    ADMIN = "admin"


class TransactionStatus(str, Enum):
    """Transaction lifecycle: pending → completed | failed, exactly once."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionType(str, Enum):
    INVESTMENT = "investment"
    WITHDRAWAL = "withdrawal"
    REWARD = "reward"


class ReviewStatus(str, Enum):
    """Creator request states; approved/rejected are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SettlementPolicy(str, Enum):
    """How concurrent investments into one project are reconciled."""
    RESERVED = "reserved"
    OPTIMISTIC = "optimistic"


class EventType(str, Enum):
    """Broadcast event types — values are the wire names clients subscribe to."""
    CONNECTED = "CONNECTED"
    USER_REGISTERED = "USER_REGISTERED"
    USER_BANNED = "USER_BANNED"
    WALLET_CONNECTED = "WALLET_CONNECTED"
    CREATOR_REQUEST_SUBMITTED = "CREATOR_REQUEST_SUBMITTED"
    CREATOR_REQUEST_APPROVED = "CREATOR_REQUEST_APPROVED"
    CREATOR_REQUEST_REJECTED = "CREATOR_REQUEST_REJECTED"
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_APPROVED = "PROJECT_APPROVED"
    PROJECT_REJECTED = "PROJECT_REJECTED"
    INVESTMENT_PENDING = "INVESTMENT_PENDING"
    INVESTMENT_COMPLETED = "INVESTMENT_COMPLETED"
    INVESTMENT_FAILED = "INVESTMENT_FAILED"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as resolved from a bearer token."""
    id: UUID
    role: Role
    username: str
    email: str
