"""Transaction Schemas — investment payload and the ledger receipt.

Invariants:
    - amount accepted as JSON string or number; format/positivity checked by parse_amount
      so malformed amounts surface as INVALID_AMOUNT, not a generic validation error
    - Booleans are rejected at the boundary (strict types)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr

from crowdchain.schemas.common import GasAmount, Money


class InvestRequest(BaseModel):
    amount: StrictStr | StrictInt | StrictFloat


class TransactionResponse(BaseModel):
    """Receipt returned by invest and by transaction lookup."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    investor_id: UUID
    project_id: UUID
    amount: Money
    status: str
    type: str
    transaction_hash: str
    block_number: int
    gas_used: GasAmount
    failure_reason: str | None = None
    created_at: datetime
    settled_at: datetime | None = None
