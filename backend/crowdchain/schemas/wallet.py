"""Wallet Schemas — simulated wallet connection."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WalletConnectRequest(BaseModel):
    wallet_type: str = Field(min_length=1, max_length=50)


class WalletConnectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    wallet_type: str
    address: str
    is_active: bool
    connected_at: datetime
