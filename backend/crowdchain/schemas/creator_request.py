"""Creator Request Schemas — applications to become a creator and admin review notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from crowdchain.schemas.auth import UserSummary


class CreatorRequestCreate(BaseModel):
    business_name: str | None = Field(None, max_length=200)
    business_description: str | None = Field(None, max_length=5000)
    website: str | None = Field(None, max_length=500)
    experience: str | None = Field(None, max_length=5000)


class ReviewDecision(BaseModel):
    """Optional body for approve/reject endpoints."""
    admin_note: str | None = Field(None, max_length=2000)


class CreatorRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    business_name: str | None = None
    business_description: str | None = None
    website: str | None = None
    experience: str | None = None
    status: str
    admin_note: str | None = None
    reviewed_by: UUID | None = None
    created_at: datetime
    reviewed_at: datetime | None = None


class PendingCreatorRequest(CreatorRequestResponse):
    user: UserSummary | None = None
