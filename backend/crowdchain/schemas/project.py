"""Project Schemas — submission payload, listing cards and detail view.

Invariants:
    - goal_amount: positive, at most 2 decimal places
    - milestones: ordered list, each with a non-negative amount
    - end_date future-ness is checked in the service (clock-dependent, not a pure shape rule)
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crowdchain.schemas.auth import UserSummary
from crowdchain.schemas.common import Money


class Milestone(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    amount: Decimal = Field(ge=0, decimal_places=2)
    date: datetime | None = None
    status: Literal["pending", "in_progress", "completed"] = "pending"


class ProjectCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    full_description: str | None = Field(None, max_length=20_000)
    category: str = Field(min_length=2, max_length=50)
    image_url: str | None = Field(None, max_length=2000)
    goal_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    end_date: datetime
    milestones: list[Milestone] = Field(default_factory=list)

    @field_validator("title", "description", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    title: str
    description: str
    full_description: str | None = None
    category: str
    image_url: str | None = None
    goal_amount: Money
    current_amount: Money
    is_approved: bool
    is_active: bool
    end_date: datetime
    milestones: list[Milestone] | None = None
    created_at: datetime


class ProjectCard(ProjectResponse):
    """Listing entry: project + creator summary + progress percent."""
    creator: UserSummary | None = None
    progress: int


class ProjectDetail(ProjectCard):
    backers: int
    days_left: int
