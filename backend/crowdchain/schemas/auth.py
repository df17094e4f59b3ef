"""Auth Schemas — signup/login payloads and the public user shape.

Invariants:
    - password_hash never appears in any response model
    - Signup role is limited to investor | creator (admin only via seeding)
    - Creator business fields are optional free text
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crowdchain.schemas.common import Money

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    role: Literal["investor", "creator"] = "investor"
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    # Creator application (ignored for investors)
    business_name: str | None = Field(None, max_length=200)
    business_description: str | None = Field(None, max_length=5000)
    website: str | None = Field(None, max_length=500)
    experience: str | None = Field(None, max_length=5000)

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(max_length=128)


class UserResponse(BaseModel):
    """Public account view."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    is_approved: bool
    is_banned: bool = False
    wallet_address: str | None = None
    balance: Money
    reward_points: int
    created_at: datetime


class UserSummary(BaseModel):
    """Creator/applicant summary embedded in listings."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    first_name: str | None = None
    last_name: str | None = None


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


class MessageResponse(BaseModel):
    message: str
