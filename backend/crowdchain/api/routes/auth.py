"""Auth Routes — signup, login, logout, current user.

Invariants:
    - Signup and login both return {user, token}; the token is a live session
    - Logout deletes exactly the presented session (other devices stay signed in)
    - /me reflects the current DB row (balance updates after settlement show up)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.api.dependencies import bearer_token, broadcaster_dep, get_identity
from crowdchain.config import Settings, get_settings
from crowdchain.core.domain_types import Identity
from crowdchain.infrastructure.database import get_db
from crowdchain.schemas.auth import (
    AuthResponse, LoginRequest, MessageResponse, SignupRequest, UserResponse,
)
from crowdchain.services.account_service import AccountService
from crowdchain.services.broadcaster import NotificationBroadcaster

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _accounts(
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, broadcaster, settings)


@router.post(
    "/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
)
async def signup(body: SignupRequest, accounts: AccountService = Depends(_accounts)):
    user, token = await accounts.signup(body)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, accounts: AccountService = Depends(_accounts)):
    user, token = await accounts.login(body.email, body.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    identity: Identity = Depends(get_identity),
    token: str = Depends(bearer_token),
    accounts: AccountService = Depends(_accounts),
):
    await accounts.logout(token)
    logger.info("Signed out", extra={"user_id": str(identity.id)})
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def me(
    identity: Identity = Depends(get_identity),
    accounts: AccountService = Depends(_accounts),
):
    return UserResponse.model_validate(await accounts.get_user(identity.id))
