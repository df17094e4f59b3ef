"""Identity Verifier — bearer token → role-tagged Identity.

Invariants:
    - A token authenticates only if its signature and expiry hold AND a live session
      row with that exact token exists AND the user exists and is not banned
    - Every failure surfaces as UnauthenticatedError; callers never see which check failed
      beyond the message
    - Banning takes effect on the next request (the user row is re-read every time)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.config import Settings
from crowdchain.core.domain_types import Identity
from crowdchain.core.enforce_roles import parse_role
from crowdchain.core.errors import ErrorContext, UnauthenticatedError
from crowdchain.core.tokens import decode_token
from crowdchain.repositories.accounts import SessionRepository, UserRepository

logger = logging.getLogger(__name__)


async def resolve_identity(
    token: str, db: AsyncSession, settings: Settings,
) -> Identity:
    claims = decode_token(token, settings.token_secret)

    session = await SessionRepository(db).get_active_by_token(token)
    if session is None:
        # persist the purge of an expired row before rejecting
        await db.commit()
        raise UnauthenticatedError("Session expired or signed out")
    if session.user_id != claims.user_id:
        raise UnauthenticatedError("Session expired or signed out")

    user = await UserRepository(db).get(claims.user_id)
    if user is None:
        raise UnauthenticatedError("Account not found")
    if user.is_banned:
        logger.info("Rejected banned account", extra={"user_id": str(user.id)})
        raise UnauthenticatedError(
            "Account is banned", ErrorContext(user_id=str(user.id)),
        )

    return Identity(
        id=user.id, role=parse_role(user.role),
        username=user.username, email=user.email,
    )
