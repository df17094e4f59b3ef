"""API Dependencies — identity resolution, role gates and shared singletons.

Invariants:
    - get_identity re-resolves the bearer token on every request (bans apply immediately)
    - require_roles(...) composes on top of get_identity; 401 before 403
    - Broadcaster and scheduler are injected through dependencies so tests can override them

Design Decisions:
    - Header read manually (not fastapi.security.HTTPBearer): missing/invalid credentials
      surface as the domain UnauthenticatedError envelope, not FastAPI's default 403
"""

from collections.abc import Callable

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.config import Settings, get_settings
from crowdchain.core.domain_types import Identity, Role
from crowdchain.core.enforce_roles import require_role
from crowdchain.core.tokens import extract_bearer
from crowdchain.infrastructure.database import get_db
from crowdchain.services.broadcaster import NotificationBroadcaster, get_broadcaster
from crowdchain.services.identity import resolve_identity
from crowdchain.services.settlement import SettlementScheduler, get_settlement_scheduler


def broadcaster_dep() -> NotificationBroadcaster:
    return get_broadcaster()


def scheduler_dep() -> SettlementScheduler:
    return get_settlement_scheduler()


def bearer_token(authorization: str | None = Header(None)) -> str:
    return extract_bearer(authorization)


async def get_identity(
    token: str = Depends(bearer_token),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Identity:
    return await resolve_identity(token, db, settings)


def require_roles(*roles: Role) -> Callable:
    """Dependency factory: authenticated caller whose role is one of `roles`."""
    async def _gate(identity: Identity = Depends(get_identity)) -> Identity:
        return require_role(identity, roles)
    return _gate
