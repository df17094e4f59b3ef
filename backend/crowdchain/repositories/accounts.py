"""Account Repositories — users, login sessions and wallet connections.

Invariants:
    - get_active_by_token never returns an expired session; expired rows are deleted on sight
      (flushed only: the caller commits the purge)
    - ban() is idempotent and returns None for unknown users
    - Username/email lookups are exact (callers normalize case before calling)
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete

from crowdchain.core.clock import ensure_utc
from crowdchain.core.domain_types import Role
from crowdchain.models.auth_session import AuthSession
from crowdchain.models.user import User
from crowdchain.models.wallet_connection import WalletConnection
from crowdchain.repositories.base import SqlRepository


class UserRepository(SqlRepository[User]):
    model = User

    async def get_by_username(self, username: str) -> User | None:
        return await self.get_by(username=username)

    async def get_by_email(self, email: str) -> User | None:
        return await self.get_by(email=email)

    async def list_by_role(self, role: Role) -> Sequence[User]:
        return await self.list_where(User.role == role.value, order_by=User.created_at)

    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        """Load several users in one query, keyed by id. Unknown ids are absent."""
        ids = set(user_ids)
        if not ids:
            return {}
        return {u.id: u for u in await self.list_where(User.id.in_(ids))}

    async def ban(self, user_id: UUID) -> User | None:
        return await self.update(user_id, is_banned=True)


class SessionRepository(SqlRepository[AuthSession]):
    model = AuthSession

    async def create_session(
        self, user_id: UUID, token: str, expires_at: datetime,
    ) -> AuthSession:
        return await self.create(user_id=user_id, token=token, expires_at=expires_at)

    async def get_active_by_token(
        self, token: str, now: datetime | None = None,
    ) -> AuthSession | None:
        session = await self.get_by(token=token)
        if session is None:
            return None
        if ensure_utc(session.expires_at) > (now or datetime.now(timezone.utc)):
            return session
        await self.db.delete(session)
        await self.db.flush()
        return None

    async def purge_expired(self, user_id: UUID, now: datetime | None = None) -> None:
        await self.db.execute(
            delete(AuthSession)
            .where(
                AuthSession.user_id == user_id,
                AuthSession.expires_at <= (now or datetime.now(timezone.utc)),
            )
            .execution_options(synchronize_session=False)
        )

    async def delete_by_token(self, token: str) -> None:
        await self.db.execute(delete(AuthSession).where(AuthSession.token == token))


class WalletRepository(SqlRepository[WalletConnection]):
    model = WalletConnection

    async def create_connection(
        self, user_id: UUID, wallet_type: str, address: str,
    ) -> WalletConnection:
        return await self.create(
            user_id=user_id, wallet_type=wallet_type, address=address,
        )

    async def list_by_user(self, user_id: UUID) -> Sequence[WalletConnection]:
        return await self.list_where(
            WalletConnection.user_id == user_id,
            order_by=WalletConnection.connected_at,
        )
