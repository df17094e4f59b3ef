"""Account Service — signup, login/logout, bans, wallets, creator applications, dashboard.

Invariants:
    - Usernames and emails are unique; emails compared lower-cased
      (a signup that loses the insert race still gets DuplicateAccountError)
    - Self-service signup yields investor (approved) or creator (unapproved + pending
      creator request); admin is never self-assigned
    - New accounts start with starting_balance, starting_reward_points and a wallet address
    - Banned users cannot log in; their existing tokens stop resolving (identity re-reads)
    - At most one pending creator request per user
    - Events are published after commit

Design Decisions:
    - Session rows are the source of truth for logout: the signed token alone is not enough
    - Dashboard stats are computed from completed transactions only; pending ones are
      reservations, not holdings
    - Password hashing runs in a worker thread; the event loop also drives settlements
      and live event streams
    - Logging in purges the user's expired session rows
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.config import Settings
from crowdchain.core.chain_metadata import make_wallet_address
from crowdchain.core.domain_types import (
    EventType, Role, ReviewStatus, TransactionStatus,
)
from crowdchain.core.enforce_investment import ZERO
from crowdchain.core.enforce_roles import initial_approval, parse_role, signup_role
from crowdchain.core.errors import (
    DuplicateAccountError, ErrorContext, ForbiddenError, NotFoundError,
    UnauthenticatedError, ValidationFailedError,
)
from crowdchain.core.money import to_money
from crowdchain.core.passwords import hash_password, verify_password
from crowdchain.core.tokens import issue_token
from crowdchain.models.creator_request import CreatorRequest
from crowdchain.models.project import Project
from crowdchain.models.transaction import Transaction
from crowdchain.models.user import User
from crowdchain.models.wallet_connection import WalletConnection
from crowdchain.repositories.accounts import (
    SessionRepository, UserRepository, WalletRepository,
)
from crowdchain.repositories.funding import (
    CreatorRequestRepository, ProjectRepository, TransactionRepository,
)
from crowdchain.schemas.auth import SignupRequest
from crowdchain.schemas.creator_request import CreatorRequestCreate
from crowdchain.services.broadcaster import NotificationBroadcaster

logger = logging.getLogger(__name__)

PORTFOLIO_GROWTH = Decimal("1.15")


@dataclass
class Dashboard:
    user: User
    transactions: list[Transaction]
    projects: list[Project] = field(default_factory=list)
    total_invested: Decimal = ZERO
    active_investments: int = 0

    @property
    def portfolio_value(self) -> Decimal:
        return to_money(self.total_invested * PORTFOLIO_GROWTH)


class AccountService:
    def __init__(
        self, db: AsyncSession, broadcaster: NotificationBroadcaster, settings: Settings,
    ):
        self.db = db
        self.broadcaster = broadcaster
        self.settings = settings
        self.users = UserRepository(db)
        self.sessions = SessionRepository(db)

    # ─── Authentication ──────────────────────────────────────────

    async def signup(self, body: SignupRequest) -> tuple[User, str]:
        email = body.email.lower()
        await self._check_unique(body.username, email)

        role = signup_role(body.role)
        password_hash = await asyncio.to_thread(hash_password, body.password)
        try:
            user = await self.users.create(
                username=body.username,
                email=email,
                password_hash=password_hash,
                role=role.value,
                first_name=body.first_name,
                last_name=body.last_name,
                is_approved=initial_approval(role),
                balance=self.settings.starting_balance,
                reward_points=self.settings.starting_reward_points,
                wallet_address=make_wallet_address(),
            )
            request = None
            if role is Role.CREATOR:
                request = await CreatorRequestRepository(self.db).create(
                    user_id=user.id,
                    business_name=body.business_name,
                    business_description=body.business_description,
                    website=body.website,
                    experience=body.experience,
                )
            token = await self._open_session(user)
            await self.db.commit()
        except IntegrityError:
            # a concurrent signup took the username or email after our check
            await self.db.rollback()
            await self._check_unique(body.username, email)
            raise

        if request is not None:
            self._announce_request(request)
        self.broadcaster.publish(EventType.USER_REGISTERED, {
            "user_id": user.id, "username": user.username, "role": user.role,
        })
        logger.info("Account created", extra={"user_id": str(user.id)})
        return user, token

    async def _check_unique(self, username: str, email: str) -> None:
        if await self.users.get_by_username(username) is not None:
            raise DuplicateAccountError("username")
        if await self.users.get_by_email(email) is not None:
            raise DuplicateAccountError("email")

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self.users.get_by_email(email.lower())
        if user is None or not await asyncio.to_thread(
            verify_password, password, user.password_hash,
        ):
            raise UnauthenticatedError("Invalid credentials")
        if user.is_banned:
            raise UnauthenticatedError(
                "Account is banned", ErrorContext(user_id=str(user.id)),
            )
        token = await self._open_session(user)
        await self.db.commit()
        return user, token

    async def logout(self, token: str) -> None:
        await self.sessions.delete_by_token(token)
        await self.db.commit()

    async def get_user(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    async def _open_session(self, user: User) -> str:
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.settings.session_ttl_days)
        await self.sessions.purge_expired(user.id)
        token = issue_token(user.id, expires_at, self.settings.token_secret)
        await self.sessions.create_session(user.id, token, expires_at)
        return token

    async def ensure_admin(self) -> User:
        """Create the configured admin account if no user has that email yet."""
        email = self.settings.admin_email.lower()
        existing = await self.users.get_by_email(email)
        if existing is not None:
            return existing
        admin = await self.users.create(
            username=self.settings.admin_username,
            email=email,
            password_hash=await asyncio.to_thread(hash_password, self.settings.admin_password),
            role=Role.ADMIN.value,
            is_approved=initial_approval(Role.ADMIN),
            balance=self.settings.starting_balance,
            reward_points=self.settings.starting_reward_points,
            wallet_address=make_wallet_address(),
        )
        await self.db.commit()
        logger.info("Seeded admin account", extra={"user_id": str(admin.id)})
        return admin

    # ─── Administration ──────────────────────────────────────────

    async def ban_user(self, user_id: UUID, admin_id: UUID) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", str(user_id), ErrorContext(user_id=str(user_id)))
        if parse_role(user.role) is Role.ADMIN:
            raise ForbiddenError("Admins cannot be banned")
        user = await self.users.ban(user_id)
        await self.db.commit()
        self.broadcaster.publish(EventType.USER_BANNED, {
            "user_id": user.id, "banned_by": admin_id,
        })
        logger.info("User banned", extra={"user_id": str(user.id)})
        return user

    async def list_users(self) -> dict[str, list[User]]:
        return {
            "investors": list(await self.users.list_by_role(Role.INVESTOR)),
            "creators": list(await self.users.list_by_role(Role.CREATOR)),
        }

    async def pending_creator_requests(self) -> list[tuple[CreatorRequest, User | None]]:
        requests = await CreatorRequestRepository(self.db).list_by_status(ReviewStatus.PENDING)
        applicants = await self.users.get_many(r.user_id for r in requests)
        return [(r, applicants.get(r.user_id)) for r in requests]

    # ─── Creator applications ────────────────────────────────────

    async def submit_creator_request(
        self, user_id: UUID, body: CreatorRequestCreate,
    ) -> CreatorRequest:
        user = await self.get_user(user_id)
        match parse_role(user.role):
            case Role.INVESTOR:
                pass
            case Role.CREATOR if not user.is_approved:
                pass
            case _:
                raise ForbiddenError("Only investors and unapproved creators can apply")

        requests = CreatorRequestRepository(self.db)
        if await requests.get_pending_for_user(user_id) is not None:
            raise ValidationFailedError(
                "A creator request is already awaiting review", "user_id",
            )
        request = await requests.create(
            user_id=user_id,
            business_name=body.business_name,
            business_description=body.business_description,
            website=body.website,
            experience=body.experience,
        )
        await self.db.commit()
        self._announce_request(request)
        return request

    def _announce_request(self, request: CreatorRequest) -> None:
        self.broadcaster.publish(EventType.CREATOR_REQUEST_SUBMITTED, {
            "request_id": request.id, "user_id": request.user_id,
        })

    # ─── Wallet ──────────────────────────────────────────────────

    async def connect_wallet(
        self, user_id: UUID, wallet_type: str,
    ) -> WalletConnection:
        address = make_wallet_address()
        connection = await WalletRepository(self.db).create_connection(
            user_id, wallet_type, address,
        )
        await self.users.update(user_id, wallet_address=address)
        await self.db.commit()
        self.broadcaster.publish(EventType.WALLET_CONNECTED, {
            "user_id": user_id, "wallet_type": wallet_type, "address": address,
        })
        return connection

    # ─── Dashboard ───────────────────────────────────────────────

    async def dashboard(self, user_id: UUID) -> Dashboard:
        user = await self.get_user(user_id)
        completed = list(await TransactionRepository(self.db).list_by_investor(
            user_id, TransactionStatus.COMPLETED,
        ))
        projects: list[Project] = []
        if parse_role(user.role) is Role.CREATOR:
            projects = list(await ProjectRepository(self.db).list_by_creator(user_id))
        total = sum((to_money(t.amount) for t in completed), ZERO)
        return Dashboard(
            user=user,
            transactions=completed,
            projects=projects,
            total_invested=to_money(total),
            active_investments=len(completed),
        )
