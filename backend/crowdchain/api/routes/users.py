"""User Routes — wallet connection and the personal dashboard.

Invariants:
    - Both routes act on the caller only (identity from the token, never from the path)
    - Dashboard stats count completed transactions only
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.api.dependencies import broadcaster_dep, get_identity
from crowdchain.config import Settings, get_settings
from crowdchain.core.domain_types import Identity
from crowdchain.infrastructure.database import get_db
from crowdchain.schemas.auth import UserResponse
from crowdchain.schemas.dashboard import DashboardResponse, DashboardStats
from crowdchain.schemas.project import ProjectResponse
from crowdchain.schemas.transaction import TransactionResponse
from crowdchain.schemas.wallet import WalletConnectionResponse, WalletConnectRequest
from crowdchain.services.account_service import AccountService
from crowdchain.services.broadcaster import NotificationBroadcaster

router = APIRouter(prefix="/api/v1", tags=["users"])


def _accounts(
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, broadcaster, settings)


@router.post("/wallet/connect", response_model=WalletConnectionResponse)
async def connect_wallet(
    body: WalletConnectRequest,
    identity: Identity = Depends(get_identity),
    accounts: AccountService = Depends(_accounts),
):
    connection = await accounts.connect_wallet(identity.id, body.wallet_type)
    return WalletConnectionResponse.model_validate(connection)


@router.get("/users/me/dashboard", response_model=DashboardResponse)
async def dashboard(
    identity: Identity = Depends(get_identity),
    accounts: AccountService = Depends(_accounts),
):
    board = await accounts.dashboard(identity.id)
    return DashboardResponse(
        user=UserResponse.model_validate(board.user),
        transactions=[TransactionResponse.model_validate(t) for t in board.transactions],
        projects=[ProjectResponse.model_validate(p) for p in board.projects],
        stats=DashboardStats(
            total_invested=board.total_invested,
            active_investments=board.active_investments,
            portfolio_value=board.portfolio_value,
        ),
    )
