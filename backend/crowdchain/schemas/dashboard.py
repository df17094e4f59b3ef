"""Dashboard Schemas — the signed-in user's portfolio view."""

from pydantic import BaseModel

from crowdchain.schemas.auth import UserResponse
from crowdchain.schemas.common import Money
from crowdchain.schemas.project import ProjectResponse
from crowdchain.schemas.transaction import TransactionResponse


class DashboardStats(BaseModel):
    total_invested: Money
    active_investments: int
    portfolio_value: Money


class DashboardResponse(BaseModel):
    user: UserResponse
    transactions: list[TransactionResponse]
    projects: list[ProjectResponse]
    stats: DashboardStats
