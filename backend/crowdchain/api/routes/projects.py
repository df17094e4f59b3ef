"""Project Routes — submission, public listing, detail, investing, receipts.

Invariants:
    - GET /projects lists approved AND active projects only
    - POST /projects/{id}/invest returns the pending receipt (201) before settlement
    - Transaction lookup is limited to the investor, the project's creator and admins
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.api.dependencies import (
    broadcaster_dep, get_identity, require_roles, scheduler_dep,
)
from crowdchain.api.presenters import project_card, project_detail
from crowdchain.core.domain_types import Identity, Role
from crowdchain.infrastructure.database import get_db
from crowdchain.schemas.project import (
    ProjectCard, ProjectCreate, ProjectDetail, ProjectResponse,
)
from crowdchain.schemas.transaction import InvestRequest, TransactionResponse
from crowdchain.services.broadcaster import NotificationBroadcaster
from crowdchain.services.investment_engine import InvestmentEngine
from crowdchain.services.project_service import ProjectService
from crowdchain.services.settlement import SettlementScheduler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["projects"])


def _projects(
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
) -> ProjectService:
    return ProjectService(db, broadcaster)


@router.get("/projects", response_model=list[ProjectCard])
async def list_projects(projects: ProjectService = Depends(_projects)):
    return [project_card(view) for view in await projects.list_public()]


@router.post(
    "/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    identity: Identity = Depends(require_roles(Role.CREATOR)),
    projects: ProjectService = Depends(_projects),
):
    project = await projects.create(identity.id, body)
    return ProjectResponse.model_validate(project)


@router.get("/projects/{project_id}", response_model=ProjectDetail)
async def get_project(project_id: UUID, projects: ProjectService = Depends(_projects)):
    return project_detail(await projects.detail(project_id))


@router.post(
    "/projects/{project_id}/invest",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invest(
    project_id: UUID,
    body: InvestRequest,
    identity: Identity = Depends(require_roles(Role.INVESTOR)),
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
    scheduler: SettlementScheduler = Depends(scheduler_dep),
):
    engine = InvestmentEngine(db, broadcaster, scheduler)
    tx = await engine.invest(identity.id, project_id, body.amount)
    return TransactionResponse.model_validate(tx)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: UUID,
    identity: Identity = Depends(get_identity),
    projects: ProjectService = Depends(_projects),
):
    tx = await projects.get_transaction(transaction_id, identity)
    return TransactionResponse.model_validate(tx)
