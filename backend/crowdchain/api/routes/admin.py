"""Admin Routes — review queues, review decisions and bans.

Invariants:
    - Every route is gated on Role.ADMIN (401 without token, 403 for other roles)
    - Decisions on already-decided requests/projects return 409 ALREADY_REVIEWED
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.api.dependencies import broadcaster_dep, require_roles
from crowdchain.api.presenters import pending_request, project_card
from crowdchain.config import Settings, get_settings
from crowdchain.core.domain_types import Identity, Role
from crowdchain.infrastructure.database import get_db
from crowdchain.schemas.auth import MessageResponse, UserResponse
from crowdchain.schemas.creator_request import (
    CreatorRequestResponse, PendingCreatorRequest, ReviewDecision,
)
from crowdchain.schemas.project import ProjectCard, ProjectResponse
from crowdchain.services.account_service import AccountService
from crowdchain.services.broadcaster import NotificationBroadcaster
from crowdchain.services.project_service import ProjectService
from crowdchain.services.review_workflow import ReviewWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

admin_only = require_roles(Role.ADMIN)


def _workflow(
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
) -> ReviewWorkflow:
    return ReviewWorkflow(db, broadcaster)


def _accounts(
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, broadcaster, settings)


def _decision(body: ReviewDecision | None = Body(None)) -> ReviewDecision:
    return body or ReviewDecision()


# ─── Creator requests ──────────────────────────────────────────

@router.get("/creator-requests", response_model=list[PendingCreatorRequest])
async def list_pending_requests(
    _admin: Identity = Depends(admin_only),
    accounts: AccountService = Depends(_accounts),
):
    return [
        pending_request(request, user)
        for request, user in await accounts.pending_creator_requests()
    ]


@router.post(
    "/creator-requests/{request_id}/approve", response_model=CreatorRequestResponse,
)
async def approve_creator_request(
    request_id: UUID,
    decision: ReviewDecision = Depends(_decision),
    admin: Identity = Depends(admin_only),
    workflow: ReviewWorkflow = Depends(_workflow),
):
    request = await workflow.approve_request(request_id, admin.id, decision.admin_note)
    return CreatorRequestResponse.model_validate(request)


@router.post(
    "/creator-requests/{request_id}/reject", response_model=CreatorRequestResponse,
)
async def reject_creator_request(
    request_id: UUID,
    decision: ReviewDecision = Depends(_decision),
    admin: Identity = Depends(admin_only),
    workflow: ReviewWorkflow = Depends(_workflow),
):
    request = await workflow.reject_request(request_id, admin.id, decision.admin_note)
    return CreatorRequestResponse.model_validate(request)


# ─── Projects ──────────────────────────────────────────────────

@router.get("/projects", response_model=list[ProjectCard])
async def list_pending_projects(
    _admin: Identity = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
):
    views = await ProjectService(db, broadcaster).list_pending_review()
    return [project_card(view) for view in views]


@router.post("/projects/{project_id}/approve", response_model=ProjectResponse)
async def approve_project(
    project_id: UUID,
    admin: Identity = Depends(admin_only),
    workflow: ReviewWorkflow = Depends(_workflow),
):
    return ProjectResponse.model_validate(
        await workflow.approve_project(project_id, admin.id),
    )


@router.post("/projects/{project_id}/reject", response_model=ProjectResponse)
async def reject_project(
    project_id: UUID,
    admin: Identity = Depends(admin_only),
    workflow: ReviewWorkflow = Depends(_workflow),
):
    return ProjectResponse.model_validate(
        await workflow.reject_project(project_id, admin.id),
    )


# ─── Users ─────────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    _admin: Identity = Depends(admin_only),
    accounts: AccountService = Depends(_accounts),
):
    groups = await accounts.list_users()
    return {
        name: [UserResponse.model_validate(u).model_dump(mode="json") for u in users]
        for name, users in groups.items()
    }


@router.post("/users/{user_id}/ban", response_model=MessageResponse)
async def ban_user(
    user_id: UUID,
    admin: Identity = Depends(admin_only),
    accounts: AccountService = Depends(_accounts),
):
    await accounts.ban_user(user_id, admin.id)
    return MessageResponse(message="User banned successfully")
