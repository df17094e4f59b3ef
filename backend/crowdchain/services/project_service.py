"""Project Service — project submission, public listing and detail views.

Invariants:
    - Only approved creators submit projects; new projects start unapproved and active
    - end_date must be strictly in the future at submission
    - Public listing = approved AND active; detail lookup by id works for any project
    - backers counts completed investment transactions only
    - Receipts are readable by their investor, the project creator and admins
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.core.clock import ensure_utc
from crowdchain.core.domain_types import EventType, Identity, TransactionStatus
from crowdchain.core.enforce_roles import (
    can_submit_projects, can_view_transaction, parse_role,
)
from crowdchain.core.errors import (
    ErrorContext, ForbiddenError, NotFoundError, ValidationFailedError,
)
from crowdchain.core.money import progress_percent, to_money
from crowdchain.models.project import Project
from crowdchain.models.transaction import Transaction
from crowdchain.models.user import User
from crowdchain.repositories.accounts import UserRepository
from crowdchain.repositories.funding import ProjectRepository, TransactionRepository
from crowdchain.schemas.project import ProjectCreate
from crowdchain.services.broadcaster import NotificationBroadcaster

logger = logging.getLogger(__name__)


@dataclass
class ProjectView:
    project: Project
    creator: User | None
    backers: int | None = None

    @property
    def progress(self) -> int:
        return progress_percent(
            to_money(self.project.current_amount), to_money(self.project.goal_amount),
        )

    def days_left(self, now: datetime | None = None) -> int:
        remaining = ensure_utc(self.project.end_date) - (now or datetime.now(timezone.utc))
        return max(0, remaining.days + (1 if remaining.seconds else 0))


class ProjectService:
    def __init__(self, db: AsyncSession, broadcaster: NotificationBroadcaster):
        self.db = db
        self.broadcaster = broadcaster
        self.projects = ProjectRepository(db)
        self.users = UserRepository(db)

    async def create(self, creator_id: UUID, body: ProjectCreate) -> Project:
        creator = await self.users.get(creator_id)
        if creator is None or not can_submit_projects(
            parse_role(creator.role), creator.is_approved,
        ):
            raise ForbiddenError("Only approved creators can submit projects")
        end_date = ensure_utc(body.end_date)
        if end_date <= datetime.now(timezone.utc):
            raise ValidationFailedError("End date must be in the future", "end_date")

        project = await self.projects.create(
            creator_id=creator_id,
            title=body.title,
            description=body.description,
            full_description=body.full_description,
            category=body.category,
            image_url=body.image_url,
            goal_amount=body.goal_amount,
            end_date=end_date,
            milestones=[m.model_dump(mode="json") for m in body.milestones] or None,
        )
        await self.db.commit()
        self.broadcaster.publish(EventType.PROJECT_CREATED, {
            "project_id": project.id, "creator_id": creator_id, "title": project.title,
        })
        logger.info("Project submitted", extra={"project_id": str(project.id)})
        return project

    async def list_public(self) -> list[ProjectView]:
        return await self._with_creators(await self.projects.list_approved())

    async def list_pending_review(self) -> list[ProjectView]:
        return await self._with_creators(await self.projects.list_pending_review())

    async def _with_creators(self, projects: Sequence[Project]) -> list[ProjectView]:
        creators = await self.users.get_many(p.creator_id for p in projects)
        return [ProjectView(p, creators.get(p.creator_id)) for p in projects]

    async def detail(self, project_id: UUID) -> ProjectView:
        project = await self.projects.get(project_id)
        if project is None:
            raise NotFoundError(
                "Project", str(project_id), ErrorContext(project_id=str(project_id)),
            )
        completed = await TransactionRepository(self.db).list_by_project(
            project_id, TransactionStatus.COMPLETED,
        )
        return ProjectView(
            project, await self.users.get(project.creator_id), backers=len(completed),
        )

    async def get_transaction(self, transaction_id: UUID, viewer: Identity) -> Transaction:
        ctx = ErrorContext(user_id=str(viewer.id), transaction_id=str(transaction_id))
        tx = await TransactionRepository(self.db).get(transaction_id)
        if tx is None:
            raise NotFoundError("Transaction", str(transaction_id), ctx)
        project = await self.projects.get(tx.project_id)
        creator_id = project.creator_id if project is not None else None
        if not can_view_transaction(viewer, tx.investor_id, creator_id):
            raise ForbiddenError("Not your transaction", ctx)
        return tx
