"""Review Workflow — admin decisions on creator requests and projects.

Invariants:
    - Only pending requests/projects can be decided; terminal ones raise ReviewConflictError
    - Approving a creator request promotes its user to creator with is_approved=True,
      in the same commit as the request update
    - Rejecting a creator request never touches the user
    - Project reject = is_active False: still fetchable by id, gone from public listings
    - Each decision publishes exactly one event, after commit
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.core.domain_types import EventType, ReviewStatus, Role
from crowdchain.core.enforce_review import check_project_reviewable, check_request_reviewable
from crowdchain.core.errors import ErrorContext, NotFoundError
from crowdchain.models.creator_request import CreatorRequest
from crowdchain.models.project import Project
from crowdchain.repositories.accounts import UserRepository
from crowdchain.repositories.funding import CreatorRequestRepository, ProjectRepository
from crowdchain.services.broadcaster import NotificationBroadcaster

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    def __init__(self, db: AsyncSession, broadcaster: NotificationBroadcaster):
        self.db = db
        self.broadcaster = broadcaster
        self.requests = CreatorRequestRepository(db)
        self.projects = ProjectRepository(db)
        self.users = UserRepository(db)

    # ─── Creator requests ─────────────────────────────────────────

    async def approve_request(
        self, request_id: UUID, reviewer_id: UUID, note: str | None = None,
    ) -> CreatorRequest:
        request = await self._decide_request(
            request_id, reviewer_id, note, ReviewStatus.APPROVED,
        )
        await self.users.update(
            request.user_id, role=Role.CREATOR.value, is_approved=True,
        )
        await self.db.commit()
        self.broadcaster.publish(EventType.CREATOR_REQUEST_APPROVED, {
            "request_id": request.id, "user_id": request.user_id,
            "approved_by": reviewer_id, "admin_note": note,
        })
        logger.info("Creator request approved", extra={"user_id": str(request.user_id)})
        return request

    async def reject_request(
        self, request_id: UUID, reviewer_id: UUID, note: str | None = None,
    ) -> CreatorRequest:
        request = await self._decide_request(
            request_id, reviewer_id, note, ReviewStatus.REJECTED,
        )
        await self.db.commit()
        self.broadcaster.publish(EventType.CREATOR_REQUEST_REJECTED, {
            "request_id": request.id, "user_id": request.user_id,
            "rejected_by": reviewer_id, "admin_note": note,
        })
        logger.info("Creator request rejected", extra={"user_id": str(request.user_id)})
        return request

    async def _decide_request(
        self, request_id: UUID, reviewer_id: UUID, note: str | None,
        decision: ReviewStatus,
    ) -> CreatorRequest:
        request = await self.requests.get_for_update(request_id)
        if request is None:
            raise NotFoundError("Creator request", str(request_id))
        check_request_reviewable(request)
        request.status = decision.value
        request.admin_note = note
        request.reviewed_by = reviewer_id
        request.reviewed_at = datetime.now(timezone.utc)
        await self.db.flush()
        return request

    # ─── Projects ─────────────────────────────────────────────────

    async def approve_project(self, project_id: UUID, reviewer_id: UUID) -> Project:
        project = await self._pending_project(project_id)
        project = await self.projects.update(project.id, is_approved=True)
        await self.db.commit()
        self.broadcaster.publish(EventType.PROJECT_APPROVED, {
            "project_id": project.id, "creator_id": project.creator_id,
            "title": project.title, "approved_by": reviewer_id,
        })
        logger.info("Project approved", extra={"project_id": str(project.id)})
        return project

    async def reject_project(self, project_id: UUID, reviewer_id: UUID) -> Project:
        project = await self._pending_project(project_id)
        project = await self.projects.update(project.id, is_active=False)
        await self.db.commit()
        self.broadcaster.publish(EventType.PROJECT_REJECTED, {
            "project_id": project.id, "creator_id": project.creator_id,
            "title": project.title, "rejected_by": reviewer_id,
        })
        logger.info("Project rejected", extra={"project_id": str(project.id)})
        return project

    async def _pending_project(self, project_id: UUID) -> Project:
        project = await self.projects.get_for_update(project_id)
        if project is None:
            raise NotFoundError(
                "Project", str(project_id), ErrorContext(project_id=str(project_id)),
            )
        check_project_reviewable(project)
        return project
