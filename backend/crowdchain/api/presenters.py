"""Presenters — ORM rows and service views → response schemas.

Invariants:
    - Pure mapping: no DB access, no side effects
    - password_hash never reaches a response (UserResponse has no such field)
"""

from crowdchain.models.creator_request import CreatorRequest
from crowdchain.models.user import User
from crowdchain.schemas.auth import UserSummary
from crowdchain.schemas.creator_request import PendingCreatorRequest
from crowdchain.schemas.project import ProjectCard, ProjectDetail, ProjectResponse
from crowdchain.services.project_service import ProjectView


def _summary(user: User | None) -> UserSummary | None:
    return UserSummary.model_validate(user) if user is not None else None


def project_card(view: ProjectView) -> ProjectCard:
    base = ProjectResponse.model_validate(view.project).model_dump()
    return ProjectCard(**base, creator=_summary(view.creator), progress=view.progress)


def project_detail(view: ProjectView) -> ProjectDetail:
    card = project_card(view).model_dump()
    return ProjectDetail(**card, backers=view.backers or 0, days_left=view.days_left())


def pending_request(request: CreatorRequest, user: User | None) -> PendingCreatorRequest:
    return PendingCreatorRequest.model_validate(request).model_copy(
        update={"user": _summary(user)},
    )
