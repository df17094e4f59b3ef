"""Review Rules — which review decisions are legal for requests and projects.

Invariants:
    - A creator request is reviewable only while status == pending
    - A project is reviewable only while pending (not approved, still active)
    - Violations raise ReviewConflictError carrying the current status

Design Decisions:
    - Terminal states are final: reviewed_at is written exactly once and a decision can
      never silently overwrite an earlier one
    - Project review state is derived from (is_approved, is_active), no extra column
"""

from crowdchain.core.domain_types import ReviewStatus
from crowdchain.core.errors import ErrorContext, ReviewConflictError
from crowdchain.core.repository_protocols import CreatorRequestLike, ProjectLike


def project_review_status(project: ProjectLike) -> ReviewStatus:
    if project.is_approved:
        return ReviewStatus.APPROVED
    if not project.is_active:
        return ReviewStatus.REJECTED
    return ReviewStatus.PENDING


def check_request_reviewable(request: CreatorRequestLike) -> None:
    if request.status != ReviewStatus.PENDING.value:
        raise ReviewConflictError(
            "Creator request", request.status,
            ErrorContext(user_id=str(request.user_id)),
        )


def check_project_reviewable(project: ProjectLike) -> None:
    status = project_review_status(project)
    if status is not ReviewStatus.PENDING:
        raise ReviewConflictError(
            "Project", status.value, ErrorContext(project_id=str(project.id)),
        )
