"""Review Workflow — tests for admin decisions on creator requests and projects.

Tests cover:
    - approving a request promotes the user to an approved creator
    - rejecting a request leaves the user untouched
    - deciding twice → ReviewConflictError (409), no second event
    - project approve makes it public; reject hides it but keeps detail lookup
"""

from uuid import uuid4

import pytest

from crowdchain.core.domain_types import ReviewStatus, Role
from crowdchain.core.errors import NotFoundError, ReviewConflictError
from crowdchain.models.creator_request import CreatorRequest
from crowdchain.repositories.funding import ProjectRepository
from crowdchain.services.review_workflow import ReviewWorkflow


@pytest.fixture
def workflow(test_db, broadcaster):
    return ReviewWorkflow(test_db, broadcaster)


@pytest.fixture
def make_request(test_db):
    async def _make(user) -> CreatorRequest:
        request = CreatorRequest(user_id=user.id, business_name="Kiln & Co")
        test_db.add(request)
        await test_db.commit()
        return request

    return _make


async def test_approve_request_promotes_user(
    workflow, make_user, make_request, test_db, broadcaster,
):
    admin = await make_user(role=Role.ADMIN)
    applicant = await make_user(role=Role.INVESTOR)
    request = await make_request(applicant)
    sub = broadcaster.subscribe()

    decided = await workflow.approve_request(request.id, admin.id, "welcome aboard")

    await test_db.refresh(applicant)
    assert decided.status == ReviewStatus.APPROVED.value
    assert decided.reviewed_by == admin.id and decided.reviewed_at is not None
    assert decided.admin_note == "welcome aboard"
    assert applicant.role == Role.CREATOR.value
    assert applicant.is_approved
    event = await sub.next_event()
    assert event["type"] == "CREATOR_REQUEST_APPROVED"
    assert event["data"]["user_id"] == str(applicant.id)


async def test_reject_request_leaves_user_unchanged(
    workflow, make_user, make_request, test_db,
):
    admin = await make_user(role=Role.ADMIN)
    applicant = await make_user(role=Role.CREATOR, is_approved=False)
    request = await make_request(applicant)

    decided = await workflow.reject_request(request.id, admin.id)

    await test_db.refresh(applicant)
    assert decided.status == ReviewStatus.REJECTED.value
    assert applicant.role == Role.CREATOR.value
    assert not applicant.is_approved


async def test_deciding_twice_is_a_conflict(
    workflow, make_user, make_request, broadcaster,
):
    admin = await make_user(role=Role.ADMIN)
    request = await make_request(await make_user())
    await workflow.reject_request(request.id, admin.id)
    sub = broadcaster.subscribe()

    with pytest.raises(ReviewConflictError) as exc_info:
        await workflow.approve_request(request.id, admin.id)

    assert exc_info.value.http_status == 409
    assert sub.queue.empty()


async def test_unknown_request_not_found(workflow, make_user):
    admin = await make_user(role=Role.ADMIN)
    with pytest.raises(NotFoundError):
        await workflow.approve_request(uuid4(), admin.id)


async def test_approve_project_makes_it_public(
    workflow, make_user, make_project, test_db, broadcaster,
):
    admin = await make_user(role=Role.ADMIN)
    project = await make_project(is_approved=False)
    sub = broadcaster.subscribe()

    await workflow.approve_project(project.id, admin.id)

    listed = await ProjectRepository(test_db).list_approved()
    assert [p.id for p in listed] == [project.id]
    event = await sub.next_event()
    assert event["type"] == "PROJECT_APPROVED"
    assert event["data"]["approved_by"] == str(admin.id)


async def test_reject_project_hides_it_from_listings(
    workflow, make_user, make_project, test_db,
):
    admin = await make_user(role=Role.ADMIN)
    project = await make_project(is_approved=False)

    await workflow.reject_project(project.id, admin.id)

    repo = ProjectRepository(test_db)
    assert await repo.list_approved() == []
    assert await repo.list_pending_review() == []
    assert (await repo.get(project.id)).is_active is False

    with pytest.raises(ReviewConflictError):
        await workflow.approve_project(project.id, admin.id)


async def test_already_approved_project_is_a_conflict(workflow, make_user, make_project):
    admin = await make_user(role=Role.ADMIN)
    project = await make_project(is_approved=True)

    with pytest.raises(ReviewConflictError):
        await workflow.reject_project(project.id, admin.id)
