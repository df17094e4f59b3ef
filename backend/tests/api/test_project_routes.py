"""Project routes — listing, detail, submission, investing and receipts over HTTP."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from crowdchain.core.domain_types import Role


async def test_listing_shows_only_public_projects(client, make_project):
    visible = await make_project(goal="200.00", current="50.00")
    await make_project(is_approved=False)

    resp = await client.get("/api/v1/projects")

    assert resp.status_code == 200
    cards = resp.json()
    assert [c["id"] for c in cards] == [str(visible.id)]
    assert cards[0]["progress"] == 25
    assert cards[0]["goal_amount"] == "200.00"
    assert cards[0]["creator"]["username"]


async def test_detail_includes_backers_and_days_left(client, make_project):
    project = await make_project()

    resp = await client.get(f"/api/v1/projects/{project.id}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["backers"] == 0
    assert 29 <= body["days_left"] <= 30
    assert (await client.get(f"/api/v1/projects/{uuid4()}")).status_code == 404


def _project_body() -> dict:
    return {
        "title": "Seed Library",
        "description": "Open seed exchange for urban gardeners",
        "category": "community",
        "goal_amount": "750.50",
        "end_date": (datetime.now(timezone.utc) + timedelta(days=10)).isoformat(),
    }


async def test_creator_submits_project(client, make_user, login):
    creator = await make_user(role=Role.CREATOR)
    resp = await client.post(
        "/api/v1/projects", headers=await login(creator), json=_project_body(),
    )

    assert resp.status_code == 201
    assert resp.json()["is_approved"] is False
    assert resp.json()["goal_amount"] == "750.50"


async def test_investor_cannot_submit_project(client, make_user, login):
    resp = await client.post(
        "/api/v1/projects", headers=await login(await make_user()), json=_project_body(),
    )
    assert resp.status_code == 403


async def test_invest_returns_pending_receipt_then_settles(
    client, make_user, make_project, login, scheduler,
):
    investor = await make_user(balance="300.00")
    project = await make_project()
    headers = await login(investor)

    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest", headers=headers, json={"amount": "120.25"},
    )

    assert resp.status_code == 201
    receipt = resp.json()
    assert receipt["status"] == "pending"
    assert receipt["amount"] == "120.25"
    assert len(receipt["transaction_hash"]) == 66

    await scheduler.wait_idle()
    settled = await client.get(f"/api/v1/transactions/{receipt['id']}", headers=headers)
    assert settled.json()["status"] == "completed"
    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.json()["balance"] == "179.75"


@pytest.mark.parametrize("balance,goal,current,amount,code", [
    ("10.00", "1000.00", "0.00", "50", "INSUFFICIENT_BALANCE"),
    ("500.00", "100.00", "100.00", "1", "GOAL_ALREADY_REACHED"),
    ("500.00", "100.00", "90.00", "11", "EXCEEDS_REMAINING_GOAL"),
    ("500.00", "100.00", "0.00", "abc", "INVALID_AMOUNT"),
    ("500.00", "100.00", "0.00", "-3", "INVALID_AMOUNT"),
])
async def test_invest_rejections(
    client, make_user, make_project, login, balance, goal, current, amount, code,
):
    investor = await make_user(balance=balance)
    project = await make_project(goal=goal, current=current)

    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest",
        headers=await login(investor), json={"amount": amount},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == code


async def test_invest_boolean_amount_is_rejected(client, make_user, make_project, login):
    project = await make_project()
    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest",
        headers=await login(await make_user()), json={"amount": True},
    )
    assert resp.status_code == 400


async def test_invest_in_unapproved_project_is_404(client, make_user, make_project, login):
    project = await make_project(is_approved=False)
    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest",
        headers=await login(await make_user()), json={"amount": "5"},
    )
    assert resp.status_code == 404


@pytest.mark.parametrize("role", [Role.CREATOR, Role.ADMIN])
async def test_only_investors_invest(client, make_user, make_project, login, role):
    project = await make_project()
    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest",
        headers=await login(await make_user(role=role)), json={"amount": "5"},
    )
    assert resp.status_code == 403


async def test_receipt_hidden_from_other_investors(
    client, make_user, make_project, login, scheduler,
):
    owner, stranger = await make_user(), await make_user()
    project = await make_project()
    resp = await client.post(
        f"/api/v1/projects/{project.id}/invest",
        headers=await login(owner), json={"amount": 10},
    )
    tx_id = resp.json()["id"]

    other = await client.get(f"/api/v1/transactions/{tx_id}", headers=await login(stranger))
    assert other.status_code == 403
