"""HTTP surface: routing, actor headers and error mapping."""

import pytest
from httpx import AsyncClient

from tests.conftest import actor_headers

UNKNOWN_ID = "3b8e1c52-7f0a-4d8e-9c1b-5a6f2e4d7c90"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert "checks" in resp.json()
    assert resp.headers["X-Correlation-ID"]


@pytest.mark.asyncio
async def test_apply_mark_and_status(client: AsyncClient, seed):
    await seed.policy("high", match_priority="high", first_response_minutes=30, resolution_minutes=240)
    ticket_id = await seed.ticket(priority="high")

    resp = await client.post(f"/sla/tickets/{ticket_id}/apply")
    assert resp.status_code == 200
    body = resp.json()
    assert body["matched"] is True
    assert body["policy"]["policy_key"] == "high"
    assert body["sla"]["first_response_due_at"] is not None

    resp = await client.post(f"/sla/tickets/{ticket_id}/first-response")
    assert resp.status_code == 200
    assert resp.json()["already_marked"] is False

    resp = await client.post(f"/sla/tickets/{ticket_id}/first-response")
    assert resp.status_code == 200
    assert resp.json()["already_marked"] is True

    resp = await client.get(f"/sla/tickets/{ticket_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["first_response"]["status"] == "met"
    assert body["resolution"]["status"] == "within"
    assert body["resolution"]["countdown"].startswith("Due in")

    resp = await client.get(f"/sla/tickets/{ticket_id}/events")
    assert resp.status_code == 200
    assert [e["event_type"] for e in resp.json()["events"]] == ["first_response_marked"]


@pytest.mark.asyncio
async def test_apply_without_matching_policy(client: AsyncClient, seed):
    ticket_id = await seed.ticket(priority="low")

    resp = await client.post(f"/sla/tickets/{ticket_id}/apply")

    assert resp.status_code == 200
    assert resp.json() == {"ticket_id": ticket_id, "matched": False, "policy": None, "sla": None}


@pytest.mark.asyncio
async def test_not_found_error_shape(client: AsyncClient):
    resp = await client.get(f"/sla/tickets/{UNKNOWN_ID}", headers={"X-Correlation-ID": "corr-123"})

    assert resp.status_code == 404
    body = resp.json()
    assert body["error"] == "not_found"
    assert body["correlation_id"] == "corr-123"
    assert "not found" in body["detail"]
    assert resp.headers["X-Correlation-ID"] == "corr-123"


@pytest.mark.asyncio
async def test_correct_mark_validation(client: AsyncClient, seed):
    lead = await seed.profile("lead@example.com")
    await seed.policy("all", first_response_minutes=30)
    ticket_id = await seed.ticket()
    await client.post(f"/sla/tickets/{ticket_id}/apply")

    resp = await client.post(
        f"/sla/tickets/{ticket_id}/marks/correct",
        json={"deadline": "lunch", "at": "2024-01-15T09:20:00Z", "reason": "typo"},
        headers=actor_headers(lead),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"

    resp = await client.post(
        f"/sla/tickets/{ticket_id}/marks/correct",
        json={"deadline": "first_response", "at": "2024-01-15T09:20:00Z", "reason": "phone call"},
        headers=actor_headers(lead),
    )
    assert resp.status_code == 200
    assert resp.json()["at"].startswith("2024-01-15T09:20:00")


@pytest.mark.asyncio
async def test_correct_mark_requires_actor(client: AsyncClient, seed):
    await seed.policy("all", first_response_minutes=30)
    ticket_id = await seed.ticket()
    await client.post(f"/sla/tickets/{ticket_id}/apply")
    await client.post(f"/sla/tickets/{ticket_id}/first-response")
    correction = {"deadline": "first_response", "at": "2024-01-12T09:00:00Z", "reason": "backdate"}

    resp = await client.post(f"/sla/tickets/{ticket_id}/marks/correct", json=correction)
    assert resp.status_code == 401

    outsider = await seed.profile("outsider@example.com")
    resp = await client.post(
        f"/sla/tickets/{ticket_id}/marks/correct",
        json=correction,
        headers=actor_headers(outsider, capabilities=""),
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"

    resp = await client.get(f"/sla/tickets/{ticket_id}/events")
    assert [e["event_type"] for e in resp.json()["events"]] == ["first_response_marked"]


@pytest.mark.asyncio
async def test_escalate_requires_actor(client: AsyncClient, seed):
    ticket_id = await seed.ticket()
    resp = await client.post(f"/escalations/tickets/{ticket_id}", json={"make_urgent": True})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_escalate_forbidden(client: AsyncClient, seed):
    outsider = await seed.profile("outsider@example.com")
    ticket_id = await seed.ticket()

    resp = await client.post(
        f"/escalations/tickets/{ticket_id}",
        json={"make_urgent": True},
        headers=actor_headers(outsider, capabilities=""),
    )

    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"


@pytest.mark.asyncio
async def test_escalate_set_without_assignee_is_rejected(client: AsyncClient, seed):
    lead = await seed.profile("lead@example.com")
    ticket_id = await seed.ticket()

    resp = await client.post(
        f"/escalations/tickets/{ticket_id}",
        json={"assignee_action": "set"},
        headers=actor_headers(lead),
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_escalate_nothing_to_do(client: AsyncClient, seed):
    lead = await seed.profile("lead@example.com")
    ticket_id = await seed.ticket()

    resp = await client.post(f"/escalations/tickets/{ticket_id}", json={}, headers=actor_headers(lead))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Nothing to escalate"

    resp = await client.get(f"/audit/tickets/{ticket_id}/events")
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_escalate_with_failed_notification(client: AsyncClient, seed, email_provider):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    g2 = await seed.group("network", members=[lead, ana])
    ticket_id = await seed.ticket()
    email_provider.status_code = 500

    resp = await client.post(
        f"/escalations/tickets/{ticket_id}",
        json={
            "to_assignment_group_id": g2,
            "assignee_action": "unassign",
            "note": "routing error",
            "make_urgent": True,
            "notify_group": True,
        },
        headers=actor_headers(lead, "lead@example.com"),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "applied_with_warnings"
    assert body["ticket"]["priority"] == "urgent"
    assert body["ticket"]["assignment_group_id"] == g2
    assert body["warnings"][0]["code"] == "notification_failed"

    resp = await client.get(f"/audit/tickets/{ticket_id}/events")
    assert [e["event_type"] for e in resp.json()["events"]] == ["escalation"]


@pytest.mark.asyncio
async def test_escalate_and_notify(client: AsyncClient, seed, email_provider):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    g2 = await seed.group("network", members=[lead, ana])
    ticket_id = await seed.ticket()

    resp = await client.post(
        f"/escalations/tickets/{ticket_id}",
        json={"to_assignment_group_id": g2, "notify_group": True},
        headers=actor_headers(lead, "lead@example.com"),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "applied"
    assert body["notification"]["recipients"] == ["ana@example.com"]
    assert email_provider.sent_to == [["ana@example.com"]]


@pytest.mark.asyncio
async def test_notification_endpoint_no_recipients(client: AsyncClient, seed, email_provider):
    lead = await seed.profile("lead@example.com")
    g2 = await seed.group("network", members=[lead])
    ticket_id = await seed.ticket()

    resp = await client.post(
        "/notifications/escalation",
        json={"ticket_id": ticket_id, "to_assignment_group_id": g2, "notify_group": True},
        headers=actor_headers(lead, "lead@example.com"),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "No recipients"
    assert email_provider.requests == []


@pytest.mark.asyncio
async def test_notification_endpoint_provider_failure(client: AsyncClient, seed, email_provider):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    g2 = await seed.group("network", members=[ana])
    ticket_id = await seed.ticket()
    email_provider.status_code = 503

    resp = await client.post(
        "/notifications/escalation",
        json={"ticket_id": ticket_id, "to_assignment_group_id": g2, "notify_group": True},
        headers=actor_headers(lead, "lead@example.com"),
    )

    assert resp.status_code == 502
    assert resp.json()["error"] == "external_service_error"
