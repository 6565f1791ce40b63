"""Notification dispatcher: recipients, authorization and audit."""

import pytest

from servicedesk.core import AuthorizationException, EmailDeliveryException, ValidationException
from servicedesk.tickets.domain import Actor
from tests.conftest import APP_URL, SENDER, operator


async def audit_types(recorder, ticket_id):
    return [e.event_type for e in await recorder.list_audit(ticket_id)]


@pytest.mark.asyncio
async def test_notify_group_excludes_actor(dispatcher, seed, recorder, email_provider):
    lead = await seed.profile("lead@example.com", "Team Lead")
    ana = await seed.profile("Ana <ana@example.com>")
    bob = await seed.profile("bob@example.com")
    group = await seed.group("network", members=[lead, ana, bob])
    ticket_id = await seed.ticket(assignment_group_id=group)

    result = await dispatcher.notify(
        ticket_id, operator(lead, "LEAD@example.com"), target_group_id=group, notify_group=True, note="Core switch"
    )

    assert result.recipients == ["ana@example.com", "bob@example.com"]
    assert result.sent == 2
    assert result.provider_message_id == "msg_1"

    payload = email_provider.requests[0]["json"]
    assert payload["from"] == SENDER
    assert payload["to"] == ["ana@example.com", "bob@example.com"]
    assert payload["subject"] == "Ticket INC-000001 escalated"
    assert f"{APP_URL}/#/tickets/{ticket_id}" in payload["html"]

    events = await recorder.list_audit(ticket_id)
    assert [e.event_type for e in events] == ["escalation_notification_sent"]
    assert events[0].payload.recipients == ["ana@example.com", "bob@example.com"]
    assert events[0].payload.provider_message_id == "msg_1"
    assert events[0].actor_id == lead


@pytest.mark.asyncio
async def test_actor_email_resolved_from_directory(dispatcher, seed, email_provider):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    group = await seed.group("network", members=[lead, ana])
    ticket_id = await seed.ticket()

    result = await dispatcher.notify(ticket_id, operator(lead), target_group_id=group, notify_group=True)

    assert result.recipients == ["ana@example.com"]
    assert email_provider.sent_to == [["ana@example.com"]]


@pytest.mark.asyncio
async def test_assignee_and_group_are_deduplicated(dispatcher, seed):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    ana_alias = await seed.profile("ANA@example.com")
    inactive = await seed.profile("gone@example.com", is_active=False)
    group = await seed.group("network", members=[ana_alias, inactive])
    ticket_id = await seed.ticket()

    result = await dispatcher.notify(
        ticket_id,
        operator(lead, "lead@example.com"),
        target_group_id=group,
        target_assignee_id=ana,
        notify_assignee=True,
        notify_group=True,
    )

    assert result.recipients == ["ana@example.com"]


@pytest.mark.asyncio
async def test_actor_as_sole_recipient_fails_without_sending(dispatcher, seed, recorder, email_provider):
    lead = await seed.profile("lead@example.com")
    group = await seed.group("network", members=[lead])
    ticket_id = await seed.ticket()

    with pytest.raises(ValidationException) as exc_info:
        await dispatcher.notify(
            ticket_id, operator(lead, "lead@example.com"), target_group_id=group, notify_group=True
        )

    assert exc_info.value.message == "No recipients"
    assert email_provider.requests == []
    assert await audit_types(recorder, ticket_id) == []


@pytest.mark.asyncio
async def test_actor_kept_when_not_excluded(dispatcher, seed):
    lead = await seed.profile("lead@example.com")
    group = await seed.group("network", members=[lead])
    ticket_id = await seed.ticket()

    result = await dispatcher.notify(
        ticket_id, operator(lead, "lead@example.com"), target_group_id=group, notify_group=True, exclude_actor=False
    )

    assert result.recipients == ["lead@example.com"]


@pytest.mark.asyncio
async def test_unauthorized_actor_sends_nothing(dispatcher, seed, recorder, email_provider):
    outsider = await seed.profile("outsider@example.com")
    ana = await seed.profile("ana@example.com")
    group = await seed.group("network", members=[ana])
    ticket_id = await seed.ticket()

    with pytest.raises(AuthorizationException):
        await dispatcher.notify(
            ticket_id, Actor(id=outsider, email="outsider@example.com"), target_group_id=group, notify_group=True
        )

    assert email_provider.requests == []
    assert await audit_types(recorder, ticket_id) == []


@pytest.mark.asyncio
async def test_assignee_may_notify_without_capabilities(dispatcher, seed):
    owner = await seed.profile("owner@example.com")
    ana = await seed.profile("ana@example.com")
    group = await seed.group("network", members=[ana])
    ticket_id = await seed.ticket(assignee_id=owner)

    result = await dispatcher.notify(
        ticket_id, Actor(id=owner, email="owner@example.com"), target_group_id=group, notify_group=True
    )

    assert result.recipients == ["ana@example.com"]


@pytest.mark.asyncio
async def test_customer_service_member_may_notify(dispatcher, seed):
    agent = await seed.profile("agent@example.com")
    ana = await seed.profile("ana@example.com")
    await seed.group("customer_service", members=[agent])
    group = await seed.group("billing", members=[ana])
    cs_ticket = await seed.ticket(ticket_type="customer_service")
    incident = await seed.ticket(ticket_type="incident")

    actor = Actor(id=agent, email="agent@example.com")
    result = await dispatcher.notify(cs_ticket, actor, target_group_id=group, notify_group=True)
    assert result.recipients == ["ana@example.com"]

    with pytest.raises(AuthorizationException):
        await dispatcher.notify(incident, actor, target_group_id=group, notify_group=True)


@pytest.mark.asyncio
async def test_provider_failure_records_nothing(dispatcher, seed, recorder, email_provider):
    lead = await seed.profile("lead@example.com")
    ana = await seed.profile("ana@example.com")
    group = await seed.group("network", members=[ana])
    ticket_id = await seed.ticket()
    email_provider.status_code = 500

    with pytest.raises(EmailDeliveryException):
        await dispatcher.notify(
            ticket_id, operator(lead, "lead@example.com"), target_group_id=group, notify_group=True
        )

    assert await audit_types(recorder, ticket_id) == []
