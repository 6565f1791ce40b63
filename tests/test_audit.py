"""Event streams: routing, ordering and unknown event types."""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest

from servicedesk.audit.domain import (
    Escalation,
    FieldChange,
    ManualEscalation,
    TicketUpdated,
    UnknownEventPayload,
    parse_payload,
)
from servicedesk.audit.infrastructure import AuditEventModel
from tests.conftest import T0


def test_parse_known_payload():
    payload = parse_payload("ticket_status_changed", {"from_status": "open", "to_status": "resolved"})
    assert payload.event_type == "ticket_status_changed"
    assert payload.to_status == "resolved"


def test_parse_unknown_type_keeps_raw():
    payload = parse_payload("ticket_merged", {"into": "INC-9"})
    assert isinstance(payload, UnknownEventPayload)
    assert payload.raw == {"into": "INC-9"}


def test_parse_malformed_known_type_is_unknown():
    payload = parse_payload("mark_corrected", {"deadline": "first_response"})
    assert isinstance(payload, UnknownEventPayload)


def test_ticket_updated_uses_from_to_keys():
    payload = TicketUpdated(changes=[FieldChange(field="priority", from_value="low", to_value="high")])
    assert payload.to_storage() == {"changes": [{"field": "priority", "from": "low", "to": "high"}]}

    parsed = parse_payload("ticket_updated", payload.to_storage())
    assert parsed.changes[0].from_value == "low"


@pytest.mark.asyncio
async def test_recorder_routes_by_stream(recorder, seed, session):
    ticket_id = await seed.ticket()

    await recorder.record(ticket_id, Escalation(note="n"), created_at=T0)
    await recorder.record(ticket_id, ManualEscalation(note="n"), created_at=T0)
    await session.commit()

    assert [e.event_type for e in await recorder.list_audit(ticket_id)] == ["escalation"]
    assert [e.event_type for e in await recorder.list_sla(ticket_id)] == ["manual_escalation"]


@pytest.mark.asyncio
async def test_events_ordered_by_created_at(recorder, seed, session):
    ticket_id = await seed.ticket()

    await recorder.record(ticket_id, Escalation(note="second"), created_at=T0 + timedelta(minutes=5))
    await recorder.record(ticket_id, Escalation(note="first"), created_at=T0)
    await recorder.record(ticket_id, Escalation(note="third"), created_at=T0 + timedelta(minutes=9))
    await session.commit()

    events = await recorder.list_audit(ticket_id)
    assert [e.payload.note for e in events] == ["first", "second", "third"]
    assert [e.payload.note for e in await recorder.list_audit(ticket_id, limit=2)] == ["first", "second"]


@pytest.mark.asyncio
async def test_unknown_stored_event_is_surfaced(recorder, seed, session):
    ticket_id = await seed.ticket()
    session.add(AuditEventModel(
        id=uuid4(),
        ticket_id=UUID(ticket_id),
        event_type="ticket_merged",
        payload={"into": "INC-000009"},
        created_at=T0,
    ))
    await session.commit()

    events = await recorder.list_audit(ticket_id)

    assert len(events) == 1
    assert not events[0].is_known
    assert events[0].payload.raw == {"into": "INC-000009"}
