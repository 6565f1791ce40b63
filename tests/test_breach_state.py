"""Breach computation, deadline states and the status view."""

from datetime import datetime, timedelta, timezone

from servicedesk.sla.domain import SLACalculator, TicketSla

T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def make_sla(**overrides) -> TicketSla:
    values = dict(
        ticket_id="t-1",
        first_response_due_at=T0 + timedelta(minutes=30),
        resolution_due_at=T0 + timedelta(hours=4),
    )
    values.update(overrides)
    return TicketSla(**values)


def test_scheduled_before_due():
    state = SLACalculator.compute_breach_state(make_sla(), T0 + timedelta(minutes=10))
    assert not state.is_any_breached
    assert state.first_response.state == "scheduled"
    assert state.newly_detected == []


def test_pending_without_due_date():
    state = SLACalculator.compute_breach_state(make_sla(resolution_due_at=None), T0 + timedelta(days=30))
    assert state.resolution.state == "pending"
    assert not state.resolution.breached


def test_exactly_at_due_is_not_breached():
    due = T0 + timedelta(minutes=30)
    state = SLACalculator.compute_breach_state(make_sla(), due)
    assert not state.first_response.breached


def test_overdue_without_mark_is_newly_breached_at_now():
    now = T0 + timedelta(minutes=45)
    state = SLACalculator.compute_breach_state(make_sla(), now)
    assert state.first_response.breached
    assert state.first_response.newly_detected
    assert state.first_response.breached_at == now
    assert not state.resolution.breached


def test_late_mark_is_breached_even_when_evaluated_early():
    sla = make_sla(first_response_at=T0 + timedelta(minutes=40))
    state = SLACalculator.compute_breach_state(sla, T0)
    assert state.first_response.breached
    assert state.first_response.state == "breached"


def test_on_time_mark_is_met():
    sla = make_sla(first_response_at=T0 + timedelta(minutes=5))
    state = SLACalculator.compute_breach_state(sla, T0 + timedelta(days=1))
    assert state.first_response.state == "met"
    assert not state.first_response.breached


def test_persisted_breach_is_monotonic():
    breached_at = T0 + timedelta(minutes=31)
    sla = make_sla(
        first_response_breached=True,
        first_response_breached_at=breached_at,
        # Due date moved out and an early correction applied afterwards
        first_response_due_at=T0 + timedelta(days=2),
        first_response_at=T0 + timedelta(minutes=1),
    )
    for minutes in (0, 60, 60 * 24 * 10):
        state = SLACalculator.compute_breach_state(sla, T0 + timedelta(minutes=minutes))
        assert state.first_response.breached
        assert state.first_response.breached_at == breached_at
        assert not state.first_response.newly_detected


def test_format_duration():
    assert SLACalculator.format_duration(12) == "12m"
    assert SLACalculator.format_duration(65) == "1h 5m"
    assert SLACalculator.format_duration(60 * 26) == "1d 2h"
    assert SLACalculator.format_duration(-12) == "12m"


def test_countdown_before_and_after_due():
    due = T0 + timedelta(minutes=65)
    assert SLACalculator.format_countdown(due, T0) == "Due in 1h 5m"
    assert SLACalculator.format_countdown(T0, T0 + timedelta(minutes=12, seconds=30)) == "Overdue by 12m"


def test_status_view_within_warning_breached_met():
    sla = make_sla()

    far = SLACalculator.compute_breach_state(sla, T0)
    view = SLACalculator.status_view(far.resolution, None, T0, warning_minutes=60)
    assert view.status == "within"
    assert view.minutes_remaining == 240
    assert view.countdown == "Due in 4h 0m"

    near = T0 + timedelta(minutes=10)
    state = SLACalculator.compute_breach_state(sla, near)
    view = SLACalculator.status_view(state.first_response, None, near, warning_minutes=60)
    assert view.status == "warning"
    assert view.minutes_remaining == 20

    late = T0 + timedelta(minutes=42)
    state = SLACalculator.compute_breach_state(sla, late)
    view = SLACalculator.status_view(state.first_response, None, late, warning_minutes=60)
    assert view.status == "breached"
    assert view.minutes_remaining == -12
    assert view.countdown == "Overdue by 12m"

    met_at = T0 + timedelta(minutes=5)
    state = SLACalculator.compute_breach_state(make_sla(first_response_at=met_at), late)
    view = SLACalculator.status_view(state.first_response, met_at, late, warning_minutes=60)
    assert view.status == "met"
    assert view.countdown is None
