"""
SLA Value Objects
==================

Stateless SLA logic: policy matching, deadline calculation, breach
detection and the status view shown next to a ticket.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, Optional

from servicedesk.config import DeadlineKind, DeadlineState, SLAStatus
from servicedesk.sla.domain.entities import (
    BreachState,
    DeadlineBreach,
    DeadlineStatus,
    SlaPolicy,
    TicketSla,
)


class PolicyMatcher:
    """
    Picks the single best-fit policy for a ticket.

    Among matching policies the most specific one wins (most non-wildcard
    predicates). Ties go to the lower rank, then to the lower policy id, so
    the result never depends on query order.
    """

    @staticmethod
    def sort_key(policy: SlaPolicy) -> tuple:
        return (-policy.specificity, policy.rank, str(policy.id))

    @classmethod
    def match(cls, ticket, policies: Iterable[SlaPolicy]) -> Optional[SlaPolicy]:
        """
        Args:
            ticket: Anything with ``ticket_type``, ``priority`` and ``category``
            policies: Candidate policies; inactive ones are ignored

        Returns:
            The winning policy, or None when nothing matched
        """
        candidates = [
            p for p in policies
            if p.matches(ticket.ticket_type, ticket.priority, ticket.category)
        ]
        if not candidates:
            return None
        return min(candidates, key=cls.sort_key)


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA calculation logic in one place.
    """

    @staticmethod
    def calculate_deadline(start: datetime, minutes: Optional[int]) -> Optional[datetime]:
        """Deadline ``minutes`` after ``start``; None when the policy sets no target."""
        if minutes is None:
            return None
        return start + timedelta(minutes=minutes)

    @staticmethod
    def deadline_state(due_at: Optional[datetime], mark_at: Optional[datetime], breached: bool) -> str:
        """pending -> scheduled -> met | breached"""
        if breached:
            return DeadlineState.BREACHED
        if mark_at is not None:
            return DeadlineState.MET
        if due_at is None:
            return DeadlineState.PENDING
        return DeadlineState.SCHEDULED

    @classmethod
    def evaluate_deadline(cls, ticket_sla: TicketSla, kind: str, now: datetime) -> DeadlineBreach:
        due_at = ticket_sla.due_at(kind)
        mark_at = ticket_sla.mark_at(kind)
        persisted = ticket_sla.is_breached(kind)

        overdue_unmet = due_at is not None and mark_at is None and now > due_at
        marked_late = due_at is not None and mark_at is not None and mark_at > due_at
        breached = persisted or overdue_unmet or marked_late

        if persisted:
            breached_at = ticket_sla.breached_at(kind) or now
        elif breached:
            breached_at = now
        else:
            breached_at = None

        return DeadlineBreach(
            kind=kind,
            state=cls.deadline_state(due_at, mark_at, breached),
            breached=breached,
            breached_at=breached_at,
            due_at=due_at,
            newly_detected=breached and not persisted,
        )

    @classmethod
    def compute_breach_state(cls, ticket_sla: TicketSla, now: datetime) -> BreachState:
        """
        Evaluate both deadlines of a ticket at ``now``.

        A deadline is breached when its persisted flag is set, when it passed
        without a mark, or when the mark came after it. A persisted breach is
        never reported as cleared.
        """
        return BreachState(
            first_response=cls.evaluate_deadline(ticket_sla, DeadlineKind.FIRST_RESPONSE, now),
            resolution=cls.evaluate_deadline(ticket_sla, DeadlineKind.RESOLUTION, now),
        )

    @staticmethod
    def minutes_until(due_at: datetime, now: datetime) -> int:
        """Whole minutes to the deadline, negative once it has passed."""
        seconds = (due_at - now).total_seconds()
        if seconds >= 0:
            return math.floor(seconds / 60)
        return -math.floor(-seconds / 60)

    @staticmethod
    def format_duration(minutes: int) -> str:
        """1d 2h / 1h 5m / 12m"""
        minutes = abs(minutes)
        hours, mins = divmod(minutes, 60)
        days, rem_hours = divmod(hours, 24)
        if days > 0:
            return f"{days}d {rem_hours}h"
        if hours > 0:
            return f"{hours}h {mins}m"
        return f"{mins}m"

    @classmethod
    def format_countdown(cls, due_at: datetime, now: datetime) -> str:
        remaining = cls.minutes_until(due_at, now)
        if due_at >= now:
            return f"Due in {cls.format_duration(remaining)}"
        return f"Overdue by {cls.format_duration(remaining)}"

    @classmethod
    def status_view(
        cls,
        deadline: DeadlineBreach,
        met_at: Optional[datetime],
        now: datetime,
        warning_minutes: int = 60
    ) -> DeadlineStatus:
        """
        Display status of one deadline.

        ``warning`` means less than ``warning_minutes`` remain. Deadlines
        without a due date read as ``within`` with no countdown.
        """
        due_at = deadline.due_at
        minutes_remaining = None
        countdown = None

        if deadline.breached:
            status = SLAStatus.BREACHED
        elif met_at is not None:
            status = SLAStatus.MET
        elif due_at is None:
            status = SLAStatus.WITHIN
        elif (due_at - now) < timedelta(minutes=warning_minutes):
            status = SLAStatus.WARNING
        else:
            status = SLAStatus.WITHIN

        if due_at is not None and met_at is None:
            minutes_remaining = cls.minutes_until(due_at, now)
            countdown = cls.format_countdown(due_at, now)

        return DeadlineStatus(
            kind=deadline.kind,
            status=status,
            state=deadline.state,
            due_at=due_at,
            met_at=met_at,
            breached=deadline.breached,
            breached_at=deadline.breached_at,
            minutes_remaining=minutes_remaining,
            countdown=countdown,
        )
