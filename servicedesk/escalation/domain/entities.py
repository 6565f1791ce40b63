"""
Escalation Domain
=================

Planning an escalation: which ticket fields change, and whether there is
anything to do at all.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from servicedesk.config import VALID_ASSIGNEE_ACTIONS, AssigneeAction, Priority
from servicedesk.core import ValidationException
from servicedesk.tickets.domain import TicketSnapshot


@dataclass(frozen=True)
class EscalationRequest:
    """What the actor asked for."""
    target_group_id: Optional[str] = None
    assignee_action: str = AssigneeAction.KEEP
    target_assignee_id: Optional[str] = None
    note: Optional[str] = None
    make_urgent: bool = False
    notify_assignee: bool = False
    notify_group: bool = False
    add_internal_note: bool = True

    @property
    def clean_note(self) -> Optional[str]:
        if self.note is None:
            return None
        stripped = self.note.strip()
        return stripped or None

    def validate(self) -> None:
        if self.assignee_action not in VALID_ASSIGNEE_ACTIONS:
            raise ValidationException(
                f"assignee_action must be one of {VALID_ASSIGNEE_ACTIONS}",
                {"assignee_action": self.assignee_action}
            )
        if self.assignee_action == AssigneeAction.SET and not self.target_assignee_id:
            raise ValidationException("target_assignee_id is required when assignee_action is 'set'")


@dataclass
class EscalationPlan:
    """
    Field changes an escalation will apply.

    ``changes`` holds only fields whose value actually differs.
    """
    from_group_id: Optional[str]
    to_group_id: Optional[str]
    from_assignee_id: Optional[str]
    to_assignee_id: Optional[str]
    from_priority: str
    to_priority: str
    note: Optional[str] = None
    changes: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def priority_raised(self) -> bool:
        return "priority" in self.changes

    @property
    def changed_fields(self) -> List[str]:
        return list(self.changes)

    @property
    def is_empty(self) -> bool:
        return not self.changes and not self.note

    @classmethod
    def build(cls, ticket: TicketSnapshot, request: EscalationRequest) -> "EscalationPlan":
        changes: Dict[str, Optional[str]] = {}

        to_group_id = ticket.assignment_group_id
        if request.target_group_id and request.target_group_id != ticket.assignment_group_id:
            to_group_id = request.target_group_id
            changes["assignment_group_id"] = to_group_id

        to_assignee_id = ticket.assignee_id
        if request.assignee_action == AssigneeAction.UNASSIGN:
            to_assignee_id = None
        elif request.assignee_action == AssigneeAction.SET:
            to_assignee_id = request.target_assignee_id
        if to_assignee_id != ticket.assignee_id:
            changes["assignee_id"] = to_assignee_id

        to_priority = ticket.priority
        if request.make_urgent and ticket.priority != Priority.URGENT:
            to_priority = Priority.URGENT
            changes["priority"] = to_priority

        return cls(
            from_group_id=ticket.assignment_group_id,
            to_group_id=to_group_id,
            from_assignee_id=ticket.assignee_id,
            to_assignee_id=to_assignee_id,
            from_priority=ticket.priority,
            to_priority=to_priority,
            note=request.clean_note,
            changes=changes,
        )
