"""
Notification DTOs
=================
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class EscalationNotificationRequest(BaseModel):
    """Request model for sending an escalation email."""
    ticket_id: str = Field(..., min_length=1)
    to_assignment_group_id: Optional[str] = None
    to_assignee_id: Optional[str] = None
    note: Optional[str] = Field(None, max_length=5000)
    notify_assignee: bool = False
    notify_group: bool = False
    exclude_actor: bool = True


class NotificationResponse(BaseModel):
    success: bool = True
    sent: int = Field(..., description="Number of recipients")
    recipients: List[str] = Field(default_factory=list)
    provider_message_id: Optional[str] = None
