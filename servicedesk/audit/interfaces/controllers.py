"""
Audit Controllers (API Routes)
==============================

Read access to the ticket audit stream.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from servicedesk.audit.application import AuditEventRecorder, EventListResponse
from servicedesk.shared.api.dependencies import get_recorder

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get(
    "/tickets/{ticket_id}/events",
    response_model=EventListResponse,
    summary="List audit events",
    description="""
    Audit stream of the ticket (escalations, notifications, ticket edits),
    oldest first. Event types this service does not recognize are returned
    with `known: false` and their raw payload.
    """
)
async def list_audit_events(
    ticket_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    recorder: AuditEventRecorder = Depends(get_recorder)
):
    events = await recorder.list_audit(ticket_id, limit=limit)
    return EventListResponse.from_events(ticket_id, events)


audit_router = router
