"""
Escalation Email
================

Builds the transactional email sent when a ticket is escalated.
"""

from dataclasses import dataclass
from html import escape
from typing import List, Optional

from servicedesk.tickets.domain import TicketSnapshot


@dataclass(frozen=True)
class EmailMessage:
    """Provider-agnostic outbound email."""
    sender: str
    to: List[str]
    subject: str
    html: str


def ticket_link(app_url: str, ticket_id: str) -> str:
    """Deep link to the ticket in the web app."""
    return f"{app_url.rstrip('/')}/#/tickets/{ticket_id}"


def build_escalation_email(
    ticket: TicketSnapshot,
    recipients: List[str],
    sender: str,
    app_url: str,
    note: Optional[str] = None
) -> EmailMessage:
    number = escape(ticket.ticket_number)
    safe_note = (note or "").strip()
    link = escape(ticket_link(app_url, ticket.id), quote=True)

    parts = [
        '<div style="font-family: -apple-system, BlinkMacSystemFont, \'Segoe UI\', Roboto, Arial, sans-serif; '
        'line-height: 1.6; color: #111827;">',
        f'<p style="margin: 0 0 16px 0;"><strong>{number}</strong> has been escalated.</p>',
        f'<p style="margin: 0 0 8px 0;"><strong>Title:</strong> {escape(ticket.title)}</p>',
    ]
    if safe_note:
        note_html = escape(safe_note).replace("\n", "<br/>")
        parts.append(f'<p style="margin: 0 0 16px 0;"><strong>Note:</strong><br/>{note_html}</p>')
    parts.append(
        f'<p style="margin: 0 0 16px 0;"><a href="{link}" style="display: inline-block; padding: 10px 14px; '
        'border-radius: 8px; background: #4f46e5; color: #ffffff; text-decoration: none;">Open ticket</a></p>'
    )
    parts.append("</div>")

    return EmailMessage(
        sender=sender,
        to=list(recipients),
        subject=f"Ticket {ticket.ticket_number} escalated",
        html="\n".join(parts),
    )
