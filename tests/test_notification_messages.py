"""Recipient normalization and the escalation email."""

from servicedesk.notifications.domain import (
    build_escalation_email,
    exclude_address,
    extract_first_email_address,
    ticket_link,
    unique_emails,
)
from servicedesk.tickets.domain import TicketSnapshot


def test_extract_first_email_address():
    assert extract_first_email_address("  ana@example.com ") == "ana@example.com"
    assert extract_first_email_address("Ana Souza <ana@example.com>") == "ana@example.com"
    assert extract_first_email_address("ana@example.com, bob@example.com") == "ana@example.com"
    assert extract_first_email_address(None) == ""
    assert extract_first_email_address("   ") == ""


def test_unique_emails_keeps_first_spelling():
    result = unique_emails(["Ana@Example.com", "ana@example.com", None, "", "Bob <bob@example.com>"])
    assert result == ["Ana@Example.com", "bob@example.com"]


def test_exclude_address_is_case_insensitive():
    assert exclude_address(["ana@example.com", "bob@example.com"], "ANA@example.com") == ["bob@example.com"]
    assert exclude_address(["ana@example.com"], None) == ["ana@example.com"]


def test_ticket_link_strips_trailing_slash():
    assert ticket_link("https://desk.test/", "abc") == "https://desk.test/#/tickets/abc"


def test_escalation_email_escapes_user_text():
    ticket = TicketSnapshot(
        id="1f0e",
        ticket_number="INC-000042",
        title="<script>alert(1)</script>",
        ticket_type="incident",
        priority="high",
        category=None,
        status="open",
    )
    message = build_escalation_email(
        ticket=ticket,
        recipients=["ana@example.com"],
        sender="support@desk.test",
        app_url="https://desk.test",
        note="Customer is \"VIP\"\nplease hurry & call",
    )

    assert message.subject == "Ticket INC-000042 escalated"
    assert message.to == ["ana@example.com"]
    assert message.sender == "support@desk.test"
    assert "<script>" not in message.html
    assert "&lt;script&gt;" in message.html
    assert "please hurry &amp; call" in message.html
    assert "<br/>" in message.html
    assert 'href="https://desk.test/#/tickets/1f0e"' in message.html


def test_escalation_email_without_note():
    ticket = TicketSnapshot(
        id="1f0e", ticket_number="INC-1", title="Laptop", ticket_type="incident",
        priority="low", category=None, status="open",
    )
    message = build_escalation_email(ticket, ["a@example.com"], "s@desk.test", "https://desk.test")
    assert "Note:" not in message.html
