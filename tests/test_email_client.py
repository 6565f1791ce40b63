"""Resend email client against a mocked transport."""

import httpx
import pytest

from servicedesk.core import ConfigurationException, EmailDeliveryException
from servicedesk.notifications.domain import EmailMessage
from servicedesk.notifications.infrastructure import ResendEmailClient
from tests.conftest import EMAIL_API_URL, FakeEmailProvider

MESSAGE = EmailMessage(
    sender="support@desk.test",
    to=["ana@example.com", "bob@example.com"],
    subject="Ticket INC-000001 escalated",
    html="<p>hello</p>",
)


def make_client(handler, api_key="re_test_key") -> ResendEmailClient:
    return ResendEmailClient(
        api_key=api_key,
        api_url=EMAIL_API_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_send_posts_payload_with_bearer_key():
    provider = FakeEmailProvider()
    client = make_client(provider)

    message_id = await client.send(MESSAGE)
    await client.close()

    assert message_id == "msg_1"
    request = provider.requests[0]
    assert request["url"] == EMAIL_API_URL
    assert request["headers"]["authorization"] == "Bearer re_test_key"
    assert request["json"] == {
        "from": "support@desk.test",
        "to": ["ana@example.com", "bob@example.com"],
        "subject": "Ticket INC-000001 escalated",
        "html": "<p>hello</p>",
    }


@pytest.mark.asyncio
async def test_non_2xx_raises_without_retry():
    provider = FakeEmailProvider()
    provider.status_code = 500
    client = make_client(provider)

    with pytest.raises(EmailDeliveryException) as exc_info:
        await client.send(MESSAGE)
    await client.close()

    assert exc_info.value.status_code == 500
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_transport_error_raises_delivery_exception():
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(unreachable)
    with pytest.raises(EmailDeliveryException):
        await client.send(MESSAGE)
    await client.close()


@pytest.mark.asyncio
async def test_missing_api_key_is_a_configuration_error():
    provider = FakeEmailProvider()
    client = make_client(provider, api_key="")

    with pytest.raises(ConfigurationException):
        await client.send(MESSAGE)
    await client.close()

    assert provider.requests == []
