"""
Email Provider Integration
==========================

Resend-compatible HTTP client for transactional email.

Request: ``POST {from, to[], subject, html}`` with a bearer key.
Response: ``{"id": ...}`` on success. Any non-2xx status or transport
error raises ``EmailDeliveryException``; there is no retry.
"""

from typing import Any, Dict, Optional

import httpx

from servicedesk.config import settings
from servicedesk.core import ConfigurationException, EmailDeliveryException
from servicedesk.notifications.application.services import IEmailClient
from servicedesk.notifications.domain import EmailMessage
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ResendEmailClient(IEmailClient):
    """
    Email client for the Resend HTTP API.

    The underlying ``httpx.AsyncClient`` is created lazily and reused; pass
    one in to control transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key if api_key is not None else settings.resend_api_key
        self._api_url = api_url or settings.email_api_url
        self._timeout = timeout_seconds or settings.email_timeout_seconds
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    @staticmethod
    def _build_payload(message: EmailMessage) -> Dict[str, Any]:
        return {
            "from": message.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }

    async def send(self, message: EmailMessage) -> Optional[str]:
        if not self._api_key:
            raise ConfigurationException("RESEND_API_KEY is not configured")

        client = await self._get_client()
        try:
            response = await client.post(
                self._api_url,
                json=self._build_payload(message),
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(
                "Email provider unreachable",
                extra={"error": str(e), "recipients": len(message.to)}
            )
            raise EmailDeliveryException(f"request failed: {e}") from e

        if not response.is_success:
            logger.warning(
                "Email provider returned non-2xx",
                extra={"status_code": response.status_code, "body": response.text[:500]}
            )
            raise EmailDeliveryException(
                f"send failed: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = {}
        message_id = body.get("id") if isinstance(body, dict) else None

        logger.info(
            "Email accepted by provider",
            extra={"provider_message_id": message_id, "recipients": len(message.to)}
        )
        return message_id

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
