"""Outbound delivery through the Gmail API.

Delivery is fire-and-forget from the caller's point of view: no exception
escapes `DeliveryClient`. Failures are logged and reported through
`SendResult` so the caller can still tell a sent message from a failed one.
"""

from __future__ import annotations

from typing import Any

import structlog

from gmail_integration.config import Settings
from gmail_integration.gmail.client import ClientFactory, GmailClient
from gmail_integration.gmail.mime import create_mime_message
from gmail_integration.models import DeliveryStatus, MailParams, SendResult

logger = structlog.get_logger()


class DeliveryClient:
    """Hands composed messages to Gmail on behalf of a mailbox."""

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the delivery client.

        Args:
            client_factory: Builds a GmailClient from (credentials, settings).
            settings: Application settings. If None, uses default settings.
        """
        from gmail_integration.config import get_settings

        self.settings = settings or get_settings()
        self._client_factory = client_factory or GmailClient

    async def send_gmail(self, credentials: Any, mail_params: MailParams) -> SendResult:
        """Compose a MIME message from mail parameters and send it.

        Args:
            credentials: Opaque credentials of the sending mailbox.
            mail_params: Message content, threaded into mail_params.thread_id if set.

        Returns:
            SendResult describing the outcome.
        """
        message = create_mime_message(mail_params)
        return await self.compose_email(credentials, message, mail_params.thread_id)

    async def compose_email(
        self,
        credentials: Any,
        message: str,
        thread_id: str | None = None,
    ) -> SendResult:
        """Send an already composed message.

        Args:
            credentials: Opaque credentials of the sending mailbox.
            message: Raw RFC 2822 message text.
            thread_id: Existing thread to reply into.

        Returns:
            SendResult with status SENT and the provider response, or FAILED
            with the error text.
        """
        try:
            client = self._client_factory(credentials, self.settings)
            response = await client.send_message(message, thread_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("gmail_send_failed", thread_id=thread_id, error=str(exc))
            return SendResult(status=DeliveryStatus.FAILED, thread_id=thread_id, error=str(exc))

        response = response or {}
        logger.info(
            "gmail_send_completed",
            message_id=response.get("id"),
            thread_id=response.get("threadId"),
        )

        return SendResult(
            status=DeliveryStatus.SENT,
            message_id=response.get("id"),
            thread_id=response.get("threadId") or thread_id,
            provider_response=response,
        )
