"""Gmail API client implementation.

This module provides a per-mailbox client for the Gmail calls the adapter
makes: sending raw messages and managing push-notification watches.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the HTTP handlers can remain async.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any, Callable

import structlog

from gmail_integration.config import Settings
from gmail_integration.exceptions import GmailAPIError
from gmail_integration.gmail.auth import build_gmail_service

logger = structlog.get_logger()

RFC822_MIME_TYPE = "message/rfc822"

# Builds a GmailClient from (credentials, settings).
ClientFactory = Callable[[Any, Settings], "GmailClient"]


class GmailClient:
    """Gmail API client acting on behalf of one authenticated mailbox."""

    def __init__(
        self,
        credentials: Any,
        settings: Settings | None = None,
        service: Any | None = None,
    ) -> None:
        """Initialize Gmail client.

        Args:
            credentials: Opaque credentials for the mailbox.
            settings: Application settings. If None, uses default settings.
            service: Prebuilt Gmail service. Built from credentials on first use when None.
        """
        from gmail_integration.config import get_settings

        self.settings = settings or get_settings()
        self._credentials = credentials
        self._service = service

    @property
    def user_id(self) -> str:
        return self.settings.gmail_user_id

    async def send_message(self, raw: str, thread_id: str | None = None) -> dict[str, Any]:
        """Send a raw RFC 2822 message.

        Args:
            raw: Complete message text.
            thread_id: Existing thread to attach the message to.

        Returns:
            The Gmail Message resource of the sent message.

        Raises:
            GmailAPIError: If the API request fails.
        """
        logger.info("sending_message", thread_id=thread_id, size=len(raw))

        try:
            return await asyncio.to_thread(self._send_message_sync, raw, thread_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_send_message_failed", thread_id=thread_id, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def watch(self, topic_name: str, label_ids: list[str]) -> dict[str, Any]:
        """Subscribe the mailbox to push notifications.

        Args:
            topic_name: Cloud Pub/Sub topic receiving notifications.
            label_ids: Labels the notifications are restricted to.

        Returns:
            Raw watch response (historyId, expiration).

        Raises:
            GmailAPIError: If the API request fails.
        """
        logger.info("watching_mailbox", topic_name=topic_name, label_ids=label_ids)

        try:
            return await asyncio.to_thread(self._watch_sync, topic_name, label_ids)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_watch_failed", topic_name=topic_name, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def stop(self) -> None:
        """Stop push notifications for the mailbox.

        Raises:
            GmailAPIError: If the API request fails.
        """
        logger.info("stopping_mailbox_watch")

        try:
            await asyncio.to_thread(self._stop_sync)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_stop_failed", error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def get_profile(self) -> dict[str, Any]:
        """Return the mailbox profile (emailAddress, historyId, ...).

        Raises:
            GmailAPIError: If the API request fails.
        """
        try:
            return await asyncio.to_thread(self._get_profile_sync)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_get_profile_failed", error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = build_gmail_service(self._credentials)
        return self._service

    def _send_message_sync(self, raw: str, thread_id: str | None) -> dict[str, Any]:
        from googleapiclient.http import MediaIoBaseUpload

        media = MediaIoBaseUpload(
            io.BytesIO(raw.encode("utf-8")),
            mimetype=RFC822_MIME_TYPE,
            resumable=False,
        )
        # The Message resource doubles as request body: threadId here threads
        # the upload, and the same field comes back on the response. A non-None
        # body with non-resumable media makes the client use multipart upload.
        body: dict[str, Any] = {}
        if thread_id:
            body["threadId"] = thread_id

        request = (
            self._get_service()
            .users()
            .messages()
            .send(userId=self.user_id, body=body, media_body=media)
        )
        return request.execute()

    def _watch_sync(self, topic_name: str, label_ids: list[str]) -> dict[str, Any]:
        request = self._get_service().users().watch(
            userId=self.user_id,
            body={"topicName": topic_name, "labelIds": label_ids},
        )
        return request.execute()

    def _stop_sync(self) -> None:
        self._get_service().users().stop(userId=self.user_id).execute()

    def _get_profile_sync(self) -> dict[str, Any]:
        return self._get_service().users().getProfile(userId=self.user_id).execute()
