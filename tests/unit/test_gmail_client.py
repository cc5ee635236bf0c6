"""Unit tests for Gmail client."""

from unittest.mock import MagicMock

import pytest

from gmail_integration.exceptions import GmailAPIError
from gmail_integration.gmail.client import RFC822_MIME_TYPE, GmailClient


def _send_kwargs(service: MagicMock) -> dict:
    return service.users.return_value.messages.return_value.send.call_args.kwargs


class TestGmailClient:
    """Test suite for GmailClient class."""

    def test_gmail_client_initialization(self, settings) -> None:
        """Test that Gmail client is properly initialized."""
        client = GmailClient(credentials=object(), settings=settings)

        assert client.settings is settings
        assert client.user_id == "me"
        assert client._service is None

    @pytest.mark.asyncio
    async def test_send_message_uploads_rfc822_media(self, settings, gmail_service) -> None:
        """Test that the raw message goes out as message/rfc822 multipart media."""
        client = GmailClient(credentials=object(), settings=settings, service=gmail_service)

        response = await client.send_message("Subject: hi\r\n\r\nbody", thread_id="thread-7")

        assert response["id"] == "msg-1"
        kwargs = _send_kwargs(gmail_service)
        assert kwargs["userId"] == "me"
        assert kwargs["body"] == {"threadId": "thread-7"}
        media = kwargs["media_body"]
        assert media.mimetype() == RFC822_MIME_TYPE
        assert media.resumable() is False
        assert media.getbytes(0, media.size()) == b"Subject: hi\r\n\r\nbody"

    @pytest.mark.asyncio
    async def test_send_message_without_thread(self, settings, gmail_service) -> None:
        """Test that an empty Message body is still sent without a thread id."""
        client = GmailClient(credentials=object(), settings=settings, service=gmail_service)

        await client.send_message("raw")

        assert _send_kwargs(gmail_service)["body"] == {}

    @pytest.mark.asyncio
    async def test_send_message_failure_raises(self, settings, gmail_service) -> None:
        """Test that API failures are wrapped in GmailAPIError."""
        execute = gmail_service.users.return_value.messages.return_value.send.return_value.execute
        execute.side_effect = RuntimeError("quota exceeded")
        client = GmailClient(credentials=object(), settings=settings, service=gmail_service)

        with pytest.raises(GmailAPIError, match="quota exceeded"):
            await client.send_message("raw")

    @pytest.mark.asyncio
    async def test_watch_passes_topic_and_labels(self, settings, gmail_service) -> None:
        client = GmailClient(credentials=object(), settings=settings, service=gmail_service)

        response = await client.watch("projects/p/topics/t", ["INBOX"])

        assert response == {"historyId": "12345", "expiration": "1700000000000"}
        gmail_service.users.return_value.watch.assert_called_once_with(
            userId="me",
            body={"topicName": "projects/p/topics/t", "labelIds": ["INBOX"]},
        )

    @pytest.mark.asyncio
    async def test_stop_and_profile(self, settings, gmail_service) -> None:
        client = GmailClient(credentials=object(), settings=settings, service=gmail_service)

        await client.stop()
        profile = await client.get_profile()

        gmail_service.users.return_value.stop.assert_called_once_with(userId="me")
        assert profile["emailAddress"] == "sender@example.com"

    @pytest.mark.asyncio
    async def test_service_built_lazily_from_credentials(
        self, settings, gmail_service, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        credentials = object()
        built = []

        def fake_build(creds):
            built.append(creds)
            return gmail_service

        monkeypatch.setattr("gmail_integration.gmail.client.build_gmail_service", fake_build)
        client = GmailClient(credentials=credentials, settings=settings)

        await client.get_profile()
        await client.get_profile()

        assert built == [credentials]
