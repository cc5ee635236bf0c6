"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def settings(tmp_path):
    """Provide isolated settings for testing."""
    from gmail_integration.config import Settings

    return Settings(
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        gmail_topic_name="projects/test-project/topics/gmail",
        db_path=tmp_path / "integrations.sqlite3",
        test_sender_email="sender@example.com",
        test_recipient_email="recipient@example.com",
        subscribe_retry_delay=0.0,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def store(settings):
    """Provide an initialized store backed by a temporary database."""
    from gmail_integration.store import IntegrationStore

    repo = IntegrationStore(settings.db_path)
    repo.initialize()
    return repo


@pytest.fixture
def account(store):
    """Provide an account stored with OAuth token material."""
    from gmail_integration.models import Account

    acc = Account(
        id="acc-1",
        uid="sender@example.com",
        token="access-token",
        refresh_token="refresh-token",
    )
    store.add_account(acc)
    return acc


@pytest.fixture
def gmail_service() -> MagicMock:
    """Provide a mocked Gmail v1 service."""
    service = MagicMock()
    users = service.users.return_value
    users.messages.return_value.send.return_value.execute.return_value = {
        "id": "msg-1",
        "threadId": "thread-1",
        "labelIds": ["SENT"],
    }
    users.watch.return_value.execute.return_value = {
        "historyId": "12345",
        "expiration": "1700000000000",
    }
    users.getProfile.return_value.execute.return_value = {
        "emailAddress": "sender@example.com",
        "historyId": "12345",
    }
    return service


@pytest.fixture
def mail_params():
    """Provide typical outbound mail parameters."""
    from gmail_integration.models import MailParams

    return MailParams(
        from_email="sender@example.com",
        to_emails="user1@example.com, user2@example.com",
        subject="Quarterly report",
        text_plain="Hello plain",
        text_html="<p>Hello html</p>",
    )
