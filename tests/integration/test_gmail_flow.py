"""End-to-end flow through the HTTP API with a mocked Gmail service.

Everything below the googleapiclient service object is real: credentials
resolution, MIME assembly, delivery, watch normalisation and the store.
"""

from __future__ import annotations

import email
import json
from email import policy

import pytest
from fastapi.testclient import TestClient

from gmail_integration.api import create_app
from gmail_integration.gateway import IntegrationGateway
from gmail_integration.gmail.client import GmailClient
from gmail_integration.gmail.send import DeliveryClient
from gmail_integration.gmail.watch import watch_push_notification
from gmail_integration.models import SubscriptionStatus


@pytest.fixture
def client(store, settings, account, gmail_service) -> TestClient:
    def factory(credentials, s):
        return GmailClient(credentials, s, service=gmail_service)

    async def subscriber(account_id, credentials):
        return await watch_push_notification(
            account_id, credentials, settings=settings, client_factory=factory
        )

    gateway = IntegrationGateway(
        store,
        settings=settings,
        delivery=DeliveryClient(client_factory=factory, settings=settings),
        subscriber=subscriber,
    )
    return TestClient(create_app(settings=settings, gateway=gateway))


@pytest.mark.integration
def test_create_integration_subscribes_mailbox(client, store, gmail_service) -> None:
    response = client.post(
        "/integration/create",
        json={
            "accountId": "acc-1",
            "integrationId": "ext-1",
            "data": json.dumps({"email": "sender@example.com"}),
        },
    )

    assert response.json() == {"status": "ok"}
    gmail_service.users.return_value.watch.assert_called_once_with(
        userId="me",
        body={"topicName": "projects/test-project/topics/gmail", "labelIds": ["INBOX"]},
    )
    [integration] = store.list_integrations()
    assert integration.subscription_status == SubscriptionStatus.SUBSCRIBED
    assert integration.gmail_history_id == "12345"
    assert integration.expiration is not None


@pytest.mark.integration
def test_create_integration_survives_watch_failure(client, store, gmail_service) -> None:
    gmail_service.users.return_value.watch.return_value.execute.side_effect = RuntimeError("403")

    response = client.post(
        "/integration/create",
        json={
            "accountId": "acc-1",
            "integrationId": "ext-1",
            "data": json.dumps({"email": "sender@example.com"}),
        },
    )

    assert response.json() == {"status": "ok"}
    [integration] = store.list_integrations()
    assert integration.subscription_status == SubscriptionStatus.FAILED
    assert integration.gmail_history_id is None
    assert integration.expiration is None


@pytest.mark.integration
def test_send_delivers_composed_message(client, gmail_service) -> None:
    mail_params = {
        "fromEmail": "sender@example.com",
        "toEmails": "user@example.com",
        "cc": "cc@example.com",
        "subject": "Résumé attached",
        "textPlain": "See attached.",
        "textHtml": "<p>See attached.</p>",
        "threadId": "thread-1",
        "attachments": [
            {
                "mimeType": "application/pdf",
                "filename": "resume.pdf",
                "data": {"type": "Buffer", "data": list(b"%PDF-1.7 test")},
            }
        ],
    }

    response = client.post(
        "/integration/send",
        json={"data": json.dumps({"mailParams": mail_params, "email": "sender@example.com"})},
    )

    assert response.json() == {"status": "success"}
    kwargs = gmail_service.users.return_value.messages.return_value.send.call_args.kwargs
    assert kwargs["body"] == {"threadId": "thread-1"}
    media = kwargs["media_body"]
    raw = media.getbytes(0, media.size()).decode("utf-8")

    message = email.message_from_string(raw, policy=policy.default)
    assert message["Subject"] == "Résumé attached"
    assert message["Cc"] == "cc@example.com"
    parts = list(message.iter_parts())
    assert [p.get_content_type() for p in parts] == ["text/plain", "text/html", "application/pdf"]
    assert parts[2].get_payload(decode=True) == b"%PDF-1.7 test"


@pytest.mark.integration
def test_send_failure_is_acknowledged(client, gmail_service) -> None:
    execute = gmail_service.users.return_value.messages.return_value.send.return_value.execute
    execute.side_effect = RuntimeError("backend error")

    response = client.post(
        "/integration/send",
        json={
            "data": json.dumps(
                {"mailParams": {"toEmails": "user@example.com"}, "email": "sender@example.com"}
            )
        },
    )

    assert response.status_code == 200
    assert response.json() == {"status": "success"}
