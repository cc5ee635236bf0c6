"""Unit tests for the SQLite integration store."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from gmail_integration.models import Account, SubscriptionStatus
from gmail_integration.store import IntegrationStore


def test_initialize_is_idempotent(tmp_path) -> None:
    store = IntegrationStore(tmp_path / "nested" / "store.sqlite3")
    store.initialize()
    store.initialize()

    assert store.list_integrations() == []


def test_unsupported_schema_version_rejected(tmp_path) -> None:
    db_path = tmp_path / "store.sqlite3"
    IntegrationStore(db_path).initialize()

    conn = sqlite3.connect(db_path)
    conn.execute("UPDATE _schema_meta SET value = '99' WHERE key = 'schema_version'")
    conn.commit()
    conn.close()

    with pytest.raises(RuntimeError):
        IntegrationStore(db_path).initialize()


def test_account_round_trip(store: IntegrationStore) -> None:
    expiry = datetime(2030, 5, 1, tzinfo=timezone.utc)
    store.add_account(
        Account(id="acc-1", uid="Me@Example.com", token="t", refresh_token="r", expiry=expiry)
    )

    account = store.get_account("acc-1")

    assert account is not None
    assert account.uid == "Me@Example.com"
    assert account.token == "t"
    assert account.refresh_token == "r"
    assert account.expiry == expiry
    assert store.get_account("missing") is None


def test_add_account_replaces_tokens(store: IntegrationStore) -> None:
    store.add_account(Account(id="acc-1", uid="me@example.com", token="old"))
    store.add_account(Account(id="acc-1", uid="me@example.com", token="new"))

    assert store.get_account("acc-1").token == "new"


def test_get_account_by_email_ignores_case(store: IntegrationStore) -> None:
    store.add_account(Account(id="acc-1", uid="Me@Example.com", token="t"))

    assert store.get_account_by_email("me@example.com").id == "acc-1"
    assert store.get_account_by_email("other@example.com") is None


def test_create_integration_starts_pending(store: IntegrationStore) -> None:
    integration = store.create_integration(
        kind="gmail",
        account_id="acc-1",
        external_integration_id="ext-1",
        email="me@example.com",
    )

    assert integration.id > 0
    assert integration.kind == "gmail"
    assert integration.external_integration_id == "ext-1"
    assert integration.subscription_status == SubscriptionStatus.PENDING
    assert integration.gmail_history_id is None
    assert integration.expiration is None


def test_save_integration_updates_subscription_fields(store: IntegrationStore) -> None:
    integration = store.create_integration(
        kind="gmail", account_id="acc-1", external_integration_id="ext-1", email="me@example.com"
    )
    created_at = integration.created_at
    expiration = datetime(2030, 1, 8, tzinfo=timezone.utc)

    integration.gmail_history_id = "777"
    integration.expiration = expiration
    integration.subscription_status = SubscriptionStatus.SUBSCRIBED
    store.save_integration(integration)

    saved = store.get_integration(integration.id)
    assert saved.gmail_history_id == "777"
    assert saved.expiration == expiration
    assert saved.subscription_status == SubscriptionStatus.SUBSCRIBED
    assert saved.created_at == created_at
    assert saved.updated_at >= created_at


def test_list_integrations_by_account(store: IntegrationStore) -> None:
    for account_id, ext in [("acc-1", "a"), ("acc-2", "b"), ("acc-1", "c")]:
        store.create_integration(
            kind="gmail", account_id=account_id, external_integration_id=ext, email="x@example.com"
        )

    assert [i.external_integration_id for i in store.list_integrations()] == ["a", "b", "c"]
    assert [i.external_integration_id for i in store.list_integrations("acc-1")] == ["a", "c"]
    assert store.get_integration(999) is None

def test_created_integration_matches_stored_row(store: IntegrationStore) -> None:
    created = store.create_integration(
        kind="gmail", account_id="acc-1", external_integration_id="ext-1", email="me@example.com"
    )

    assert store.get_integration(created.id) == created
