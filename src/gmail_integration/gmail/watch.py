"""Push-notification subscriptions (Gmail ``users.watch``)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import structlog

from gmail_integration.config import Settings
from gmail_integration.exceptions import ConfigurationError, GmailAPIError, SubscriptionError
from gmail_integration.gmail.client import ClientFactory, GmailClient
from gmail_integration.models import WatchResponse

logger = structlog.get_logger()


def _parse_expiration(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    try:
        millis = int(value)
    except (TypeError, ValueError) as exc:
        raise SubscriptionError(f"Unparseable watch expiration: {value!r}") from exc
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def normalize_watch_response(response: Any) -> WatchResponse:
    """Normalise a watch response into a WatchResponse.

    Both the flat ``{"historyId", "expiration"}`` shape and the shape nested
    under ``"data"`` are accepted.

    Args:
        response: Raw response returned by the subscription call.

    Returns:
        WatchResponse with the history cursor and an aware UTC expiration.

    Raises:
        SubscriptionError: If no history id can be found.
    """
    if not isinstance(response, Mapping):
        raise SubscriptionError(f"Unexpected watch response: {response!r}")

    payload: Mapping[str, Any] = response
    nested = response.get("data")
    if "historyId" not in response and isinstance(nested, Mapping):
        payload = nested

    history_id = payload.get("historyId")
    if history_id is None or history_id == "":
        raise SubscriptionError("Watch response carried no historyId")

    return WatchResponse(
        history_id=str(history_id),
        expiration=_parse_expiration(payload.get("expiration")),
    )


async def watch_push_notification(
    account_id: str,
    credentials: Any,
    *,
    settings: Settings | None = None,
    client_factory: ClientFactory | None = None,
) -> WatchResponse:
    """Subscribe an account's mailbox to push notifications.

    Args:
        account_id: Account being subscribed, for logging.
        credentials: Opaque credentials of the mailbox.
        settings: Application settings. If None, uses default settings.
        client_factory: Builds a GmailClient from (credentials, settings).

    Returns:
        Normalised WatchResponse.

    Raises:
        ConfigurationError: If no Pub/Sub topic is configured.
        SubscriptionError: If the watch call fails.
    """
    from gmail_integration.config import get_settings

    settings = settings or get_settings()
    topic_name = settings.gmail_topic_name
    if not topic_name:
        raise ConfigurationError("GMAIL_INTEGRATION_GMAIL_TOPIC_NAME is not set")

    client = (client_factory or GmailClient)(credentials, settings)

    logger.info("watch_push_notification", account_id=account_id, topic_name=topic_name)

    try:
        response = await client.watch(topic_name, list(settings.gmail_watch_label_ids))
    except GmailAPIError as exc:
        raise SubscriptionError(f"Could not subscribe account {account_id}: {exc}") from exc

    return normalize_watch_response(response)


async def stop_push_notification(
    account_id: str,
    credentials: Any,
    *,
    settings: Settings | None = None,
    client_factory: ClientFactory | None = None,
) -> None:
    """Cancel the push-notification subscription of an account's mailbox.

    Raises:
        SubscriptionError: If the stop call fails.
    """
    from gmail_integration.config import get_settings

    settings = settings or get_settings()
    client = (client_factory or GmailClient)(credentials, settings)

    logger.info("stop_push_notification", account_id=account_id)

    try:
        await client.stop()
    except GmailAPIError as exc:
        raise SubscriptionError(f"Could not unsubscribe account {account_id}: {exc}") from exc
