"""Integration orchestration.

Ties the store, the credentials resolver, push subscription and delivery
together for the HTTP and CLI surfaces. Each call runs a linear chain of
steps; nothing is shared between calls except the store.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import structlog

from gmail_integration.config import Settings
from gmail_integration.exceptions import (
    AccountNotFoundError,
    ConfigurationError,
    GmailAPIError,
)
from gmail_integration.gmail.auth import get_credentials
from gmail_integration.gmail.send import DeliveryClient
from gmail_integration.gmail.watch import normalize_watch_response, watch_push_notification
from gmail_integration.models import (
    Account,
    DeliveryStatus,
    MailParams,
    SendResult,
    SubscriptionStatus,
    WatchResponse,
)
from gmail_integration.store import IntegrationStore
from gmail_integration.utils import retry_on_failure

logger = structlog.get_logger()

Subscriber = Callable[[str, Any], Awaitable[Any]]
CredentialsResolver = Callable[[Account, Settings], Any]

TEST_EMAIL_SUBJECT = "Gmail integration test"
TEST_EMAIL_TEXT = "This is a test message sent by the Gmail integration adapter."
TEST_EMAIL_HTML = "<p>This is a test message sent by the Gmail integration adapter.</p>"


class IntegrationGateway:
    """Creates Gmail integrations and sends mail for stored accounts."""

    def __init__(
        self,
        store: IntegrationStore,
        settings: Settings | None = None,
        delivery: DeliveryClient | None = None,
        subscriber: Subscriber | None = None,
        credentials_resolver: CredentialsResolver | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            store: Account and integration store.
            settings: Application settings. If None, uses default settings.
            delivery: Delivery client. If None, creates a new one.
            subscriber: Coroutine (account_id, credentials) returning a watch
                response. Defaults to `watch_push_notification`.
            credentials_resolver: Maps (account, settings) to credentials.
        """
        from gmail_integration.config import get_settings

        self.settings = settings or get_settings()
        self.store = store
        self.delivery = delivery or DeliveryClient(settings=self.settings)
        self._subscriber = subscriber or self._watch
        self._credentials_resolver = credentials_resolver or get_credentials

    async def create_integration(
        self,
        account_id: str,
        external_integration_id: str,
        email: str,
    ) -> dict[str, str]:
        """Create a Gmail integration and subscribe it to push notifications.

        The integration is saved whether or not the subscription succeeds; a
        failed subscription leaves the cursor fields empty and the status
        FAILED, and the call still reports ``{"status": "ok"}``.

        Raises:
            AccountNotFoundError: If no account has the given id. Nothing is written.
        """
        account = self.store.get_account(account_id)
        if account is None:
            logger.error("account_not_found", account_id=account_id)
            raise AccountNotFoundError(account_id)

        logger.info("creating_gmail_integration", account_id=account_id, email=email)

        integration = self.store.create_integration(
            kind=self.settings.integration_kind,
            account_id=account_id,
            external_integration_id=external_integration_id,
            email=email,
        )

        try:
            credentials = self._credentials_resolver(account, self.settings)
            watch = await self._subscribe(account_id, credentials)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "gmail_subscription_failed",
                account_id=account_id,
                email=email,
                error=str(exc),
            )
            integration.gmail_history_id = None
            integration.expiration = None
            integration.subscription_status = SubscriptionStatus.FAILED
            integration.subscription_error = str(exc)
        else:
            integration.gmail_history_id = watch.history_id
            integration.expiration = watch.expiration
            integration.subscription_status = SubscriptionStatus.SUBSCRIBED
            integration.subscription_error = None

        self.store.save_integration(integration)

        logger.info(
            "gmail_integration_created",
            integration_id=integration.id,
            subscription_status=integration.subscription_status.value,
        )

        return {"status": "ok"}

    def get_email(self, account_id: str) -> str:
        """Return the mailbox address of an account.

        Raises:
            AccountNotFoundError: If no account has the given id.
        """
        account = self.store.get_account(account_id)
        if account is None:
            logger.error("account_not_found", account_id=account_id)
            raise AccountNotFoundError(account_id)
        return account.uid

    async def send(self, mail_params: MailParams, email: str) -> SendResult:
        """Send mail from the account owning ``email``.

        Delivery failures come back as a FAILED result, never as exceptions.

        Raises:
            AccountNotFoundError: If no account owns the mailbox address.
        """
        account = self.store.get_account_by_email(email)
        if account is None:
            logger.error("account_not_found", email=email)
            raise AccountNotFoundError(email)

        try:
            credentials = self._credentials_resolver(account, self.settings)
        except Exception as exc:  # noqa: BLE001
            logger.error("gmail_send_failed", email=email, error=str(exc))
            return SendResult(status=DeliveryStatus.FAILED, error=str(exc))

        result = await self.delivery.send_gmail(credentials, mail_params)
        if not result.is_success:
            logger.warning("gmail_send_not_delivered", email=email, error=result.error)
        return result

    async def send_test_email(self) -> SendResult:
        """Send a fixed diagnostic message between the configured test addresses.

        Raises:
            ConfigurationError: If either test address is missing.
            AccountNotFoundError: If no account owns the sender address.
        """
        sender = self.settings.test_sender_email
        recipient = self.settings.test_recipient_email
        if not sender or not recipient:
            raise ConfigurationError(
                "GMAIL_INTEGRATION_TEST_SENDER_EMAIL and "
                "GMAIL_INTEGRATION_TEST_RECIPIENT_EMAIL must be set"
            )

        params = MailParams(
            from_email=sender,
            to_emails=recipient,
            subject=TEST_EMAIL_SUBJECT,
            text_plain=TEST_EMAIL_TEXT,
            text_html=TEST_EMAIL_HTML,
        )
        return await self.send(params, sender)

    async def _subscribe(self, account_id: str, credentials: Any) -> WatchResponse:
        subscribe = retry_on_failure(
            max_retries=self.settings.subscribe_max_retries,
            delay=self.settings.subscribe_retry_delay,
            exceptions=(GmailAPIError,),
        )(self._subscriber)

        response = await subscribe(account_id, credentials)
        if isinstance(response, WatchResponse):
            return response
        return normalize_watch_response(response)

    async def _watch(self, account_id: str, credentials: Any) -> WatchResponse:
        return await watch_push_notification(account_id, credentials, settings=self.settings)
