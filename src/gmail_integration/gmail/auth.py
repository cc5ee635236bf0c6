"""Credential resolution for stored accounts.

Accounts carry the OAuth tokens obtained by the external authorization flow.
This module only pairs them with the OAuth client settings so google-auth can
use (and, when it needs to, refresh) them. The resulting credentials object is
treated as opaque by the rest of the package.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any

import structlog
from google.oauth2.credentials import Credentials

from gmail_integration.config import Settings
from gmail_integration.exceptions import AuthenticationError
from gmail_integration.models import Account

logger = structlog.get_logger()


def get_credentials(account: Account, settings: Settings | None = None) -> Credentials:
    """Build Google credentials for an account.

    Args:
        account: Account holding the OAuth token material.
        settings: Application settings. If None, uses default settings.

    Returns:
        Credentials usable by the Gmail API client.

    Raises:
        AuthenticationError: If the account has neither an access nor a refresh token.
    """
    from gmail_integration.config import get_settings

    settings = settings or get_settings()

    if not account.token and not account.refresh_token:
        raise AuthenticationError(f"Account {account.id} has no OAuth tokens")

    # google-auth compares expiry against a naive UTC timestamp.
    expiry = account.expiry
    if expiry is not None and expiry.tzinfo is not None:
        expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)

    logger.debug("credentials_resolved", account_id=account.id)

    return Credentials(
        token=account.token,
        refresh_token=account.refresh_token,
        token_uri=settings.google_token_uri,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        scopes=[account.scope or settings.gmail_scope],
        expiry=expiry,
    )


def build_gmail_service(credentials: Credentials) -> Any:
    """Build a Gmail v1 service bound to the given credentials."""
    # Imported lazily to keep import-time cost low and tests fast.
    from googleapiclient.discovery import build

    # cache_discovery=False prevents writing discovery docs to disk.
    return build("gmail", "v1", credentials=credentials, cache_discovery=False)
