"""Account and integration records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionStatus(str, Enum):
    """Push-notification subscription state of an integration."""

    PENDING = "pending"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


class Account(BaseModel):
    """A connected mailbox and the token material authorizing it.

    Only the credentials resolver reads the token fields; everything else
    treats them as opaque.
    """

    id: str = Field(description="Account identifier")
    uid: str = Field(description="Mailbox address of the account")
    kind: str = Field(default="gmail", description="Provider kind")
    token: str | None = Field(default=None, description="OAuth access token")
    refresh_token: str | None = Field(default=None, description="OAuth refresh token")
    expiry: datetime | None = Field(default=None, description="Access token expiry")
    scope: str | None = Field(default=None, description="Granted OAuth scope")


class Integration(BaseModel):
    """Link between the calling system's integration and a Gmail mailbox."""

    id: int = Field(description="Store-assigned integration id")
    kind: str = Field(description="Kind discriminator")
    account_id: str = Field(description="Owning account id")
    external_integration_id: str = Field(description="The caller's own integration id")
    email: str = Field(description="Mailbox address")
    gmail_history_id: str | None = Field(default=None, description="History cursor")
    expiration: datetime | None = Field(default=None, description="Subscription expiry")
    subscription_status: SubscriptionStatus = Field(default=SubscriptionStatus.PENDING)
    subscription_error: str | None = Field(default=None, description="Last subscription error")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class WatchResponse(BaseModel):
    """Normalised result of a push-notification subscription."""

    history_id: str = Field(description="History cursor at subscription time")
    expiration: datetime | None = Field(default=None, description="When the watch lapses")
