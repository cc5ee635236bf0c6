"""Data models for the Gmail integration adapter.

This package contains Pydantic models for data validation and serialization.
"""

from gmail_integration.models.delivery import DeliveryStatus, SendResult
from gmail_integration.models.integration import (
    Account,
    Integration,
    SubscriptionStatus,
    WatchResponse,
)
from gmail_integration.models.mail import Attachment, MailParams

__all__ = [
    "Account",
    "Attachment",
    "DeliveryStatus",
    "Integration",
    "MailParams",
    "SendResult",
    "SubscriptionStatus",
    "WatchResponse",
]
