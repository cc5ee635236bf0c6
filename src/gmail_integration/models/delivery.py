"""Outcome of handing a message to Gmail."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DeliveryStatus(str, Enum):
    """Delivery outcome."""

    SENT = "sent"
    FAILED = "failed"


class SendResult(BaseModel):
    """Result of a single send attempt.

    A failed send is reported here instead of being raised, so callers can
    acknowledge a request without waiting on provider reliability.
    """

    status: DeliveryStatus
    message_id: str | None = Field(default=None, description="Gmail message id")
    thread_id: str | None = Field(default=None, description="Gmail thread id")
    provider_response: dict[str, Any] | None = Field(default=None, description="Raw response")
    error: str | None = Field(default=None, description="Error message if failed")
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_success(self) -> bool:
        return self.status == DeliveryStatus.SENT
