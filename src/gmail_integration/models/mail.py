"""Outbound mail models.

JSON payloads use camelCase field names (``fromEmail``, ``textHtml``); the
Python attributes are snake_case and both spellings are accepted on input.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Attachment(BaseModel):
    """A single file attached to an outbound message."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mime_type: str = Field(description="Content type of the attachment")
    filename: str = Field(description="File name shown to the recipient")
    data: bytes = Field(description="Raw attachment payload")

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_buffer(cls, value: Any) -> Any:
        # Text is taken as UTF-8; byte arrays and JSON-serialised Buffer
        # objects ({"type": "Buffer", "data": [...]}) carry raw bytes.
        if isinstance(value, Mapping) and value.get("type") == "Buffer":
            value = value.get("data")
        if isinstance(value, str):
            return value.encode("utf-8")
        if isinstance(value, (list, tuple)):
            try:
                return bytes(value)
            except (TypeError, ValueError) as exc:
                raise ValueError("attachment byte array must hold integers 0-255") from exc
        return value


class MailParams(BaseModel):
    """Structured parameters of an outbound message."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    from_email: str = Field(default="", description="Sender mailbox address")
    to_emails: str = Field(default="", description="Comma-joined recipient addresses")
    cc: str | None = Field(default=None, description="Comma-joined Cc addresses")
    bcc: str | None = Field(default=None, description="Comma-joined Bcc addresses")
    subject: str = Field(default="", description="Plain-text subject")
    text_plain: str = Field(default="", description="text/plain body")
    text_html: str = Field(default="", description="text/html body")
    attachments: list[Attachment] | None = Field(default=None, description="Attached files")
    thread_id: str | None = Field(default=None, description="Gmail thread to reply into")
