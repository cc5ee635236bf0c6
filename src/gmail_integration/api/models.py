"""Request and response models for the HTTP surface.

The ``data`` fields arrive as JSON-encoded strings inside the JSON body; the
``parse_*`` helpers decode and validate them.
"""

from __future__ import annotations

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gmail_integration.exceptions import ValidationError
from gmail_integration.models import MailParams


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateIntegrationRequest(_CamelModel):
    account_id: str = Field(description="Account the integration belongs to")
    integration_id: str = Field(description="The caller's own integration id")
    data: str = Field(description='JSON string: {"email": ...}')


class CreateIntegrationData(_CamelModel):
    email: str


class SendRequest(_CamelModel):
    data: str = Field(description='JSON string: {"mailParams": {...}, "email": ...}')


class SendData(_CamelModel):
    mail_params: MailParams
    email: str


class StatusResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str


def _parse(model: type[_CamelModel], data: str) -> _CamelModel:
    try:
        return model.model_validate_json(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid data payload: {exc.error_count()} error(s)") from exc


def parse_create_data(data: str) -> CreateIntegrationData:
    """Decode the ``data`` string of a create-integration request."""
    return _parse(CreateIntegrationData, data)  # type: ignore[return-value]


def parse_send_data(data: str) -> SendData:
    """Decode the ``data`` string of a send request."""
    return _parse(SendData, data)  # type: ignore[return-value]
