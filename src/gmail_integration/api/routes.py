"""Integration API.

Endpoints:
  POST /integration/create      create an integration and subscribe it
  GET  /integration/get-email   mailbox address of an account
  POST /integration/send        send mail from an integrated mailbox
  GET  /integration/send-email  send a fixed diagnostic message
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from gmail_integration.api.models import (
    CreateIntegrationRequest,
    SendRequest,
    StatusResponse,
    parse_create_data,
    parse_send_data,
)
from gmail_integration.gateway import IntegrationGateway

router = APIRouter(prefix="/integration", tags=["integration"])


def get_gateway(request: Request) -> IntegrationGateway:
    return request.app.state.gateway


@router.post("/create", response_model=StatusResponse)
async def create_integration(
    body: CreateIntegrationRequest,
    gateway: IntegrationGateway = Depends(get_gateway),
) -> StatusResponse:
    data = parse_create_data(body.data)
    result = await gateway.create_integration(body.account_id, body.integration_id, data.email)
    return StatusResponse(**result)


@router.get("/get-email")
def get_email(
    account_id: str = Query(alias="accountId"),
    gateway: IntegrationGateway = Depends(get_gateway),
) -> str:
    return gateway.get_email(account_id)


@router.post("/send", response_model=StatusResponse)
async def send(
    body: SendRequest,
    gateway: IntegrationGateway = Depends(get_gateway),
) -> StatusResponse:
    data = parse_send_data(body.data)
    # Acknowledged as accepted; delivery failures are logged by the gateway.
    await gateway.send(data.mail_params, data.email)
    return StatusResponse(status="success")


@router.get("/send-email")
async def send_test_email(gateway: IntegrationGateway = Depends(get_gateway)) -> str:
    await gateway.send_test_email()
    return "success"
