"""
Pytest fixtures for WhatsApp Cloud API tests.
"""

import hashlib
import hmac
import json
from typing import Any

import httpx
import pytest

from waba_cloud import WhatsAppClient, WhatsAppConfig

PHONE_ID = "123456789"
TOKEN = "test-token"
WABA_ID = "WABA_123"
API_VERSION = "v25.0"
BASE_URL = f"https://graph.facebook.com/{API_VERSION}"

SEND_SUCCESS = {
    "messaging_product": "whatsapp",
    "contacts": [{"input": "5511999999999", "wa_id": "5511999999999"}],
    "messages": [{"id": "wamid.test"}],
}


class FakeGraphAPI:
    """
    In-memory Graph API behind httpx.MockTransport.

    Records every request and answers with queued responses, falling back
    to a successful send.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def reply(self, body: Any, status: int = 200) -> None:
        self._responses.append(httpx.Response(status, json=body))

    def reply_raw(self, response: httpx.Response) -> None:
        self._responses.append(response)

    def fail(self, error: Exception) -> None:
        self._responses.append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            response = self._responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return httpx.Response(200, json=SEND_SUCCESS)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def api():
    """Fake Graph API recording outgoing requests."""
    return FakeGraphAPI()


def make_client(api: FakeGraphAPI, **config: Any) -> WhatsAppClient:
    settings = {"phone_number_id": PHONE_ID, "access_token": TOKEN, **config}
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler))
    return WhatsAppClient(WhatsAppConfig(**settings), http_client=http_client)


@pytest.fixture
def client(api):
    """Client with a waba_id, wired to the fake API."""
    return make_client(api, waba_id=WABA_ID)


@pytest.fixture
def client_no_waba(api):
    """Client without a waba_id."""
    return make_client(api)


METADATA = {"display_phone_number": "5511999999999", "phone_number_id": PHONE_ID}


def webhook_payload(*values: dict[str, Any]) -> dict[str, Any]:
    """Wrap change values in a WhatsApp Business delivery envelope."""
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": WABA_ID,
                "changes": [
                    {"value": {"messaging_product": "whatsapp", "metadata": METADATA, **value}, "field": "messages"}
                    for value in values
                ],
            }
        ],
    }


@pytest.fixture
def sample_text_payload():
    """Sample Meta webhook for a text message."""
    return webhook_payload(
        {
            "contacts": [{"profile": {"name": "John Doe"}, "wa_id": "5511888888888"}],
            "messages": [
                {
                    "from": "5511888888888",
                    "id": "wamid.HBgM",
                    "timestamp": "1704067200",
                    "text": {"body": "Preciso de cimento"},
                    "type": "text",
                }
            ],
        }
    )


@pytest.fixture
def sample_status_payload():
    """Sample Meta webhook for a delivered status."""
    return webhook_payload(
        {
            "statuses": [
                {
                    "id": "wamid.OUT1",
                    "status": "delivered",
                    "timestamp": "1704067300",
                    "recipient_id": "5511888888888",
                    "conversation": {"id": "conv-1", "origin": {"type": "service"}},
                    "pricing": {"billable": True, "pricing_model": "CBP", "category": "service"},
                }
            ],
        }
    )


def sign(body: bytes | str, secret: str) -> str:
    """Build a valid X-Hub-Signature-256 header value."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"
