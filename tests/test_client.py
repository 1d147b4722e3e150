"""
Tests for WhatsAppClient request pipeline and message sending.
"""

import httpx
import pytest

from tests.conftest import BASE_URL, PHONE_ID, TOKEN, make_client
from waba_cloud.client import first_message_id
from waba_cloud.contracts.messages import (
    Button,
    ContactCard,
    ContactName,
    ContactPhone,
    CTAAction,
    ListRow,
    ListSection,
    Location,
    MediaSource,
    TemplateComponent,
)
from waba_cloud.errors import UNKNOWN_ERROR_MESSAGE, WhatsAppError

MESSAGES_URL = f"{BASE_URL}/{PHONE_ID}/messages"


class TestRequestPipeline:
    """Tests for WhatsAppClient.request."""

    @pytest.mark.asyncio
    async def test_send_text_request_shape(self, client, api):
        """Test URL, auth header and JSON body of a text send."""
        response = await client.send_text("5511999999999", "Hello!")

        request = api.last
        assert request.method == "POST"
        assert str(request.url) == MESSAGES_URL
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert request.headers["Content-Type"] == "application/json"
        assert api.last_json() == {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": "5511999999999",
            "type": "text",
            "text": {"preview_url": False, "body": "Hello!"},
        }
        assert response["messages"][0]["id"] == "wamid.test"

    @pytest.mark.asyncio
    async def test_custom_api_version(self, api):
        """Test base URL follows the configured API version."""
        client = make_client(api, api_version="v21.0")

        await client.send_text("5511999999999", "Hi")

        assert str(api.last.url) == f"https://graph.facebook.com/v21.0/{PHONE_ID}/messages"

    @pytest.mark.asyncio
    async def test_query_params(self, client, api):
        """Test params are sent as a query string."""
        api.reply({"data": []})

        await client.request("foo", method="GET", params={"fields": "a,b"})

        assert api.last.method == "GET"
        assert api.last.url.params["fields"] == "a,b"
        assert api.last.content == b""

    @pytest.mark.asyncio
    async def test_extra_headers_are_merged(self, client, api):
        """Test caller headers are added to the defaults."""
        await client.request("foo", body={"a": 1}, headers={"X-Trace": "1"})

        assert api.last.headers["X-Trace"] == "1"
        assert api.last.headers["Authorization"] == f"Bearer {TOKEN}"

    @pytest.mark.asyncio
    async def test_api_error(self, client, api):
        """Test a 400 Meta error is raised as WhatsAppError."""
        api.reply(
            {
                "error": {
                    "message": "(#131030) Recipient phone number not in allowed list",
                    "type": "OAuthException",
                    "code": 131030,
                    "fbtrace_id": "trace123",
                }
            },
            status=400,
        )

        with pytest.raises(WhatsAppError) as exc_info:
            await client.send_text("5511999999999", "Hi")

        error = exc_info.value
        assert error.code == 131030
        assert error.title == "131030"
        assert error.http_status == 400
        assert error.details == "fbtrace_id: trace123"

    @pytest.mark.asyncio
    async def test_error_with_empty_body(self, client, api):
        """Test a non-JSON error body falls back to sentinel values."""
        api.reply_raw(httpx.Response(500, content=b""))

        with pytest.raises(WhatsAppError) as exc_info:
            await client.send_text("5511999999999", "Hi")

        error = exc_info.value
        assert error.code == 0
        assert error.title == "unknown"
        assert error.message == UNKNOWN_ERROR_MESSAGE
        assert error.http_status == 500

    @pytest.mark.asyncio
    async def test_non_json_success_returns_response(self, client, api):
        """Test binary responses come back as the raw response."""
        api.reply_raw(
            httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
        )

        result = await client.request("some-media", method="GET")

        assert isinstance(result, httpx.Response)
        assert result.content == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, client, api):
        """Test connection failures surface as WhatsAppError."""
        api.fail(httpx.ConnectError("connection refused"))

        with pytest.raises(WhatsAppError) as exc_info:
            await client.send_text("5511999999999", "Hi")

        assert exc_info.value.title == "transport_error"
        assert exc_info.value.http_status == 0
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_context_manager_keeps_injected_client_open(self, api):
        """Test closing does not close a caller-provided HTTP client."""
        client = make_client(api)

        async with client as wa:
            await wa.send_text("5511999999999", "Hi")

        assert client._client.is_closed is False


class TestSendMessages:
    """Tests for the send_* helpers."""

    @pytest.mark.asyncio
    async def test_reply_adds_context(self, client, api):
        await client.send_text("5511999999999", "Re", reply_to="wamid.original")

        assert api.last_json()["context"] == {"message_id": "wamid.original"}

    @pytest.mark.asyncio
    async def test_unexpected_messages_shape_is_returned(self, client, api):
        """Test an odd success body does not break the send."""
        api.reply({"messages": {"id": "wamid.dict"}})

        result = await client.send_text("5511999999999", "Hi")

        assert result == {"messages": {"id": "wamid.dict"}}

    def test_first_message_id(self):
        assert first_message_id({"messages": [{"id": "wamid.1"}]}) == "wamid.1"
        assert first_message_id({"messages": {"id": "wamid.1"}}) is None
        assert first_message_id({"messages": []}) is None
        assert first_message_id(None) is None

    @pytest.mark.asyncio
    async def test_text_with_preview(self, client, api):
        await client.send_text("5511999999999", "https://example.com", preview_url=True)

        assert api.last_json()["text"] == {"preview_url": True, "body": "https://example.com"}
        assert "context" not in api.last_json()

    @pytest.mark.asyncio
    async def test_image_by_link_with_caption(self, client, api):
        await client.send_image(
            "5511999999999",
            MediaSource.from_url("https://example.com/a.jpg"),
            caption="Look",
        )

        body = api.last_json()
        assert body["type"] == "image"
        assert body["image"] == {"link": "https://example.com/a.jpg", "caption": "Look"}

    @pytest.mark.asyncio
    async def test_audio_by_id(self, client, api):
        await client.send_audio("5511999999999", MediaSource.from_id("media-1"))

        assert api.last_json()["audio"] == {"id": "media-1"}

    @pytest.mark.asyncio
    async def test_video(self, client, api):
        await client.send_video("5511999999999", MediaSource.from_id("v1"), caption="Clip")

        assert api.last_json()["video"] == {"id": "v1", "caption": "Clip"}

    @pytest.mark.asyncio
    async def test_document_with_filename(self, client, api):
        await client.send_document(
            "5511999999999",
            MediaSource.from_url("https://example.com/r.pdf"),
            filename="report.pdf",
        )

        assert api.last_json()["document"] == {
            "link": "https://example.com/r.pdf",
            "filename": "report.pdf",
        }

    @pytest.mark.asyncio
    async def test_sticker(self, client, api):
        await client.send_sticker("5511999999999", MediaSource.from_id("s1"))

        assert api.last_json()["sticker"] == {"id": "s1"}

    @pytest.mark.asyncio
    async def test_location(self, client, api):
        await client.send_location(
            "5511999999999",
            Location(lat=-23.5505, lng=-46.6333, name="Store"),
        )

        assert api.last_json()["location"] == {
            "latitude": -23.5505,
            "longitude": -46.6333,
            "name": "Store",
        }

    @pytest.mark.asyncio
    async def test_contacts(self, client, api):
        card = ContactCard(
            name=ContactName(formatted_name="Ana Souza", first_name="Ana"),
            phones=[ContactPhone(phone="+5511988887777", type="CELL")],
        )

        await client.send_contacts("5511999999999", [card])

        assert api.last_json()["contacts"] == [
            {
                "name": {"formatted_name": "Ana Souza", "first_name": "Ana"},
                "phones": [{"phone": "+5511988887777", "type": "CELL"}],
            }
        ]

    @pytest.mark.asyncio
    async def test_reaction_and_removal(self, client, api):
        await client.send_reaction("5511999999999", "wamid.1", "👍")
        assert api.last_json()["reaction"] == {"message_id": "wamid.1", "emoji": "👍"}

        await client.remove_reaction("5511999999999", "wamid.1")
        assert api.last_json()["reaction"] == {"message_id": "wamid.1", "emoji": ""}

    @pytest.mark.asyncio
    async def test_mark_as_read(self, client, api):
        api.reply({"success": True})

        result = await client.mark_as_read("wamid.1")

        assert str(api.last.url) == MESSAGES_URL
        assert api.last_json() == {
            "messaging_product": "whatsapp",
            "status": "read",
            "message_id": "wamid.1",
        }
        assert result == {"success": True}

    @pytest.mark.asyncio
    async def test_buttons(self, client, api):
        await client.send_buttons(
            "5511999999999",
            "Confirm order?",
            [Button(id="yes", title="Yes"), Button(id="no", title="No")],
            header="Order #42",
            footer="Reply below",
        )

        interactive = api.last_json()["interactive"]
        assert interactive["type"] == "button"
        assert interactive["body"] == {"text": "Confirm order?"}
        assert interactive["header"] == {"type": "text", "text": "Order #42"}
        assert interactive["footer"] == {"text": "Reply below"}
        assert interactive["action"]["buttons"][0] == {
            "type": "reply",
            "reply": {"id": "yes", "title": "Yes"},
        }

    @pytest.mark.asyncio
    async def test_list(self, client, api):
        sections = [
            ListSection(
                title="Pizzas",
                rows=[
                    ListRow(id="p1", title="Margherita", description="Classic"),
                    ListRow(id="p2", title="Pepperoni"),
                ],
            )
        ]

        await client.send_list("5511999999999", "Pick one", "Menu", sections)

        interactive = api.last_json()["interactive"]
        assert interactive["type"] == "list"
        assert "header" not in interactive
        assert interactive["action"] == {
            "button": "Menu",
            "sections": [
                {
                    "title": "Pizzas",
                    "rows": [
                        {"id": "p1", "title": "Margherita", "description": "Classic"},
                        {"id": "p2", "title": "Pepperoni"},
                    ],
                }
            ],
        }

    @pytest.mark.asyncio
    async def test_cta(self, client, api):
        await client.send_cta(
            "5511999999999",
            "Track your order",
            CTAAction(text="Track", url="https://example.com/track"),
        )

        interactive = api.last_json()["interactive"]
        assert interactive["type"] == "cta_url"
        assert interactive["action"] == {
            "name": "cta_url",
            "parameters": {"display_text": "Track", "url": "https://example.com/track"},
        }

    @pytest.mark.asyncio
    async def test_product(self, client, api):
        await client.send_product("5511999999999", "cat-1", "sku-9", body="Our best seller")

        interactive = api.last_json()["interactive"]
        assert interactive["type"] == "product"
        assert interactive["action"] == {"catalog_id": "cat-1", "product_retailer_id": "sku-9"}
        assert interactive["body"] == {"text": "Our best seller"}

    @pytest.mark.asyncio
    async def test_template_without_components(self, client, api):
        await client.send_template("5511999999999", "hello_world", "en_US")

        assert api.last_json()["template"] == {
            "name": "hello_world",
            "language": {"code": "en_US"},
        }

    @pytest.mark.asyncio
    async def test_template_with_components(self, client, api):
        components = [
            TemplateComponent(type="body", parameters=[{"type": "text", "text": "Ana"}]),
            TemplateComponent(
                type="button",
                sub_type="url",
                index=0,
                parameters=[{"type": "text", "text": "order-42"}],
            ),
        ]

        await client.send_template("5511999999999", "order_update", "pt_BR", components)

        assert api.last_json()["template"]["components"] == [
            {"type": "body", "parameters": [{"type": "text", "text": "Ana"}]},
            {
                "type": "button",
                "parameters": [{"type": "text", "text": "order-42"}],
                "sub_type": "url",
                "index": 0,
            },
        ]


class TestMediaSource:
    """Tests for MediaSource validation."""

    def test_requires_exactly_one(self):
        with pytest.raises(ValueError):
            MediaSource()

        with pytest.raises(ValueError):
            MediaSource(link="https://example.com/a.jpg", id="m1")
