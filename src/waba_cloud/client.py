"""
WhatsApp Cloud API Client

Async client for the WhatsApp Business Cloud API (Meta Graph API).

Every call goes through WhatsAppClient.request, which attaches the bearer
token, encodes the body (JSON or multipart) and turns any non-2xx response
into a WhatsAppError.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from waba_cloud.broadcast import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DELAY_SECONDS,
    BroadcastResult,
    broadcast_send,
)
from waba_cloud.config import WhatsAppConfig
from waba_cloud.contracts.events import WebhookEvent
from waba_cloud.contracts.messages import (
    Button,
    ContactCard,
    CTAAction,
    ListSection,
    Location,
    MediaSource,
    MultipartForm,
    TemplateComponent,
    to_payload,
)
from waba_cloud.errors import WabaIdRequiredError, WhatsAppError
from waba_cloud.management import AccountManager, FlowManager, QRCodeManager, TemplateManager
from waba_cloud.webhook import parse_webhook, verify_webhook

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_FIELDS = (
    "about",
    "address",
    "description",
    "email",
    "websites",
    "vertical",
    "profile_picture_url",
)


class WhatsAppClient:
    """
    Client for one WhatsApp Business phone number.

    Usage:
        async with WhatsAppClient(WhatsAppConfig(phone_id, token)) as wa:
            await wa.send_text("5511999999999", "Hello!")

    Account-scoped operations are grouped under `templates`, `flows`,
    `qr_codes` and `account`.
    """

    def __init__(
        self,
        config: WhatsAppConfig,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

        self.templates = TemplateManager(self)
        self.flows = FlowManager(self)
        self.qr_codes = QRCodeManager(self)
        self.account = AccountManager(self)

    @property
    def waba_id(self) -> str | None:
        return self.config.waba_id

    @property
    def phone_number_id(self) -> str:
        return self.config.phone_number_id

    async def __aenter__(self) -> "WhatsAppClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    def require_waba_id(self, area: str) -> str:
        """Return the configured waba_id or raise WabaIdRequiredError."""
        if not self.config.waba_id:
            raise WabaIdRequiredError(area)
        return self.config.waba_id

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    async def request(
        self,
        path: str,
        method: str = "POST",
        body: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make one authenticated Graph API request.

        Args:
            path: Path below the versioned base URL, e.g. "123/messages"
            method: HTTP method
            body: JSON-serializable data, or a MultipartForm for uploads
            headers: Extra headers, merged over the defaults
            params: Query string parameters

        Returns:
            Decoded JSON for JSON responses, otherwise the raw
            httpx.Response (binary media)

        Raises:
            WhatsAppError: on any non-2xx status or transport failure
        """
        client = await self._get_client()
        url = f"{self.config.base_url}/{path}"

        request_headers = {
            "Authorization": f"Bearer {self.config.access_token}",
            **(headers or {}),
        }
        request_kwargs: dict[str, Any] = {}

        if body is not None:
            if isinstance(body, MultipartForm):
                # httpx sets multipart Content-Type with its own boundary
                request_kwargs["data"] = body.data
                request_kwargs["files"] = body.files
            else:
                request_headers["Content-Type"] = "application/json"
                request_kwargs["content"] = json.dumps(to_payload(body))

        try:
            response = await client.request(
                method.upper(),
                url,
                headers=request_headers,
                params=params,
                **request_kwargs,
            )
        except httpx.RequestError as e:
            logger.error(f"HTTP request failed: {e}", extra={"method": method, "path": path})
            raise WhatsAppError(
                message=f"HTTP request failed: {e}",
                title="transport_error",
            ) from e

        if not response.is_success:
            try:
                error_body = response.json()
            except ValueError:
                error_body = {}
            error = WhatsAppError.from_api_response(error_body, response.status_code)
            logger.warning(
                f"Graph API error: {error.title}",
                extra={"path": path, "http_status": response.status_code, "code": error.code},
            )
            raise error

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()

        return response

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send_message(
        self,
        to: str,
        message_type: str,
        content: dict[str, Any],
        reply_to: str | None = None,
    ) -> dict[str, Any]:
        """
        Send any message type.

        `content` holds the type-specific key(s), e.g. {"text": {...}}.
        """
        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": message_type,
            **content,
        }

        if reply_to:
            payload["context"] = {"message_id": reply_to}

        response = await self.request(f"{self.phone_number_id}/messages", body=payload)

        logger.info(
            f"Sent {message_type} message",
            extra={"to": to, "message_id": first_message_id(response)},
        )
        return response

    async def send_text(
        self,
        to: str,
        body: str,
        preview_url: bool = False,
        reply_to: str | None = None,
    ) -> dict[str, Any]:
        return await self.send_message(
            to,
            "text",
            {"text": {"preview_url": preview_url, "body": body}},
            reply_to=reply_to,
        )

    async def send_image(
        self,
        to: str,
        media: MediaSource,
        caption: str | None = None,
    ) -> dict[str, Any]:
        image = media.to_payload()
        if caption:
            image["caption"] = caption
        return await self.send_message(to, "image", {"image": image})

    async def send_audio(self, to: str, media: MediaSource) -> dict[str, Any]:
        return await self.send_message(to, "audio", {"audio": media.to_payload()})

    async def send_video(
        self,
        to: str,
        media: MediaSource,
        caption: str | None = None,
    ) -> dict[str, Any]:
        video = media.to_payload()
        if caption:
            video["caption"] = caption
        return await self.send_message(to, "video", {"video": video})

    async def send_document(
        self,
        to: str,
        media: MediaSource,
        filename: str | None = None,
        caption: str | None = None,
    ) -> dict[str, Any]:
        document = media.to_payload()
        if filename:
            document["filename"] = filename
        if caption:
            document["caption"] = caption
        return await self.send_message(to, "document", {"document": document})

    async def send_sticker(self, to: str, media: MediaSource) -> dict[str, Any]:
        return await self.send_message(to, "sticker", {"sticker": media.to_payload()})

    async def send_location(self, to: str, location: Location) -> dict[str, Any]:
        return await self.send_message(to, "location", {"location": location.to_payload()})

    async def send_contacts(
        self,
        to: str,
        contacts: Sequence[ContactCard | dict[str, Any]],
    ) -> dict[str, Any]:
        return await self.send_message(to, "contacts", {"contacts": to_payload(list(contacts))})

    async def send_reaction(self, to: str, message_id: str, emoji: str) -> dict[str, Any]:
        return await self.send_message(
            to,
            "reaction",
            {"reaction": {"message_id": message_id, "emoji": emoji}},
        )

    async def remove_reaction(self, to: str, message_id: str) -> dict[str, Any]:
        return await self.send_reaction(to, message_id, "")

    async def mark_as_read(self, message_id: str) -> dict[str, Any]:
        """Mark an inbound message as read."""
        return await self.request(
            f"{self.phone_number_id}/messages",
            body={
                "messaging_product": "whatsapp",
                "status": "read",
                "message_id": message_id,
            },
        )

    async def send_buttons(
        self,
        to: str,
        body: str,
        buttons: Sequence[Button],
        header: str | None = None,
        footer: str | None = None,
    ) -> dict[str, Any]:
        """Send an interactive message with up to 3 quick-reply buttons."""
        interactive: dict[str, Any] = {
            "type": "button",
            "body": {"text": body},
            "action": {"buttons": [button.to_payload() for button in buttons]},
        }
        _add_header_footer(interactive, header, footer)
        return await self.send_message(to, "interactive", {"interactive": interactive})

    async def send_list(
        self,
        to: str,
        body: str,
        button_text: str,
        sections: Sequence[ListSection | dict[str, Any]],
        header: str | None = None,
        footer: str | None = None,
    ) -> dict[str, Any]:
        interactive: dict[str, Any] = {
            "type": "list",
            "body": {"text": body},
            "action": {
                "button": button_text,
                "sections": to_payload(list(sections)),
            },
        }
        _add_header_footer(interactive, header, footer)
        return await self.send_message(to, "interactive", {"interactive": interactive})

    async def send_cta(
        self,
        to: str,
        body: str,
        cta: CTAAction,
        header: str | None = None,
        footer: str | None = None,
    ) -> dict[str, Any]:
        interactive: dict[str, Any] = {
            "type": "cta_url",
            "body": {"text": body},
            "action": cta.to_payload(),
        }
        _add_header_footer(interactive, header, footer)
        return await self.send_message(to, "interactive", {"interactive": interactive})

    async def send_product(
        self,
        to: str,
        catalog_id: str,
        product_id: str,
        body: str | None = None,
    ) -> dict[str, Any]:
        interactive: dict[str, Any] = {
            "type": "product",
            "action": {
                "catalog_id": catalog_id,
                "product_retailer_id": product_id,
            },
        }
        if body:
            interactive["body"] = {"text": body}
        return await self.send_message(to, "interactive", {"interactive": interactive})

    async def send_template(
        self,
        to: str,
        name: str,
        language_code: str,
        components: Sequence[TemplateComponent | dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """
        Send an approved template message.

        Args:
            to: Recipient phone number
            name: Approved template name
            language_code: Template language code (e.g., "pt_BR")
            components: Filled-in header/body/button components
        """
        template: dict[str, Any] = {
            "name": name,
            "language": {"code": language_code},
        }
        if components is not None:
            template["components"] = to_payload(list(components))
        return await self.send_message(to, "template", {"template": template})

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    async def broadcast_template(
        self,
        recipients: Sequence[str],
        name: str,
        language_code: str,
        components: Sequence[TemplateComponent | dict[str, Any]] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay: float = DEFAULT_DELAY_SECONDS,
    ) -> BroadcastResult[dict[str, Any]]:
        """Send the same template to many recipients."""

        async def send(to: str) -> dict[str, Any]:
            return await self.send_template(to, name, language_code, components)

        return await broadcast_send(recipients, send, batch_size=batch_size, delay=delay)

    async def broadcast_text(
        self,
        recipients: Sequence[str],
        body: str,
        preview_url: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay: float = DEFAULT_DELAY_SECONDS,
    ) -> BroadcastResult[dict[str, Any]]:
        """Send the same text to many recipients (24h window only)."""

        async def send(to: str) -> dict[str, Any]:
            return await self.send_text(to, body, preview_url=preview_url)

        return await broadcast_send(recipients, send, batch_size=batch_size, delay=delay)

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    async def upload_media(
        self,
        data: bytes,
        mime_type: str,
        filename: str = "file",
    ) -> dict[str, Any]:
        """
        Upload media to be referenced by ID in later messages.

        Returns:
            {"id": "<media id>"}
        """
        form = MultipartForm(
            data={"messaging_product": "whatsapp", "type": mime_type},
            files={"file": (filename, data, mime_type)},
        )
        return await self.request(f"{self.phone_number_id}/media", body=form)

    async def get_media_url(self, media_id: str) -> dict[str, Any]:
        """Get the short-lived download URL and metadata of a media file."""
        return await self.request(media_id, method="GET")

    async def download_media(self, url: str) -> bytes:
        """
        Download media from a URL returned by get_media_url.

        Raises:
            WhatsAppError: if the download fails
        """
        client = await self._get_client()

        try:
            response = await client.get(
                url,
                headers={"Authorization": f"Bearer {self.config.access_token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"Media download failed: {e}")
            raise WhatsAppError(
                message=f"HTTP request failed: {e}",
                title="transport_error",
            ) from e

        if not response.is_success:
            raise WhatsAppError(
                message=f"Media download failed: {response.status_code}",
                code=response.status_code,
                title="Media download error",
                http_status=response.status_code,
            )

        return response.content

    async def delete_media(self, media_id: str) -> dict[str, Any]:
        return await self.request(media_id, method="DELETE")

    # ------------------------------------------------------------------
    # Business profile
    # ------------------------------------------------------------------

    async def get_business_profile(self, fields: Sequence[str] | None = None) -> dict[str, Any]:
        result = await self.request(
            f"{self.phone_number_id}/whatsapp_business_profile",
            method="GET",
            params={"fields": ",".join(fields or DEFAULT_PROFILE_FIELDS)},
        )
        return _first_data_item(result)

    async def update_business_profile(self, **data: Any) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/whatsapp_business_profile",
            body={"messaging_product": "whatsapp", **data},
        )

    # ------------------------------------------------------------------
    # Phone number
    # ------------------------------------------------------------------

    async def get_phone_info(self) -> dict[str, Any]:
        return await self.request(self.phone_number_id, method="GET")

    async def register_phone(self, pin: str) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/register",
            body={"messaging_product": "whatsapp", "pin": pin},
        )

    async def deregister_phone(self) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/deregister",
            body={"messaging_product": "whatsapp"},
        )

    async def request_verification_code(self, method: str = "SMS") -> dict[str, Any]:
        """Request a registration code by "SMS" or "VOICE"."""
        return await self.request(
            f"{self.phone_number_id}/request_code",
            body={"code_method": method},
        )

    async def verify_code(self, code: str) -> dict[str, Any]:
        return await self.request(f"{self.phone_number_id}/verify_code", body={"code": code})

    async def set_two_step_pin(self, pin: str) -> dict[str, Any]:
        return await self.request(self.phone_number_id, body={"pin": pin})

    async def remove_two_step_pin(self) -> dict[str, Any]:
        return await self.set_two_step_pin("")

    async def block_users(self, numbers: Sequence[str]) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/block",
            body={"messaging_product": "whatsapp", "block": list(numbers)},
        )

    async def unblock_users(self, numbers: Sequence[str]) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/unblock",
            body={"messaging_product": "whatsapp", "unblock": list(numbers)},
        )

    async def get_commerce_settings(self) -> dict[str, Any]:
        result = await self.request(
            f"{self.phone_number_id}/whatsapp_commerce_settings",
            method="GET",
        )
        return _first_data_item(result)

    async def update_commerce_settings(self, **settings: Any) -> dict[str, Any]:
        return await self.request(
            f"{self.phone_number_id}/whatsapp_commerce_settings",
            body=settings,
        )

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    @staticmethod
    def verify_webhook(query: dict[str, Any], verify_token: str) -> str:
        return verify_webhook(query, verify_token)

    @staticmethod
    def parse_webhook(payload: Any) -> list[WebhookEvent]:
        return parse_webhook(payload)


def _add_header_footer(
    interactive: dict[str, Any],
    header: str | None,
    footer: str | None,
) -> None:
    if header:
        interactive["header"] = {"type": "text", "text": header}
    if footer:
        interactive["footer"] = {"text": footer}


def _first_data_item(result: Any) -> dict[str, Any]:
    data = result.get("data") if isinstance(result, dict) else None
    if isinstance(data, list) and data:
        return data[0]
    return {}


def first_message_id(response: Any) -> str | None:
    if not isinstance(response, dict):
        return None
    messages = response.get("messages")
    if not isinstance(messages, list) or not messages:
        return None
    return messages[0].get("id") if isinstance(messages[0], dict) else None
