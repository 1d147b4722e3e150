"""
Webhook Event Models

Pydantic models for events normalized from Meta webhook deliveries.

Two closed unions live here:
- WebhookEvent, discriminated by `kind` (message / status / error)
- InboundMessage, discriminated by the vendor's `type` string, with
  UnknownMessage as the arm for kinds this library does not model
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class Metadata(_Frozen):
    """Business number the delivery was addressed to."""

    display_phone_number: str = ""
    phone_number_id: str = ""


class ContactProfile(_Frozen):
    name: str = ""


class Contact(_Frozen):
    """Sender contact as listed in the webhook `contacts` array."""

    wa_id: str = ""
    profile: ContactProfile = Field(default_factory=ContactProfile)

    @property
    def name(self) -> str:
        return self.profile.name


class MessageContext(_Frozen):
    """Reply / forward context attached to an inbound message."""

    id: str | None = None
    from_: str | None = Field(None, alias="from")
    forwarded: bool | None = None


# ---------------------------------------------------------------------------
# Message content parts
# ---------------------------------------------------------------------------


class TextBody(_Frozen):
    body: str = ""


class MediaInfo(_Frozen):
    id: str = ""
    mime_type: str = ""
    sha256: str | None = None
    caption: str | None = None


class DocumentInfo(MediaInfo):
    filename: str | None = None


class StickerInfo(_Frozen):
    id: str = ""
    mime_type: str = ""
    animated: bool | None = None


class LocationInfo(_Frozen):
    latitude: float
    longitude: float
    name: str | None = None
    address: str | None = None


class ReplyOption(_Frozen):
    id: str = ""
    title: str = ""
    description: str | None = None


class InteractiveReply(_Frozen):
    type: str = ""
    button_reply: ReplyOption | None = None
    list_reply: ReplyOption | None = None
    nfm_reply: dict[str, Any] | None = None

    @property
    def reply(self) -> ReplyOption | None:
        """The selected button or list row, whichever is present."""
        return self.button_reply or self.list_reply


class Reaction(_Frozen):
    message_id: str = ""
    emoji: str = ""


class ButtonReply(_Frozen):
    text: str = ""
    payload: str = ""


# ---------------------------------------------------------------------------
# Inbound messages
# ---------------------------------------------------------------------------


class MessageType(str, Enum):
    """Inbound message kinds modeled by this library."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    STICKER = "sticker"
    LOCATION = "location"
    CONTACTS = "contacts"
    INTERACTIVE = "interactive"
    REACTION = "reaction"
    BUTTON = "button"
    ORDER = "order"
    SYSTEM = "system"
    REFERRAL = "referral"
    UNKNOWN = "unknown"


class BaseInboundMessage(_Frozen):
    from_: str = Field(alias="from")
    id: str
    timestamp: str = ""
    context: MessageContext | None = None

    @property
    def sent_at(self) -> datetime | None:
        """Vendor timestamp (unix seconds) as an aware UTC datetime."""
        try:
            return datetime.fromtimestamp(int(self.timestamp), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None


class TextMessage(BaseInboundMessage):
    type: Literal["text"] = "text"
    text: TextBody


class ImageMessage(BaseInboundMessage):
    type: Literal["image"] = "image"
    image: MediaInfo


class AudioMessage(BaseInboundMessage):
    type: Literal["audio"] = "audio"
    audio: MediaInfo


class VideoMessage(BaseInboundMessage):
    type: Literal["video"] = "video"
    video: MediaInfo


class DocumentMessage(BaseInboundMessage):
    type: Literal["document"] = "document"
    document: DocumentInfo


class StickerMessage(BaseInboundMessage):
    type: Literal["sticker"] = "sticker"
    sticker: StickerInfo


class LocationMessage(BaseInboundMessage):
    type: Literal["location"] = "location"
    location: LocationInfo


class ContactsMessage(BaseInboundMessage):
    type: Literal["contacts"] = "contacts"
    contacts: list[dict[str, Any]]


class InteractiveMessage(BaseInboundMessage):
    type: Literal["interactive"] = "interactive"
    interactive: InteractiveReply


class ReactionMessage(BaseInboundMessage):
    type: Literal["reaction"] = "reaction"
    reaction: Reaction


class ButtonMessage(BaseInboundMessage):
    type: Literal["button"] = "button"
    button: ButtonReply


class OrderMessage(BaseInboundMessage):
    type: Literal["order"] = "order"
    order: dict[str, Any]


class SystemMessage(BaseInboundMessage):
    type: Literal["system"] = "system"
    system: dict[str, Any]


class ReferralMessage(BaseInboundMessage):
    type: Literal["referral"] = "referral"
    referral: dict[str, Any]


class UnknownMessage(BaseInboundMessage):
    """
    Message of a kind this library does not model, or one whose content
    did not match the expected shape. `raw` keeps the vendor payload.
    """

    type: str = MessageType.UNKNOWN.value
    raw: dict[str, Any] = Field(default_factory=dict)


InboundMessage = Union[
    TextMessage,
    ImageMessage,
    AudioMessage,
    VideoMessage,
    DocumentMessage,
    StickerMessage,
    LocationMessage,
    ContactsMessage,
    InteractiveMessage,
    ReactionMessage,
    ButtonMessage,
    OrderMessage,
    SystemMessage,
    ReferralMessage,
    UnknownMessage,
]

MESSAGE_MODELS: dict[str, type[BaseInboundMessage]] = {
    MessageType.TEXT.value: TextMessage,
    MessageType.IMAGE.value: ImageMessage,
    MessageType.AUDIO.value: AudioMessage,
    MessageType.VIDEO.value: VideoMessage,
    MessageType.DOCUMENT.value: DocumentMessage,
    MessageType.STICKER.value: StickerMessage,
    MessageType.LOCATION.value: LocationMessage,
    MessageType.CONTACTS.value: ContactsMessage,
    MessageType.INTERACTIVE.value: InteractiveMessage,
    MessageType.REACTION.value: ReactionMessage,
    MessageType.BUTTON.value: ButtonMessage,
    MessageType.ORDER.value: OrderMessage,
    MessageType.SYSTEM.value: SystemMessage,
    MessageType.REFERRAL.value: ReferralMessage,
}


# ---------------------------------------------------------------------------
# Statuses and errors
# ---------------------------------------------------------------------------


class DeliveryStatus(str, Enum):
    """WhatsApp message delivery status."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class WebhookErrorData(_Frozen):
    details: str | None = None


class WebhookError(_Frozen):
    """
    Vendor error detail. When the entry does not match the documented
    shape, only code/title/message are extracted and `raw` keeps the rest.
    """

    code: int = 0
    title: str = ""
    message: str | None = None
    error_data: WebhookErrorData | None = None
    raw: dict[str, Any] | None = None


class ConversationOrigin(_Frozen):
    type: str = ""


class Conversation(_Frozen):
    id: str = ""
    origin: ConversationOrigin | None = None
    expiration_timestamp: str | None = None


class Pricing(_Frozen):
    billable: bool | None = None
    pricing_model: str | None = None
    category: str | None = None


class StatusUpdate(_Frozen):
    """
    Delivery status of a message we sent.

    `status` keeps the vendor string; delivery_status maps the four
    documented values onto DeliveryStatus. A status whose nested detail
    does not validate keeps its top-level fields and errors, leaves
    conversation/pricing unset, and carries the vendor payload in `raw`.
    """

    id: str = ""
    status: str = ""
    timestamp: str = ""
    recipient_id: str = ""
    conversation: Conversation | None = None
    pricing: Pricing | None = None
    errors: list[WebhookError] | None = None
    raw: dict[str, Any] | None = None

    @property
    def delivery_status(self) -> DeliveryStatus | None:
        try:
            return DeliveryStatus(self.status)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class MessageEvent(_Frozen):
    kind: Literal["message"] = "message"
    message: InboundMessage
    contact: Contact
    metadata: Metadata


class StatusEvent(_Frozen):
    kind: Literal["status"] = "status"
    status: StatusUpdate
    metadata: Metadata


class ErrorEvent(_Frozen):
    kind: Literal["error"] = "error"
    errors: list[WebhookError] = Field(min_length=1)
    metadata: Metadata


WebhookEvent = Annotated[
    Union[MessageEvent, StatusEvent, ErrorEvent],
    Field(discriminator="kind"),
]
