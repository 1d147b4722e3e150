"""
Contracts

Typed shapes exchanged with the Cloud API: outbound request arguments and
inbound webhook events.
"""

from waba_cloud.contracts.events import (
    Contact,
    DeliveryStatus,
    ErrorEvent,
    InboundMessage,
    MessageEvent,
    MessageType,
    Metadata,
    StatusEvent,
    StatusUpdate,
    UnknownMessage,
    WebhookError,
    WebhookEvent,
)
from waba_cloud.contracts.messages import (
    Button,
    ContactCard,
    CTAAction,
    ListRow,
    ListSection,
    Location,
    MediaSource,
    MultipartForm,
    TemplateComponent,
)

__all__ = [
    "Button",
    "CTAAction",
    "Contact",
    "ContactCard",
    "DeliveryStatus",
    "ErrorEvent",
    "InboundMessage",
    "ListRow",
    "ListSection",
    "Location",
    "MediaSource",
    "MessageEvent",
    "MessageType",
    "Metadata",
    "MultipartForm",
    "StatusEvent",
    "StatusUpdate",
    "TemplateComponent",
    "UnknownMessage",
    "WebhookError",
    "WebhookEvent",
]
