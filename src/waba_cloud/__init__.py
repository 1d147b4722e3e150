"""
waba_cloud

Async client for the WhatsApp Business Cloud API: request pipeline,
webhook verification and normalization, and batched broadcasts.
"""

from waba_cloud.broadcast import BroadcastFailure, BroadcastResult, BroadcastSuccess, broadcast_send
from waba_cloud.client import WhatsAppClient
from waba_cloud.config import WhatsAppConfig
from waba_cloud.errors import (
    ConfigurationError,
    InvalidSignatureError,
    WabaError,
    WabaIdRequiredError,
    WebhookVerificationError,
    WhatsAppError,
)
from waba_cloud.webhook import (
    parse_webhook,
    parse_webhook_with_signature,
    validate_signature,
    verify_webhook,
)

__all__ = [
    "BroadcastFailure",
    "BroadcastResult",
    "BroadcastSuccess",
    "ConfigurationError",
    "InvalidSignatureError",
    "WabaError",
    "WabaIdRequiredError",
    "WebhookVerificationError",
    "WhatsAppClient",
    "WhatsAppConfig",
    "WhatsAppError",
    "broadcast_send",
    "parse_webhook",
    "parse_webhook_with_signature",
    "validate_signature",
    "verify_webhook",
]
