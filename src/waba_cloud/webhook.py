"""
Meta Webhook Utilities

Verification and normalization of WhatsApp Cloud API webhooks.

Authenticity is strict: a bad signature or handshake raises.
Format is permissive: a payload that does not look like a WhatsApp
delivery yields no events instead of an error.
"""

import hashlib
import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from waba_cloud.contracts.events import (
    MESSAGE_MODELS,
    BaseInboundMessage,
    Contact,
    ContactProfile,
    ErrorEvent,
    MessageEvent,
    MessageType,
    Metadata,
    StatusEvent,
    StatusUpdate,
    UnknownMessage,
    WebhookError,
    WebhookEvent,
)
from waba_cloud.errors import InvalidSignatureError, WebhookVerificationError

logger = logging.getLogger(__name__)

WHATSAPP_OBJECT = "whatsapp_business_account"
SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def verify_webhook(query: Mapping[str, Any], verify_token: str) -> str:
    """
    Handle the webhook subscription handshake.

    Meta sends a GET with hub.mode, hub.verify_token and hub.challenge.

    Args:
        query: Request query parameters
        verify_token: Our configured verify token

    Returns:
        The hub.challenge value to echo back

    Raises:
        WebhookVerificationError: mode is not "subscribe", the token does
            not match, or the challenge is missing
    """
    mode = query.get("hub.mode")
    token = query.get("hub.verify_token")
    challenge = query.get("hub.challenge")

    if mode == "subscribe" and token == verify_token and challenge:
        logger.info("Webhook verification successful")
        return challenge

    logger.warning(f"Webhook verification failed: mode={mode}, token_match={token == verify_token}")
    raise WebhookVerificationError()


def validate_signature(
    payload: bytes | str,
    signature_header: str | None,
    app_secret: str,
) -> bool:
    """
    Validate Meta webhook signature.

    The raw body must be passed exactly as received; re-serialized JSON
    will not match.

    Args:
        payload: Raw request body (bytes or text)
        signature_header: X-Hub-Signature-256 header value
        app_secret: Facebook App Secret

    Returns:
        True if signature is valid
    """
    if not signature_header or not isinstance(signature_header, str):
        logger.warning("Missing signature header")
        return False

    if not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning("Invalid signature format")
        return False

    if isinstance(payload, str):
        body = payload.encode("utf-8")
    elif isinstance(payload, (bytes, bytearray, memoryview)):
        body = bytes(payload)
    else:
        logger.warning(f"Unsupported webhook body type: {type(payload).__name__}")
        return False

    computed = SIGNATURE_PREFIX + hmac.new(
        app_secret.encode("utf-8"),
        body,
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(computed.encode("utf-8"), signature_header.encode("utf-8"))


def parse_webhook_with_signature(
    payload: bytes | str,
    signature_header: str | None,
    app_secret: str,
) -> list[WebhookEvent]:
    """
    Check the signature of a raw delivery, then normalize it.

    Raises:
        InvalidSignatureError: if the signature does not match. A valid
            delivery without events returns [] instead.
    """
    if not validate_signature(payload, signature_header, app_secret):
        logger.warning("Webhook signature validation failed")
        raise InvalidSignatureError()

    try:
        data = json.loads(payload)
    except ValueError:
        logger.warning("Signed webhook body is not valid JSON")
        return []

    return parse_webhook(data)


def parse_webhook(payload: Any) -> list[WebhookEvent]:
    """
    Normalize a decoded Meta webhook payload into typed events.

    Webhook format:
    {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {
                        "display_phone_number": "...",
                        "phone_number_id": "..."
                    },
                    "contacts": [...],
                    "messages": [...],
                    "statuses": [...],
                    "errors": [...]
                },
                "field": "messages"
            }]
        }]
    }

    Events come out in document order: for each value, its messages, then
    its statuses, then one error event for its errors.

    Returns:
        List of MessageEvent / StatusEvent / ErrorEvent; empty for any
        payload that is not a WhatsApp Business delivery
    """
    if not isinstance(payload, dict):
        return []

    if payload.get("object") != WHATSAPP_OBJECT:
        logger.debug(f"Ignoring non-WhatsApp webhook: {payload.get('object')}")
        return []

    entries = payload.get("entry")
    if not isinstance(entries, list):
        return []

    events: list[WebhookEvent] = []

    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug("Skipping malformed webhook entry")
            continue

        changes = entry.get("changes")
        if not isinstance(changes, list):
            continue

        for change in changes:
            value = change.get("value") if isinstance(change, dict) else None
            if not isinstance(value, dict):
                logger.debug("Skipping webhook change without value")
                continue

            events.extend(_parse_value(value))

    return events


def _parse_value(value: dict[str, Any]) -> list[WebhookEvent]:
    """Parse the messages, statuses and errors of one change value."""
    events: list[WebhookEvent] = []
    metadata = _parse_metadata(value.get("metadata"))

    messages = value.get("messages")
    if isinstance(messages, list):
        contacts = _parse_contacts(value.get("contacts"))
        for msg_data in messages:
            if not isinstance(msg_data, dict):
                logger.debug("Skipping non-object message")
                continue
            message = _parse_message(msg_data)
            events.append(
                MessageEvent(
                    message=message,
                    contact=_find_contact(contacts, message.from_),
                    metadata=metadata,
                )
            )

    statuses = value.get("statuses")
    if isinstance(statuses, list):
        for status_data in statuses:
            status = _parse_status(status_data)
            if status:
                events.append(StatusEvent(status=status, metadata=metadata))

    errors = value.get("errors")
    if isinstance(errors, list) and errors:
        parsed_errors = _parse_errors(errors)
        if parsed_errors:
            events.append(ErrorEvent(errors=parsed_errors, metadata=metadata))

    return events


def _parse_metadata(data: Any) -> Metadata:
    if isinstance(data, dict):
        try:
            return Metadata.model_validate(data)
        except ValidationError:
            logger.debug("Malformed webhook metadata")
    return Metadata()


def _parse_contacts(data: Any) -> list[Contact]:
    if not isinstance(data, list):
        return []

    contacts: list[Contact] = []
    for item in data:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object webhook contact")
            continue
        try:
            contacts.append(Contact.model_validate(item))
        except ValidationError:
            # keep the list position for the first-contact fallback
            logger.debug("Webhook contact did not match its model")
            contacts.append(Contact(wa_id=_as_text(item.get("wa_id"))))
    return contacts


def _find_contact(contacts: list[Contact], sender: str) -> Contact:
    """
    Resolve the sender of a message.

    Falls back to the first listed contact when no wa_id matches, and to a
    nameless contact built from the sender when none are listed.
    """
    for contact in contacts:
        if contact.wa_id == sender:
            return contact

    if contacts:
        return contacts[0]

    return Contact(wa_id=sender, profile=ContactProfile(name=""))


def _parse_message(msg_data: dict[str, Any]) -> BaseInboundMessage:
    """Parse a single message, degrading to UnknownMessage."""
    msg_type = msg_data.get("type")
    model = MESSAGE_MODELS.get(msg_type) if isinstance(msg_type, str) else None

    if model is not None:
        try:
            return model.model_validate(msg_data)
        except ValidationError as e:
            logger.debug(f"Message of type {msg_type} did not match its model: {e.error_count()} errors")

    return UnknownMessage(
        **{
            "from": _as_text(msg_data.get("from")),
            "id": _as_text(msg_data.get("id")),
            "timestamp": _as_text(msg_data.get("timestamp")),
            "type": msg_type if isinstance(msg_type, str) and msg_type else MessageType.UNKNOWN.value,
            "raw": msg_data,
        }
    )


def _parse_status(status_data: Any) -> StatusUpdate | None:
    """Parse a single status, keeping its top-level fields when the detail is malformed."""
    if not isinstance(status_data, dict):
        logger.debug("Skipping non-object status")
        return None

    try:
        return StatusUpdate.model_validate(status_data)
    except ValidationError as e:
        logger.warning(
            f"Status update did not match its model: {e.error_count()} errors",
            extra={"status_id": status_data.get("id")},
        )

    errors = status_data.get("errors")
    return StatusUpdate(
        id=_as_text(status_data.get("id")),
        status=_as_text(status_data.get("status")),
        timestamp=_as_text(status_data.get("timestamp")),
        recipient_id=_as_text(status_data.get("recipient_id")),
        errors=_parse_errors(errors) if isinstance(errors, list) else None,
        raw=status_data,
    )


def _parse_errors(items: list[Any]) -> list[WebhookError]:
    return [error for error in (_parse_error(item) for item in items) if error]


def _parse_error(error_data: Any) -> WebhookError | None:
    if not isinstance(error_data, dict):
        logger.debug("Skipping non-object webhook error")
        return None

    try:
        return WebhookError.model_validate(error_data)
    except ValidationError:
        logger.debug("Webhook error did not match its model")

    message = error_data.get("message")
    return WebhookError(
        code=_as_int(error_data.get("code")),
        title=_as_text(error_data.get("title")),
        message=None if message is None else _as_text(message),
        raw=error_data,
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
