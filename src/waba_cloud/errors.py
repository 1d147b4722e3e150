"""
WhatsApp Cloud API Errors

Exception hierarchy raised by the client and the webhook helpers.
"""

from typing import Any

UNKNOWN_ERROR_MESSAGE = "Unknown WhatsApp API error"


class WabaError(Exception):
    """Base class for every error raised by waba_cloud."""


class WhatsAppError(WabaError):
    """
    Error returned by the Graph API (or the transport in front of it).

    Always fully populated: callers can read every attribute without
    checking for missing values.
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        title: str = "unknown",
        http_status: int = 0,
        details: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.title = title
        self.http_status = http_status
        self.details = details

    def __repr__(self) -> str:
        return (
            f"WhatsAppError(code={self.code}, title={self.title!r}, "
            f"http_status={self.http_status}, message={self.message!r})"
        )

    @classmethod
    def from_api_response(cls, body: Any, http_status: int) -> "WhatsAppError":
        """
        Build an error from a Graph API error body.

        Meta wraps errors as {"error": {"message", "code", "error_subcode",
        "fbtrace_id", ...}}. Any other shape (empty, list, text) still
        produces a well-formed error.

        Args:
            body: Decoded response body, possibly empty or malformed
            http_status: HTTP status code of the response

        Returns:
            WhatsAppError with sentinel defaults for missing fields
        """
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}

        code = _coerce_code(error.get("code"))
        subcode = error.get("error_subcode")

        if subcode:
            title = f"{code}/{subcode}"
        elif code:
            title = str(code)
        else:
            title = "unknown"

        trace_id = error.get("fbtrace_id")

        return cls(
            message=error.get("message") or UNKNOWN_ERROR_MESSAGE,
            code=code,
            title=title,
            http_status=http_status,
            details=f"fbtrace_id: {trace_id}" if trace_id else None,
        )


class InvalidSignatureError(WabaError):
    """Webhook body failed the X-Hub-Signature-256 check."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message)


class WebhookVerificationError(WabaError):
    """Webhook subscription handshake did not match."""

    def __init__(self, message: str = "Webhook verification failed"):
        super().__init__(message)


class WabaIdRequiredError(WabaError, ValueError):
    """An account-scoped operation was called without a waba_id."""

    def __init__(self, area: str):
        super().__init__(f"waba_id is required for {area}")
        self.area = area


class ConfigurationError(WabaError):
    """Required configuration is missing."""


def _coerce_code(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
