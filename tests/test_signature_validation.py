"""
Tests for webhook signature validation.
"""

import hashlib
import hmac
import json

import pytest

from tests.conftest import sign
from waba_cloud.contracts.events import MessageEvent
from waba_cloud.errors import InvalidSignatureError
from waba_cloud.webhook import parse_webhook_with_signature, validate_signature


class TestSignatureValidation:
    """Tests for validate_signature."""

    def test_valid_signature(self):
        """Test valid HMAC-SHA256 signature validation."""
        app_secret = "test_secret_key"
        payload = b'{"test": "data"}'

        signature = hmac.new(
            app_secret.encode("utf-8"),
            payload,
            hashlib.sha256,
        ).hexdigest()

        assert validate_signature(payload, f"sha256={signature}", app_secret) is True

    def test_text_body(self):
        """Test a str body is signed over its UTF-8 bytes."""
        payload = '{"name": "João"}'

        assert validate_signature(payload, sign(payload, "secret"), "secret") is True

    def test_invalid_signature(self):
        """Test invalid signature is rejected."""
        assert validate_signature(b'{"test": "data"}', "sha256=invalid_signature_here", "k") is False

    def test_tampered_body(self):
        """Test any change to the body breaks the signature."""
        signature = sign(b'{"amount": 10}', "secret")

        assert validate_signature(b'{"amount": 99}', signature, "secret") is False

    def test_wrong_secret(self):
        """Test a signature made with another secret is rejected."""
        payload = b'{"test": "data"}'

        assert validate_signature(payload, sign(payload, "other"), "secret") is False

    def test_missing_signature_prefix(self):
        """Test signature without sha256= prefix is rejected."""
        payload = b'{"test": "data"}'
        bare_hex = sign(payload, "secret").removeprefix("sha256=")

        assert validate_signature(payload, bare_hex, "secret") is False

    def test_empty_signature(self):
        """Test empty signature is rejected."""
        assert validate_signature(b"payload", "", "secret") is False
        assert validate_signature(b"payload", None, "secret") is False

    def test_unsupported_body_type(self):
        """Test a non-text body is rejected instead of raising."""
        assert validate_signature({"a": 1}, "sha256=00", "secret") is False


class TestParseWithSignature:
    """Tests for parse_webhook_with_signature."""

    def test_valid_delivery_is_parsed(self, sample_text_payload):
        body = json.dumps(sample_text_payload).encode("utf-8")

        events = parse_webhook_with_signature(body, sign(body, "secret"), "secret")

        assert len(events) == 1
        assert isinstance(events[0], MessageEvent)

    def test_bad_signature_raises(self, sample_text_payload):
        body = json.dumps(sample_text_payload).encode("utf-8")

        with pytest.raises(InvalidSignatureError):
            parse_webhook_with_signature(body, "sha256=deadbeef", "secret")

    def test_missing_signature_raises(self):
        with pytest.raises(InvalidSignatureError):
            parse_webhook_with_signature(b"{}", None, "secret")

    def test_signed_non_json_body_yields_nothing(self):
        """Test authentic but undecodable deliveries produce no events."""
        body = b"not json"

        assert parse_webhook_with_signature(body, sign(body, "secret"), "secret") == []
