"""
Client Configuration

Immutable connection settings for one WhatsApp Business phone number.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from waba_cloud.errors import ConfigurationError

DEFAULT_API_VERSION = "v25.0"
GRAPH_API_URL = "https://graph.facebook.com"


@dataclass(frozen=True)
class WhatsAppConfig:
    """
    Connection settings for the Cloud API.

    Attributes:
        phone_number_id: Business phone number ID (sender)
        access_token: System user or app access token
        api_version: Graph API version, e.g. "v25.0"
        waba_id: WhatsApp Business Account ID, needed for account-scoped
            operations (templates, flows, analytics)
    """

    phone_number_id: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION
    waba_id: str | None = None

    @property
    def base_url(self) -> str:
        return f"{GRAPH_API_URL}/{self.api_version}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WhatsAppConfig":
        """
        Load configuration from WABA_* environment variables.

        Raises:
            ConfigurationError: if WABA_PHONE_ID or WABA_ACCESS_TOKEN is unset
        """
        env = os.environ if environ is None else environ

        phone_number_id = env.get("WABA_PHONE_ID", "")
        access_token = env.get("WABA_ACCESS_TOKEN", "")

        missing = [
            name
            for name, value in (
                ("WABA_PHONE_ID", phone_number_id),
                ("WABA_ACCESS_TOKEN", access_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

        return cls(
            phone_number_id=phone_number_id,
            access_token=access_token,
            api_version=env.get("WABA_API_VERSION") or DEFAULT_API_VERSION,
            waba_id=env.get("WABA_WABA_ID") or None,
        )
