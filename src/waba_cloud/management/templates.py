"""
Message Template Management

Create, list and delete message templates of a WhatsApp Business Account.
Templates must be approved by Meta before they can be sent.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from waba_cloud.client import WhatsAppClient

logger = logging.getLogger(__name__)

AREA = "template management"


@dataclass
class TemplateDefinition:
    """
    A template submitted for approval.

    components use the Graph API shape, e.g.
    {"type": "BODY", "text": "Hello {{1}}"}.
    """

    name: str
    language: str = "pt_BR"
    category: str = "UTILITY"  # UTILITY, MARKETING, AUTHENTICATION
    components: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "language": self.language,
            "components": self.components,
        }


class TemplateManager:
    """Templates of the configured WhatsApp Business Account."""

    def __init__(self, client: "WhatsAppClient"):
        self.client = client

    def _path(self) -> str:
        return f"{self.client.require_waba_id(AREA)}/message_templates"

    async def list(
        self,
        status: str | None = None,
        category: str | None = None,
    ) -> dict[str, Any]:
        """
        List templates, optionally filtered.

        Args:
            status: e.g. "APPROVED", "PENDING", "REJECTED"
            category: e.g. "MARKETING", "UTILITY"
        """
        params = {}
        if status:
            params["status"] = status
        if category:
            params["category"] = category

        return await self.client.request(self._path(), method="GET", params=params or None)

    async def create(self, template: TemplateDefinition | dict[str, Any]) -> dict[str, Any]:
        """Submit a new template for approval."""
        path = self._path()
        payload = template.to_payload() if isinstance(template, TemplateDefinition) else template

        response = await self.client.request(path, body=payload)
        logger.info(
            "Submitted message template",
            extra={"template": payload.get("name"), "status": response.get("status")},
        )
        return response

    async def delete(self, name: str) -> dict[str, Any]:
        """Delete every language of a template by name."""
        return await self.client.request(self._path(), method="DELETE", params={"name": name})
