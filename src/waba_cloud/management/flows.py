"""
WhatsApp Flows Management

Lifecycle of WhatsApp Flows: create, edit the Flow JSON, publish,
deprecate and delete.
"""

import json
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from waba_cloud.contracts.messages import MultipartForm

if TYPE_CHECKING:
    from waba_cloud.client import WhatsAppClient

logger = logging.getLogger(__name__)

AREA = "flow management"


class FlowManager:
    """Flows of the configured WhatsApp Business Account."""

    def __init__(self, client: "WhatsAppClient"):
        self.client = client

    async def create(self, name: str, categories: Sequence[str]) -> dict[str, Any]:
        """
        Create a draft flow.

        Args:
            name: Flow name
            categories: e.g. ["LEAD_GENERATION"], ["SIGN_UP"]

        Returns:
            {"id": "<flow id>"}
        """
        waba_id = self.client.require_waba_id(AREA)
        return await self.client.request(
            f"{waba_id}/flows",
            body={"name": name, "categories": list(categories)},
        )

    async def list(self) -> dict[str, Any]:
        waba_id = self.client.require_waba_id(AREA)
        return await self.client.request(f"{waba_id}/flows", method="GET")

    async def get(self, flow_id: str) -> dict[str, Any]:
        return await self.client.request(flow_id, method="GET")

    async def update(self, flow_id: str, **fields: Any) -> dict[str, Any]:
        """Update flow metadata (name, categories, endpoint_uri...)."""
        return await self.client.request(flow_id, body=fields)

    async def publish(self, flow_id: str) -> dict[str, Any]:
        logger.info("Publishing flow", extra={"flow_id": flow_id})
        return await self.client.request(f"{flow_id}/publish", body={})

    async def deprecate(self, flow_id: str) -> dict[str, Any]:
        return await self.client.request(f"{flow_id}/deprecate", body={})

    async def delete(self, flow_id: str) -> dict[str, Any]:
        """Delete a flow (drafts only)."""
        return await self.client.request(flow_id, method="DELETE")

    async def get_assets(self, flow_id: str) -> dict[str, Any]:
        return await self.client.request(f"{flow_id}/assets", method="GET")

    async def update_json(self, flow_id: str, flow_json: str | dict[str, Any]) -> dict[str, Any]:
        """
        Upload the Flow JSON as the flow's FLOW_JSON asset.

        Returns:
            {"success": bool, "validation_errors": [...]}
        """
        if not isinstance(flow_json, str):
            flow_json = json.dumps(flow_json)

        form = MultipartForm(
            data={"name": "flow.json", "asset_type": "FLOW_JSON"},
            files={"file": ("flow.json", flow_json.encode("utf-8"), "application/json")},
        )
        response = await self.client.request(f"{flow_id}/assets", body=form)

        if response.get("validation_errors"):
            logger.warning(
                "Flow JSON has validation errors",
                extra={"flow_id": flow_id, "errors": len(response["validation_errors"])},
            )
        return response
