"""
Business Account Management

Account-level reads: health status, phone numbers and analytics.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from waba_cloud.client import WhatsAppClient


class AccountManager:
    """Reads on the configured WhatsApp Business Account."""

    def __init__(self, client: "WhatsAppClient"):
        self.client = client

    async def health_status(self) -> dict[str, Any]:
        """Whether the account and its numbers can currently send messages."""
        waba_id = self.client.require_waba_id("account management")
        return await self.client.request(
            waba_id,
            method="GET",
            params={"fields": "health_status"},
        )

    async def list_phone_numbers(self) -> dict[str, Any]:
        waba_id = self.client.require_waba_id("account management")
        return await self.client.request(f"{waba_id}/phone_numbers", method="GET")

    async def analytics(self, start: int, end: int, granularity: str = "DAY") -> dict[str, Any]:
        """
        Message analytics between two unix timestamps.

        Args:
            start: Period start (unix seconds)
            end: Period end (unix seconds)
            granularity: HALF_HOUR, DAY or MONTH
        """
        return await self._fields_query(
            f"analytics.start({start}).end({end}).granularity({granularity})"
        )

    async def conversation_analytics(
        self,
        start: int,
        end: int,
        granularity: str = "DAILY",
    ) -> dict[str, Any]:
        return await self._fields_query(
            f"conversation_analytics.start({start}).end({end}).granularity({granularity})"
        )

    async def template_analytics(
        self,
        start: int,
        end: int,
        template_ids: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        field = f"template_analytics.start({start}).end({end})"
        if template_ids:
            field += f".template_ids([{','.join(template_ids)}])"
        return await self._fields_query(f"{field}.granularity(DAILY)")

    async def _fields_query(self, fields: str) -> dict[str, Any]:
        waba_id = self.client.require_waba_id("analytics")
        return await self.client.request(waba_id, method="GET", params={"fields": fields})
