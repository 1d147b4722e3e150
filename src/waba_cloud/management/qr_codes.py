"""
QR Code Management

Prefilled-message QR codes and short links for the business number.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from waba_cloud.client import WhatsAppClient

IMAGE_FORMATS = ("png", "svg")


class QRCodeManager:
    """QR codes of the configured phone number."""

    def __init__(self, client: "WhatsAppClient"):
        self.client = client

    def _path(self, code: str | None = None) -> str:
        path = f"{self.client.phone_number_id}/message_qrdls"
        return f"{path}/{code}" if code else path

    async def create(self, message: str, image_format: str = "png") -> dict[str, Any]:
        if image_format not in IMAGE_FORMATS:
            raise ValueError(f"image_format must be one of {IMAGE_FORMATS}, got {image_format!r}")

        return await self.client.request(
            self._path(),
            body={"prefilled_message": message, "generate_qr_image": image_format},
        )

    async def list(self) -> dict[str, Any]:
        return await self.client.request(self._path(), method="GET")

    async def update(self, code: str, message: str) -> dict[str, Any]:
        return await self.client.request(self._path(code), body={"prefilled_message": message})

    async def delete(self, code: str) -> dict[str, Any]:
        return await self.client.request(self._path(code), method="DELETE")
