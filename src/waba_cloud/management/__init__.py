"""
Account Management

Managers for WhatsApp Business Account resources. Each wraps the owning
client's request pipeline and is exposed as a client attribute.
"""

from waba_cloud.management.account import AccountManager
from waba_cloud.management.flows import FlowManager
from waba_cloud.management.qr_codes import QRCodeManager
from waba_cloud.management.templates import TemplateManager

__all__ = [
    "AccountManager",
    "FlowManager",
    "QRCodeManager",
    "TemplateManager",
]
