"""Adapter modules for external integrations."""

from .handy import MODES, HandyClient
from .webhook import WebhookClient

__all__ = [
    "HandyClient",
    "MODES",
    "WebhookClient",
]
