"""API routes package."""

from . import auto_senders

__all__ = ["auto_senders"]
