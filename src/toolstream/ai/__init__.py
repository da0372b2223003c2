"""AI client, tool contracts, and the iteration loop."""

from .client import AIClient, ClientSettings

__all__ = ["AIClient", "ClientSettings"]
