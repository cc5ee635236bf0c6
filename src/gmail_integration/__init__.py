"""Gmail integration adapter.

This package links mail accounts to integration records, subscribes them to
Gmail push notifications, and sends outbound mail through the Gmail API.
"""

__version__ = "0.1.0"

from gmail_integration.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
