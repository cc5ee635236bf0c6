"""Gmail API transport: credentials, MIME assembly, delivery and watches."""

from .mime import create_mime_message, encode_subject
from .send import DeliveryClient
from .watch import normalize_watch_response, stop_push_notification, watch_push_notification

__all__ = [
    "DeliveryClient",
    "create_mime_message",
    "encode_subject",
    "normalize_watch_response",
    "stop_push_notification",
    "watch_push_notification",
]
