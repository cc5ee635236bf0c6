"""HTTP surface of the Gmail integration adapter."""

from .app import create_app

__all__ = ["create_app"]
