"""Persistence for accounts and Gmail integrations."""

from .repository import IntegrationStore

__all__ = ["IntegrationStore"]
