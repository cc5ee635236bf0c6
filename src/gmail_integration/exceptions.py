"""Custom exceptions for the Gmail integration adapter."""


class IntegrationError(Exception):
    """Base exception for all Gmail integration errors."""


class AccountNotFoundError(IntegrationError):
    """Exception raised when no account matches an id or mailbox address."""

    def __init__(self, key: str) -> None:
        super().__init__("Account not found")
        self.key = key


class GmailAPIError(IntegrationError):
    """Exception raised for Gmail API related errors."""


class SubscriptionError(GmailAPIError):
    """Exception raised when a push-notification subscription fails."""


class ConfigurationError(IntegrationError):
    """Exception raised for configuration related errors."""


class AuthenticationError(IntegrationError):
    """Exception raised when credentials cannot be built for an account."""


class ValidationError(IntegrationError):
    """Exception raised for malformed request payloads."""
