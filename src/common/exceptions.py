"""
Custom exceptions for keyshelf.

This module defines all custom exceptions used throughout the application
for better error handling and debugging.
"""

from typing import Any, Optional


class KeyshelfError(Exception):
    """Base exception for all keyshelf errors."""

    def __init__(self, message: str,
                 details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Configuration Exceptions
class ConfigurationError(KeyshelfError):
    """Base exception for configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    def __init__(
        self, config_key: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize missing config error.

        Args:
            config_key: The missing configuration key.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"Missing required configuration: '{config_key}'", details)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid config error.

        Args:
            config_key: The configuration key with invalid value.
            value: The invalid value.
            reason: Optional reason why the value is invalid.
            details: Optional dictionary with additional error details.
        """
        message = f"Invalid configuration value for '{config_key}': {value}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason


# Storage Exceptions
class StorageError(KeyshelfError):
    """Raised when the Autocrypt settings store cannot be read or written."""


# Cryptography Exceptions
class CryptoError(KeyshelfError):
    """Base exception for cryptography-related errors."""


class KeyringError(CryptoError):
    """Raised when a GnuPG keyring operation fails."""


# Key workflow Exceptions
class KeyWorkflowError(KeyshelfError):
    """Base exception for key management workflow errors."""


class KeyNotFoundError(KeyWorkflowError):
    """Raised when a fingerprint is unknown to the current key list."""

    def __init__(
        self, fingerprint: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize key not found error.

        Args:
            fingerprint: The fingerprint that was looked up.
            details: Optional dictionary with additional error details.
        """
        super().__init__(f"Secret key '{fingerprint}' not found", details)
        self.fingerprint = fingerprint


class KeyBusyError(KeyWorkflowError):
    """Raised when acting on a key whose removal is still in progress."""

    def __init__(
        self, fingerprint: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            f"Secret key '{fingerprint}' is being removed", details)
        self.fingerprint = fingerprint


class ForgetNotAllowedError(KeyWorkflowError):
    """Raised when forgetting a key that is still used by Autocrypt."""

    def __init__(
        self,
        fingerprint: str,
        used_for: Optional[list[str]] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize forget not allowed error.

        Args:
            fingerprint: The fingerprint of the active key.
            used_for: Addresses the key is still used for.
            details: Optional dictionary with additional error details.
        """
        message = f"Secret key '{fingerprint}' is active and cannot be forgotten"
        if used_for:
            message += f" (used for {', '.join(used_for)})"
        super().__init__(message, details)
        self.fingerprint = fingerprint
        self.used_for = used_for or []


class BackupFailedError(KeyWorkflowError):
    """Raised when a setup message backup cannot be produced."""


class DeleteFailedError(KeyWorkflowError):
    """Raised when the key store fails to delete a secret key."""

    def __init__(
        self,
        fingerprint: str,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"Failed to delete secret key '{fingerprint}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, details)
        self.fingerprint = fingerprint
        self.reason = reason


class ImportRejectedError(KeyWorkflowError):
    """Raised inside importers when content is not a recognized key format."""
