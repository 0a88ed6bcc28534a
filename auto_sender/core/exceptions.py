"""
Custom exception classes for the Auto-Sender service.
Provides structured error handling across all modules.
"""

from typing import Any, Optional, Dict


class AutoSenderException(Exception):
    """Base exception class for the Auto-Sender service."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(AutoSenderException):
    """
    Raised when an auto-sender config cannot work as declared.

    Signing key and source address disagree, the secret is missing or
    expired, or the destination is malformed. Retrying does not help.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class ValidationError(AutoSenderException):
    """Raised when management input fails validation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(AutoSenderException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class SolanaError(AutoSenderException):
    """Raised when there's a Solana blockchain error."""

    def __init__(
        self,
        message: str,
        code: str = "SOLANA_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class TransientError(SolanaError):
    """RPC or network failure; the next scheduler tick retries from scratch."""

    def __init__(self, message: str, stage: str, details: Optional[Dict[str, Any]] = None):
        self.stage = stage
        super().__init__(message, "TRANSIENT_ERROR", {"stage": stage, **(details or {})})


class TransactionRejectedError(SolanaError):
    """The cluster processed the transaction and refused it."""

    def __init__(self, message: str, signature: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.signature = signature
        super().__init__(message, "TRANSACTION_REJECTED", {"signature": signature, **(details or {})})


class AutoSenderNotFoundError(NotFoundError):
    """Raised when an auto-sender config is not found."""

    def __init__(self, config_id: str):
        super().__init__(
            f"Auto-sender not found: {config_id}",
            {"config_id": config_id}
        )
