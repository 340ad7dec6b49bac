"""Custom exception classes for deployment-registry library."""

from typing import Any, Dict, Optional


class DeploymentError(Exception):
    """
    Base exception for deployment-related errors.

    Carries an optional ``details`` dict with the context needed for manual
    recovery (network, contract type, fingerprint, address).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidBytecodeError(DeploymentError, ValueError):
    """Raised when bytecode cannot be fingerprinted."""

    pass


class InvalidArtifactError(DeploymentError, ValueError):
    """Raised when a compiled contract artifact is missing required fields."""

    pass


class TransactionFailedError(DeploymentError, RuntimeError):
    """Raised when a submitted transaction is mined but reverted."""

    pass


class InitializationError(DeploymentError, RuntimeError):
    """Raised when the initializer call fails after a successful bare deploy."""

    pass


class ManifestResolutionError(DeploymentError, LookupError):
    """Raised when a fingerprint has no implementation in the upgrade manifest."""

    pass


class StoreIOError(DeploymentError, OSError):
    """Raised when the deployment registry cannot be read or written."""

    pass


class VerificationError(DeploymentError, RuntimeError):
    """Raised (or reported) when source verification fails. Recoverable."""

    pass
