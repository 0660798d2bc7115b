from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provisioner.domain.models import EnsureResult


class ProvisionerError(Exception):
    """Base class for errors that abort a provisioning run (exit code 2)."""

    exit_code = 2


class ConfigurationError(ProvisionerError):
    """Raised when required settings are missing or invalid."""


class AuthenticationError(ProvisionerError):
    """Raised when the service principal login fails."""

    def __init__(self, message: str, principal: str):
        super().__init__(message)
        self.principal = principal


class ContextError(ProvisionerError):
    """Raised when the subscription context cannot be selected."""

    def __init__(self, message: str, subscription_id: str):
        super().__init__(message)
        self.subscription_id = subscription_id


class ProvisioningError(ProvisionerError):
    """Raised when one or more resources could not be created."""

    def __init__(self, message: str, results: list[EnsureResult] | None = None):
        super().__init__(message)
        self.results = list(results or [])
