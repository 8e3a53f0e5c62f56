"""Structured errors for ltbc.

Injected faults and configuration problems share one base class so callers
can tell chaos-originated failures apart from their own.
"""

from __future__ import annotations

from typing import Any


class LtbcError(Exception):
    """Base exception for all ltbc errors."""

    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ChaosConfigurationError(LtbcError):
    error_code = "CONFIGURATION_ERROR"


class InjectedFaultError(LtbcError):
    """Raised when an error-producing rule yields something that is not an exception."""

    error_code = "INJECTED_FAULT"

    def __init__(self, value: Any) -> None:
        super().__init__(str(value), details={"value": value})
        self.value = value


class InterceptionError(LtbcError):
    error_code = "INTERCEPTION_ERROR"
