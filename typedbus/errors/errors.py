"""
Exceptions raised by the event bus.

Exception hierarchy:
- BusError (base)
  - EventValidationError: candidate does not match any schema variant
  - BusScopeError: operation used outside an active scope
  - SchemaDefinitionError: invalid event schema declaration
  - ConfigurationError: invalid bus configuration

Subscriber faults are not wrapped; the subscriber's own exception propagates.
"""

from __future__ import annotations

from typing import Any, Optional


class BusError(Exception):
    """Base exception for all bus errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class EventValidationError(BusError):
    """Raised when a candidate event does not match the schema."""

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[list[dict[str, str]]] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.issues = issues or []
        details = details or {}
        if self.issues:
            details["issues"] = self.issues
        super().__init__(message, component=component, details=details)


class BusScopeError(BusError):
    """Raised when the bus is used outside an active scope."""

    def __init__(
        self,
        message: str,
        *,
        scope: Optional[str] = None,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.scope = scope
        self.operation = operation
        details = details or {}
        if scope:
            details["scope"] = scope
        if operation:
            details["operation"] = operation
        super().__init__(message, component=component, details=details)


class SchemaDefinitionError(BusError):
    """Raised when an event schema cannot be built from its variants."""

    def __init__(
        self,
        message: str,
        *,
        variant: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.variant = variant
        details = details or {}
        if variant:
            details["variant"] = variant
        super().__init__(message, component=component, details=details)


class ConfigurationError(BusError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, component=component, details=details)
