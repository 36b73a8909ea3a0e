"""EventValidator Port Interface.

Contract: validate an arbitrary candidate against a closed event schema without raising.
"""

from __future__ import annotations

from typing import Any, Protocol

from typedbus.types.types import ValidationResult


class EventValidator(Protocol):
    def validate(self, candidate: Any) -> ValidationResult:
        """Return ok=True with the typed event, or ok=False with diagnostics."""
        ...
