from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from typedbus.types.aliases import Issue

# -------- Events --------


class Event(BaseModel):
    """
    Base for event variants.

    Subclasses declare the discriminant as a single string literal, e.g.
        class Click(Event):
            type: Literal["CLICK"]
            x: int
            y: int

    Events are frozen, reject unknown fields and validate strictly ("10" is not an int).
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)


# -------- Validation --------


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of running a candidate through an event schema."""

    ok: bool
    value: Optional[Any] = None  # validated event when ok
    error: Optional[ValidationError] = None
    issues: list[Issue] = field(default_factory=list)

    @classmethod
    def success(cls, value: Any) -> ValidationResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ValidationError, issues: list[Issue]) -> ValidationResult:
        return cls(ok=False, error=error, issues=issues)


# -------- Stats --------


@dataclass
class BusStats:
    """Snapshot of a bus's activity."""

    name: str
    subscribers: int  # active subscriptions (wildcard and typed)
    published: int  # events that passed validation
    rejected: int  # candidates dropped by validation
    delivered: int  # subscriber invocations (after type filtering)
    faults: int  # subscriber exceptions caught in isolation mode
    discriminants: list[str]
