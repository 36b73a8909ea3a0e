"""
Typed, schema-validated publish/subscribe event bus.

Events are pydantic models forming a closed tagged union. Publishing validates the
candidate first; invalid events are dropped and reported, valid ones are delivered
synchronously to every matching subscriber.

Components:
- EventSchema: discriminated union of Event models (validation via pydantic)
- Bus / create_bus: registry, validation gate, synchronous fan-out
- BusScope / Registration: explicit scope owning one bus, fail-fast outside it
- BusConfig / ConfigLoader: re-entrancy policy, subscriber isolation, TOML loading

Usage:
    from typing import Literal
    from typedbus import Event, create_bus

    class Click(Event):
        type: Literal["CLICK"]
        x: int
        y: int

    class Hover(Event):
        type: Literal["HOVER"]
        elementId: str

    bus = create_bus([Click, Hover])
    unsubscribe = bus.subscribe_to_type("CLICK", lambda e: print(e.x, e.y))
    bus.publish({"type": "CLICK", "x": 10, "y": 20})
    unsubscribe()
"""

from typedbus.config.config_loader import ConfigLoader
from typedbus.config.configs import BusConfig, ReentrancyPolicy
from typedbus.core.bus import Bus, Unsubscribe, create_bus
from typedbus.core.scope import BusScope, Registration
from typedbus.errors.errors import (
    BusError,
    BusScopeError,
    ConfigurationError,
    EventValidationError,
    SchemaDefinitionError,
)
from typedbus.types.types import BusStats, Event, ValidationResult
from typedbus.validation.schema import EventSchema, event_schema

__all__ = [
    # Main entry point
    "create_bus",
    "Bus",
    "Unsubscribe",
    "BusScope",
    "Registration",
    # Schema
    "Event",
    "EventSchema",
    "event_schema",
    "ValidationResult",
    # Config
    "BusConfig",
    "ReentrancyPolicy",
    "ConfigLoader",
    # Types
    "BusStats",
    # Errors
    "BusError",
    "BusScopeError",
    "ConfigurationError",
    "EventValidationError",
    "SchemaDefinitionError",
]
