"""EventBus Port Interface.

Contract: synchronous publish/subscribe for schema-validated events.
Subscribe calls return an idempotent unsubscribe callable.
"""
from __future__ import annotations
from typing import Protocol, Callable, Any

class EventBus(Protocol):
    def publish(self, candidate: Any) -> bool:
        """Validate and deliver to all matching subscribers; False if rejected."""
        ...

    def subscribe_all(self, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Register handler for every event."""
        ...

    def subscribe_to_type(
        self, discriminant: Any, handler: Callable[[Any], None]
    ) -> Callable[[], None]:
        """Register handler for events whose discriminant equals `discriminant`."""
        ...
