"""
Bus scope: an explicit handle that owns one bus per activation.

Components receive the scope (not a global) and go through it to publish or subscribe.
Outside an active scope every accessor raises BusScopeError, naming the scope.

Usage:
    scope = BusScope(schema, name="ui")
    with scope:
        reg = scope.register(on_click, keys=(user_id,), event_type="CLICK")
        scope.publish({"type": "CLICK", "x": 1, "y": 2})
        reg.update((other_user_id,))  # re-subscribes because the keys changed
    # leaving the scope unsubscribes every registration and drops the bus
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence

from pydantic import BaseModel

from typedbus.config.configs import BusConfig
from typedbus.core.bus import Bus, Unsubscribe
from typedbus.errors.errors import BusScopeError
from typedbus.types.aliases import Discriminant, Subscriber
from typedbus.validation.schema import EventSchema, as_schema

logger = logging.getLogger(__name__)


class Registration:
    """
    Subscription tied to a key set.

    Subscribes on creation, re-subscribes when update() receives different keys,
    unsubscribes on close() or when the owning scope closes.
    """

    def __init__(
        self,
        scope: BusScope,
        handler: Subscriber,
        keys: Sequence[Hashable] = (),
        event_type: Optional[Discriminant | type[BaseModel]] = None,
    ) -> None:
        self._scope = scope
        self._handler = handler
        self._event_type = event_type
        self._keys: tuple[Hashable, ...] = tuple(keys)
        self._unsubscribe: Optional[Unsubscribe] = None
        self._subscribe(handler)

    @property
    def keys(self) -> tuple[Hashable, ...]:
        return self._keys

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None and self._unsubscribe.active

    def _subscribe(self, handler: Subscriber) -> None:
        bus = self._scope._require("register")
        if self._event_type is None:
            self._unsubscribe = bus.subscribe_all(handler)
        else:
            self._unsubscribe = bus.subscribe_to_type(self._event_type, handler)

    def update(
        self, keys: Sequence[Hashable], handler: Optional[Subscriber] = None
    ) -> bool:
        """
        Re-register if `keys` differ from the current ones (or the registration was closed).
        Returns True if re-registered. A new handler only takes effect on re-registration.
        Keys and handler are left unchanged if re-registration fails.
        """
        new_keys = tuple(keys)
        if new_keys == self._keys and self.active:
            return False
        new_handler = handler if handler is not None else self._handler
        self.close()
        self._subscribe(new_handler)
        self._keys = new_keys
        self._handler = new_handler
        self._scope._track(self)
        return True

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._scope._untrack(self)

    def __enter__(self) -> Registration:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class BusScope:
    """
    Explicit scope owning exactly one Bus while active.

    A scope can be opened again after it was closed; each activation gets a fresh bus.
    """

    def __init__(
        self,
        schema: EventSchema | type[BaseModel] | Iterable[type[BaseModel]],
        *,
        name: str = "events",
        config: Optional[BusConfig] = None,
    ) -> None:
        self._schema = as_schema(schema)
        self._name = name
        self._config = config
        self._bus: Optional[Bus] = None
        self._registrations: list[Registration] = []

    # --- lifecycle ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def active(self) -> bool:
        return self._bus is not None

    def open(self) -> Bus:
        if self._bus is not None:
            raise BusScopeError(
                f"BusScope {self._name!r} is already active",
                scope=self._name,
                operation="open",
            )
        self._bus = Bus(self._schema, name=self._name, config=self._config)
        logger.info(f"[{self._name}] Scope opened")
        return self._bus

    def close(self) -> None:
        if self._bus is None:
            return
        for reg in list(self._registrations):
            reg.close()
        self._registrations.clear()
        self._bus = None
        logger.info(f"[{self._name}] Scope closed")

    def __enter__(self) -> BusScope:
        self.open()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # --- accessors ---

    def _require(self, operation: str) -> Bus:
        if self._bus is None:
            raise BusScopeError(
                f"{operation} must be used within an active BusScope {self._name!r}",
                scope=self._name,
                operation=operation,
            )
        return self._bus

    @property
    def bus(self) -> Bus:
        return self._require("bus")

    def get_publish(self) -> Callable[[Any], bool]:
        """Bound publish of the current bus; fails fast if the scope is not active."""
        return self._require("get_publish").publish

    def publish(self, candidate: Any) -> bool:
        return self._require("publish").publish(candidate)

    def subscribe_all(self, handler: Subscriber) -> Unsubscribe:
        return self._require("subscribe_all").subscribe_all(handler)

    def subscribe_to_type(
        self, discriminant: Discriminant | type[BaseModel], handler: Subscriber
    ) -> Unsubscribe:
        return self._require("subscribe_to_type").subscribe_to_type(discriminant, handler)

    def register(
        self,
        handler: Subscriber,
        keys: Sequence[Hashable] = (),
        *,
        event_type: Optional[Discriminant | type[BaseModel]] = None,
    ) -> Registration:
        """Subscribe now; the registration is closed when the scope closes."""
        reg = Registration(self, handler, keys, event_type)
        self._track(reg)
        return reg

    # --- registration bookkeeping ---

    def _track(self, reg: Registration) -> None:
        if reg not in self._registrations:
            self._registrations.append(reg)

    def _untrack(self, reg: Registration) -> None:
        if reg in self._registrations:
            self._registrations.remove(reg)

    def __repr__(self) -> str:
        return f"BusScope(name={self._name!r}, active={self.active})"
