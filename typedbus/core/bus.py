from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from itertools import count
from typing import Any, Callable, Deque, Iterable, Optional

from pydantic import BaseModel

from typedbus.config.configs import BusConfig, ReentrancyPolicy
from typedbus.errors.errors import BusError, SchemaDefinitionError
from typedbus.types.aliases import Discriminant, ErrorHook, Subscriber
from typedbus.types.types import BusStats, ValidationResult
from typedbus.validation.schema import EventSchema, as_schema, literal_discriminant

logger = logging.getLogger(__name__)

RejectedHook = Callable[[Any, ValidationResult], None]

# --- Subscription objects ---


@dataclass(eq=False)
class _Entry:
    """One registration in the registry. Identity, not handler equality, is what gets removed."""

    token: int
    handler: Subscriber
    discriminant: Any = None
    wildcard: bool = False

    def matches(self, tag: Optional[Discriminant]) -> bool:
        return self.wildcard or self.discriminant == tag


class Unsubscribe:
    """
    Handle returned by subscribe_all / subscribe_to_type.
    Calling it removes exactly one subscription. Safe to call multiple times.
    """

    __slots__ = ("_bus", "_token")

    def __init__(self, bus: Bus, token: int) -> None:
        self._bus: Optional[Bus] = bus
        self._token = token

    @property
    def active(self) -> bool:
        return self._bus is not None and self._token in self._bus._entries

    def __call__(self) -> None:
        if self._bus is None:
            return
        bus, self._bus = self._bus, None
        bus._remove(self._token)

    def __repr__(self) -> str:
        return f"Unsubscribe(token={self._token}, active={self.active})"


@dataclass
class _Counters:
    published: int = 0
    rejected: int = 0
    delivered: int = 0
    faults: int = 0


# --- Bus ---


class Bus:
    """
    Synchronous, schema-validated publish/subscribe bus.

    - publish(): validate, then fan out on the caller's thread to a snapshot of the registry.
      Invalid candidates are dropped and reported (log + on_rejected hooks), never raised.
    - subscribe_all(): wildcard subscription.
    - subscribe_to_type(): subscription filtered on the discriminant.

    Re-entrant publish follows BusConfig.reentrancy:
        IMMEDIATE: nested dispatch runs inline (bounded by max_dispatch_depth)
        DEFERRED:  nested events are queued and drained by the outermost publish

    Subscriber exceptions propagate to the publisher unless BusConfig.isolate_subscribers.
    """

    def __init__(
        self,
        schema: EventSchema,
        *,
        name: str = "bus",
        config: Optional[BusConfig] = None,
    ) -> None:
        self._schema = schema
        self._name = name
        self._cfg = config or BusConfig()

        # Registry, insertion ordered
        self._entries: dict[int, _Entry] = {}
        self._tokens = count(1)

        # Dispatch state
        self._depth: int = 0
        self._pending: Deque[Any] = deque()

        # Telemetry
        self._counters = _Counters()
        self._on_rejected: list[RejectedHook] = []
        self._on_error: list[ErrorHook] = []

    # --- properties ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def schema(self) -> EventSchema:
        return self._schema

    @property
    def config(self) -> BusConfig:
        return self._cfg

    @property
    def subscriber_count(self) -> int:
        return len(self._entries)

    @property
    def dispatching(self) -> bool:
        return self._depth > 0

    # --- Public hook registration ---

    def on_rejected(self, callback: RejectedHook) -> None:
        """
        Register a rejection hook: callback(candidate, validation_result).
        """
        self._on_rejected.append(callback)

    def on_error(self, callback: ErrorHook) -> None:
        """
        Register an error hook: callback(where, exception).
        Called for subscriber faults caught in isolation mode.
        """
        self._on_error.append(callback)

    # --- subscriptions ---

    def subscribe_all(self, handler: Subscriber) -> Unsubscribe:
        """Receive every event that passes validation."""
        return self._add(handler, None, wildcard=True)

    def subscribe_to_type(
        self, discriminant: Discriminant | type[BaseModel], handler: Subscriber
    ) -> Unsubscribe:
        """
        Receive only events whose discriminant equals `discriminant`.
        A variant model class may be passed instead of the string.
        Anything outside the schema's tag set (unknown strings, None, models without a
        literal discriminant) is allowed; such a subscription never fires.
        """
        tag = self._resolve_discriminant(discriminant)
        if not isinstance(tag, str) or tag not in self._schema:
            logger.debug(
                f"[{self._name}] Subscription to {tag!r} is dormant: "
                f"not in {sorted(self._schema.discriminants)}"
            )
        return self._add(handler, tag)

    def _resolve_discriminant(self, discriminant: Any) -> Any:
        if isinstance(discriminant, type) and issubclass(discriminant, BaseModel):
            try:
                return literal_discriminant(discriminant, self._schema.discriminator)
            except SchemaDefinitionError:
                # no usable tag: keep the class itself, which equals no discriminant
                return discriminant
        return discriminant

    def _add(self, handler: Subscriber, discriminant: Any, wildcard: bool = False) -> Unsubscribe:
        if not callable(handler):
            raise TypeError(f"Subscriber must be callable, got {type(handler).__name__}")
        token = next(self._tokens)
        self._entries[token] = _Entry(
            token=token, handler=handler, discriminant=discriminant, wildcard=wildcard
        )
        logger.debug(
            f"[{self._name}] Subscriber attached: {_handler_name(handler)} "
            f"(type={'*' if wildcard else repr(discriminant)}, total={len(self._entries)})"
        )
        return Unsubscribe(self, token)

    def _remove(self, token: int) -> None:
        entry = self._entries.pop(token, None)
        if entry is not None:
            logger.debug(
                f"[{self._name}] Subscriber detached: {_handler_name(entry.handler)} "
                f"(total={len(self._entries)})"
            )

    # --- publish ---

    def publish(self, candidate: Any) -> bool:
        """
        Validate `candidate` and deliver it to current subscribers.
        Returns True if the event passed validation (delivered or queued), False if rejected.
        """
        result = self._schema.validate(candidate)
        if not result.ok:
            self._reject(candidate, result)
            return False

        event = result.value

        if self._depth > 0 and self._cfg.reentrancy == ReentrancyPolicy.DEFERRED:
            self._counters.published += 1
            self._pending.append(event)
            logger.debug(
                f"[{self._name}] Deferred {self._schema.discriminant_of(event)!r} "
                f"(queued={len(self._pending)})"
            )
            return True

        if self._depth >= self._cfg.max_dispatch_depth:
            raise BusError(
                f"Re-entrant publish depth exceeded ({self._cfg.max_dispatch_depth})",
                component=self._name,
                details={"type": self._schema.discriminant_of(event)},
            )

        self._counters.published += 1
        outermost = self._depth == 0
        self._depth += 1
        try:
            self._dispatch(event)
            if outermost:
                while self._pending:
                    self._dispatch(self._pending.popleft())
        except BaseException:
            if outermost and self._pending:
                logger.warning(
                    f"[{self._name}] Dispatch aborted, discarding {len(self._pending)} "
                    f"deferred event(s)"
                )
                self._pending.clear()
            raise
        finally:
            self._depth -= 1
        return True

    def publish_many(self, candidates: Iterable[Any]) -> int:
        """Publish each candidate in order; returns how many passed validation."""
        return sum(1 for c in candidates if self.publish(c))

    def _dispatch(self, event: Any) -> None:
        tag = self._schema.discriminant_of(event)
        # snapshot: unsubscribing during dispatch must not disturb this loop
        subscribers = list(self._entries.values())
        for entry in subscribers:
            if not entry.matches(tag):
                continue
            self._counters.delivered += 1
            if not self._cfg.isolate_subscribers:
                entry.handler(event)
                continue
            try:
                entry.handler(event)
            except Exception as e:
                self._counters.faults += 1
                logger.error(
                    f"[{self._name}] Subscriber {_handler_name(entry.handler)} failed on "
                    f"{tag!r}: {e}",
                    exc_info=True,
                )
                self._emit_error(f"subscriber:{_handler_name(entry.handler)}", e)

    # --- helpers ---

    def _reject(self, candidate: Any, result: ValidationResult) -> None:
        self._counters.rejected += 1
        logger.log(
            self._cfg.rejection_level,
            f"[{self._name}] BUS_EVENT_REJECTED "
            f"type={self._schema.discriminant_of(candidate)!r} issues={result.issues}",
        )
        for cb in list(self._on_rejected):
            try:
                cb(candidate, result)
            except Exception as e:
                logger.warning(f"[{self._name}] Rejection hook error: {e}")

    def _emit_error(self, where: str, exc: BaseException) -> None:
        for cb in list(self._on_error):
            try:
                cb(where, exc)
            except Exception as e:
                logger.warning(f"[{self._name}] Error hook failed: {e}")

    def stats(self) -> BusStats:
        return BusStats(
            name=self._name,
            subscribers=len(self._entries),
            published=self._counters.published,
            rejected=self._counters.rejected,
            delivered=self._counters.delivered,
            faults=self._counters.faults,
            discriminants=sorted(self._schema.discriminants),
        )

    def __repr__(self) -> str:
        return f"Bus(name={self._name!r}, schema={self._schema!r}, subscribers={len(self._entries)})"


def _handler_name(handler: Subscriber) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


def create_bus(
    schema: EventSchema | type[BaseModel] | Iterable[type[BaseModel]],
    *,
    name: str = "bus",
    config: Optional[BusConfig] = None,
) -> Bus:
    """Build a bus for `schema` (an EventSchema, one variant model, or a list of variants)."""
    return Bus(as_schema(schema), name=name, config=config)
