import importlib
import inspect
from typing import Literal

import pytest

from typedbus.core.bus import create_bus
from typedbus.types.types import Event
from typedbus.validation.schema import EventSchema

# Mapping of module -> (ProtocolName, required_methods: {name: arity})
PORT_PROTOCOLS = {
    "typedbus.ports.event_bus": (
        "EventBus",
        {"publish": 1, "subscribe_all": 1, "subscribe_to_type": 2},
    ),
    "typedbus.ports.validator": ("EventValidator", {"validate": 1}),
}

# Concrete implementation for each port
IMPLEMENTATIONS = {
    "typedbus.ports.event_bus": ("typedbus.core.bus", "Bus"),
    "typedbus.ports.validator": ("typedbus.validation.schema", "EventSchema"),
}


def _positional_params(fn) -> list[inspect.Parameter]:
    sig = inspect.signature(fn)
    # remove self / cls
    return [p for p in sig.parameters.values() if p.kind == p.POSITIONAL_OR_KEYWORD][1:]


@pytest.mark.parametrize("module_name,meta", PORT_PROTOCOLS.items())
def test_required_port_signatures(module_name, meta):
    proto_name, methods = meta
    module = importlib.import_module(module_name)
    proto = getattr(module, proto_name)
    assert inspect.isclass(proto), f"{proto_name} not a class"
    for method_name, arity in methods.items():
        fn = getattr(proto, method_name, None)
        assert fn is not None, f"Missing method {method_name} on {proto_name}"
        params = _positional_params(fn)
        assert (
            len(params) == arity
        ), f"{proto_name}.{method_name} expected {arity} args got {len(params)}"


@pytest.mark.parametrize("module_name,meta", PORT_PROTOCOLS.items())
def test_implementations_match_ports(module_name, meta):
    _, methods = meta
    impl_module, impl_name = IMPLEMENTATIONS[module_name]
    impl = getattr(importlib.import_module(impl_module), impl_name)
    for method_name, arity in methods.items():
        fn = getattr(impl, method_name, None)
        assert fn is not None, f"{impl_name} lacks {method_name}"
        assert len(_positional_params(fn)) == arity


class Ping(Event):
    type: Literal["PING"]


def test_unsubscribe_handle_is_callable():
    bus = create_bus(EventSchema(Ping))
    unsubscribe = bus.subscribe_all(lambda e: None)
    assert callable(unsubscribe)
    assert unsubscribe() is None
