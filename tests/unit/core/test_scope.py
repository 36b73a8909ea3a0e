from typing import Literal

import pytest

from typedbus.config.configs import BusConfig, ReentrancyPolicy
from typedbus.core.scope import BusScope
from typedbus.errors.errors import BusError, BusScopeError
from typedbus.types.types import Event


class Click(Event):
    type: Literal["CLICK"]
    x: int
    y: int


class Hover(Event):
    type: Literal["HOVER"]
    elementId: str


@pytest.fixture
def scope() -> BusScope:
    return BusScope([Click, Hover], name="ui")


# --- Fail fast outside the scope ---


def test_publish_outside_scope_raises(scope: BusScope):
    with pytest.raises(BusScopeError, match="publish must be used within an active BusScope 'ui'"):
        scope.publish({"type": "CLICK", "x": 10, "y": 20})


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.bus,
        lambda s: s.get_publish(),
        lambda s: s.subscribe_all(lambda e: None),
        lambda s: s.subscribe_to_type("CLICK", lambda e: None),
        lambda s: s.register(lambda e: None),
    ],
)
def test_every_accessor_fails_outside_scope(scope: BusScope, call):
    with pytest.raises(BusScopeError) as exc_info:
        call(scope)
    assert exc_info.value.scope == "ui"
    assert isinstance(exc_info.value, BusError)


def test_accessors_fail_after_scope_closes(scope: BusScope):
    with scope:
        publish = scope.get_publish()
        assert publish({"type": "CLICK", "x": 1, "y": 1}) is True

    assert not scope.active
    with pytest.raises(BusScopeError):
        scope.publish({"type": "CLICK", "x": 1, "y": 1})


def test_open_twice_raises(scope: BusScope):
    with scope:
        with pytest.raises(BusScopeError, match="already active"):
            scope.open()


# --- One bus per activation ---


def test_scope_owns_one_bus_per_activation(scope: BusScope):
    with scope:
        first = scope.bus
        assert scope.bus is first
        assert first.name == "ui"

    with scope:
        assert scope.bus is not first


def test_scope_passes_config_to_bus():
    config = BusConfig(reentrancy=ReentrancyPolicy.DEFERRED)
    with BusScope([Click], config=config) as scope:
        assert scope.bus.config is config


def test_publish_and_subscribe_through_scope(scope: BusScope):
    clicks, everything = [], []
    with scope:
        scope.subscribe_to_type("CLICK", clicks.append)
        scope.subscribe_all(everything.append)

        scope.publish({"type": "CLICK", "x": 10, "y": 20})
        scope.publish({"type": "HOVER", "elementId": "test-div"})

    assert [(c.x, c.y) for c in clicks] == [(10, 20)]
    assert [e.type for e in everything] == ["CLICK", "HOVER"]


# --- Registrations ---


def test_register_subscribes_and_scope_exit_unsubscribes(scope: BusScope):
    received = []
    with scope:
        reg = scope.register(received.append, event_type="HOVER")
        bus = scope.bus
        assert reg.active
        scope.publish({"type": "HOVER", "elementId": "a"})
        scope.publish({"type": "CLICK", "x": 1, "y": 1})

    assert [e.elementId for e in received] == ["a"]
    assert not reg.active
    assert bus.subscriber_count == 0


def test_registration_update_same_keys_is_noop(scope: BusScope):
    with scope:
        reg = scope.register(lambda e: None, keys=("user-1",))
        assert reg.update(("user-1",)) is False
        assert scope.bus.subscriber_count == 1


def test_registration_update_new_keys_resubscribes(scope: BusScope):
    old, new = [], []
    with scope:
        reg = scope.register(old.append, keys=("user-1",), event_type=Click)
        assert reg.update(("user-2",), handler=new.append) is True
        assert reg.keys == ("user-2",)
        assert scope.bus.subscriber_count == 1

        scope.publish({"type": "CLICK", "x": 1, "y": 1})

    assert old == []
    assert len(new) == 1


def test_registration_update_after_scope_close_keeps_keys(scope: BusScope):
    with scope:
        reg = scope.register(lambda e: None, keys=("a",))

    with pytest.raises(BusScopeError):
        reg.update(("b",))
    assert reg.keys == ("a",)
    assert not reg.active


def test_registration_close_is_idempotent(scope: BusScope):
    received = []
    with scope:
        with scope.register(received.append) as reg:
            scope.publish({"type": "CLICK", "x": 1, "y": 1})
        reg.close()
        scope.publish({"type": "CLICK", "x": 2, "y": 2})
        assert scope.bus.subscriber_count == 0

    assert len(received) == 1


def test_scope_close_is_idempotent(scope: BusScope):
    scope.open()
    scope.close()
    scope.close()
    assert not scope.active
