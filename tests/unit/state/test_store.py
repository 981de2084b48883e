"""Unit tests for the central store."""

import pytest
from pydantic import BaseModel, ValidationError

from oncosaferx.state import Action, Store


class Counter(BaseModel):
    value: int = 0


def counter_reducer(state: Counter, action: Action) -> Counter:
    if action.type == "INCREMENT":
        return state.model_copy(update={"value": state.value + (action.payload or 1)})
    return state


def test_dispatch_returns_new_state():
    store = Store(counter_reducer, Counter())

    assert store.dispatch(Action(type="INCREMENT", payload=2)).value == 2
    assert store.state.value == 2


def test_listeners_notified_only_on_change():
    store = Store(counter_reducer, Counter())
    seen: list[int] = []
    store.subscribe(lambda s: seen.append(s.value))

    store.dispatch(Action(type="INCREMENT"))
    store.dispatch(Action(type="UNKNOWN"))

    assert seen == [1]


def test_unsubscribe_stops_notifications():
    store = Store(counter_reducer, Counter())
    seen: list[int] = []
    unsubscribe = store.subscribe(lambda s: seen.append(s.value))

    unsubscribe()
    unsubscribe()
    store.dispatch(Action(type="INCREMENT"))

    assert seen == []


def test_previous_state_is_not_mutated():
    initial = Counter()
    store = Store(counter_reducer, initial)

    store.dispatch(Action(type="INCREMENT"))

    assert initial.value == 0


def test_actions_are_frozen():
    action = Action(type="INCREMENT")

    with pytest.raises(ValidationError):
        action.type = "OTHER"
