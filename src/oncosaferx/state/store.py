"""
Minimal central store.

State objects are pydantic models that reducers never mutate: every reducer
returns either the same object (nothing changed) or a ``model_copy`` with the
changed fields. Subscribers are notified only when the object changes.
"""

import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Action(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    payload: Any = None


Reducer = Callable[[Any, Action], Any]
Listener = Callable[[Any], None]


class Store:
    def __init__(self, reducer: Reducer, initial_state: Any):
        self._reducer = reducer
        self._state = initial_state
        self._listeners: list[Listener] = []

    @property
    def state(self) -> Any:
        return self._state

    def dispatch(self, action: Action) -> Any:
        """Apply ``action`` and return the resulting state."""
        new_state = self._reducer(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            logger.debug("Dispatched %s", action.type)
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
