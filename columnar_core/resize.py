from __future__ import annotations

import logging
from typing import Callable, Protocol


LOGGER = logging.getLogger(__name__)

ResizeCallback = Callable[[], None]


class ResizeService(Protocol):
    def setup(self, identifier: str, callback: ResizeCallback) -> None:
        ...

    def teardown(self, identifier: str, callback: ResizeCallback) -> None:
        ...


class ResizeDetector:
    """In-process resize notification hub keyed by element selector.

    With `notify_on_setup`, a new listener is called once immediately, the way
    element resize detectors report the initial size.
    """

    def __init__(self, *, notify_on_setup: bool = False) -> None:
        self.notify_on_setup = notify_on_setup
        self._listeners: dict[str, list[ResizeCallback]] = {}

    def setup(self, identifier: str, callback: ResizeCallback) -> None:
        self._listeners.setdefault(identifier, []).append(callback)
        if self.notify_on_setup:
            callback()

    def teardown(self, identifier: str, callback: ResizeCallback) -> None:
        listeners = self._listeners.get(identifier)
        if not listeners:
            return
        self._listeners[identifier] = [cb for cb in listeners if cb is not callback]
        if not self._listeners[identifier]:
            del self._listeners[identifier]

    def listener_count(self, identifier: str) -> int:
        return len(self._listeners.get(identifier, ()))

    def notify(self, identifier: str) -> int:
        listeners = list(self._listeners.get(identifier, ()))
        LOGGER.debug("resize %s -> %d listener(s)", identifier, len(listeners))
        for callback in listeners:
            callback()
        return len(listeners)
