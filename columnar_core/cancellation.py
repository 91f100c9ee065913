from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar


LOGGER = logging.getLogger(__name__)

R = TypeVar("R")


class CancellationToken:
    """Lifetime token for one mounted component.

    Continuations wrapped with `guard` become silent no-ops once the token is
    cancelled, so timers and render callbacks that fire after teardown never
    touch component state.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def guard(self, fn: Callable[..., R]) -> Callable[..., R | None]:
        @functools.wraps(fn)
        def guarded(*args: Any, **kwargs: Any) -> R | None:
            if self._cancelled:
                LOGGER.debug("ignoring stale callback %s", getattr(fn, "__qualname__", fn))
                return None
            return fn(*args, **kwargs)

        return guarded
