from __future__ import annotations

import logging
from typing import Callable

from columnar_core.cancellation import CancellationToken
from columnar_core.resize import ResizeService
from columnar_core.scheduler import CooperativeScheduler, ScheduledTask


LOGGER = logging.getLogger(__name__)

DEFAULT_RESIZE_WAIT_MS = 400


class ResizeCoordinator:
    """Debounces resize notifications into at most one pending rebuild.

    New notifications replace the pending task instead of adding timers. In
    instant mode the first notification of a burst rebuilds synchronously and
    the rest of the burst (until `wait_ms` of quiet) is swallowed.
    """

    def __init__(
        self,
        identifier: str,
        rebuild: Callable[[], object],
        *,
        service: ResizeService,
        scheduler: CooperativeScheduler,
        token: CancellationToken,
        wait_ms: int = DEFAULT_RESIZE_WAIT_MS,
        instant: bool = False,
    ) -> None:
        if wait_ms < 0:
            raise ValueError("wait_ms must be >= 0")
        self.identifier = identifier
        self.rebuild = rebuild
        self.service = service
        self.scheduler = scheduler
        self.token = token
        self.wait_ms = wait_ms
        self.instant = instant
        self._pending: ScheduledTask | None = None
        self._attached = False
        # Bound once so teardown unregisters the exact callable that setup registered.
        self.callback = token.guard(self.request)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.cancelled

    def attach(self) -> None:
        if self._attached:
            return
        self._attached = True
        self.service.setup(self.identifier, self.callback)

    def detach(self) -> None:
        self.cancel()
        if self._attached:
            self._attached = False
            self.service.teardown(self.identifier, self.callback)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def request(self) -> None:
        if self.token.cancelled:
            return
        wait = self.wait_ms / 1000.0
        if self.instant:
            run_now = not self.has_pending
            self.cancel()
            self._pending = self.scheduler.call_later(wait, self._expire)
            if run_now:
                self._run()
            return
        self.cancel()
        self._pending = self.scheduler.call_later(wait, self._fire)
        LOGGER.debug("rebuild for %s scheduled in %dms", self.identifier, self.wait_ms)

    def _fire(self) -> None:
        self._pending = None
        self._run()

    def _expire(self) -> None:
        self._pending = None

    def _run(self) -> None:
        if self.token.cancelled:
            LOGGER.debug("skipping rebuild for %s after teardown", self.identifier)
            return
        self.rebuild()
