"""
Fake controllers shared by the controller runtime tests.

RecordingController records every capability call with its start and end time
(loop clock) and fails loudly if two calls ever overlap.
"""

import asyncio
from datetime import timedelta
from typing import Callable, List, Optional, Tuple

from reconciliation.controller import Controller
from reconciliation.exceptions import ControllerError


class FakeError(ControllerError):
    pass


class RecordingController(Controller):
    error_type = FakeError

    def __init__(
        self,
        period: float = 0.05,
        init_failures: int = 0,
        reconcile_delay: float = 0.0,
        cleanup_delay: float = 0.0,
        reconcile_fails: Optional[Callable[[int], bool]] = None,
        cleanup_fails: Optional[Callable[[int], bool]] = None,
        reconcile_raises: Optional[BaseException] = None,
        name: Optional[str] = None,
    ):
        self.period = period
        self.init_failures = init_failures
        self.reconcile_delay = reconcile_delay
        self.cleanup_delay = cleanup_delay
        self.reconcile_fails = reconcile_fails
        self.cleanup_fails = cleanup_fails
        self.reconcile_raises = reconcile_raises
        self._name = name

        self.calls: List[Tuple[str, float, float]] = []
        self.resync_period_calls = 0
        self.reconcile_errors = 0
        self.cleanup_errors = 0
        self.overlaps = 0
        self._in_flight = False

    @property
    def name(self) -> str:
        return self._name or super().name

    def count(self, capability: str) -> int:
        return sum(1 for call in self.calls if call[0] == capability)

    def times(self, capability: str) -> List[float]:
        return [start for name, start, _ in self.calls if name == capability]

    def sequence(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def _record(self, capability: str, delay: float, fail: bool = False, raises: BaseException = None):
        loop = asyncio.get_running_loop()
        if self._in_flight:
            self.overlaps += 1
        self._in_flight = True
        start = loop.time()
        try:
            if delay:
                await asyncio.sleep(delay)
            if raises is not None:
                raise raises
            if fail:
                raise FakeError(f"{capability} failed")
        finally:
            self._in_flight = False
            self.calls.append((capability, start, loop.time()))

    async def initialize(self):
        attempt = self.count("initialize")
        await self._record("initialize", 0.0, fail=attempt < self.init_failures)

    async def reconcile(self):
        n = self.count("reconcile") + 1
        fail = bool(self.reconcile_fails and self.reconcile_fails(n))
        if fail:
            self.reconcile_errors += 1
        await self._record("reconcile", self.reconcile_delay, fail=fail, raises=self.reconcile_raises)

    async def cleanup(self):
        n = self.count("cleanup") + 1
        fail = bool(self.cleanup_fails and self.cleanup_fails(n))
        if fail:
            self.cleanup_errors += 1
        await self._record("cleanup", self.cleanup_delay, fail=fail)

    async def resync_period(self) -> timedelta:
        self.resync_period_calls += 1
        return timedelta(seconds=self.period)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005):
    """Poll ``predicate`` on the running loop until it holds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)
