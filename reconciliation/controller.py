# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Control loops around user supplied controllers.

A Controller describes the business logic (initialize, reconcile, cleanup and the
resync period). A ControllerExecutor owns one controller and drives it on its own
asyncio task:

    initialize (retried every tick until it succeeds)
    loop:
        reconcile -> cleanup -> wait for next tick or cancellation
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Generic, Optional, Type, TypeVar, Union

from reconciliation.context import Context
from reconciliation.exceptions import ControllerError
from reconciliation.ticker import Ticker, to_seconds

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Exception)


class Controller(ABC):
    """
    Behavior of a controller hosted by a ControllerHost.

    Every capability is a coroutine. Failures are reported by raising the error kind
    declared in ``error_type``; controllers hosted together must share it. Calls into a
    controller are serialized by its executor, so implementations need no locking.
    """

    error_type: Type[Exception] = ControllerError

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def initialize(self):
        """One-time setup before the control loop starts. Retried every tick on failure."""
        pass

    @abstractmethod
    async def reconcile(self):
        """
        Drive observed state toward desired state. This generally means fetching every
        spec the controller is responsible for, doing the necessary work and updating
        the related status.
        """
        pass

    @abstractmethod
    async def cleanup(self):
        """Hard delete soft deleted specs that are older than the controller's retention period"""
        pass

    @abstractmethod
    async def resync_period(self) -> timedelta:
        """
        How often the control loop runs even if nothing triggered it. Queried once, when
        the controller is handed to an executor.
        """
        pass


class ExclusiveController:
    """Serializes every capability call into the wrapped controller"""

    def __init__(self, controller: Controller):
        self._controller = controller
        self._lock = asyncio.Lock()

    @property
    def controller(self) -> Controller:
        return self._controller

    async def initialize(self):
        async with self._lock:
            await self._controller.initialize()

    async def reconcile(self):
        async with self._lock:
            await self._controller.reconcile()

    async def cleanup(self):
        async with self._lock:
            await self._controller.cleanup()


class ExecutorState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    TERMINATED = "terminated"


class ControllerExecutor(Generic[E]):
    """Runs the control loop of a single controller"""

    def __init__(
        self,
        controller: Controller,
        resync_period: Union[timedelta, float, int],
        error_type: Type[E] = ControllerError,
    ):
        if not isinstance(resync_period, timedelta):
            resync_period = timedelta(seconds=resync_period)
        if to_seconds(resync_period) <= 0:
            raise ValueError(f"Resync period of {controller.name} must be positive, got {resync_period}")

        self._controller = ExclusiveController(controller)
        self._resync_period = resync_period
        self._error_type = error_type
        self._done: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self.name = controller.name
        self.state = ExecutorState.IDLE
        self.exception: Optional[BaseException] = None

    @classmethod
    async def create(cls, controller: Controller, error_type: Type[E] = ControllerError) -> "ControllerExecutor[E]":
        """Build an executor, querying the controller's resync period once"""
        resync_period = await controller.resync_period()
        return cls(controller, resync_period, error_type)

    @property
    def controller(self) -> Controller:
        return self._controller.controller

    @property
    def resync_period(self) -> timedelta:
        return self._resync_period

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def is_done(self) -> bool:
        return self._done is None or self._done.is_set()

    async def wait(self):
        """Wait for the control loop to exit. Returns immediately if it never started."""
        if self._done is not None:
            await self._done.wait()

    def start(self, ctx: Context) -> asyncio.Task:
        """Spawn the control loop. It stops at its next wait point once ``ctx`` is cancelled."""
        if self._task is not None and not self._task.done():
            raise RuntimeError(f"Control loop for {self.name} is already running")

        done = asyncio.Event()
        self._done = done
        self.exception = None
        self.state = ExecutorState.INITIALIZING
        self._task = asyncio.create_task(self._control_loop(ctx, done), name=f"control-loop-{self.name}")
        return self._task

    async def _control_loop(self, ctx: Context, done: asyncio.Event):
        ticker = Ticker(self._resync_period)
        try:
            if not await self._initialize(ticker, ctx):
                logger.info(f"Aborting controller initialization for {self.name}")
                return

            self.state = ExecutorState.RUNNING
            logger.info(f"Starting control loop for {self.name}, resync period {self._resync_period}")
            while True:
                try:
                    await self._controller.reconcile()
                except self._error_type as e:
                    logger.error(f"controller {self.name} reconcile failed: {e}")

                try:
                    await self._controller.cleanup()
                except self._error_type as e:
                    logger.error(f"controller {self.name} cleanup failed: {e}")

                if not await self._wait_for_tick(ticker, ctx):
                    break

            logger.info(f"Control loop for {self.name} terminated")
        except Exception as e:
            self.exception = e
            logger.exception(f"Control loop for {self.name} crashed: {e}")
        finally:
            self.state = ExecutorState.TERMINATED
            done.set()

    async def _initialize(self, ticker: Ticker, ctx: Context) -> bool:
        attempt = 0
        while True:
            attempt += 1
            try:
                await self._controller.initialize()
                return True
            except self._error_type as e:
                logger.warning(f"controller {self.name} initialize failed (attempt {attempt}): {e}")

            if not await self._wait_for_tick(ticker, ctx):
                return False

    @staticmethod
    async def _wait_for_tick(ticker: Ticker, ctx: Context) -> bool:
        """Race the next tick against cancellation. Returns False once cancelled."""
        if ctx.cancelled:
            return False

        tick = asyncio.ensure_future(ticker.tick())
        cancelled = asyncio.ensure_future(ctx.done())
        try:
            await asyncio.wait({tick, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in (tick, cancelled):
                if not waiter.done():
                    waiter.cancel()
            await asyncio.gather(tick, cancelled, return_exceptions=True)

        return not ctx.cancelled
