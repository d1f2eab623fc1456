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

import asyncio
import logging
from typing import Generic, List, Optional, Tuple, Type

from reconciliation.context import Context, Handle
from reconciliation.controller import Controller, ControllerExecutor, E
from reconciliation.exceptions import ControllerCrashedError, ControllerError, HostAlreadyRunningError, HostRunningError

logger = logging.getLogger(__name__)


class ControllerHost(Generic[E]):
    """
    Registers controllers by wrapping them in ControllerExecutors and runs all of their
    control loops.

    Use ``run`` to start every registered controller and ``cancel_all`` to cancel them
    and wait until all of them have gracefully exited. The host can also be used as an
    async context manager:

        async with host:
            await stop_event.wait()
    """

    def __init__(self, error_type: Type[E] = ControllerError):
        self._error_type = error_type
        self._executors: List[ControllerExecutor[E]] = []
        self._cancel_handle: Optional[Handle] = None

    @property
    def error_type(self) -> Type[E]:
        return self._error_type

    @property
    def executors(self) -> Tuple[ControllerExecutor[E], ...]:
        return tuple(self._executors)

    @property
    def is_running(self) -> bool:
        return self._cancel_handle is not None

    async def add_controller(self, controller: Controller) -> ControllerExecutor[E]:
        """
        Add a controller to the host. Controllers added here have their control loops
        started by the next ``run``.

        Raises:
            HostRunningError: the host is running
            TypeError: the controller's error kind is not the host's
        """
        if self.is_running:
            raise HostRunningError()
        if not issubclass(controller.error_type, self._error_type):
            raise TypeError(
                f"Controller {controller.name} raises {controller.error_type.__name__}, "
                f"host expects {self._error_type.__name__}"
            )

        executor = await ControllerExecutor.create(controller, self._error_type)
        self._executors.append(executor)
        logger.debug(f"Registered controller {executor.name} with resync period {executor.resync_period}")
        return executor

    async def run(self):
        """
        Start every registered controller and return immediately. Call ``cancel_all``
        before calling ``run`` again.

        Raises:
            HostAlreadyRunningError: ``run`` was called without an intervening ``cancel_all``
        """
        if self.is_running:
            raise HostAlreadyRunningError()

        _, handle = Context.new()
        for executor in self._executors:
            executor.start(handle.spawn_ctx())
        self._cancel_handle = handle
        logger.info(f"Started {len(self._executors)} controller(s)")

    async def cancel_all(self):
        """
        Cancel all running executors and wait for every one of them to terminate.
        Does nothing when the host is not running.

        Raises:
            ControllerCrashedError: a control loop exited on an unexpected exception
        """
        handle = self._cancel_handle
        if handle is None:
            return

        handle.cancel()
        await asyncio.gather(*(executor.wait() for executor in self._executors))
        self._cancel_handle = None
        logger.info(f"All {len(self._executors)} controller(s) stopped")

        crashed = [executor for executor in self._executors if executor.exception is not None]
        if crashed:
            raise ControllerCrashedError(crashed)

    async def __aenter__(self) -> "ControllerHost[E]":
        await self.run()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cancel_all()
