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
import time
from datetime import timedelta
from typing import Awaitable, Callable, Union


def to_seconds(period: Union[timedelta, float, int]) -> float:
    if isinstance(period, timedelta):
        return period.total_seconds()
    return float(period)


class Ticker:
    """
    Periodic timer anchored at its start time.

    Ticks are due at start + k * period (k >= 1), so a slow iteration shortens the
    following wait instead of sliding the schedule. An overdue tick fires immediately
    and any further missed ticks are skipped.
    """

    def __init__(
        self,
        period: Union[timedelta, float, int],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self._period = to_seconds(period)
        if self._period <= 0:
            raise ValueError(f"Ticker period must be positive, got {period!r}")
        self._clock = clock
        self._sleep = sleep
        self._next_deadline = clock() + self._period

    @property
    def period(self) -> float:
        return self._period

    @property
    def next_deadline(self) -> float:
        return self._next_deadline

    async def tick(self) -> float:
        """Wait until the next tick is due and return the clock reading it fired at"""
        deadline = self._next_deadline
        delay = deadline - self._clock()
        if delay > 0:
            await self._sleep(delay)

        now = self._clock()
        missed = max(int((now - deadline) // self._period), 0)
        self._next_deadline = deadline + (missed + 1) * self._period
        return now
