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

import logging
from datetime import timedelta

from hello_reconciler.data_access import Hellos
from hello_reconciler.errors import HelloError
from reconciliation.controller import Controller

logger = logging.getLogger(__name__)


def greeting(name: str) -> str:
    return f"Hello, {name}!"


class HelloController(Controller):
    """Reconciles the hello table into its hello_status table"""

    error_type = HelloError

    def __init__(self, hellos: Hellos, resync_period: timedelta, retention_period: timedelta):
        self._hellos = hellos
        self._resync_period = resync_period
        self._retention_period = retention_period

    async def initialize(self):
        await self._hellos.create_tables()

    async def reconcile(self):
        updated = 0
        for hello, status in await self._hellos.all():
            message = greeting(hello.name)
            # Skip unnecessary writes
            if status is not None and status.message == message:
                continue

            await self._hellos.upsert(hello.id, message)
            updated += 1

        if updated:
            logger.info(f"Reconciled {updated} hello status(es)")

    async def cleanup(self):
        removed = 0
        for hello in await self._hellos.all_deleted(self._retention_period):
            await self._hellos.remove(hello.id)
            removed += 1

        if removed:
            logger.info(f"Cleaned up {removed} deleted hello(s)")

    async def resync_period(self) -> timedelta:
        return self._resync_period
