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
Controller host running the hello controller

Usage:
    hello-reconciler --database-url sqlite+aiosqlite:///hello.db
    DATABASE_URL=... python -m hello_reconciler --resync-period-seconds 5

Typically many controllers would be bundled up in a single controller host.
"""

import asyncio
import logging
import signal
import sys
from typing import List, Optional

from sqlalchemy.ext.asyncio import create_async_engine

from hello_reconciler.controller import HelloController
from hello_reconciler.data_access import Hellos
from hello_reconciler.flags import Flags, parse_flags
from reconciliation.config import configure_logging
from reconciliation.controller_host import ControllerHost
from reconciliation.exceptions import ReconciliationError

logger = logging.getLogger(__name__)


def install_stop_handlers(stop: asyncio.Event, signals=(signal.SIGTERM, signal.SIGINT)):
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals):
        logger.warning(f"received {sig.name}, stopping controllers")
        stop.set()

    for sig in signals:
        loop.add_signal_handler(sig, on_signal, sig)


async def serve(flags: Flags, stop: Optional[asyncio.Event] = None):
    """Run the hello controller until ``stop`` is set, by default on SIGTERM or SIGINT"""
    engine = create_async_engine(flags.database_url)
    try:
        host = ControllerHost()
        await host.add_controller(HelloController(Hellos(engine), flags.resync_period, flags.retention_period))

        if stop is None:
            stop = asyncio.Event()
            install_stop_handlers(stop)

        async with host:
            await stop.wait()
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    flags = parse_flags(argv)
    configure_logging(flags.log_level)

    try:
        asyncio.run(serve(flags))
    except ReconciliationError as e:
        logger.error(f"Controller host failed: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
