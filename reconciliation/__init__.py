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
K8s-Inspired Controller Runtime

Hosts reconciliation controllers: long-running agents that periodically drive
observed state toward declared desired state.

Key components:
- Controller: the behavior a user supplied controller implements
- ControllerExecutor: runs one controller's control loop on its own task
- ControllerHost: registers controllers, starts them and stops them together
"""

from .context import Context, Handle
from .controller import Controller, ControllerExecutor, ExecutorState
from .controller_host import ControllerHost
from .exceptions import (
    ControllerCrashedError,
    ControllerError,
    HostAlreadyRunningError,
    HostMisuseError,
    HostRunningError,
    ReconciliationError,
)
from .ticker import Ticker

__version__ = "0.1.0"

__all__ = [
    'Context',
    'Controller',
    'ControllerCrashedError',
    'ControllerError',
    'ControllerExecutor',
    'ControllerHost',
    'ExecutorState',
    'Handle',
    'HostAlreadyRunningError',
    'HostMisuseError',
    'HostRunningError',
    'ReconciliationError',
    'Ticker',
]
