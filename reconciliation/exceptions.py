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

from typing import List


class ReconciliationError(Exception):
    """Base class for all errors raised by the reconciliation runtime"""


class ControllerError(ReconciliationError):
    """
    Default error kind for controllers.

    Controllers hosted together must raise a common error kind. Capability calls
    raising it are logged by the executor and retried on the next tick.
    """


class HostMisuseError(ReconciliationError):
    """The host API was called in a state that does not allow it"""


class HostAlreadyRunningError(HostMisuseError):
    def __init__(self):
        super().__init__("Controller host is already running, call cancel_all() before run()")


class HostRunningError(HostMisuseError):
    def __init__(self):
        super().__init__("Cannot add a controller while the host is running")


class ControllerCrashedError(ReconciliationError):
    """
    Raised by ControllerHost.cancel_all() when one or more control loops exited
    on an unexpected exception. All executors have been joined when this is raised.
    """

    def __init__(self, executors: List):
        self.executors = executors
        details = ", ".join(f"{e.name}: {e.exception!r}" for e in executors)
        super().__init__(f"{len(executors)} control loop(s) crashed: {details}")
