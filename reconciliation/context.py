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
Cancellation contexts for control loops.

A root context is created together with a Handle. The handle derives child
contexts and cancels the whole tree at once:

    ctx, handle = Context.new()
    child = handle.spawn_ctx()
    ...
    handle.cancel()      # ctx and every child are now cancelled
    await child.done()   # returns immediately
"""

import asyncio
from typing import List, Optional, Tuple


class Context:
    """A cancellation signal observed by a control loop at its wait points"""

    def __init__(self, parent: Optional["Context"] = None):
        self._cancelled = asyncio.Event()
        self._children: List["Context"] = []
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self._cancel()

    @classmethod
    def new(cls) -> Tuple["Context", "Handle"]:
        """Create a root context and the handle that cancels it"""
        ctx = cls()
        return ctx, Handle(ctx)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def done(self):
        """Suspend until this context is cancelled"""
        await self._cancelled.wait()

    def spawn_child(self) -> "Context":
        """Derive a context that is cancelled whenever this one is"""
        return Context(parent=self)

    def _cancel(self):
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        for child in self._children:
            child._cancel()


class Handle:
    """Owner side of a root context. Never handed to controller code."""

    def __init__(self, ctx: Context):
        self._ctx = ctx

    @property
    def cancelled(self) -> bool:
        return self._ctx.cancelled

    def spawn_ctx(self) -> Context:
        return self._ctx.spawn_child()

    def cancel(self):
        """Cancel the root context and all contexts derived from it"""
        self._ctx._cancel()
