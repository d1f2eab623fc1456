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
Example controller host: reconciles a table of hellos into a table of greetings.

Demonstrates the controller paradigm of the reconciliation package against a
relational store.
"""

from .controller import HelloController
from .data_access import Hellos
from .errors import HelloError
from .models import Hello, HelloStatus

__all__ = ['Hello', 'HelloController', 'HelloError', 'HelloStatus', 'Hellos']
