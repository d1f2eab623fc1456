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

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Naive UTC timestamp, the form the hello tables store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Hello(SQLModel, table=True):
    """A row of the hello table: the spec a user declared"""

    __tablename__ = "hello"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: Optional[datetime] = None
    name: str = Field(max_length=256)

    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class HelloStatus(SQLModel, table=True):
    """A row of the hello_status table: the state observed by the hello controller"""

    __tablename__ = "hello_status"

    id: Optional[int] = Field(default=None, primary_key=True)
    hello_id: int = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: Optional[datetime] = None
    message: str = Field(max_length=256)
