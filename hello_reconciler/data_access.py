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
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, List, Optional, Tuple

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from hello_reconciler.errors import HelloError
from hello_reconciler.models import Hello, HelloStatus, utc_now

logger = logging.getLogger(__name__)


class Hellos:
    """Repository over the hello and hello_status tables"""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as e:
            raise HelloError(f"hello database operation failed: {e}") from e

    async def create_tables(self):
        """Create the hello tables if they do not exist yet"""
        tables = [Hello.__table__, HelloStatus.__table__]
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(lambda sync_conn: SQLModel.metadata.create_all(sync_conn, tables=tables))
        except SQLAlchemyError as e:
            raise HelloError(f"failed to create hello tables: {e}") from e

    async def add(self, name: str) -> Hello:
        async with self._session() as session:
            hello = Hello(name=name)
            session.add(hello)
            await session.commit()
            return hello

    async def get(self, hello_id: int) -> Optional[Tuple[Hello, Optional[HelloStatus]]]:
        """Fetch a hello and its status, deleted or not"""
        async with self._session() as session:
            stmt = (
                select(Hello, HelloStatus)
                .outerjoin(HelloStatus, HelloStatus.hello_id == Hello.id)
                .where(Hello.id == hello_id)
            )
            result = await session.execute(stmt)
            row = result.first()
            if row is None:
                return None
            return row[0], row[1]

    async def all(self) -> List[Tuple[Hello, Optional[HelloStatus]]]:
        """Fetch every hello that is not soft deleted, together with its status"""
        async with self._session() as session:
            stmt = (
                select(Hello, HelloStatus)
                .outerjoin(HelloStatus, HelloStatus.hello_id == Hello.id)
                .where(Hello.deleted_at.is_(None))
                .order_by(Hello.id)
            )
            result = await session.execute(stmt)
            return [(hello, status) for hello, status in result.all()]

    async def all_deleted(self, retention: timedelta) -> List[Hello]:
        """Fetch hellos soft deleted longer than ``retention`` ago"""
        deleted_before = utc_now() - retention
        async with self._session() as session:
            stmt = select(Hello).where(
                and_(Hello.deleted_at.is_not(None), Hello.deleted_at < deleted_before)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def upsert(self, hello_id: int, message: str) -> HelloStatus:
        """Write the status message of a hello, creating its status row if needed"""
        async with self._session() as session:
            stmt = select(HelloStatus).where(HelloStatus.hello_id == hello_id)
            result = await session.execute(stmt)
            status = result.scalars().first()
            now = utc_now()
            if status is None:
                status = HelloStatus(hello_id=hello_id, message=message, created_at=now, updated_at=now)
                session.add(status)
            else:
                status.message = message
                status.updated_at = now
            await session.commit()
            return status

    async def soft_delete(self, hello_id: int) -> bool:
        async with self._session() as session:
            stmt = (
                update(Hello)
                .where(and_(Hello.id == hello_id, Hello.deleted_at.is_(None)))
                .values(deleted_at=utc_now(), updated_at=utc_now())
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0

    async def remove(self, hello_id: int):
        """Hard delete a hello and its status rows. Removing a missing hello is not an error."""
        async with self._session() as session:
            await session.execute(delete(HelloStatus).where(HelloStatus.hello_id == hello_id))
            await session.execute(delete(Hello).where(Hello.id == hello_id))
            await session.commit()
        logger.debug(f"Removed hello {hello_id}")
