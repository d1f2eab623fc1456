"""
Shared fixtures for the hello controller tests.

Each test gets its own SQLite database file through aiosqlite.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from hello_reconciler.data_access import Hellos


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'hello.db'}"


@pytest_asyncio.fixture(scope="function")
async def engine(database_url):
    engine = create_async_engine(database_url)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def hellos(engine):
    """Repository with the hello tables created"""
    repository = Hellos(engine)
    await repository.create_tables()
    return repository
