import pytest

from kasukibot.core.db import SqliteBackend
from kasukibot.core.dispatch import DataDispatcher, ModuleService


@pytest.fixture
async def backend(tmp_path):
    db = SqliteBackend(str(tmp_path / "kasuki.sqlite3"))
    await db.connect()
    await db.migrate()
    yield db
    await db.close()


@pytest.fixture
def data(backend):
    return DataDispatcher(backend)


@pytest.fixture
def modules(data):
    return ModuleService(data)
