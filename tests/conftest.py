import os
import tempfile
import uuid

# Must run before offplan.config builds its settings.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), f'offplan_test_{uuid.uuid4().hex}.db')}",
)
os.environ.setdefault("ESTATY_BASE_URL", "https://estaty.test")
os.environ.setdefault("ESTATY_API_KEY", "test-key")

import pytest_asyncio

from offplan.database import drop_db, engine, init_db


@pytest_asyncio.fixture
async def database():
    """Fresh schema for each test that touches the database."""
    await drop_db()
    await init_db()
    yield
    await engine.dispose()
