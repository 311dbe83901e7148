import pytest

from core.config import AppConfig
from database.sqlite_connection import SQLiteConnection
from dev.mock_data import seed


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a connected temporary SQLite database (schema only)."""
    db = SQLiteConnection(str(tmp_path / "test_haksupji.db"))
    assert db.connect()
    yield db
    db.disconnect()


@pytest.fixture
def seeded_db(tmp_db):
    """Temporary database filled with dev.mock_data."""
    seed(tmp_db)
    return tmp_db


@pytest.fixture
def config():
    return AppConfig(default_batch_size=2, tagged_batch_size=2, public_page_size=2)
