import random

import pytest

from eigo_hack.catalog import seed_catalog
from eigo_hack.db import init_db


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_progress.db")
    return db_path


@pytest.fixture
def seeded_db(tmp_db):
    """A database with the schema created and the bundled catalog loaded."""
    init_db(tmp_db)
    seed_catalog(tmp_db)
    return tmp_db


@pytest.fixture
def rng():
    return random.Random(1234)
