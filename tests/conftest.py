"""Pytest configuration and shared fixtures for MongoDB MCP Server tests.

Testing Strategy:
=================

Unit tests never touch a real MongoDB. The database module's state is
replaced with a MagicMock database whose collections return canned cursors,
so every tool can be exercised end to end (request model, ObjectId coercion,
driver call, BSON serialization) in milliseconds.

Test Organization:
-------------------
tests/
├── unit/
│   ├── test_exceptions.py          # Exception hierarchy
│   ├── test_settings.py            # Configuration validation
│   ├── test_server.py              # Tool registration and error payloads
│   ├── database/                   # Gateway lifecycle and sampling
│   ├── schema/                     # Schema inference
│   └── tools/                      # Tool groups, models, coercion, serialization
└── conftest.py                     # This file - shared fixtures

Example Usage:
--------------
```python
async def test_count(mock_database, mock_collection):
    mock_collection.count_documents.return_value = 3
    result = await QueryTools().count(CountRequest(collection="users"))
    assert result.count == 3
```
"""

import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from src.config.settings import settings
from src.mongodb_mcp.database import database

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location.

    - tests/unit/* → @pytest.mark.unit
    - tests/integration/* → @pytest.mark.integration
    """
    for item in items:
        test_path = Path(item.fspath)

        if "unit" in test_path.parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# MOCK DATABASE FIXTURES
# =============================================================================


def make_cursor(documents: list | None = None) -> MagicMock:
    """Build a Motor-like cursor whose chain methods return itself.

    Example:
    --------
    >>> cursor = make_cursor([{"_id": 1}])
    >>> await cursor.sort([("a", 1)]).limit(5).to_list(length=None)
    [{'_id': 1}]
    """
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    return cursor


@pytest.fixture
def cursor_factory():
    """Expose make_cursor to tests that need a cursor with specific results."""
    return make_cursor


@pytest.fixture
def mock_collection() -> MagicMock:
    """A mocked Motor collection with every method the tools call."""
    collection = MagicMock()
    collection.find.return_value = make_cursor()
    collection.aggregate.return_value = make_cursor()
    collection.find_one = AsyncMock(return_value=None)
    collection.count_documents = AsyncMock(return_value=0)
    collection.distinct = AsyncMock(return_value=[])
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def mock_database(mock_collection: MagicMock, monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Install a mocked database in the database module for one test.

    Every ``db[name]`` lookup returns ``mock_collection``.
    """
    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.return_value = mock_collection
    db.list_collections = AsyncMock(return_value=make_cursor())

    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})

    monkeypatch.setattr(database, "_client", client)
    monkeypatch.setattr(database, "_database", db)
    monkeypatch.setattr(database, "_database_name", "test_db")
    return db


@pytest.fixture
def read_only(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the test with read_only_mode enabled."""
    monkeypatch.setattr(settings, "read_only_mode", True)


# =============================================================================
# TEST DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_user_documents() -> list[dict]:
    """Heterogeneous user documents as a driver would return them.

    - ``age`` is a number in one document and a string in another
    - ``address`` is nested, with ``address.geo`` one level deeper
    - ``tags`` is an array of sub-documents (never expanded)
    - ``nickname`` is null once and absent twice
    """
    return [
        {
            "_id": ObjectId("65f0c0ffee0000000000ca01"),
            "name": "Ada",
            "age": 36,
            "active": True,
            "createdAt": datetime.datetime(2024, 1, 15, 9, 30),
            "address": {"city": "London", "geo": {"lat": 51.5, "lng": -0.12}},
            "tags": [{"label": "admin"}, {"label": "ops"}],
            "nickname": None,
        },
        {
            "_id": ObjectId("65f0c0ffee0000000000ca02"),
            "name": "Grace",
            "age": "unknown",
            "active": False,
            "createdAt": datetime.datetime(2024, 2, 1, 12, 0),
            "address": {"city": "Arlington"},
            "tags": [],
        },
        {
            "_id": ObjectId("65f0c0ffee0000000000ca03"),
            "name": "Linus",
            "age": 54,
            "address": None,
            "teamId": "65f0c0ffee0000000000beef",
        },
    ]
