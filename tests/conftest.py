# tests/conftest.py
import os
import tempfile
import pytest
import pytest_asyncio
from starlette.testclient import TestClient

from clientbank.app import create_app
from clientbank.db import InMemoryRecordStore, SqliteRecordStore
from clientbank.repo import ClientRepository
from clientbank.service import ClientService

@pytest.fixture(scope="session")
def tmp_db_path():
    with tempfile.TemporaryDirectory() as d:
        yield os.path.join(d, "test.sqlite3")  # removed automatically

@pytest.fixture()
def sqlite_store(tmp_db_path):
    store = SqliteRecordStore(tmp_db_path)     # <-- TEST-ONLY DB
    store.open()
    store.truncate_all()                       # isolation between tests
    yield store
    store.close()

@pytest.fixture()
def app(sqlite_store, monkeypatch):
    monkeypatch.setenv("CLIENTBANK_DISABLE_SEED", "1")
    return create_app(store=sqlite_store)

@pytest.fixture()
def client(app):
    with TestClient(app) as c:  # runs the lifespan, which opens the store
        yield c

@pytest.fixture()
def memory_store():
    return InMemoryRecordStore()

@pytest_asyncio.fixture
async def service(memory_store):
    return ClientService(ClientRepository(memory_store))
