import copy, json, os, sqlite3, logging, threading, uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from .errors import StoreUnavailable

log = logging.getLogger("db")

Document = dict[str, Any]


class RecordStore(ABC):
    """Document store keyed by ``doc["id"]``. Last writer wins; no conditional writes."""

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def create(self, doc: Document) -> Document: ...

    @abstractmethod
    def read_all(self) -> list[Document]: ...

    @abstractmethod
    def read_by_id(self, doc_id: str) -> Document | None: ...

    @abstractmethod
    def upsert(self, doc: Document) -> Document: ...

    @abstractmethod
    def delete_by_id(self, doc_id: str) -> bool: ...

    @abstractmethod
    def truncate_all(self) -> None: ...


class InMemoryRecordStore(RecordStore):
    """Process-local store; hands out copies so callers never share a document."""

    def __init__(self):
        self._docs: dict[str, Document] = {}
        self._lock = threading.Lock()

    def create(self, doc: Document) -> Document:
        with self._lock:
            if doc["id"] in self._docs:
                raise StoreUnavailable(f"Document with id {doc['id']} already exists", doc["id"])
            self._docs[doc["id"]] = copy.deepcopy(doc)
            return copy.deepcopy(doc)

    def read_all(self) -> list[Document]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._docs.values()]

    def read_by_id(self, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._docs.get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def upsert(self, doc: Document) -> Document:
        with self._lock:
            self._docs[doc["id"]] = copy.deepcopy(doc)
            return copy.deepcopy(doc)

    def delete_by_id(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None

    def truncate_all(self) -> None:
        with self._lock:
            self._docs.clear()


class SqliteRecordStore(RecordStore):
    """One JSON document per row in a ``clients`` table."""

    def __init__(self, path: str):
        self.path = path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def open(self) -> None:
        if self._conn is not None:
            return
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        try:
            # autocommit; every statement is its own write
            conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS clients (
                    id  TEXT PRIMARY KEY,
                    doc TEXT NOT NULL
                )
            """)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not open record store at {self.path}") from e
        self._conn = conn
        log.info("DB schema ready at %s", self.path)

    def close(self) -> None:
        """Drop the connection; a later ``open()`` reconnects."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
        log.info("DB connection closed (%s)", self.path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                raise StoreUnavailable("Record store is not open")
            try:
                yield self._conn
            except sqlite3.Error as e:
                log.error("db error on %s: %s", self.path, e)
                raise StoreUnavailable("Record store request failed") from e

    def create(self, doc: Document) -> Document:
        with self._connection() as conn:
            conn.execute("INSERT INTO clients (id, doc) VALUES (?, ?)", (doc["id"], json.dumps(doc)))
        return doc

    def read_all(self) -> list[Document]:
        with self._connection() as conn:
            rows = conn.execute("SELECT doc FROM clients").fetchall()
        return [json.loads(r[0]) for r in rows]

    def read_by_id(self, doc_id: str) -> Document | None:
        with self._connection() as conn:
            row = conn.execute("SELECT doc FROM clients WHERE id=?", (doc_id,)).fetchone()
        return json.loads(row[0]) if row else None

    def upsert(self, doc: Document) -> Document:
        with self._connection() as conn:
            conn.execute("INSERT OR REPLACE INTO clients (id, doc) VALUES (?, ?)", (doc["id"], json.dumps(doc)))
        return doc

    def delete_by_id(self, doc_id: str) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM clients WHERE id=?", (doc_id,))
        return cur.rowcount > 0

    def truncate_all(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM clients")


def create_store(kind: str, path: str) -> RecordStore:
    if kind == "memory":
        return InMemoryRecordStore()
    if kind == "sqlite":
        return SqliteRecordStore(path)
    raise ValueError(f"Unknown record store: {kind}")


def seed_if_empty(store: RecordStore) -> None:
    """Insert demo clients if the store is empty (used for local dev/demo)."""
    if store.read_all():
        return
    docs = [
        {"id": str(uuid.uuid4()), "fname": "Ada", "lname": "Lovelace", "accounts": [
            {"accountName": "First Checking", "accountType": "Checking", "balance": "1500.00"},
            {"accountName": "Rainy Day", "accountType": "Savings", "balance": "12015.00"},
        ]},
        {"id": str(uuid.uuid4()), "fname": "Alan", "lname": "Turing", "accounts": [
            {"accountName": "First Checking", "accountType": "Checking", "balance": "5040.00"},
        ]},
    ]
    for doc in docs:
        store.create(doc)
    log.info("DB seed inserted %d demo clients", len(docs))
