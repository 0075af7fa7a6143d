"""Shared fixtures.

The HTTP tests swap MongoDB for a small in-memory stand-in that implements
just the Motor calls the API makes.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from shield_engines.sanitizer_engine import MarkupSanitizer
from shield_engines.termlist_engine import TermListStore


@pytest.fixture
def write_terms(tmp_path):
    """Writes a term list file and returns its path."""
    def _write(content, name="filter.txt"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def store(write_terms):
    return TermListStore.open(write_terms("国家机密\n国家\n"))


@pytest.fixture
def sanitizer():
    return MarkupSanitizer()


# --- In-memory Motor stand-in ---

class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction):
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    def skip(self, count):
        self._docs = self._docs[count:]
        return self

    def limit(self, count):
        self._docs = self._docs[:count]
        return self

    async def to_list(self, length=None):
        return [dict(d) for d in self._docs[:length]]


class FakeCollection:
    def __init__(self):
        self.docs = []

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in (query or {}).items())

    async def insert_one(self, doc):
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    def find(self, query=None):
        return FakeCursor([d for d in self.docs if self._matches(d, query)])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if self._matches(d, query))


class FakeDatabase(dict):
    def __getitem__(self, name):
        return self.setdefault(name, FakeCollection())


@pytest.fixture
def api(monkeypatch, write_terms):
    """A TestClient over the real app with a fake database and a temp term list."""
    from shield_app import main
    from shield_app.dbconnect import get_database

    terms_path = write_terms("国家机密\n国家\nspam\n")
    database = FakeDatabase()

    async def _noop():
        return None

    monkeypatch.setattr(main.settings, "FILTER_WORDS_PATH", str(terms_path))
    monkeypatch.setattr(main, "connect_to_mongo", _noop)
    monkeypatch.setattr(main, "close_mongo_connection", _noop)
    main.app.dependency_overrides[get_database] = lambda: database

    with TestClient(main.app) as client:
        yield SimpleNamespace(client=client, db=database, terms_path=terms_path)

    main.app.dependency_overrides.clear()
