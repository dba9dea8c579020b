import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient

from api.deps import get_services
from config import Settings
from core import metadata_source
from core.services import build_services
from main import app


class FakeEmbedder:
    """One-hot vectors: the first keyword found picks the axis, anything else uses the last one."""

    name = "fake-embedding"
    model = "fake-embed"

    def __init__(self, keywords=("users", "orders", "products"), dimension=4):
        self.keywords = list(keywords)
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def _vector_for(self, text: str) -> list[float]:
        # Embedding texts start with "Table: <name>"; only that line decides the axis
        head = text.splitlines()[0] if text.startswith("Table: ") else text
        vector = [0.0] * self.dimension
        for i, word in enumerate(self.keywords):
            if word in head.lower():
                vector[i] = 1.0
                return vector
        vector[-1] = 1.0
        return vector

    def embed(self, texts):
        self.calls.append(list(texts))
        return [self._vector_for(t) for t in texts]

    def embed_single(self, text):
        return self.embed([text])[0]

    def close(self):
        pass


class FakeLLM:
    name = "fake"

    def __init__(self, response="SELECT * FROM users"):
        self.response = response
        self.system = None
        self.prompt = None

    def complete(self, system, prompt):
        self.system = system
        self.prompt = prompt
        return self.response

    def is_healthy(self):
        return True, None

    def close(self):
        pass


@pytest.fixture(autouse=True)
def clear_schema_cache():
    metadata_source._schema_cache.clear()
    yield
    metadata_source._schema_cache.clear()


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        cur.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT UNIQUE);")
        cur.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, total REAL, created_at TEXT);")
        cur.execute("CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT, price REAL);")
        cur.execute("CREATE TABLE migrations (id INTEGER PRIMARY KEY, migration TEXT);")
        cur.executemany(
            "INSERT INTO users (name, email) VALUES (?, ?);",
            [("Ada", "ada@example.com"), ("Grace", "grace@example.com"), ("Linus", "linus@example.com")],
        )
        cur.executemany(
            "INSERT INTO orders (user_id, total, created_at) VALUES (?, ?, ?);",
            [(1, 120.5, "2024-01-05 10:30:00"), (2, 35.0, "2024-02-11 08:15:00")],
        )
        cur.execute("INSERT INTO products (name, price) VALUES ('Widget', 9.99);")
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)


@pytest.fixture
def index_path(tmp_path):
    return str(tmp_path / "index" / "schema.sqlite")


@pytest.fixture
def test_settings(temp_sqlite_db, index_path):
    return Settings(
        _env_file=None,
        LLM_DRIVER="openai",
        DATABASE_URL=f"sqlite:///{temp_sqlite_db}",
        INDEX_PATH=index_path,
        VECTOR_EXTENSION=False,
        SCHEMA_CACHE_TTL=0,
        SCHEMA_DESCRIPTIONS={"orders": "Customer purchases"},
        FORBIDDEN_TABLES="migrations,sessions",
        MAX_RESULTS=100,
    )


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def services(test_settings, fake_embedder, fake_llm):
    svc = build_services(test_settings, embedder=fake_embedder)
    svc._llm_clients[test_settings.LLM_DRIVER] = fake_llm
    yield svc
    svc.close()


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
