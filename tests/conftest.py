import os
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest


# Add project root to path
root = Path(__file__).resolve().parents[1]
project_root = str(root)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Deterministic settings for tests; must run before resort.conf.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["GEMINI_API_KEY"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["REDIS_URL"] = ""
os.environ["SENTRY_DSN"] = ""
os.environ["RAG_ENABLED"] = "false"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable stand-in for the postgrest query builder."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.action = "select"
        self.payload = None
        self.filters = {}
        self.order_by = None
        self.limit_n = None
        self.kwargs = {}

    def select(self, *_, **kwargs):
        self.action = "select"
        self.kwargs = kwargs
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def upsert(self, payload, **kwargs):
        self.action = "upsert"
        self.payload = payload
        self.kwargs = kwargs
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def eq(self, field, value):
        self.filters[field] = value
        return self

    def order(self, field, desc=False):
        self.order_by = (field, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def _matching(self, rows):
        return [r for r in rows if all(r.get(k) == v for k, v in self.filters.items())]

    def execute(self):
        self.client.calls.append(self)
        if self.table in self.client.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")

        rows = self.client.tables.setdefault(self.table, [])

        if self.action == "insert":
            rows.append(dict(self.payload))
            return FakeResponse([dict(self.payload)])

        if self.action == "upsert":
            key = self.kwargs.get("on_conflict", "id")
            rows[:] = [r for r in rows if r.get(key) != self.payload.get(key)]
            rows.append(dict(self.payload))
            return FakeResponse([dict(self.payload)])

        if self.action == "update":
            matched = self._matching(rows)
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(r) for r in matched])

        result = self._matching(rows)
        if self.order_by:
            field, desc = self.order_by
            result = sorted(result, key=lambda r: r.get(field) or "", reverse=desc)
        if self.limit_n is not None:
            result = result[: self.limit_n]
        return FakeResponse([dict(r) for r in result], count=len(self._matching(rows)))


class FakeSupabase:
    """In-memory Supabase client: tables, RPC results and a mocked auth API."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failing_tables = set()
        self.rpc_results = {}
        self.rpc_calls = []
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        self.rpc_calls.append((name, params))
        result = self.rpc_results.get(name, [])

        def execute():
            if isinstance(result, Exception):
                raise result
            return FakeResponse(result)

        return SimpleNamespace(execute=execute)

    def calls_for(self, table, action=None):
        return [c for c in self.calls if c.table == table and (action is None or c.action == action)]


@pytest.fixture()
def fake_supabase():
    return FakeSupabase()


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch: pytest.MonkeyPatch):
    from resort.services.llm import fallback
    from resort.server.dependencies import reset_dependencies

    monkeypatch.setattr(fallback, "_fallback_service", None)
    reset_dependencies()
    yield
    reset_dependencies()
