import os

# Set dummy environment variables for testing, before any app module loads settings
os.environ["SUPABASE_URL"] = "https://example.supabase.co"
os.environ["SUPABASE_KEY"] = "dummy_key"
os.environ["SUPABASE_JWT_SECRET"] = "dummy_jwt_secret"

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

PUBLIC_URL_BASE = "https://example.supabase.co/storage/v1/object/public/documents"


class RemoteError(Exception):
    """Stands in for a storage or PostgREST failure."""


def iso_ago(days: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


class FakeBucket:
    """In-memory storage bucket keyed by full object path."""

    def __init__(self):
        self.objects = {}
        self.fail = {}
        self.calls = []

    def _check(self, op, *args):
        self.calls.append((op,) + args)
        if op in self.fail:
            raise self.fail[op]

    def put(self, path, size=5, created_at=None):
        self.objects[path] = {"size": size, "created_at": created_at or iso_ago(0)}

    def upload(self, path, content, file_options=None):
        self._check("upload", path, file_options)
        self.objects[path] = {"size": len(content), "created_at": iso_ago(0)}
        return SimpleNamespace(path=path)

    def copy(self, src, dest):
        self._check("copy", src, dest)
        if src not in self.objects:
            raise RemoteError(f"Object not found: {src}")
        self.objects[dest] = {"size": self.objects[src]["size"], "created_at": iso_ago(0)}
        return {"message": "Copied"}

    def remove(self, paths):
        self._check("remove", list(paths))
        removed = [p for p in paths if p in self.objects]
        for p in removed:
            del self.objects[p]
        return [{"name": p} for p in removed]

    def list(self, prefix, options=None):
        self._check("list", prefix)
        options = options or {}
        files, folders = [], {}
        for path, meta in self.objects.items():
            if not path.startswith(prefix + "/"):
                continue
            rest = path[len(prefix) + 1:]
            if "/" in rest:
                name = rest.split("/")[0]
                folders[name] = {"name": name, "id": None, "metadata": None, "created_at": None}
            else:
                files.append({"name": rest, "metadata": {"size": meta["size"]}, "created_at": meta["created_at"]})
        files.sort(key=lambda o: o["created_at"], reverse=True)
        entries = list(folders.values()) + files
        offset = options.get("offset", 0)
        return entries[offset:offset + options.get("limit", 100)]

    def get_public_url(self, path):
        return f"{PUBLIC_URL_BASE}/{path}"


class FakeQuery:
    def __init__(self, table, op, payload=None):
        self.table = table
        self.op = op
        self.payload = payload
        self.filters = []

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def _matches(self, row):
        return all(row.get(c) == v for c, v in self.filters)

    def execute(self):
        table = self.table
        if self.op in table.fail:
            raise table.fail[self.op]
        if self.op in ("insert", "upsert"):
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for row in rows:
                row = dict(row)
                row.setdefault("id", len(table.rows) + 1)
                table.rows.append(row)
                created.append(row)
            return SimpleNamespace(data=created)
        if self.op == "delete":
            gone = [r for r in table.rows if self._matches(r)]
            table.rows = [r for r in table.rows if not self._matches(r)]
            return SimpleNamespace(data=gone)
        return SimpleNamespace(data=[r for r in table.rows if self._matches(r)])


class FakeTable:
    def __init__(self):
        self.rows = []
        self.fail = {}

    def insert(self, rows):
        return FakeQuery(self, "insert", rows)

    def upsert(self, row):
        return FakeQuery(self, "upsert", row)

    def delete(self):
        return FakeQuery(self, "delete")

    def select(self, columns="*"):
        return FakeQuery(self, "select")


class FakeSupabase:
    """Just enough of supabase.Client for the services: storage.from_() and table()."""

    def __init__(self):
        self.bucket = FakeBucket()
        self.tables = {}
        self.storage = SimpleNamespace(from_=lambda name: self.bucket)

    def table(self, name):
        return self.tables.setdefault(name, FakeTable())


@pytest.fixture
def fake_supabase():
    return FakeSupabase()
