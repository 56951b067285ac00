import socket
import threading
import time
import uuid
from datetime import datetime, timedelta

import pytest
import uvicorn
from fastapi.testclient import TestClient
from pydantic import BaseModel

import models  # noqa: F401
from core.config import settings
from core.db import Base, engine
from dal.config import ClientConfig
from main import app


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh tables for every test; the app and the live server share the engine."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def open_admin_guard(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "")
    monkeypatch.setattr(settings, "ENVIRONMENT", "test")


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "s3cret")
    return "s3cret"


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def live_api_url():
    """The FastAPI app served by uvicorn on an ephemeral port, for DAL tests."""
    port = _free_port()
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning", lifespan="off"))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        if time.monotonic() > deadline:
            raise RuntimeError("uvicorn did not start")
        time.sleep(0.02)

    yield f"http://127.0.0.1:{port}/api"

    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture()
def rest_config(live_api_url):
    return ClientConfig(
        api_mode="postgres",
        api_url=live_api_url,
        timeout_ms=5_000,
        max_retries=2,
        retry_delay_ms=10,
        poll_interval_ms=20,
    )


@pytest.fixture()
def hosted_config():
    return ClientConfig(
        api_mode="supabase",
        supabase_url="https://example.supabase.co",
        supabase_key="anon-key",
        storage_bucket="product-images",
        site_url="https://catalog.example.com",
    )


# In-memory stand-in for the Supabase AsyncClient


class FakeAPIError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FakeResponse:
    def __init__(self, data):
        self.data = data


UNIQUE_COLUMNS = {
    "products": ["code"],
    "categories": ["slug"],
    "sellers": ["slug"],
    "store_settings": ["key"],
    "orders": ["idempotency_key"],
}


class FakeDatabase:
    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self._seq = 0

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def stamp(self, row):
        self._seq += 1
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", (datetime(2024, 1, 1) + timedelta(seconds=self._seq)).isoformat())
        return row

    def check_unique(self, table, row, ignore=None):
        for column in UNIQUE_COLUMNS.get(table, []):
            value = row.get(column)
            if value is None:
                continue
            for other in self.rows(table):
                if other is not ignore and other.get(column) == value:
                    raise FakeAPIError(f'duplicate key value violates unique constraint "{table}_{column}_key"')


class FakeQuery:
    def __init__(self, db: FakeDatabase, table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.sort = None
        self.max_rows = None
        self.on_conflict = None
        self.ignore_duplicates = False

    def select(self, columns="*"):
        self.columns = columns
        return self

    def insert(self, rows):
        self.action, self.payload = "insert", rows
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def delete(self):
        self.action = "delete"
        return self

    def upsert(self, rows, on_conflict="", ignore_duplicates=False):
        self.action, self.payload = "upsert", rows
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.sort = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def _matching(self):
        return [row for row in self.db.rows(self.table) if all(f(row) for f in self.filters)]

    def _project(self, row):
        if self.columns == "*":
            return dict(row)
        return {c: row.get(c) for c in self.columns.split(",")}

    def _as_list(self):
        return [dict(r) for r in (self.payload if isinstance(self.payload, list) else [self.payload])]

    async def execute(self):
        self.db.calls.append((self.table, self.action))
        failure = self.db.failures.get((self.table, self.action))
        if failure:
            raise FakeAPIError(failure)
        return FakeResponse(getattr(self, f"_do_{self.action}")())

    def _do_select(self):
        rows = self._matching()
        if self.sort:
            column, desc = self.sort
            rows = sorted(rows, key=lambda r: r.get(column), reverse=desc)
        if self.max_rows is not None:
            rows = rows[: self.max_rows]
        return [self._project(r) for r in rows]

    def _do_insert(self):
        new_rows = self._as_list()
        for row in new_rows:
            self.db.check_unique(self.table, row)
        inserted = [self.db.stamp(row) for row in new_rows]
        self.db.rows(self.table).extend(inserted)
        return [dict(r) for r in inserted]

    def _do_update(self):
        rows = self._matching()
        for row in rows:
            row.update(self.payload)
        return [dict(r) for r in rows]

    def _do_delete(self):
        rows = self._matching()
        self.db.tables[self.table] = [r for r in self.db.rows(self.table) if r not in rows]
        return [dict(r) for r in rows]

    def _do_upsert(self):
        affected = []
        for row in self._as_list():
            current = next(
                (r for r in self.db.rows(self.table) if r.get(self.on_conflict) == row.get(self.on_conflict)),
                None,
            )
            if current is None:
                self.db.check_unique(self.table, row)
                current = self.db.stamp(row)
                self.db.rows(self.table).append(current)
            elif self.ignore_duplicates:
                continue
            else:
                current.update(row)
            affected.append(dict(current))
        return affected


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    async def upload(self, path, data, options=None):
        if self.storage.fail:
            raise FakeAPIError(self.storage.fail)
        self.storage.objects[(self.name, path)] = (data, options or {})
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"https://cdn.example.com/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail = None

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeUser(BaseModel):
    id: str
    email: str


class FakeSession(BaseModel):
    access_token: str
    user: FakeUser


class FakeSubscription:
    def __init__(self, auth, callback):
        self.auth = auth
        self.callback = callback

    def unsubscribe(self):
        if self.callback in self.auth.listeners:
            self.auth.listeners.remove(self.callback)


class FakeAuth:
    def __init__(self):
        self.session = None
        self.listeners = []
        self.calls = []

    def emit(self, event):
        for listener in list(self.listeners):
            listener(event, self.session)

    async def get_session(self):
        return self.session

    async def sign_in_with_password(self, credentials):
        self.calls.append(("sign_in", credentials))
        if credentials["password"] == "wrong":
            raise FakeAPIError("Invalid login credentials")
        self.session = FakeSession(access_token="token", user=FakeUser(id="user-1", email=credentials["email"]))
        self.emit("SIGNED_IN")
        return self.session

    async def sign_up(self, credentials):
        self.calls.append(("sign_up", credentials))
        return None

    async def sign_out(self):
        self.calls.append(("sign_out", None))
        self.session = None
        self.emit("SIGNED_OUT")

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return FakeSubscription(self, callback)


class FakeFunctions:
    def __init__(self):
        self.invoked = []

    async def invoke(self, name, invoke_options=None):
        self.invoked.append(name)
        return {"message": "Admin user created"}


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.handlers = []
        self.subscribed = False

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.handlers.append({"event": event, "callback": callback, "table": table, "schema": schema})
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        return self

    def fire(self, table):
        for handler in self.handlers:
            if handler["table"] == table:
                handler["callback"]({"table": table, "eventType": "UPDATE"})


class FakeSupabaseClient:
    def __init__(self):
        self.db = FakeDatabase()
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.functions = FakeFunctions()
        self.channels = []
        self.removed_channels = []

    def table(self, name):
        return FakeQuery(self.db, name)

    def channel(self, name):
        channel = FakeChannel(name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        self.channels.remove(channel)
        self.removed_channels.append(channel)

    def emit_change(self, table):
        for channel in list(self.channels):
            channel.fire(table)


@pytest.fixture()
def fake_supabase():
    return FakeSupabaseClient()
