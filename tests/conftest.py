# Settings are read at import time, so the environment comes first
import os

os.environ.setdefault("SUPABASE_URL", "https://backend.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")

import datetime
import time
import uuid

import pytest
from fastapi.testclient import TestClient
from jose import JWTError, jwt

from nightout.backend import BackendError, get_backend
from nightout.main import app

JWT_SECRET = "test-jwt-secret"


class FakeBackend:
    """
    In-memory stand-in for the hosted backend. Mirrors the HostedBackend
    surface and records every table call in `calls`.
    """

    def __init__(self):
        self.base_url = "https://backend.test"
        self.tables = {"hotels": [], "user_roles": []}
        self.users = {}
        self.refresh_tokens = {}
        self.objects = {}
        self.access_token = None
        self.calls = []
        self.failing = set()
        self.token_ttl = 3600
        self.require_confirmation = False
        self._clock = 0

    # --- helpers for tests ---

    def fail(self, *operations):
        self.failing.update(operations)

    def _check(self, operation):
        if operation in self.failing:
            raise BackendError(f"{operation} failed", status_code=500)

    def _now(self) -> str:
        self._clock += 1
        return (datetime.datetime(2025, 1, 1) + datetime.timedelta(minutes=self._clock)).isoformat()

    def add_user(self, email, password="secret123", admin=False) -> dict:
        user = {"id": str(uuid.uuid4()), "email": email, "password": password}
        self.users[email] = user
        if admin:
            self.tables["user_roles"].append({"user_id": user["id"], "role": "admin"})
        return user

    def add_hotel(self, **fields) -> dict:
        row = {
            "id": str(uuid.uuid4()),
            "name": "Test Hotel",
            "location": "Test City",
            "description": "A perfectly fine place to sleep",
            "image_url": None,
            "price_per_night": None,
            "rating": None,
            "status": "pending",
            "user_id": None,
            "created_at": self._now(),
        }
        row.update(fields)
        self.tables["hotels"].append(row)
        return row

    def hotel(self, hotel_id) -> dict | None:
        return next((row for row in self.tables["hotels"] if row["id"] == hotel_id), None)

    def _session_for(self, user) -> dict:
        access_token = jwt.encode(
            {"sub": user["id"], "exp": int(time.time()) + self.token_ttl},
            JWT_SECRET,
            algorithm="HS256",
        )
        refresh_token = uuid.uuid4().hex
        self.refresh_tokens[refresh_token] = user
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": {"id": user["id"], "email": user["email"]},
        }

    # --- HostedBackend surface ---

    def set_auth(self, access_token):
        self.access_token = access_token

    def close(self):
        pass

    def sign_in(self, email, password):
        self._check("sign_in")
        user = self.users.get(email)
        if not user or user["password"] != password:
            raise BackendError("Invalid login credentials", status_code=400)
        return self._session_for(user)

    def sign_up(self, email, password):
        self._check("sign_up")
        if email in self.users:
            raise BackendError("User already registered", status_code=422)
        user = self.add_user(email, password)
        if self.require_confirmation:
            return {"id": user["id"], "email": email}
        return self._session_for(user)

    def refresh_session(self, refresh_token):
        self._check("refresh_session")
        user = self.refresh_tokens.pop(refresh_token, None)
        if user is None:
            raise BackendError("Invalid Refresh Token", status_code=400)
        return self._session_for(user)

    def get_user(self):
        self._check("get_user")
        if not self.access_token:
            return None
        try:
            claims = jwt.decode(self.access_token, JWT_SECRET, algorithms=["HS256"])
        except JWTError:
            raise BackendError("invalid JWT", status_code=401)
        user = next((u for u in self.users.values() if u["id"] == claims["sub"]), None)
        if user is None:
            raise BackendError("User not found", status_code=401)
        return {"id": user["id"], "email": user["email"]}

    def sign_out(self):
        self._check("sign_out")
        self.access_token = None

    def _match(self, table, filters):
        return [
            row for row in self.tables[table]
            if all(str(row.get(col)) == str(value) for col, value in (filters or {}).items())
        ]

    def select(self, table, columns="*", filters=None, order=None, descending=False, limit=None):
        self.calls.append(("select", table, dict(filters or {})))
        self._check(f"select:{table}")
        rows = self._match(table, filters)
        if order:
            rows.sort(key=lambda row: row[order], reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns != "*":
            wanted = columns.split(",")
            rows = [{col: row[col] for col in wanted} for row in rows]
        return [dict(row) for row in rows]

    def insert(self, table, rows):
        self.calls.append(("insert", table, rows))
        self._check(f"insert:{table}")
        created = []
        for row in rows:
            stored = {"id": str(uuid.uuid4()), "rating": None, "created_at": self._now(), **row}
            self.tables[table].append(stored)
            created.append(dict(stored))
        return created

    def update(self, table, values, filters):
        self.calls.append(("update", table, dict(filters)))
        self._check(f"update:{table}")
        matched = [dict(row) for row in self._match(table, filters)]
        for row in self.tables[table]:
            if any(row["id"] == m["id"] for m in matched):
                row.update(values)
        return matched

    def delete(self, table, filters):
        self.calls.append(("delete", table, dict(filters)))
        self._check(f"delete:{table}")
        matched = [dict(row) for row in self._match(table, filters)]
        ids = {m["id"] for m in matched}
        self.tables[table] = [row for row in self.tables[table] if row["id"] not in ids]
        return matched

    def upload(self, bucket, path, content, content_type=None):
        self._check("upload")
        self.objects[(bucket, path)] = content
        return {"Key": f"{bucket}/{path}"}

    def get_public_url(self, bucket, path):
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"

    def table_calls(self, method, table="hotels"):
        return [call for call in self.calls if call[0] == method and call[1] == table]


# --- Fixtures ---

@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend] = lambda: backend
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def sign_in(client, email, password="secret123"):
    return client.post("/auth", data={"email": email, "password": password, "mode": "signin"},
                       follow_redirects=False)


@pytest.fixture
def user(client, backend):
    """A signed-in regular user."""
    account = backend.add_user("guest@example.com")
    sign_in(client, account["email"])
    return account


@pytest.fixture
def admin(client, backend):
    """A signed-in administrator."""
    account = backend.add_user("admin@example.com", admin=True)
    sign_in(client, account["email"])
    return account


@pytest.fixture
def login(client):
    """Signs the test client in as the given account."""
    def _login(email, password="secret123"):
        return sign_in(client, email, password)
    return _login
