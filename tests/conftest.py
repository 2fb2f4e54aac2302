"""
Fixtures compartilhadas dos testes
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from config.settings import Settings
from database.record_store import InMemoryRecordStore

TEST_API_URL = "http://ledger.test/api"

Route = Union[Tuple[int, Dict[str, Any]], Callable[[httpx.Request], httpx.Response]]


class FakeLedgerServer:
    """API do ledger simulada sobre httpx.MockTransport"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, body: Optional[Dict[str, Any]] = None,
           handler: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.routes[(method, path)] = handler if handler else (status, body or {})

    def fail_transport(self, method: str, path: str):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)
        self.on(method, path, handler=handler)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        if callable(route):
            return route(request)

        status, body = route
        return httpx.Response(status, json=body)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]

    def json_bodies(self, path: str) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.calls(path)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class FakeClock:
    """Relógio controlado pelos testes"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def expense_item(amount=250, category="Food", subcategory="Lunch", **extra) -> Dict[str, Any]:
    item = {
        "type": "expense",
        "amount": amount,
        "currency": "INR",
        "category": category,
        "subcategory": subcategory,
        "paymentMethod": "Credit Card",
    }
    item.update(extra)
    return item


def echo_create(request: httpx.Request) -> httpx.Response:
    """Simula /expense/create devolvendo os lançamentos com ids"""
    body = json.loads(request.content)
    saved = [
        {**expense, "id": f"exp-{i}", "createdAt": "2025-06-03T10:00:00Z"}
        for i, expense in enumerate(body["expenses"], 1)
    ]
    return httpx.Response(201, json={
        "success": True,
        "message": "Expenses created",
        "data": {"expenses": saved, "count": len(saved)},
    })


def parse_ok(*items) -> Dict[str, Any]:
    return {"success": True, "data": {"expenses": list(items)}}


@pytest.fixture
def settings():
    return Settings(
        api_base_url=TEST_API_URL,
        api_token="token-123",
        usage_database_url="sqlite:///:memory:",
        plan_quotas={"free": 3, "pro": 10, "businesspro": 20},
        default_plan_tier="free",
        default_user_id="user-1",
        _env_file=None,
    )


@pytest.fixture
def ledger():
    return FakeLedgerServer()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 3, 10, 0, tzinfo=timezone.utc))
