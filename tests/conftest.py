import json
from datetime import datetime

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from matka.core.auth import AuthSession
from matka.core.timeutil import TZ
from matka.db.session import Base
from matka.models.storage import LocalStorageItem  # noqa: F401  注册表结构
from matka.services.api_client import MatkaApiClient
from matka.services.storage_service import LocalStorage

BASE_URL = "http://upstream.test/api"


def at(hour: int, minute: int, day: int = 15) -> datetime:
    """2024-05-<day> 的本地时间（15 号是周三）"""
    return TZ.localize(datetime(2024, 5, day, hour, minute))


GAME = {
    "_id": "g1",
    "gameName": "KALYAN",
    "openTime": "10:00",
    "closeTime": "12:00",
    "result": "***-**-***",
    "isActive": True,
}

RATES = {
    "singleDigit": {"min": 10, "max": 95},
    "jodiDigit": {"min": 10, "max": 950},
    "singlePana": {"min": 10, "max": 1500},
    "doublePana": {"min": 10, "max": 3000},
    "triplePana": {"min": 10, "max": 7000},
    "halfSangam": {"min": 10, "max": 10000},
    "fullSangam": {"min": 10, "max": 100000},
}


class FakeUpstream:
    """按 (method, path) 返回预置响应，并记录收到的请求"""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.calls: list[httpx.Request] = []

    def set(self, method: str, path: str, body=None, status: int = 200):
        self.routes[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/api")
        status, body = self.routes.get((request.method, path), (404, {"message": "Not found"}))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.method == method and c.url.path == "/api" + path]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def upstream() -> FakeUpstream:
    u = FakeUpstream()
    u.set("GET", "/games", [GAME])
    u.set("GET", "/gamerates", RATES)
    u.set("GET", "/user/profile", {"user": {"_id": "u1", "name": "Ravi", "balance": 500}})
    u.set("GET", "/auth/profile", {"user": {"_id": "u1", "name": "Ravi", "balance": 500}})
    u.set("GET", "/main-settings/public", {})
    return u


@pytest.fixture
async def api(upstream):
    client = MatkaApiClient(
        AuthSession(token="tok-123"),
        base_url=BASE_URL,
        transport=httpx.MockTransport(upstream.handler),
    )
    yield client
    await client.aclose()


@pytest.fixture
async def storage():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield LocalStorage(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()
