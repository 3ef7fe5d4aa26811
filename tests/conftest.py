"""Shared fixtures: in-memory state store and a fake platform API server."""
import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from havasi_bot.models import RealEstate, User
from havasi_bot.services.api import ApiClient
from havasi_bot.services.token_service import TokenService
from havasi_bot.services.user_service import UserService


class MemoryStore:
    """Stands in for StateStore; same async interface, backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: dict[str, str]
    headers: dict[str, str]
    body: Any = None


@dataclass
class Reply:
    status: int = 200
    body: Any = None
    text: str | None = None
    delay: float = 0.0


@dataclass
class FakePlatform:
    """Minimal platform API: canned replies per (method, path), every request recorded."""

    replies: dict[tuple[str, str], Reply] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    base_url: str = ""

    def on(self, method: str, path: str, status: int = 200, body: Any = None,
           text: str | None = None, delay: float = 0.0) -> None:
        self.replies[(method, path)] = Reply(status, body, text, delay)

    def calls(self, method: str, path: str) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                headers=dict(request.headers),
                body=json.loads(raw) if raw else None,
            )
        )
        reply = self.replies.get((request.method, request.path))
        if reply is None:
            return web.json_response({"message": "Not found"}, status=404)
        if reply.delay:
            await asyncio.sleep(reply.delay)
        if reply.text is not None:
            return web.Response(status=reply.status, text=reply.text)
        if reply.body is None:
            return web.Response(status=reply.status)
        return web.json_response(reply.body, status=reply.status)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def tokens(store: MemoryStore) -> TokenService:
    return TokenService(store)


@pytest.fixture
def users(store: MemoryStore) -> UserService:
    return UserService(store)


@pytest_asyncio.fixture
async def platform():
    fake = FakePlatform()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def api(platform: FakePlatform, tokens: TokenService, users: UserService):
    client = ApiClient(platform.base_url, tokens, users)
    yield client
    await client.close()


def user_payload(**overrides) -> dict[str, Any]:
    payload = {
        "id": "u1",
        "username": "jana",
        "email": "jana@example.cz",
        "roles": ["USER"],
        "createdAt": "2024-03-01T10:00:00Z",
    }
    payload.update(overrides)
    return payload


def estate_payload(estate_id: str = "re1", **overrides) -> dict[str, Any]:
    payload = {
        "id": estate_id,
        "name": f"Byt 2+kk {estate_id}",
        "url": f"https://sreality.example/{estate_id}",
        "price": 5_000_000,
        "provider": "sreality",
        "pricePerM2": 100_000,
        "sizeInM2": 50,
        "currency": "CZK",
        "locality": {"city": "Praha", "district": "Vinohrady", "street": "Mánesova", "streetNumber": "12"},
        "transactionType": "SALE",
        "duplicates": [],
    }
    payload.update(overrides)
    return payload


def make_user(**overrides) -> User:
    return User.from_dict(user_payload(**overrides))


def make_estate(estate_id: str = "re1", **overrides) -> RealEstate:
    return RealEstate.from_dict(estate_payload(estate_id, **overrides))
