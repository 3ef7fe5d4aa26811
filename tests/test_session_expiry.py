"""Session manager wired to the real HTTP client against the fake platform."""
import asyncio

import pytest

from havasi_bot.services.errors import AuthenticationExpiredError
from havasi_bot.services.profile import UserProfileStore
from havasi_bot.services.session import AuthSessionManager, SessionEvent, SessionState
from conftest import user_payload


@pytest.fixture
def profile() -> UserProfileStore:
    return UserProfileStore()


@pytest.fixture
def manager(api, tokens, users, profile) -> AuthSessionManager:
    return AuthSessionManager(api, tokens, users, profile)


@pytest.fixture
def events(manager) -> list:
    seen = []

    async def listener(session, event):
        seen.append(event)

    manager.add_listener(listener)
    return seen


@pytest.mark.asyncio
async def test_rejected_login_token_raises(manager, platform, store, profile, events):
    await manager.initialize()
    platform.on("GET", "/api/users/me", status=401)

    with pytest.raises(AuthenticationExpiredError) as err:
        await manager.login("tok-bad")

    assert str(err.value) == "Authentication token has expired"
    assert manager.state == SessionState.UNAUTHENTICATED
    assert profile.user is None
    assert store.data == {}
    assert events == [SessionEvent.RESTORED, SessionEvent.LOGIN, SessionEvent.LOGOUT]


@pytest.mark.asyncio
async def test_401_mid_session_forces_logout_once(manager, api, platform, store, profile, events):
    await manager.initialize()
    platform.on("GET", "/api/users/me", body=user_payload())
    await manager.login("tok-1")
    assert store.data == {"access_token": "tok-1", "user_id": "u1"}

    platform.on("GET", "/api/users/u1/notifications", status=401)
    with pytest.raises(AuthenticationExpiredError) as err:
        await api.get_user_notifications("u1")

    assert str(err.value) == "Authentication token has expired"
    assert manager.state == SessionState.UNAUTHENTICATED
    assert manager.token is None
    assert profile.user is None
    assert store.data == {}
    assert events.count(SessionEvent.EXPIRED) == 1


@pytest.mark.asyncio
async def test_rejected_stored_token_restores_logged_out(manager, platform, store, events):
    store.data.update(access_token="tok-old", user_id="u1")
    platform.on("GET", "/api/users/me", status=401)

    await manager.initialize()

    assert manager.state == SessionState.UNAUTHENTICATED
    assert store.data == {}
    assert events == [SessionEvent.EXPIRED, SessionEvent.RESTORED]


@pytest.mark.asyncio
async def test_stale_401_keeps_newer_login(manager, api, platform, store, profile):
    await manager.initialize()
    platform.on("GET", "/api/users/me", body=user_payload())
    await manager.login("tok-1")
    platform.on("GET", "/api/users/u1/notifications", status=401, delay=0.05)

    request = asyncio.create_task(api.get_user_notifications("u1"))
    await asyncio.sleep(0.01)
    await manager.login("tok-2")

    with pytest.raises(AuthenticationExpiredError):
        await request

    assert manager.state == SessionState.AUTHENTICATED
    assert manager.token == "tok-2"
    assert store.data["access_token"] == "tok-2"
    assert profile.user.id == "u1"
