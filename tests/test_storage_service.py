from datetime import timedelta

import jwt

from conftest import at
from matka.core.auth import AuthSession
from matka.services.storage_service import dismiss_install_prompt, should_show_install_prompt


async def test_set_get_remove(storage):
    assert await storage.get_item("token") is None
    await storage.set_item("token", "a")
    await storage.set_item("token", "b")
    assert await storage.get_item("token") == "b"
    assert await storage.keys() == ["token"]
    await storage.remove_item("token")
    assert await storage.get_item("token") is None


async def test_install_prompt_suppressed_for_24_hours(storage):
    now = at(9, 0)
    assert await should_show_install_prompt(storage, now)
    await dismiss_install_prompt(storage, now)
    assert not await should_show_install_prompt(storage, now + timedelta(hours=23, minutes=59))
    assert await should_show_install_prompt(storage, now + timedelta(hours=24))
    assert not await should_show_install_prompt(storage, now + timedelta(hours=30), installed=True)


async def test_garbage_dismissal_timestamp_shows_prompt(storage):
    await storage.set_item("pwa-install-dismissed", "yesterday")
    assert await should_show_install_prompt(storage, at(9, 0))


async def test_auth_session_persists_token(storage):
    auth = AuthSession(storage)
    await auth.acquire("tok")
    assert await storage.get_item("token") == "tok"
    assert auth.headers() == {"Authorization": "Bearer tok"}

    reloaded = AuthSession(storage)
    assert await reloaded.load() == "tok"
    assert reloaded.is_authenticated

    await reloaded.clear()
    assert await storage.get_item("token") is None
    assert reloaded.headers() == {}


def test_token_expiry_from_claims():
    now = at(9, 0)
    fresh = jwt.encode({"sub": "u1", "exp": int(now.timestamp()) + 60}, "test-secret-key-with-32-bytes-ok", algorithm="HS256")
    stale = jwt.encode({"sub": "u1", "exp": int(now.timestamp()) - 60}, "test-secret-key-with-32-bytes-ok", algorithm="HS256")
    assert not AuthSession(token=fresh).is_expired(now)
    assert AuthSession(token=stale).is_expired(now)
    assert not AuthSession(token="not-a-jwt").is_expired(now)
    assert AuthSession(token="not-a-jwt").claims() == {}
