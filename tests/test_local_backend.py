import time

import pytest

from app.backend.base import TODOS, AuthError, BackendError


async def test_insert_for_another_user_is_refused(backend, session_factory):
    a = await session_factory("owner-a@example.com")
    b = await session_factory("owner-b@example.com")
    with pytest.raises(BackendError) as info:
        await backend.insert(a.access_token, TODOS, {"title": "x", "completed": False, "user_id": b.user.id})
    assert info.value.status == 403


async def test_other_users_rows_are_invisible(backend, session_factory):
    a = await session_factory("vis-a@example.com")
    b = await session_factory("vis-b@example.com")
    row = await backend.insert(b.access_token, TODOS, {"title": "b", "completed": False, "user_id": b.user.id})

    assert await backend.select(a.access_token, TODOS, {"user_id": b.user.id}) == []
    assert await backend.select(a.access_token, TODOS, {"id": row["id"]}) == []
    assert await backend.update(a.access_token, TODOS, {"id": row["id"]}, {"completed": True}) == []
    await backend.delete(a.access_token, TODOS, {"id": row["id"]})

    rows = await backend.select(b.access_token, TODOS, {"user_id": b.user.id})
    assert [(r["id"], r["completed"]) for r in rows] == [(row["id"], False)]


async def test_new_rows_get_sequential_ids_and_defaults(backend, session_factory):
    s = await session_factory("seq@example.com")
    first = await backend.insert(s.access_token, TODOS, {"title": "1", "user_id": s.user.id})
    second = await backend.insert(s.access_token, TODOS, {"title": "2", "user_id": s.user.id})
    assert second["id"] > first["id"]
    assert first["completed"] is False
    assert first["created_at"] is not None


async def test_table_calls_need_a_valid_token(backend):
    with pytest.raises(AuthError):
        await backend.select("bogus", TODOS, {})


async def test_unknown_column_is_rejected(backend, session_factory):
    s = await session_factory("cols@example.com")
    with pytest.raises(BackendError):
        await backend.update(s.access_token, TODOS, {"id": 1}, {"user_id": "someone-else"})


async def test_short_password_is_rejected(backend):
    with pytest.raises(AuthError):
        await backend.sign_up("short@example.com", "123")


async def test_revoked_tokens_are_pruned_once_expired(backend, session_factory):
    s = await session_factory("prune@example.com")
    backend._revoked["long-gone"] = int(time.time()) - 60
    await backend.sign_out(s.access_token)

    assert "long-gone" not in backend._revoked
    assert len(backend._revoked) == 1
    assert await backend.get_user(s.access_token) is None
