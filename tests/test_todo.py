import asyncio
import re


def titles(html: str) -> list[str]:
    return re.findall(r"<span[^>]*>([^<]+)</span>", html)


async def test_create_and_list_todo(client, login):
    await login(client, "bob@example.com")
    res = await client.post("/todos", data={"title": "  Buy milk  "})
    assert res.status_code == 303
    assert res.headers["location"] == "/todos"

    res = await client.get("/todos")
    assert res.status_code == 200
    assert titles(res.text) == ["Buy milk"]


async def test_empty_list_message(client, login):
    await login(client, "empty@example.com")
    res = await client.get("/todos")
    assert "No todos yet." in res.text


async def test_blank_title_sends_no_request(client, login, backend):
    await login(client, "blank@example.com")
    res = await client.post("/todos", data={"title": "   "})
    assert res.status_code == 400
    assert "Please enter a title" in res.text
    assert "insert" not in backend.calls


async def test_toggle_and_delete(client, login):
    await login(client, "toggle@example.com")
    for title in ("one", "two"):
        await client.post("/todos", data={"title": title})
    page = await client.get("/todos")
    ids = [int(i) for i in re.findall(r'id="todo-(\d+)"', page.text)]
    assert len(ids) == 2

    res = await client.post(f"/todos/{ids[0]}/toggle")
    assert res.status_code == 303
    page = await client.get("/todos")
    assert '<span class="done">one</span>' in page.text

    res = await client.post(f"/todos/{ids[0]}/delete")
    assert res.status_code == 303
    page = await client.get("/todos")
    assert titles(page.text) == ["two"]


async def test_failed_toggle_renders_error_and_rolls_back(client, login, backend):
    await login(client, "flaky@example.com")
    await client.post("/todos", data={"title": "stubborn"})
    page = await client.get("/todos")
    todo_id = int(re.search(r'id="todo-(\d+)"', page.text).group(1))

    backend.fail.add("update")
    res = await client.post(f"/todos/{todo_id}/toggle")
    assert res.status_code == 200
    assert "update failed: network error" in res.text
    assert '<span class="done">' not in res.text


async def test_failed_delete_shows_row_again(client, login, backend):
    await login(client, "undelete@example.com")
    for title in ("a", "b", "c"):
        await client.post("/todos", data={"title": title})
    page = await client.get("/todos")
    ids = re.findall(r'id="todo-(\d+)"', page.text)

    backend.fail.add("delete")
    res = await client.post(f"/todos/{ids[1]}/delete")
    assert res.status_code == 200
    assert titles(res.text) == ["a", "b", "c"]
    assert "delete failed: network error" in res.text


async def test_failed_add_keeps_typed_title(client, login, backend):
    await login(client, "keep@example.com")
    backend.fail.add("insert")
    res = await client.post("/todos", data={"title": "draft"})
    assert res.status_code == 200
    assert 'value="draft"' in res.text
    assert "insert failed: network error" in res.text


async def test_fetch_failure_offers_retry(client, login, backend):
    await login(client, "retry@example.com")
    backend.fail.add("select")
    res = await client.get("/todos")
    assert "select failed: network error" in res.text
    assert 'href="/todos"' in res.text

    backend.fail.clear()
    res = await client.get("/todos")
    assert "network error" not in res.text


async def test_unknown_todo_is_404(client, login):
    await login(client, "nf@example.com")
    res = await client.post("/todos/424242/toggle")
    assert res.status_code == 404
    assert "Todo not found" in res.text


async def test_add_while_another_is_in_flight_keeps_typed_title(client, login, backend, wait_for_call):
    await login(client, "busy-form@example.com")
    backend.pause["insert"] = asyncio.Event()

    first = asyncio.create_task(client.post("/todos", data={"title": "first"}))
    await wait_for_call("insert")
    res = await client.post("/todos", data={"title": "second"})
    assert res.status_code == 409
    assert "A todo is already being added. Please wait." in res.text
    assert 'value="second"' in res.text

    backend.pause["insert"].set()
    assert (await first).status_code == 303
    assert backend.calls.count("insert") == 1
    assert titles((await client.get("/todos")).text) == ["first"]
