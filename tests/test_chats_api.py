from pymongo.errors import ServerSelectionTimeoutError

from conftest import OTHER_USER_ID, USER_ID

AUTH = {"X-User-Id": USER_ID}


async def test_create_chat_with_first_message(client, message_repo):
    resp = await client.post("/api/chats", json={"first_message": "Teach me vectors"}, headers=AUTH)

    assert resp.status_code == 201
    body = resp.json()
    assert body["path"] == f"/chat/{body['chat_id']}"
    messages = await message_repo.list_by_chat(body["chat_id"])
    assert [(m.role, m.content, m.message_id) for m in messages] == [("user", "Teach me vectors", body["message_id"])]

    chat = (await client.get(f"/api/chats/{body['chat_id']}", headers=AUTH)).json()
    assert chat["title"] == "New Chat"


async def test_requests_without_user_are_401(client):
    resp = await client.get("/api/chats")

    assert resp.status_code == 401
    assert "error" in resp.json()


async def test_previews_search_and_recent(client, chat_repo, message_repo):
    await chat_repo.create(user_id=USER_ID, title="Organic Chemistry", chat_id="chat_a")
    await chat_repo.create(user_id=USER_ID, title="Linear Algebra", chat_id="chat_b")
    await chat_repo.create(user_id=OTHER_USER_ID, title="Organic Farming", chat_id="chat_c")
    await message_repo.add("chat_a", USER_ID, "user", "What is an alkene?")
    await message_repo.add("chat_a", USER_ID, "assistant", "A hydrocarbon with a C=C bond.")

    previews = (await client.get("/api/chats", params={"preview": "true"}, headers=AUTH)).json()
    assert [p["chat_id"] for p in previews] == ["chat_a", "chat_b"]
    assert previews[0]["last_message"] == "A hydrocarbon with a C=C bond."
    assert previews[0]["message_count"] == 2
    assert previews[1]["last_message"] == "No messages yet"

    found = (await client.get("/api/chats/search", params={"q": "organic"}, headers=AUTH)).json()
    assert [c["chat_id"] for c in found] == ["chat_a"]

    recent = (await client.get("/api/chats/recent", headers=AUTH)).json()
    assert [c["chat_id"] for c in recent] == ["chat_b", "chat_a"]


async def test_rename_and_delete_cascade(client, chat_repo, message_repo):
    await chat_repo.create(user_id=USER_ID, title="New Chat", chat_id="chat_a")
    await message_repo.add("chat_a", USER_ID, "user", "hi")
    await message_repo.add("chat_a", USER_ID, "assistant", "hello")

    renamed = await client.patch("/api/chats/chat_a", json={"title": "Greetings"}, headers=AUTH)
    assert renamed.json()["title"] == "Greetings"

    deleted = await client.delete("/api/chats/chat_a", headers=AUTH)
    assert deleted.json()["deleted_messages"] == 2
    assert "chat_a" not in chat_repo.chats
    assert message_repo.messages == []


async def test_other_users_chat_is_not_found(client, chat_repo):
    await chat_repo.create(user_id=OTHER_USER_ID, title="Private", chat_id="chat_bob")

    for resp in (
        await client.get("/api/chats/chat_bob", headers=AUTH),
        await client.get("/api/chats/chat_bob/messages", headers=AUTH),
        await client.delete("/api/chats/chat_bob", headers=AUTH),
    ):
        assert resp.status_code == 404
    assert "chat_bob" in chat_repo.chats


async def test_messages_resolve_stored_images(client, chat_repo, message_repo, settings):
    await chat_repo.create(user_id=USER_ID, title="Board", chat_id="chat_a")
    await message_repo.add("chat_a", USER_ID, "user", "my board", image_url="blob42")
    await message_repo.add("chat_a", USER_ID, "assistant", "nice", related_images=["https://library.test/a.png"])

    messages = (await client.get("/api/chats/chat_a/messages", headers=AUTH)).json()

    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[0]["image_src"] == f"{settings.public_base_url}/api/storage/blob42"
    assert messages[1]["image_src"] is None
    assert messages[1]["related_images"] == ["https://library.test/a.png"]

    count = (await client.get("/api/chats/chat_a/messages/count", headers=AUTH)).json()
    assert count == {"chat_id": "chat_a", "count": 2}


async def test_clear_history_keeps_chat(client, chat_repo, message_repo):
    await chat_repo.create(user_id=USER_ID, title="Keep me", chat_id="chat_a")
    await message_repo.add("chat_a", USER_ID, "user", "one")

    resp = await client.delete("/api/chats/chat_a/messages", headers=AUTH)

    assert resp.json() == {"deleted_count": 1}
    assert "chat_a" in chat_repo.chats


async def test_message_edit_and_delete_check_ownership(client, message_repo):
    mine = await message_repo.add("chat_a", USER_ID, "user", "typo")
    theirs = await message_repo.add("chat_b", OTHER_USER_ID, "user", "secret")

    edited = await client.patch(f"/api/messages/{mine.message_id}", json={"content": "fixed"}, headers=AUTH)
    assert edited.json()["content"] == "fixed"

    assert (await client.patch(f"/api/messages/{theirs.message_id}", json={"content": "x"}, headers=AUTH)).status_code == 404
    assert (await client.delete(f"/api/messages/{theirs.message_id}", headers=AUTH)).status_code == 404
    assert (await client.delete(f"/api/messages/{mine.message_id}", headers=AUTH)).status_code == 200
    assert [m.message_id for m in message_repo.messages] == [theirs.message_id]


async def test_database_outage_returns_json_error(client, chat_repo, monkeypatch):
    async def unavailable(user_id, limit=None):
        raise ServerSelectionTimeoutError("no primary")

    monkeypatch.setattr(chat_repo, "get_all_by_user", unavailable)

    resp = await client.get("/api/chats", headers=AUTH)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Database operation failed", "details": "no primary"}
