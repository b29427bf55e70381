import json

import pytest

from conftest import OTHER_USER_ID, USER_ID, identity, png_data_url, sse_events, turn_body
from vibenote.services.title_generator import FALLBACK_TITLE


async def _seed_history(chat_repo, message_repo, chat_id="chat_test", count=3):
    await chat_repo.create(user_id=USER_ID, title="Kinematics", chat_id=chat_id)
    for i in range(count):
        role = "user" if i % 2 == 0 else "assistant"
        await message_repo.add(chat_id=chat_id, user_id=USER_ID, role=role, content=f"earlier message {i}")


async def test_first_turn_stores_both_messages_and_titles_the_chat(client, chat_repo, message_repo, llm):
    resp = await client.post("/api/chat", content=turn_body("What is a derivative?"), headers=identity())

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    events = sse_events(resp.text)
    streamed = "".join(e["token"] for e in events if "token" in e)
    assert streamed == "A derivative measures how a function changes."

    done = events[-1]
    assert done["done"] is True
    assert done["title"] == "Understanding Derivatives"

    messages = await message_repo.list_by_chat("chat_test")
    assert [(m.role, m.content) for m in messages] == [
        ("user", "What is a derivative?"),
        ("assistant", streamed),
    ]
    assert done["message_id"] == messages[1].message_id
    assert chat_repo.chats["chat_test"].title == "Understanding Derivatives"
    assert llm.title_calls == ["What is a derivative?"]


async def test_first_turn_title_failure_still_sets_a_title_once(client, chat_repo, llm):
    llm.title_error = RuntimeError("title model down")

    resp = await client.post("/api/chat", content=turn_body("Explain torque"), headers=identity())

    assert resp.status_code == 200
    assert chat_repo.title_updates == [("chat_test", FALLBACK_TITLE)]


async def test_inline_image_is_uploaded_after_the_stream(client, chat_repo, message_repo, storage_repo, llm):
    await _seed_history(chat_repo, message_repo)
    image = png_data_url()
    body = turn_body("What's on my whiteboard?\n\n[Images attached: board.png]", data={"imageUrl": image})

    resp = await client.post("/api/chat", content=body, headers=identity())

    assert resp.status_code == 200
    current = llm.stream_calls[-1][-1]
    assert [block["type"] for block in current["content"]] == ["text", "image_url"]
    assert current["content"][0]["text"] == "What's on my whiteboard?"

    messages = await message_repo.list_by_chat("chat_test")
    assert len(messages) == 5
    user_message = messages[3]
    assert user_message.role == "user"
    assert user_message.content == "What's on my whiteboard?"
    assert user_message.image_url in storage_repo.blobs
    assert sse_events(resp.text)[-1]["image_storage_id"] == user_message.image_url

    assert llm.title_calls == []
    assert chat_repo.chats["chat_test"].title == "Kinematics"


async def test_model_failure_returns_500_and_stores_no_answer(client, chat_repo, message_repo, llm):
    llm.stream_error = RuntimeError("upstream 503")

    resp = await client.post("/api/chat", content=turn_body("Hello"), headers=identity())

    assert resp.status_code == 500
    assert resp.json() == {"error": "An error occurred processing your request", "details": "upstream 503"}
    messages = await message_repo.list_by_chat("chat_test")
    assert [m.role for m in messages] == ["user"]
    assert llm.title_calls == ["Hello"]
    assert chat_repo.chats["chat_test"].title == "Understanding Derivatives"


async def test_retry_after_failed_first_turn_keeps_generated_title(client, chat_repo, llm):
    llm.stream_error = RuntimeError("upstream 503")
    failed = await client.post("/api/chat", content=turn_body("What is a limit?"), headers=identity())
    llm.stream_error = None

    retried = await client.post("/api/chat", content=turn_body("What is a limit?"), headers=identity())

    assert (failed.status_code, retried.status_code) == (500, 200)
    assert llm.title_calls == ["What is a limit?"]
    assert chat_repo.chats["chat_test"].title == "Understanding Derivatives"


async def test_mid_stream_failure_ends_with_error_event(client, chat_repo, message_repo, llm):
    llm.stream_error = RuntimeError("connection reset")
    llm.fail_after = 1

    resp = await client.post("/api/chat", content=turn_body("Hello"), headers=identity())

    events = sse_events(resp.text)
    assert events[0] == {"token": "A derivative "}
    assert events[-1]["error"] == "An error occurred processing your request"
    assert not any(e.get("done") for e in events)
    assert [m.role for m in await message_repo.list_by_chat("chat_test")] == ["user"]
    assert chat_repo.chats["chat_test"].title == "Understanding Derivatives"


async def test_library_attachments_are_sent_and_kept_on_the_answer(client, message_repo, llm):
    body = turn_body(
        "Explain these figures",
        experimental_attachments=[
            {"url": "https://library.test/fig1.png", "contentType": "image/png"},
            {"url": "https://library.test/fig2.png", "contentType": "image/png"},
        ],
    )

    resp = await client.post("/api/chat", content=body, headers=identity())

    assert resp.status_code == 200
    content = llm.stream_calls[-1][-1]["content"]
    assert [block["type"] for block in content] == ["text", "image_url", "image_url"]
    user_message, answer = await message_repo.list_by_chat("chat_test")
    assert user_message.related_images == []
    assert answer.related_images == ["https://library.test/fig1.png", "https://library.test/fig2.png"]


async def test_inline_image_wins_over_library_attachments(client, message_repo, llm):
    body = turn_body(
        "Which one?",
        data={"imageUrl": png_data_url()},
        options={"experimental_attachments": [{"url": "https://library.test/fig1.png"}]},
    )

    resp = await client.post("/api/chat", content=body, headers=identity())

    assert resp.status_code == 200
    content = llm.stream_calls[-1][-1]["content"]
    assert len(content) == 2
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")
    answer = (await message_repo.list_by_chat("chat_test"))[-1]
    assert answer.related_images == []


async def test_use_library_fetches_images_for_the_turn(client, services, message_repo, llm):
    services.library_images = [{"image_url": "https://library.test/circuit.png"}]
    body = turn_body("Show the RC circuit", data={"useLibrary": True})

    resp = await client.post("/api/chat", content=body, headers=identity())

    assert resp.status_code == 200
    assert "/api/v1/retrieval" in services.paths()
    content = llm.stream_calls[-1][-1]["content"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "https://library.test/circuit.png"}}
    answer = (await message_repo.list_by_chat("chat_test"))[-1]
    assert answer.related_images == ["https://library.test/circuit.png"]


async def test_failed_library_lookup_does_not_fail_the_turn(client, services, llm):
    services.library_status = 502

    resp = await client.post("/api/chat", content=turn_body("Anything", data={"useLibrary": True}), headers=identity())

    assert resp.status_code == 200
    assert llm.stream_calls[-1][-1]["content"] == [{"type": "text", "text": "Anything"}]


async def test_structured_message_content_is_accepted(client, message_repo):
    body = json.dumps({"messages": [{"role": "user", "content": [
        {"type": "text", "text": "Balance"},
        {"type": "text", "text": "H2 + O2"},
    ]}]}).encode()

    resp = await client.post("/api/chat", content=body, headers=identity())

    assert resp.status_code == 200
    assert (await message_repo.list_by_chat("chat_test"))[0].content == "Balance H2 + O2"


async def test_malformed_body_is_400(client):
    resp = await client.post("/api/chat", content=b"{not json", headers=identity())

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"


async def test_malformed_body_is_reported_before_missing_identity(client):
    resp = await client.post("/api/chat", content=b"{not json")

    assert resp.status_code == 400


@pytest.mark.parametrize("headers", [{"X-User-Id": USER_ID}, {"id": "chat_test"}, {}])
async def test_missing_identity_is_401_and_nothing_is_stored(client, message_repo, llm, headers):
    resp = await client.post("/api/chat", content=turn_body("Hello"), headers=headers)

    assert resp.status_code == 401
    assert resp.json()["error"] == "User authentication or chat ID missing"
    assert message_repo.messages == []
    assert llm.stream_calls == []


async def test_empty_message_list_is_400(client):
    resp = await client.post("/api/chat", content=json.dumps({"messages": []}).encode(), headers=identity())

    assert resp.status_code == 400


async def test_other_users_chat_is_404(client, chat_repo, message_repo):
    await chat_repo.create(user_id=OTHER_USER_ID, title="Bob's chat", chat_id="chat_bob")

    resp = await client.post("/api/chat", content=turn_body("Hi"), headers=identity(chat_id="chat_bob"))

    assert resp.status_code == 404
    assert message_repo.messages == []
