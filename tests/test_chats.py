import pytest

from conftest import create_project, open_chat, register, send


@pytest.mark.asyncio
async def test_open_chat_is_get_or_create(client, client_user, freelancer_user):
    _, alice_headers = client_user
    bob, _ = freelancer_user
    project = await create_project(client, alice_headers)
    payload = {"project_id": project["project_id"], "freelancer_id": bob["user_id"]}

    first = await client.post("/api/chats", json=payload, headers=alice_headers)
    assert first.status_code == 201
    chat = first.json()
    assert chat["client_hidden"] is False
    assert chat["freelancer_hidden"] is False
    assert chat["project"]["title"] == project["title"]
    assert chat["freelancer"]["user_id"] == bob["user_id"]

    second = await client.post("/api/chats", json=payload, headers=alice_headers)
    assert second.status_code == 200
    assert second.json()["chat_id"] == chat["chat_id"]


@pytest.mark.asyncio
async def test_open_chat_authorization(client, client_user, freelancer_user):
    _, alice_headers = client_user
    bob, bob_headers = freelancer_user
    project = await create_project(client, alice_headers)
    payload = {"project_id": project["project_id"], "freelancer_id": bob["user_id"]}

    # 接案者不能發起
    assert (await client.post("/api/chats", json=payload, headers=bob_headers)).status_code == 403

    # 別人的案件
    _, other_headers = await register(client, "olivia@gmail.com", role="client")
    assert (await client.post("/api/chats", json=payload, headers=other_headers)).status_code == 403

    # 案件或接案者不存在
    missing_project = {"project_id": "missing", "freelancer_id": bob["user_id"]}
    assert (await client.post("/api/chats", json=missing_project, headers=alice_headers)).status_code == 404
    missing_user = {"project_id": project["project_id"], "freelancer_id": "missing"}
    assert (await client.post("/api/chats", json=missing_user, headers=alice_headers)).status_code == 404

    # 指定的對象不是接案者
    olivia = (await client.get("/api/auth/me", headers=other_headers)).json()
    not_freelancer = {"project_id": project["project_id"], "freelancer_id": olivia["user_id"]}
    assert (await client.post("/api/chats", json=not_freelancer, headers=alice_headers)).status_code == 400

    assert (await client.post("/api/chats", json=payload)).status_code == 401


@pytest.mark.asyncio
async def test_list_chats_ordered_by_last_activity(client, client_user, freelancer_user):
    _, alice_headers = client_user
    bob, bob_headers = freelancer_user
    first_project = await create_project(client, alice_headers, title="第一個案件")
    second_project = await create_project(client, alice_headers, title="第二個案件")
    first_chat = await open_chat(client, alice_headers, first_project["project_id"], bob["user_id"])
    second_chat = await open_chat(client, alice_headers, second_project["project_id"], bob["user_id"])

    chats = (await client.get("/api/chats", headers=alice_headers)).json()
    assert [c["chat_id"] for c in chats] == [second_chat["chat_id"], first_chat["chat_id"]]

    # 在較早的聊天室傳訊息後，它會排到最前面
    await send(client, bob_headers, first_chat["chat_id"], "您好")
    chats = (await client.get("/api/chats", headers=alice_headers)).json()
    assert [c["chat_id"] for c in chats] == [first_chat["chat_id"], second_chat["chat_id"]]
    assert chats[0]["unread_count"] == 1
    assert chats[1]["unread_count"] == 0


@pytest.mark.asyncio
async def test_outsider_cannot_touch_chat(client, chat_setup):
    chat_id = chat_setup["chat"]["chat_id"]
    _, eve_headers = await register(client, "eve@gmail.com")

    assert (await client.get(f"/api/chats/{chat_id}/messages", headers=eve_headers)).status_code == 403
    assert (await client.put(f"/api/chats/{chat_id}/read", headers=eve_headers)).status_code == 403
    assert (await client.delete(f"/api/chats/{chat_id}", headers=eve_headers)).status_code == 403
    assert (await send(client, eve_headers, chat_id, "hi")).status_code == 403

    assert (await client.get("/api/chats/missing/messages", headers=eve_headers)).status_code == 404
    assert (await client.delete("/api/chats/missing", headers=eve_headers)).status_code == 404


@pytest.mark.asyncio
async def test_hide_chat_only_affects_own_side(client, chat_setup):
    s = chat_setup
    chat_id = s["chat"]["chat_id"]
    await send(client, s["bob_headers"], chat_id, "hi")

    response = await client.delete(f"/api/chats/{chat_id}", headers=s["alice_headers"])
    assert response.status_code == 200
    assert response.json()["deleted"] is False

    assert (await client.get("/api/chats", headers=s["alice_headers"])).json() == []
    bob_chats = (await client.get("/api/chats", headers=s["bob_headers"])).json()
    assert [c["chat_id"] for c in bob_chats] == [chat_id]
    assert bob_chats[0]["client_hidden"] is True

    # 隱藏者讀取訊息視同不存在，對方照常
    assert (await client.get(f"/api/chats/{chat_id}/messages", headers=s["alice_headers"])).status_code == 404
    assert (await client.get(f"/api/chats/{chat_id}/messages", headers=s["bob_headers"])).status_code == 200


@pytest.mark.asyncio
async def test_counterpart_message_does_not_unhide(client, chat_setup):
    s = chat_setup
    chat_id = s["chat"]["chat_id"]
    await client.delete(f"/api/chats/{chat_id}", headers=s["alice_headers"])

    await send(client, s["bob_headers"], chat_id, "還在嗎？")
    assert (await client.get("/api/chats", headers=s["alice_headers"])).json() == []
    # 隱藏的聊天室不計入未讀總數
    unread = (await client.get("/api/messages/unread-count", headers=s["alice_headers"])).json()
    assert unread["unread_count"] == 0


@pytest.mark.asyncio
async def test_own_message_unhides_chat(client, chat_setup):
    s = chat_setup
    chat_id = s["chat"]["chat_id"]
    await client.delete(f"/api/chats/{chat_id}", headers=s["alice_headers"])

    response = await send(client, s["alice_headers"], chat_id, "我回來了")
    assert response.status_code == 201

    chats = (await client.get("/api/chats", headers=s["alice_headers"])).json()
    assert [c["chat_id"] for c in chats] == [chat_id]
    assert chats[0]["client_hidden"] is False
    assert chats[0]["freelancer_hidden"] is False


@pytest.mark.asyncio
async def test_both_sides_hidden_deletes_chat_and_messages(client, chat_setup):
    s = chat_setup
    chat_id = s["chat"]["chat_id"]
    await send(client, s["bob_headers"], chat_id, "hi")

    first = await client.delete(f"/api/chats/{chat_id}", headers=s["alice_headers"])
    assert first.json()["deleted"] is False
    second = await client.delete(f"/api/chats/{chat_id}", headers=s["bob_headers"])
    assert second.status_code == 200
    assert second.json()["deleted"] is True

    for headers in (s["alice_headers"], s["bob_headers"]):
        assert (await client.get(f"/api/chats/{chat_id}/messages", headers=headers)).status_code == 404
        assert (await client.get("/api/chats", headers=headers)).json() == []

    # 重新開啟會得到全新的聊天室
    response = await client.post("/api/chats", json={
        "project_id": s["project"]["project_id"], "freelancer_id": s["bob"]["user_id"],
    }, headers=s["alice_headers"])
    assert response.status_code == 201
    assert response.json()["chat_id"] != chat_id


@pytest.mark.asyncio
async def test_marketplace_scenario(client):
    alice, alice_headers = await register(client, "c.owner@gmail.com", role="client")
    bob, bob_headers = await register(client, "f.worker@gmail.com", role="freelancer")

    project = await create_project(client, alice_headers, budget_min=1000, budget_max=2000)
    bid_payload = {
        "project_id": project["project_id"], "amount": 1500,
        "proposal": "交給我", "timeline": "一週",
    }
    assert (await client.post("/api/bids", json=bid_payload, headers=bob_headers)).status_code == 201
    assert (await client.post("/api/bids", json=bid_payload, headers=bob_headers)).status_code == 409

    chat_payload = {"project_id": project["project_id"], "freelancer_id": bob["user_id"]}
    created = await client.post("/api/chats", json=chat_payload, headers=alice_headers)
    assert created.status_code == 201
    again = await client.post("/api/chats", json=chat_payload, headers=alice_headers)
    assert again.status_code == 200
    chat_id = created.json()["chat_id"]
    assert again.json()["chat_id"] == chat_id

    assert (await send(client, bob_headers, chat_id, "hi")).status_code == 201
    for headers in (alice_headers, bob_headers):
        chats = (await client.get("/api/chats", headers=headers)).json()
        assert [c["chat_id"] for c in chats] == [chat_id]
        assert chats[0]["freelancer_hidden"] is False

    hidden = await client.delete(f"/api/chats/{chat_id}", headers=alice_headers)
    assert hidden.json()["deleted"] is False
    bob_chats = (await client.get("/api/chats", headers=bob_headers)).json()
    assert bob_chats[0]["client_hidden"] is True

    deleted = await client.delete(f"/api/chats/{chat_id}", headers=bob_headers)
    assert deleted.json()["deleted"] is True
    for headers in (alice_headers, bob_headers):
        assert (await client.get(f"/api/chats/{chat_id}/messages", headers=headers)).status_code == 404
