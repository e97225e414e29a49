from fastapi.testclient import TestClient

from client import ChatClient, MessagePoller, visible_messages
from conftest import add_channel, register


def make_client(client: TestClient, email: str = "a@x.com") -> ChatClient:
    chat = ChatClient(session=client)
    assert chat.auth.login(email, "pw1") is not None
    chat.mount()
    return chat


def test_login_failure_leaves_no_token(client: TestClient, alice):
    chat = ChatClient(session=client)
    assert chat.auth.login("a@x.com", "wrong") is None
    assert chat.auth.get_token() is None
    assert chat.auth.current_user() is None


def test_register_then_login(client: TestClient):
    chat = ChatClient(session=client)
    user = chat.auth.register("carol", "c@x.com", "pw1")
    assert user["userName"] == "carol"
    assert chat.auth.login("c@x.com", "pw1")["id"] == user["id"]
    assert chat.auth.auth_headers()["Authorization"].startswith("Bearer ")
    chat.auth.logout()
    assert "Authorization" not in chat.auth.auth_headers()


def test_mount_loads_channels_users_and_current_user(client: TestClient, alice, bob):
    add_channel(client, "general")
    chat = make_client(client)
    assert [c["channelName"] for c in chat.channels.channels] == ["general"]
    assert sorted(u["userName"] for u in chat.users.users) == ["alice", "bob"]
    assert chat.users.current_user["userName"] == "alice"
    assert chat.messages.direct_messages == []


def test_locked_channel_selection(client: TestClient, alice, bob):
    alice_user, _ = alice
    add_channel(client, "secret", locked=True, members=[alice_user["id"]])

    anonymous = ChatClient(session=client)
    anonymous.mount()
    locked = anonymous.channels.channels[0]
    assert not anonymous.channels.select(locked)
    assert anonymous.channels.selected_channel is None

    outsider = make_client(client, "b@x.com")
    assert not outsider.channels.select(outsider.channels.channels[0])
    assert outsider.messages.fetch_channel_messages(locked) == []

    member = make_client(client, "a@x.com")
    assert member.channels.select(member.channels.channels[0])


def test_send_channel_message_refreshes_feed(client: TestClient, alice):
    channel = add_channel(client, "general").json()["channel"]
    chat = make_client(client)
    assert chat.channels.select(channel)

    assert chat.messages.send("hello", channel["id"], is_dm=False)
    assert [m["content"] for m in chat.messages.channel_messages] == ["hello"]
    assert chat.feed() == chat.messages.channel_messages
    assert chat.feed()[0]["recipientId"] is None


def test_direct_messages_feed_shows_selected_conversation(client: TestClient, alice, bob):
    bob_user, _ = bob
    register(client, "carol", "c@x.com")
    alice_chat = make_client(client)
    carol = next(u for u in alice_chat.users.users if u["userName"] == "carol")

    assert alice_chat.messages.send("hi bob", bob_user["id"], is_dm=True)
    assert alice_chat.messages.send("hi carol", carol["id"], is_dm=True)
    assert len(alice_chat.messages.direct_messages) == 2

    assert alice_chat.feed() is None
    alice_chat.users.select_dm_user(bob_user)
    assert [m["content"] for m in alice_chat.feed()] == ["hi bob"]


def test_poll_once_picks_up_new_messages(client: TestClient, alice, bob):
    channel = add_channel(client, "general").json()["channel"]
    alice_chat = make_client(client, "a@x.com")
    bob_chat = make_client(client, "b@x.com")
    alice_chat.channels.select(channel)
    bob_chat.channels.select(channel)

    bob_chat.messages.send("anyone here?", channel["id"], is_dm=False)
    assert alice_chat.messages.channel_messages == []
    alice_chat.messages.poll_once()
    assert [m["content"] for m in alice_chat.messages.channel_messages] == ["anyone here?"]


def test_poller_starts_and_stops(client: TestClient, alice):
    chat = make_client(client)
    poller = MessagePoller(chat.messages, interval=0.01)
    poller.start()
    poller.stop()
    assert poller._thread is None


def test_visible_messages_with_nothing_selected():
    assert visible_messages([], [], None, None, None) is None


def test_visible_messages_filters_conversation():
    me, other, third = {"id": "a"}, {"id": "b"}, {"id": "c"}
    dms = [
        {"content": "1", "userId": "a", "recipientId": "b"},
        {"content": "2", "userId": "b", "recipientId": "a"},
        {"content": "3", "userId": "a", "recipientId": "c"},
    ]
    assert [m["content"] for m in visible_messages([], dms, None, other, me)] == ["1", "2"]
    assert [m["content"] for m in visible_messages([], dms, None, third, me)] == ["3"]
