"""Tests for the Socket.IO presence and chat handlers."""

import pytest
import socketio
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.realtime.hub import ChatHub
from lounge.repositories.message_repo import MessageRepository
from lounge.repositories.user_repo import UserRepository
from tests.conftest import COOKIE_NAME, FakeSocketServer, create_user, join


class TestRegistration:
    def test_register_binds_all_events(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        hub.register()
        for event in (
            "connect",
            "disconnect",
            "user_joined",
            "chat_message",
            "join-voice",
            "start-screenshare",
            "screenshare-request",
        ):
            assert event in fake_sio.handlers


class TestServerDispatch:
    """Handlers driven through a real socketio.AsyncServer."""

    @pytest.fixture
    def server(self, hub: ChatHub) -> tuple[socketio.AsyncServer, ChatHub]:
        sio = socketio.AsyncServer(async_mode="asgi")
        served = ChatHub(
            sio,
            session_factory=hub._session_factory,
            resolve_session=hub._resolve_session,
            cookie_name=COOKIE_NAME,
        )
        served.register()
        return sio, served

    async def test_connect_join_and_disconnect(
        self, server: tuple[socketio.AsyncServer, ChatHub]
    ) -> None:
        sio, served = server
        environ = {"HTTP_COOKIE": f"{COOKIE_NAME}=tok-alice"}
        await sio._trigger_event("connect", "/", "s1", environ, None)
        await sio._trigger_event("user_joined", "/", "s1", "alice")
        await sio._trigger_event("join-voice", "/", "s1", {"peerId": "pa"})
        await sio._trigger_event("join-voice", "/", "s1", {})
        assert served.presence.voice_users == {"alice": "pa"}

        await sio._trigger_event("disconnect", "/", "s1", "client disconnect")
        assert served.presence.active_users == {}
        assert served.presence.voice_users == {}

    async def test_connect_refused(
        self, server: tuple[socketio.AsyncServer, ChatHub]
    ) -> None:
        sio, _ = server
        with pytest.raises(socketio.exceptions.ConnectionRefusedError):
            await sio._trigger_event("connect", "/", "s1", {}, None)


class TestConnect:
    """Handshake gating."""

    async def test_refused_without_cookie(self, hub: ChatHub) -> None:
        with pytest.raises(socketio.exceptions.ConnectionRefusedError):
            await hub.on_connect("s1", {})

    async def test_refused_with_bad_cookie(self, hub: ChatHub) -> None:
        with pytest.raises(socketio.exceptions.ConnectionRefusedError):
            await hub.on_connect("s1", {"HTTP_COOKIE": f"{COOKIE_NAME}=garbage"})

    async def test_user_joined_without_handshake_is_ignored(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await hub.on_user_joined("s1", "alice")
        assert hub.presence.active_users == {}
        assert fake_sio.emitted == []


class TestUserJoined:
    async def test_broadcasts_presence(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice", status="busy")
        await join(hub, "s1", "alice")

        assert fake_sio.events("all_user_status")[0].data == {"alice": "busy"}
        assert fake_sio.events("all_user_status")[0].to == "s1"
        assert fake_sio.events("update_user_list")[-1].data == ["alice"]
        status = fake_sio.events("user_status_update")[-1]
        assert status.data == {"username": "alice", "status": "busy"}
        assert status.to is None

    async def test_claimed_username_is_ignored(self, hub: ChatHub) -> None:
        await hub.on_connect("s1", {"HTTP_COOKIE": f"{COOKIE_NAME}=tok-alice"})
        await hub.on_user_joined("s1", {"username": "mallory"})
        assert hub.presence.active_users == {"s1": "alice"}

    async def test_reconnect_replaces_stale_socket(self, hub: ChatHub) -> None:
        await join(hub, "s1", "alice")
        await join(hub, "s2", "alice")
        assert hub.presence.active_users == {"s2": "alice"}

    async def test_new_arrival_sees_screen_share(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        await hub.on_start_screenshare("s1", {"peerId": "pa"})
        fake_sio.clear()

        await join(hub, "s2", "bob")
        share = fake_sio.events("current-screenshare")
        assert share[0].to == "s2"
        assert share[0].data == {"username": "alice", "peerId": "pa"}


class TestChatMessage:
    async def test_single_broadcast_per_message(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await join(hub, "s1", "alice")
        fake_sio.clear()

        await hub.on_chat_message("s1", {"content": "hello"})
        await hub.on_chat_message("s1", {"message": "again"})

        sent = fake_sio.events("new_message")
        assert len(sent) == 2
        assert sent[0].data["username"] == "alice"
        assert sent[0].data["content"] == "hello"
        assert sent[0].to is None
        assert sent[1].data["id"] > sent[0].data["id"]

        stored = await MessageRepository(db_session).find_recent(10)
        assert [m.content for m in stored] == ["hello", "again"]

    async def test_relays_unsaved_when_persistence_fails(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "ghost")
        fake_sio.clear()

        await hub.on_chat_message("s1", "still here")

        sent = fake_sio.events("new_message")
        assert len(sent) == 1
        assert str(sent[0].data["id"]).startswith("local-")
        assert sent[0].data["content"] == "still here"

    @pytest.mark.parametrize("content", ["", "   ", "x" * 2001])
    async def test_rejects_bad_content(
        self, hub: ChatHub, fake_sio: FakeSocketServer, content: str
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()
        await hub.on_chat_message("s1", {"content": content})
        assert fake_sio.events("new_message") == []

    async def test_sending_clears_typing(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        await hub.on_typing_start("s1")
        fake_sio.clear()

        await hub.on_chat_message("s1", {"content": "done"})
        typing = fake_sio.events("user_typing")
        assert typing[0].data == {"username": "alice", "typing": False}
        assert "alice" not in hub.presence.typing_users


class TestTyping:
    async def test_start_and_stop_skip_sender(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()

        await hub.on_typing_start("s1")
        await hub.on_typing_stop("s1")
        typing = fake_sio.events("user_typing")
        assert [e.data["typing"] for e in typing] == [True, False]
        assert all(e.skip_sid == "s1" for e in typing)


class TestStatusChange:
    async def test_persists_and_broadcasts(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await join(hub, "s1", "alice")
        fake_sio.clear()

        await hub.on_status_change("s1", {"status": "away"})

        update = fake_sio.events("user_status_update")
        assert update[0].data == {"username": "alice", "status": "away"}
        db_session.expire_all()
        user = await UserRepository(db_session).find_by_username("alice")
        assert user is not None
        assert user.status == "away"

    async def test_rejects_unknown_status(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()
        await hub.on_status_change("s1", {"status": "offline"})
        assert fake_sio.events("user_status_update") == []


class TestReactions:
    async def test_toggle(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await join(hub, "s1", "alice")
        await hub.on_chat_message("s1", {"content": "react to me"})
        message_id = fake_sio.events("new_message")[0].data["id"]
        fake_sio.clear()

        await hub.on_toggle_reaction("s1", {"messageId": message_id, "emoji": "👍"})
        await hub.on_toggle_reaction("s1", {"messageId": message_id, "emoji": "👍"})

        toggles = [e.data for e in fake_sio.events("reaction_toggled")]
        assert toggles[0]["active"] is True
        assert toggles[0]["count"] == 1
        assert toggles[1]["active"] is False
        assert toggles[1]["count"] == 0

    async def test_unsaved_message_accepts_reactions(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "ghost")
        await hub.on_chat_message("s1", {"content": "not stored"})
        message_id = fake_sio.events("new_message")[0].data["id"]
        fake_sio.clear()

        await hub.on_toggle_reaction("s1", {"messageId": message_id, "emoji": "🔥"})
        assert fake_sio.events("reaction_toggled")[0].data["messageId"] == message_id

    async def test_unknown_emoji_rejected(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()
        await hub.on_toggle_reaction("s1", {"messageId": 7, "emoji": "<b>"})
        assert fake_sio.events("reaction_toggled") == []

    @pytest.mark.parametrize(
        "message_id",
        [999, "x" * 10_000, "local-" + "0" * 32, "local-nothex"],
    )
    async def test_unknown_message_rejected(
        self, hub: ChatHub, fake_sio: FakeSocketServer, message_id: object
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()

        for _ in range(3):
            await hub.on_toggle_reaction(
                "s1", {"messageId": message_id, "emoji": "👍"}
            )

        assert fake_sio.events("reaction_toggled") == []
        assert hub.reactions.reactions == {}

    async def test_unsaved_ids_are_bounded(
        self, hub: ChatHub, fake_sio: FakeSocketServer, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("lounge.realtime.hub.MAX_LOCAL_MESSAGE_IDS", 2)
        await join(hub, "s1", "ghost")
        for text in ("one", "two", "three"):
            await hub.on_chat_message("s1", {"content": text})
        first, _, last = [e.data["id"] for e in fake_sio.events("new_message")]
        fake_sio.clear()

        await hub.on_toggle_reaction("s1", {"messageId": first, "emoji": "👍"})
        await hub.on_toggle_reaction("s1", {"messageId": last, "emoji": "👍"})

        toggled = [e.data["messageId"] for e in fake_sio.events("reaction_toggled")]
        assert toggled == [last]


class TestInvalidPayloads:
    """Malformed payloads are dropped without raising."""

    @pytest.mark.parametrize(
        ("handler", "data"),
        [
            ("on_join_voice", {}),
            ("on_start_screenshare", {"peerId": ""}),
            ("on_screenshare_request", None),
            ("on_status_change", {"status": "offline"}),
            ("on_delete_message", {"messageId": "abc"}),
            ("on_toggle_reaction", {"emoji": "👍"}),
            ("on_voice_speaking", {"speaking": "loud"}),
            ("on_chat_message", {}),
        ],
    )
    async def test_dropped(
        self, hub: ChatHub, fake_sio: FakeSocketServer, handler: str, data: object
    ) -> None:
        await join(hub, "s1", "alice")
        fake_sio.clear()

        await getattr(hub, handler)("s1", data)

        assert fake_sio.emitted == []

    async def test_admin_action_with_bad_payload(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "admin")
        fake_sio.clear()
        await hub.on_admin_action("s1", {"action": "drop_tables"})
        assert fake_sio.emitted == []


class TestModeration:
    async def _post(
        self, hub: ChatHub, fake_sio: FakeSocketServer, sid: str, text: str
    ) -> int:
        await hub.on_chat_message(sid, {"content": text})
        return fake_sio.events("new_message")[-1].data["id"]

    async def test_author_deletes_own(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await join(hub, "s1", "alice")
        message_id = await self._post(hub, fake_sio, "s1", "oops")

        await hub.on_delete_message("s1", {"messageId": message_id})

        assert fake_sio.events("message_deleted")[0].data == {"messageId": message_id}
        assert await MessageRepository(db_session).find_by_id(message_id) is None

    async def test_cannot_delete_others(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await create_user(db_session, "bob")
        await join(hub, "s1", "alice")
        await join(hub, "s2", "bob")
        message_id = await self._post(hub, fake_sio, "s1", "mine")

        await hub.on_delete_message("s2", {"messageId": message_id})

        assert fake_sio.events("message_deleted") == []
        assert await MessageRepository(db_session).find_by_id(message_id) is not None

    async def test_admin_deletes_any(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await create_user(db_session, "admin")
        await join(hub, "s1", "alice")
        await join(hub, "s2", "admin")
        message_id = await self._post(hub, fake_sio, "s1", "spam")

        await hub.on_delete_message("s2", {"messageId": message_id})
        assert len(fake_sio.events("message_deleted")) == 1

    async def test_clear_chat_admin_only(
        self, hub: ChatHub, fake_sio: FakeSocketServer, db_session: AsyncSession
    ) -> None:
        await create_user(db_session, "alice")
        await create_user(db_session, "admin")
        await join(hub, "s1", "alice")
        await join(hub, "s2", "admin")
        await self._post(hub, fake_sio, "s1", "one")
        await self._post(hub, fake_sio, "s1", "two")

        await hub.on_admin_action("s1", {"action": "clear_chat"})
        assert fake_sio.events("chat_cleared") == []
        assert len(await MessageRepository(db_session).find_recent(10)) == 2

        await hub.on_admin_action("s2", {"action": "clear_chat"})
        assert fake_sio.events("chat_cleared")[0].data == {"by": "admin"}
        assert await MessageRepository(db_session).find_recent(10) == []


class TestDisconnect:
    async def test_cleans_up_everything(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await join(hub, "s1", "alice")
        await hub.on_join_voice("s1", {"peerId": "pa"})
        await hub.on_start_screenshare("s1", {"peerId": "pa"})
        await hub.on_typing_start("s1")
        fake_sio.clear()

        await hub.on_disconnect("s1")

        assert fake_sio.events("user-voice-status")[0].data == {
            "username": "alice",
            "inVoice": False,
        }
        assert fake_sio.events("user-stopped-screenshare")[0].data == {
            "username": "alice"
        }
        assert fake_sio.events("user_status_update")[0].data["status"] == "offline"
        assert fake_sio.events("update_user_list")[-1].data == []
        assert hub.presence.screen_share is None
        assert hub.presence.voice_users == {}
        assert hub.presence.typing_users == {}

    async def test_unknown_sid_is_noop(
        self, hub: ChatHub, fake_sio: FakeSocketServer
    ) -> None:
        await hub.on_disconnect("nope")
        assert fake_sio.emitted == []
