"""Socket.IO event handlers for presence, chat relay and voice signaling."""

import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import socketio
import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import cookie_parser

from lounge.core.exceptions import (
    AuthorizationError,
    MessageNotFoundError,
    UserNotFoundError,
)
from lounge.realtime.presence import PresenceStore, ReactionStore
from lounge.repositories.message_repo import MessageRepository
from lounge.repositories.user_repo import UserRepository
from lounge.schemas.realtime_schema import (
    ALLOWED_REACTIONS,
    AdminActionIn,
    ChatMessageIn,
    DeleteMessageIn,
    PeerIn,
    ReactionIn,
    SpeakingIn,
    StatusChangeIn,
)
from lounge.services.message_service import MessageService, StoredMessage
from lounge.services.user_service import UserService

logger = structlog.get_logger()

TYPING_EXPIRY_SECONDS = 10

# Unsaved messages that can still collect reactions
MAX_LOCAL_MESSAGE_IDS = 500

SessionResolver = Callable[[str | None], Awaitable[str | None]]


class ChatHub:
    """Binds Socket.IO events to the in-memory presence state and the database.

    Actor identity always comes from the presence map, which is keyed by the
    socket id and filled from the session cookie checked at connect time.
    """

    def __init__(
        self,
        sio: socketio.AsyncServer,
        session_factory: async_sessionmaker[AsyncSession],
        resolve_session: SessionResolver,
        cookie_name: str,
        admin_username: str = "admin",
        max_message_length: int = 2000,
        presence: PresenceStore | None = None,
        reactions: ReactionStore | None = None,
    ) -> None:
        self._sio = sio
        self._session_factory = session_factory
        self._resolve_session = resolve_session
        self._cookie_name = cookie_name
        self._admin_username = admin_username
        self._max_message_length = max_message_length
        self.presence = presence if presence is not None else PresenceStore()
        self.reactions = reactions if reactions is not None else ReactionStore()
        # sid -> username proven by the session cookie at connect time
        self._identities: dict[str, str] = {}
        # ids of messages relayed without a database row, oldest first
        self._local_message_ids: dict[str, None] = {}

    def register(self) -> None:
        """Attach every handler to the Socket.IO server."""
        handlers: dict[str, Callable[..., Awaitable[Any]]] = {
            "connect": self.on_connect,
            "disconnect": self.on_disconnect,
            "user_joined": self.on_user_joined,
            "chat_message": self.on_chat_message,
            "typing_start": self.on_typing_start,
            "typing_stop": self.on_typing_stop,
            "status_change": self.on_status_change,
            "voice_speaking": self.on_voice_speaking,
            "toggle_reaction": self.on_toggle_reaction,
            "delete_message": self.on_delete_message,
            "admin_action": self.on_admin_action,
            "join-voice": self.on_join_voice,
            "leave-voice": self.on_leave_voice,
            "start-screenshare": self.on_start_screenshare,
            "stop-screenshare": self.on_stop_screenshare,
            "screenshare-request": self.on_screenshare_request,
        }
        for event, handler in handlers.items():
            self._sio.on(event, handler)

    # --- emit helpers ---

    async def _broadcast(
        self, event: str, data: Any, skip_sid: str | None = None
    ) -> None:
        await self._sio.emit(event, data, skip_sid=skip_sid)

    async def _send(self, sid: str, event: str, data: Any) -> None:
        await self._sio.emit(event, data, to=sid)

    async def _broadcast_user_list(self) -> None:
        await self._broadcast("update_user_list", self.presence.online_usernames())
        await self._broadcast("current_voice_users", self.presence.voice_members())

    def _message_service(self, session: AsyncSession) -> MessageService:
        return MessageService(
            message_repo=MessageRepository(session),
            user_repo=UserRepository(session),
            session=session,
            admin_username=self._admin_username,
        )

    def _actor(self, sid: str) -> str | None:
        username = self.presence.username_for(sid)
        if username is None:
            logger.debug("Event from socket without presence", sid=sid)
        return username

    def _remember_local_id(self, message_id: str) -> None:
        self._local_message_ids[message_id] = None
        while len(self._local_message_ids) > MAX_LOCAL_MESSAGE_IDS:
            oldest = next(iter(self._local_message_ids))
            del self._local_message_ids[oldest]
            self.reactions.forget(oldest)

    async def _message_exists(self, message_id: int | str) -> bool:
        """True for stored messages and recently relayed unsaved ones."""
        if isinstance(message_id, str):
            return message_id in self._local_message_ids
        try:
            async with self._session_factory() as session:
                found = await MessageRepository(session).find_by_id(message_id)
        except SQLAlchemyError:
            logger.exception("Message lookup failed", message_id=message_id)
            return False
        return found is not None

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, event: str) -> Any:
        try:
            return model.model_validate(data if isinstance(data, dict) else {})
        except ValidationError as e:
            logger.warning(
                "Invalid socket payload", socket_event=event, errors=e.error_count()
            )
            return None

    # --- connection lifecycle ---

    async def on_connect(
        self, sid: str, environ: dict, auth: Any = None
    ) -> None:
        """Accept the socket only when it carries a live session cookie."""
        raw = environ.get("HTTP_COOKIE", "")
        cookie = cookie_parser(raw).get(self._cookie_name) if raw else None
        username = await self._resolve_session(cookie)
        if username is None:
            raise socketio.exceptions.ConnectionRefusedError("authentication required")
        self._identities[sid] = username

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        """Drop every trace of the socket and announce what changed."""
        self._identities.pop(sid, None)
        username = self.presence.disconnect(sid)
        if username is None:
            return

        if self.presence.leave_voice(username):
            await self._broadcast(
                "user-voice-status", {"username": username, "inVoice": False}
            )
        if self.presence.stop_typing(username):
            await self._broadcast(
                "user_typing", {"username": username, "typing": False}
            )
        if self.presence.stop_screen_share(username):
            await self._broadcast("user-stopped-screenshare", {"username": username})

        self.presence.set_status(username, "offline")
        await self._broadcast(
            "user_status_update", {"username": username, "status": "offline"}
        )
        logger.info("User disconnected", username=username, sid=sid)
        await self._broadcast_user_list()

    async def on_user_joined(self, sid: str, data: Any = None) -> None:
        """Enter the presence map and sync the newcomer with current state."""
        username = self._identities.get(sid)
        if username is None:
            return
        claimed = data.get("username") if isinstance(data, dict) else data
        if claimed and claimed != username:
            logger.warning("Claimed username ignored", sid=sid, username=username)

        stale = self.presence.connect(sid, username)
        for old_sid in stale:
            self._identities.pop(old_sid, None)

        status = "online"
        try:
            async with self._session_factory() as session:
                user = await UserRepository(session).find_by_username(username)
                if user is not None and user.status:
                    status = user.status
        except SQLAlchemyError:
            logger.exception("Status lookup failed", username=username)
        self.presence.set_status(username, status)

        logger.info("User connected", username=username, sid=sid)
        await self._send(sid, "current_voice_users", self.presence.voice_members())
        await self._send(sid, "all_user_status", self.presence.statuses())
        share = self.presence.screen_share
        if share is not None:
            await self._send(sid, "current-screenshare", share.to_event())

        await self._broadcast(
            "user_status_update", {"username": username, "status": status}
        )
        await self._broadcast_user_list()

    # --- chat ---

    async def on_chat_message(self, sid: str, data: Any = None) -> None:
        """Persist and relay a chat message to every connected socket."""
        username = self._actor(sid)
        if username is None:
            return
        if isinstance(data, str):
            data = {"content": data}
        payload = self._parse(ChatMessageIn, data, "chat_message")
        if payload is None:
            return
        content = payload.content.strip()
        if not content or len(content) > self._max_message_length:
            logger.warning(
                "Chat message rejected", username=username, length=len(content)
            )
            return

        try:
            async with self._session_factory() as session:
                stored = await self._message_service(session).post(username, content)
        except (SQLAlchemyError, UserNotFoundError):
            logger.exception(
                "Message insert failed, relaying unsaved", username=username
            )
            stored = StoredMessage(
                id=f"local-{uuid.uuid4().hex}",
                user_id=None,
                username=username,
                content=content,
                created_at=datetime.now(UTC),
            )
            self._remember_local_id(str(stored.id))

        if self.presence.stop_typing(username):
            await self._broadcast(
                "user_typing", {"username": username, "typing": False}, skip_sid=sid
            )
        await self._broadcast("new_message", stored.to_event())

    async def on_typing_start(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        for name in self.presence.expire_typing(TYPING_EXPIRY_SECONDS):
            await self._broadcast("user_typing", {"username": name, "typing": False})
        self.presence.start_typing(username)
        await self._broadcast(
            "user_typing", {"username": username, "typing": True}, skip_sid=sid
        )

    async def on_typing_stop(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        self.presence.stop_typing(username)
        await self._broadcast(
            "user_typing", {"username": username, "typing": False}, skip_sid=sid
        )

    async def on_status_change(self, sid: str, data: Any = None) -> None:
        """Persist a new status and announce it."""
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(StatusChangeIn, data, "status_change")
        if payload is None:
            return

        try:
            async with self._session_factory() as session:
                await UserService(
                    user_repo=UserRepository(session),
                    session=session,
                    username=username,
                ).set_status(payload.status)
        except (SQLAlchemyError, UserNotFoundError):
            logger.exception("Status update not persisted", username=username)

        self.presence.set_status(username, payload.status)
        await self._broadcast(
            "user_status_update", {"username": username, "status": payload.status}
        )

    async def on_voice_speaking(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(SpeakingIn, data, "voice_speaking")
        if payload is None:
            return
        await self._broadcast(
            "user_speaking",
            {"username": username, "speaking": payload.speaking},
            skip_sid=sid,
        )

    async def on_toggle_reaction(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(ReactionIn, data, "toggle_reaction")
        if payload is None:
            return
        if payload.emoji not in ALLOWED_REACTIONS:
            logger.warning("Reaction rejected", username=username)
            return
        if not await self._message_exists(payload.message_id):
            logger.warning("Reaction on unknown message", username=username)
            return

        active, count = self.reactions.toggle(
            str(payload.message_id), payload.emoji, username
        )
        await self._broadcast(
            "reaction_toggled",
            {
                "messageId": payload.message_id,
                "emoji": payload.emoji,
                "username": username,
                "active": active,
                "count": count,
            },
        )

    async def on_delete_message(self, sid: str, data: Any = None) -> None:
        """Delete a message; authors may delete their own, the admin any."""
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(DeleteMessageIn, data, "delete_message")
        if payload is None:
            return

        async with self._session_factory() as session:
            try:
                await self._message_service(session).delete(
                    username, payload.message_id
                )
            except AuthorizationError:
                logger.warning(
                    "Delete rejected", username=username, message_id=payload.message_id
                )
                return
            except MessageNotFoundError:
                return

        self.reactions.forget(str(payload.message_id))
        logger.info("Message deleted", username=username, message_id=payload.message_id)
        await self._broadcast("message_deleted", {"messageId": payload.message_id})

    async def on_admin_action(self, sid: str, data: Any = None) -> None:
        """Admin-only moderation. Anyone else is refused without side effects."""
        username = self._actor(sid)
        if username is None:
            return
        if username != self._admin_username:
            logger.warning("Admin action rejected", username=username)
            return
        payload = self._parse(AdminActionIn, data, "admin_action")
        if payload is None:
            return

        async with self._session_factory() as session:
            removed = await self._message_service(session).clear(username)
        self.reactions.clear()
        self._local_message_ids.clear()
        logger.info("Chat cleared", username=username, removed=removed)
        await self._broadcast("chat_cleared", {"by": username})

    # --- voice and screen share ---

    async def on_join_voice(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(PeerIn, data, "join-voice")
        if payload is None:
            return

        self.presence.join_voice(username, payload.peer_id)
        logger.info("Joined voice", username=username)
        member = {"username": username, "peerId": payload.peer_id}
        await self._broadcast("user-joined-voice", member, skip_sid=sid)
        await self._broadcast(
            "user-voice-status", {"username": username, "inVoice": True}, skip_sid=sid
        )

        share = self.presence.screen_share
        if share is not None and share.username != username:
            await self._send(sid, "current-screenshare", share.to_event())
            sharer_sid = self.presence.sid_for(share.username)
            if sharer_sid is not None:
                await self._send(sharer_sid, "new-viewer-for-screenshare", member)

    async def on_leave_voice(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        if not self.presence.leave_voice(username):
            return
        logger.info("Left voice", username=username)
        await self._broadcast(
            "user-voice-status", {"username": username, "inVoice": False}, skip_sid=sid
        )
        if self.presence.stop_screen_share(username):
            await self._broadcast("user-stopped-screenshare", {"username": username})

    async def on_start_screenshare(self, sid: str, data: Any = None) -> None:
        """Claim the single sharing slot or tell the caller who holds it."""
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(PeerIn, data, "start-screenshare")
        if payload is None:
            return

        if not self.presence.start_screen_share(username, payload.peer_id):
            holder = self.presence.screen_share
            await self._send(
                sid,
                "screenshare-denied",
                {
                    "reason": "Another user is already sharing their screen",
                    "username": holder.username if holder else None,
                },
            )
            return

        logger.info("Screen share started", username=username)
        await self._send(
            sid,
            "voice-users-for-screenshare",
            self.presence.voice_members(exclude=username),
        )
        await self._broadcast(
            "user-started-screenshare",
            {"username": username, "peerId": payload.peer_id},
            skip_sid=sid,
        )

    async def on_stop_screenshare(self, sid: str, data: Any = None) -> None:
        username = self._actor(sid)
        if username is None:
            return
        if self.presence.stop_screen_share(username):
            logger.info("Screen share stopped", username=username)
            await self._broadcast("user-stopped-screenshare", {"username": username})

    async def on_screenshare_request(self, sid: str, data: Any = None) -> None:
        """Ask the current sharer to call the requesting viewer."""
        username = self._actor(sid)
        if username is None:
            return
        payload = self._parse(PeerIn, data, "screenshare-request")
        if payload is None:
            return
        share = self.presence.screen_share
        if share is None or share.username == username:
            return
        sharer_sid = self.presence.sid_for(share.username)
        if sharer_sid is None:
            return
        await self._send(
            sharer_sid,
            "screenshare-request-notify",
            {"username": username, "peerId": payload.peer_id},
        )
