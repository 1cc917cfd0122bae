"""In-process presence, voice and screen-share state.

Everything here lives only as long as the process. Handlers on the event loop
are the sole writers, so nothing is locked.
"""

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScreenShare:
    """The one user currently sharing a screen."""

    username: str
    peer_id: str

    def to_event(self) -> dict:
        return {"username": self.username, "peerId": self.peer_id}


@dataclass
class PresenceStore:
    """Who is connected, in voice, typing, and sharing."""

    active_users: dict[str, str] = field(default_factory=dict)
    voice_users: dict[str, str] = field(default_factory=dict)
    user_status: dict[str, str] = field(default_factory=dict)
    typing_users: dict[str, float] = field(default_factory=dict)
    screen_share: ScreenShare | None = None

    # --- connections ---

    def connect(self, sid: str, username: str) -> list[str]:
        """Map ``sid`` to ``username``, dropping stale sids for the same user."""
        stale = [
            s for s, name in self.active_users.items() if name == username and s != sid
        ]
        for s in stale:
            del self.active_users[s]
        self.active_users[sid] = username
        return stale

    def disconnect(self, sid: str) -> str | None:
        """Forget ``sid``; returns its username if it was mapped."""
        return self.active_users.pop(sid, None)

    def username_for(self, sid: str) -> str | None:
        return self.active_users.get(sid)

    def sid_for(self, username: str) -> str | None:
        for sid, name in self.active_users.items():
            if name == username:
                return sid
        return None

    def is_online(self, username: str) -> bool:
        return username in self.active_users.values()

    def online_usernames(self) -> list[str]:
        """Distinct connected usernames in connection order."""
        return list(dict.fromkeys(self.active_users.values()))

    # --- status ---

    def set_status(self, username: str, status: str) -> None:
        self.user_status[username] = status

    def statuses(self) -> dict[str, str]:
        return dict(self.user_status)

    # --- voice ---

    def join_voice(self, username: str, peer_id: str) -> None:
        self.voice_users[username] = peer_id

    def leave_voice(self, username: str) -> bool:
        """Remove ``username`` from voice; True if it was a member."""
        return self.voice_users.pop(username, None) is not None

    def voice_members(self, exclude: str | None = None) -> list[dict]:
        return [
            {"username": name, "peerId": peer_id}
            for name, peer_id in self.voice_users.items()
            if name != exclude
        ]

    # --- typing ---

    def start_typing(self, username: str) -> None:
        self.typing_users[username] = time.monotonic()

    def stop_typing(self, username: str) -> bool:
        return self.typing_users.pop(username, None) is not None

    def expire_typing(self, max_age: float) -> list[str]:
        """Drop typing entries older than ``max_age`` seconds."""
        cutoff = time.monotonic() - max_age
        expired = [name for name, ts in self.typing_users.items() if ts < cutoff]
        for name in expired:
            del self.typing_users[name]
        return expired

    # --- screen share ---

    def start_screen_share(self, username: str, peer_id: str) -> bool:
        """Claim the single sharing slot. False if someone else holds it."""
        if self.screen_share is not None and self.screen_share.username != username:
            return False
        self.screen_share = ScreenShare(username=username, peer_id=peer_id)
        return True

    def stop_screen_share(self, username: str) -> bool:
        """Release the slot if ``username`` holds it."""
        if self.screen_share is None or self.screen_share.username != username:
            return False
        self.screen_share = None
        return True


@dataclass
class ReactionStore:
    """Emoji reactions per message: message id -> emoji -> usernames."""

    reactions: dict[str, dict[str, set[str]]] = field(default_factory=dict)

    def toggle(self, message_id: str, emoji: str, username: str) -> tuple[bool, int]:
        """Flip ``username``'s reaction. Returns (now active, new count)."""
        by_emoji = self.reactions.setdefault(message_id, {})
        users = by_emoji.setdefault(emoji, set())
        if username in users:
            users.discard(username)
            active = False
        else:
            users.add(username)
            active = True
        count = len(users)
        if not users:
            del by_emoji[emoji]
        if not by_emoji:
            del self.reactions[message_id]
        return active, count

    def forget(self, message_id: str) -> None:
        self.reactions.pop(message_id, None)

    def clear(self) -> None:
        self.reactions.clear()
