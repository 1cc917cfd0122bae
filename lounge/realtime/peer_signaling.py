"""PeerJS-compatible WebRTC signaling relay.

Browsers running the PeerJS client open a WebSocket here and exchange
OFFER / ANSWER / CANDIDATE messages addressed by peer id. Only signaling
metadata passes through; media flows peer to peer.
"""

import json
import uuid

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = structlog.get_logger()

RELAYED_TYPES = {"OFFER", "ANSWER", "CANDIDATE", "LEAVE", "EXPIRE"}
# Undeliverable messages of these types bounce back as EXPIRE
EXPIRING_TYPES = {"OFFER", "ANSWER", "CANDIDATE"}


class PeerRegistry:
    """Connected PeerJS clients keyed by peer id."""

    def __init__(self) -> None:
        self._peers: dict[str, tuple[str, WebSocket]] = {}

    def claim(self, peer_id: str, token: str, ws: WebSocket) -> bool:
        """Register ``peer_id``; False when another token already holds it."""
        current = self._peers.get(peer_id)
        if current is not None and current[0] != token:
            return False
        self._peers[peer_id] = (token, ws)
        return True

    def release(self, peer_id: str, ws: WebSocket) -> None:
        current = self._peers.get(peer_id)
        if current is not None and current[1] is ws:
            del self._peers[peer_id]

    def get_ws(self, peer_id: str) -> WebSocket | None:
        entry = self._peers.get(peer_id)
        return entry[1] if entry else None

    def peer_ids(self) -> list[str]:
        return list(self._peers)


registry = PeerRegistry()

router = APIRouter(prefix="/peerjs", tags=["signaling"])


@router.get("")
async def describe() -> dict:
    """Server descriptor polled by PeerJS clients."""
    return {
        "name": "PeerJS Server",
        "description": (
            "A server side element to broker connections between PeerJS clients."
        ),
        "website": "https://peerjs.com/",
    }


@router.get("/{key}/id")
async def new_peer_id(key: str) -> str:
    """Hand out a fresh random peer id."""
    return str(uuid.uuid4())


async def _send(ws: WebSocket, message: dict) -> None:
    await ws.send_text(json.dumps(message))


@router.websocket("/peerjs")
async def signaling(ws: WebSocket) -> None:
    """Relay signaling messages between connected peers."""
    peer_id = ws.query_params.get("id")
    token = ws.query_params.get("token")

    await ws.accept()
    if not peer_id or not token:
        await _send(
            ws,
            {
                "type": "ERROR",
                "payload": {"msg": "No id, token, or key supplied to websocket server"},
            },
        )
        await ws.close()
        return
    if not registry.claim(peer_id, token, ws):
        await _send(ws, {"type": "ID-TAKEN", "payload": {"msg": "ID is taken"}})
        await ws.close()
        return

    await _send(ws, {"type": "OPEN"})
    logger.debug("Peer connected", peer_id=peer_id)

    try:
        while True:
            raw = await ws.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Malformed signaling frame", peer_id=peer_id)
                continue
            if not isinstance(message, dict):
                continue

            mtype = message.get("type")
            if mtype == "HEARTBEAT" or mtype not in RELAYED_TYPES:
                continue
            dst = message.get("dst")
            if not dst:
                continue

            target = registry.get_ws(dst)
            if target is not None:
                await _send(target, {**message, "src": peer_id})
            elif mtype in EXPIRING_TYPES:
                await _send(ws, {"type": "EXPIRE", "src": dst, "dst": peer_id})
    except WebSocketDisconnect:
        pass
    finally:
        registry.release(peer_id, ws)
        logger.debug("Peer disconnected", peer_id=peer_id)
