import json
import logging
from datetime import datetime, timezone

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Admin browser sessions listening for "data changed" notifications.

    Delivery is best effort: a client whose send fails is dropped and
    will pick up fresh data when it reconnects and refetches.
    """

    def __init__(self):
        self._clients: set[WebSocket] = set()

    @property
    def count(self) -> int:
        return len(self._clients)

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self._clients.add(ws)
        logger.info("Admin client connected to WebSocket (%d connected)", self.count)

    async def disconnect(self, ws: WebSocket):
        self._clients.discard(ws)
        logger.info("Admin client disconnected from WebSocket (%d connected)", self.count)

    async def broadcast(self, message: dict):
        text = json.dumps(message, default=str)
        clients = list(self._clients)
        dead = []
        for ws in clients:
            if ws.client_state != WebSocketState.CONNECTED:
                dead.append(ws)
                continue
            try:
                await ws.send_text(text)
            except Exception as e:
                logger.warning("WebSocket send failed, dropping client: %s", e)
                dead.append(ws)
        for ws in dead:
            self._clients.discard(ws)
        logger.debug("Broadcast %s to %d clients", message.get("type"), len(clients) - len(dead))


manager = ConnectionManager()


def event(event_type: str, **data) -> dict:
    data["timestamp"] = datetime.now(timezone.utc).isoformat()
    return {"type": event_type, "data": data}


async def admin_socket(ws: WebSocket):
    await manager.connect(ws)
    try:
        while True:
            # Clients never send anything meaningful; reading keeps the
            # connection open and surfaces disconnects.
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
    finally:
        await manager.disconnect(ws)
