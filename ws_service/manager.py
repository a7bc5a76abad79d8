from fastapi import WebSocket
from typing import List
import json
from settings import logger
from store.events import ChangeEvent


class ConnectionManager:
    """Keeps the open board views and pushes store changes to them.

    A view that cannot be written to is dropped on the spot; it reconnects
    and reloads the board on its own.
    """

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info("Board view subscribed to changes", extra={
            "open_views": len(self.active_connections)
        })

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info("Board view unsubscribed", extra={
                "open_views": len(self.active_connections)
            })

    async def _push(self, websocket: WebSocket, payload: str) -> bool:
        try:
            await websocket.send_text(payload)
            return True
        except Exception as e:
            logger.warning("Dropping board view after failed push", extra={
                "error": str(e)
            })
            return False

    async def broadcast(self, message: str):
        """Push one serialized change to every open view."""
        if not self.active_connections:
            return

        lost = [
            connection
            for connection in list(self.active_connections)
            if not await self._push(connection, message)
        ]
        for connection in lost:
            self.disconnect(connection)

    async def publish_change(self, event: ChangeEvent):
        """Change feed listener."""
        logger.debug("Publishing board change", extra={
            "action": event.action,
            "entity": event.entity,
            "open_views": len(self.active_connections)
        })
        await self.broadcast(json.dumps(event.as_dict()))

    async def send_to_connection(self, websocket: WebSocket, message: str):
        if not await self._push(websocket, message):
            self.disconnect(websocket)

    def get_connection_count(self) -> int:
        return len(self.active_connections)


manager = ConnectionManager()
