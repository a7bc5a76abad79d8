from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from helpers.dates import utc_now
from ws_service.manager import manager
from settings import logger
import json

router = APIRouter(tags=["websockets"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for board change notifications.

    Every mutation applied through the API is pushed as
    ``{"type": "board_changed", "action", "entity", "entity_id", "board_id"}``
    so open views can reload instead of polling.
    """
    await manager.connect(websocket)

    try:
        welcome_message = {
            "type": "connection_established",
            "message": "WebSocket connection established successfully",
            "active_connections": manager.get_connection_count()
        }
        await manager.send_to_connection(websocket, json.dumps(welcome_message))

        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON received from WebSocket client", extra={
                    "data": data[:100] + "..." if len(data) > 100 else data
                })
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                pong_response = {
                    "type": "pong",
                    "timestamp": message.get("timestamp"),
                    "server_time": utc_now().isoformat()
                }
                await manager.send_to_connection(websocket, json.dumps(pong_response))
            else:
                logger.debug("Unknown WebSocket message type", extra={
                    "message": message
                })

    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)


@router.get("/ws/stats")
async def get_websocket_stats():
    """Get WebSocket connection statistics."""
    return {
        "active_connections": manager.get_connection_count(),
        "status": "running"
    }
